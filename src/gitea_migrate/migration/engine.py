"""Migration engine - main entry point for migration operations."""

from datetime import datetime
from typing import List, Optional

from loguru import logger

from ..api.factory import ClientFactory
from ..config.config import Config
from ..models.owner import Owner
from ..models.project import Project
from .orchestrator import MigrationOrchestrator
from .progress import ProgressReporter
from .result import MigrationSummary


class MigrationEngine:
    """Wires clients and orchestrator together from configuration."""

    def __init__(self, config: Config, progress: Optional[ProgressReporter] = None):
        """Initialize migration engine.

        Args:
            config: Migration configuration
            progress: Progress sink handed to the orchestrator
        """
        self.config = config
        self.logger = logger.bind(component='MigrationEngine')

        self.source_client = ClientFactory.create_source_client(config.source)
        self.destination_client = ClientFactory.create_destination_client(
            config.destination
        )

        self.orchestrator = MigrationOrchestrator(
            self.source_client, self.destination_client, progress
        )

    async def list_projects(self) -> List[Project]:
        """List source projects in display order, empty when the source fails."""
        return await self.source_client.list_projects()

    async def list_owners(self) -> List[Owner]:
        """List candidate destination owners.

        Raises:
            UpstreamUnavailableError: If the owners cannot be looked up
        """
        return await self.destination_client.list_owners()

    async def migrate(
        self,
        projects: List[Project],
        owner: Owner,
        migrate_keys: Optional[bool] = None,
    ) -> MigrationSummary:
        """Migrate projects and, optionally, their deploy keys.

        Args:
            projects: Selected projects
            owner: Destination owner
            migrate_keys: Run the key pass; defaults to the configured setting

        Returns:
            Migration summary
        """
        if migrate_keys is None:
            migrate_keys = self.config.migration.migrate_keys

        started_at = datetime.now()
        self.logger.info(f'Starting migration of {len(projects)} projects')

        project_result = await self.orchestrator.migrate_projects(projects, owner)

        key_result = None
        if migrate_keys:
            key_result = await self.orchestrator.migrate_keys(projects, owner)

        summary = MigrationSummary(
            projects=project_result,
            keys=key_result,
            started_at=started_at,
            completed_at=datetime.now(),
        )

        self.logger.info(
            f'Migration completed: {len(project_result.succeeded)} migrated, '
            f'{len(project_result.skipped)} skipped, {len(project_result.failed)} failed'
        )
        return summary

    def test_connectivity(self) -> None:
        """Test connectivity to both instances.

        Raises:
            ConnectionError: If connectivity test fails
        """
        self.logger.info('Testing connectivity to GitLab and Gitea')

        if not self.source_client.test_connection():
            raise ConnectionError('Cannot connect to source GitLab instance')

        if not self.destination_client.test_connection():
            raise ConnectionError('Cannot connect to destination Gitea instance')

        self.logger.info('Connectivity tests passed')

    def close(self) -> None:
        """Close both client sessions."""
        self.source_client.close()
        self.destination_client.close()
