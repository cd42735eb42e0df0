"""Migration orchestrator for importing GitLab projects into Gitea."""

import asyncio
from typing import List, Optional

from loguru import logger

from ..api.exceptions import APIError
from ..api.gitea import GiteaClient
from ..api.gitlab import GitLabClient
from ..models.deploy_key import DeployKey
from ..models.outcome import RequestOutcome
from ..models.owner import Owner
from ..models.project import Project
from .progress import ProgressReporter
from .result import MigrationResult


def repo_name(project: Project) -> str:
    """Destination repository name for a project.

    The top-level namespace is dropped and deeper namespaces are joined with
    hyphens: ``group/subgroup/project`` becomes ``subgroup-project``.
    """
    return project.full_path.split('/', 1)[-1].replace('/', '-')


class MigrationOrchestrator:
    """Fans out import and deploy key requests and collects their outcomes.

    Requests run concurrently on one event loop. Outcomes are appended to the
    result as they settle, so bucket order follows completion order.
    """

    def __init__(
        self,
        source: GitLabClient,
        destination: GiteaClient,
        progress: Optional[ProgressReporter] = None,
    ):
        """Initialize migration orchestrator.

        Args:
            source: Client for the GitLab instance projects come from
            destination: Client for the Gitea instance projects go to
            progress: Progress sink, silent when omitted
        """
        self.source = source
        self.destination = destination
        self.progress = progress or ProgressReporter()
        self.logger = logger.bind(component='MigrationOrchestrator')

    async def migrate_projects(
        self, projects: List[Project], owner: Owner
    ) -> MigrationResult:
        """Import every project into the owner's namespace.

        Each project ends up in exactly one of succeeded, skipped or failed.

        Args:
            projects: Projects to migrate
            owner: Destination owner

        Returns:
            Migration result
        """
        result = MigrationResult()
        self.logger.info(f'Migrating {len(projects)} projects to {owner.username}')

        self.progress.start(len(projects))
        try:
            await asyncio.gather(
                *(self._migrate_project(project, owner, result) for project in projects)
            )
        finally:
            self.progress.stop()

        self.logger.info(
            f'Project migration finished: {len(result.succeeded)} migrated, '
            f'{len(result.skipped)} skipped, {len(result.failed)} failed'
        )
        return result

    async def _migrate_project(
        self, project: Project, owner: Owner, result: MigrationResult
    ) -> None:
        name = repo_name(project)
        try:
            outcome = await self.destination.create_by_import(
                clone_url=project.http_url,
                auth_username=self.source.config.username,
                auth_token=self.source.config.token,
                repo_name=name,
                description=project.description,
                owner_id=owner.id,
                public=project.is_public,
            )
            result.record(
                project,
                outcome,
                f'Failed to migrate {owner.username}/{name} from {project.http_url}:',
            )
        finally:
            self.progress.increment()

    async def migrate_keys(self, projects: List[Project], owner: Owner) -> MigrationResult:
        """Copy each project's deploy keys to its migrated repository.

        Keys are fetched one project at a time; attachments for all keys run
        concurrently and are joined at the end. Outcomes are filed per key, so
        a project with several keys can appear in more than one bucket, and a
        project without keys appears in none.

        Args:
            projects: Projects whose keys are migrated
            owner: Destination owner

        Returns:
            Migration result
        """
        result = MigrationResult()
        attachments: List[asyncio.Task] = []
        self.logger.info(f'Migrating deploy keys of {len(projects)} projects')

        self.progress.start(len(projects))
        try:
            for project in projects:
                name = repo_name(project)
                context = (
                    f'Failed to migrate keys for {owner.username}/{name} '
                    f'from {project.http_url}:'
                )

                try:
                    keys = await self.source.list_deploy_keys(project)
                except APIError as e:
                    self.logger.warning(f'Could not fetch keys of {project.full_path}: {e}')
                    result.record(project, RequestOutcome.from_error(e), context)
                    self.progress.increment()
                    continue

                for key in keys:
                    attachments.append(
                        asyncio.create_task(
                            self._attach_key(project, owner, name, key, context, result)
                        )
                    )
                self.progress.increment()

            await asyncio.gather(*attachments)
        finally:
            self.progress.stop()

        self.logger.info(
            f'Key migration finished: {len(result.succeeded)} attached, '
            f'{len(result.skipped)} skipped, {len(result.failed)} failed'
        )
        return result

    async def _attach_key(
        self,
        project: Project,
        owner: Owner,
        name: str,
        key: DeployKey,
        context: str,
        result: MigrationResult,
    ) -> None:
        outcome = await self.destination.attach_deploy_key(owner.username, name, key)
        result.record(project, outcome, context)
