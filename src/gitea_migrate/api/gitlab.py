"""GitLab (source) API client."""

from typing import Dict, Iterable, List

from loguru import logger

from ..config.config import SourceConfig
from ..models.deploy_key import DeployKey
from ..models.project import Project, full_name_sort_key
from .client import APIClient
from .exceptions import APIError, UpstreamUnavailableError


def sort_projects(projects: Iterable[Project]) -> List[Project]:
    """Order projects by namespaced display name, shallower names first."""
    return sorted(projects, key=lambda project: full_name_sort_key(project.full_name))


class GitLabClient(APIClient):
    """Lists projects and deploy keys on the source GitLab instance."""

    platform = 'GitLab'

    def __init__(self, config: SourceConfig):
        super().__init__(config, config.api_version)

    def _auth_headers(self) -> Dict[str, str]:
        return {'Private-Token': self.config.token}

    async def fetch_projects(self) -> List[Project]:
        """Fetch every visible project, sorted for display.

        Raises:
            UpstreamUnavailableError: If the instance is unreachable or errors
        """
        try:
            records = await self.get_paginated_async(
                '/projects', params=self.config.project_params
            )
        except APIError as e:
            raise UpstreamUnavailableError(
                f'Could not fetch projects from GitLab instance. {e}',
                status_code=e.status_code,
                response_data=e.response_data,
                reason=e.reason,
            ) from e

        return sort_projects(Project.from_api(record) for record in records)

    async def list_projects(self) -> List[Project]:
        """List projects, logging and returning an empty list on failure."""
        try:
            return await self.fetch_projects()
        except UpstreamUnavailableError as e:
            logger.error(str(e))
            return []

    async def list_deploy_keys(self, project: Project) -> List[DeployKey]:
        """Fetch the deploy keys of one project.

        Raises:
            APIError: If the keys cannot be fetched
        """
        response = await self.get_async(f'/projects/{project.id}/deploy_keys')
        return [DeployKey.from_api(record) for record in response.data or []]
