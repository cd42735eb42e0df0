"""Gitea (destination) API client."""

import asyncio
from typing import Dict, List, Optional

from loguru import logger

from ..config.config import DestinationConfig
from ..models.deploy_key import DeployKey
from ..models.outcome import OutcomeStatus, RequestOutcome
from ..models.owner import Owner
from .client import APIClient
from .exceptions import APIError, UpstreamUnavailableError


class GiteaClient(APIClient):
    """Owner lookup, repository import and key attachment on Gitea."""

    platform = 'Gitea'

    def __init__(self, config: DestinationConfig):
        super().__init__(config, config.api_version)

    def _auth_headers(self) -> Dict[str, str]:
        return {'Authorization': f'token {self.config.token}'}

    async def list_owners(self) -> List[Owner]:
        """List the authenticated user followed by its organizations.

        Raises:
            UpstreamUnavailableError: If either lookup fails
        """
        try:
            user_response, orgs_response = await asyncio.gather(
                self.get_async('/user'), self.get_async('/user/orgs')
            )
        except APIError as e:
            raise UpstreamUnavailableError(
                f'Could not fetch owners from Gitea instance. {e}',
                status_code=e.status_code,
                response_data=e.response_data,
                reason=e.reason,
            ) from e

        owners = [Owner.from_user(user_response.data)]
        owners.extend(Owner.from_org(org) for org in orgs_response.data or [])
        return owners

    async def create_by_import(
        self,
        clone_url: str,
        auth_username: str,
        auth_token: str,
        repo_name: str,
        description: Optional[str],
        owner_id: int,
        public: bool,
    ) -> RequestOutcome:
        """Create a mirrored repository by importing it from a remote URL."""
        payload = {
            'auth_username': auth_username,
            'auth_password': auth_token,
            'clone_addr': clone_url,
            'description': description or '',
            'mirror': True,
            'private': not public,
            'repo_name': repo_name,
            'uid': owner_id,
        }
        return await self._post_classified(
            '/repos/migrate',
            payload,
            OutcomeStatus.CREATED,
            self.config.repository_conflict_status,
        )

    async def attach_deploy_key(
        self, owner_login: str, repo_name: str, key: DeployKey
    ) -> RequestOutcome:
        """Attach a deploy key to a repository."""
        payload = {'title': key.title, 'key': key.key, 'read_only': key.read_only}
        return await self._post_classified(
            f'/repos/{owner_login}/{repo_name}/keys',
            payload,
            OutcomeStatus.ATTACHED,
            self.config.key_conflict_status,
        )

    async def _post_classified(
        self,
        endpoint: str,
        payload: Dict[str, object],
        success: OutcomeStatus,
        conflict_status: int,
    ) -> RequestOutcome:
        try:
            await self.post_async(endpoint, data=payload)
        except APIError as e:
            if e.status_code == conflict_status:
                logger.debug(f'{endpoint}: already exists ({e.status_code})')
                return RequestOutcome(
                    status=OutcomeStatus.ALREADY_EXISTS, status_code=e.status_code
                )

            logger.warning(f'{endpoint}: request failed: {e}')
            return RequestOutcome.from_error(e)

        return RequestOutcome(status=success)
