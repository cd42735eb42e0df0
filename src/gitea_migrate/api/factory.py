"""Factory for creating API clients from configuration."""

from ..config.config import DestinationConfig, SourceConfig
from .exceptions import AuthenticationError
from .gitea import GiteaClient
from .gitlab import GitLabClient


class ClientFactory:
    """Creates the source and destination clients."""

    @staticmethod
    def create_source_client(config: SourceConfig) -> GitLabClient:
        """Create GitLab client from configuration.

        Raises:
            AuthenticationError: If the token or clone username is missing
        """
        if not config.token or not config.username:
            raise AuthenticationError('GitLab token and username must be provided')

        return GitLabClient(config)

    @staticmethod
    def create_destination_client(config: DestinationConfig) -> GiteaClient:
        """Create Gitea client from configuration.

        Raises:
            AuthenticationError: If the token is missing
        """
        if not config.token:
            raise AuthenticationError('Gitea token must be provided')

        return GiteaClient(config)
