"""HTTP clients for the GitLab and Gitea APIs."""

from .exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    UpstreamUnavailableError,
)

__all__ = [
    'APIError',
    'AuthenticationError',
    'NotFoundError',
    'RateLimitError',
    'UpstreamUnavailableError',
]
