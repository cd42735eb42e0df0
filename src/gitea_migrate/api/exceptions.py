"""API exceptions shared by the GitLab and Gitea clients."""

from typing import Optional


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
        reason: Optional[str] = None,
    ):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code, None for transport failures
            response_data: Response data from API
            reason: HTTP reason phrase (status text)
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data
        self.reason = reason

    @property
    def server_message(self) -> str:
        """Message reported by the server in the error body, if any."""
        if isinstance(self.response_data, dict):
            return str(self.response_data.get('message') or '')
        return ''


class AuthenticationError(APIError):
    """Authentication error with the remote API."""

    pass


class RateLimitError(APIError):
    """Rate limit exceeded error."""

    def __init__(self, message: str, retry_after: int = 60, **kwargs):
        """Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Seconds to wait before retry
            **kwargs: Additional arguments for base class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class NotFoundError(APIError):
    """Resource not found error."""

    pass


class UpstreamUnavailableError(APIError):
    """A listing or lookup call failed, so the surrounding operation cannot run."""

    pass
