"""Outcome of a single destination request."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..api.exceptions import APIError


class OutcomeStatus(str, Enum):
    """Classification of a create or attach request."""

    CREATED = 'created'
    ATTACHED = 'attached'
    ALREADY_EXISTS = 'already_exists'
    FAILED = 'failed'


class RequestOutcome(BaseModel):
    """Classified result of one create or attach request."""

    status: OutcomeStatus
    status_code: Optional[int] = None
    status_text: str = ''
    message: str = ''

    @classmethod
    def from_error(cls, error: APIError) -> 'RequestOutcome':
        """Failed outcome carrying the status and server message of an error.

        Transport failures have no status, so the exception text is kept instead.
        """
        return cls(
            status=OutcomeStatus.FAILED,
            status_code=error.status_code,
            status_text=error.reason or '',
            message=error.server_message if error.status_code is not None else str(error),
        )

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    def describe(self) -> str:
        """Render the failure details as ``Error <code> <text> <message>``."""
        parts = [str(self.status_code) if self.status_code is not None else '']
        parts += [self.status_text, self.message]
        return ' '.join(['Error'] + [part for part in parts if part])
