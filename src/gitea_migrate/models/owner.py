"""Gitea owner (user or organization) model."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class OwnerKind(str, Enum):
    """Kind of destination namespace."""

    USER = 'user'
    ORGANIZATION = 'organization'


class Owner(BaseModel):
    """Candidate owner for migrated repositories."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description='User or organization ID')
    name: str = Field(..., description='Display name')
    username: str = Field(..., description='Login used in repository URLs')
    email: Optional[str] = Field(default=None, description='Email address')
    kind: OwnerKind = Field(default=OwnerKind.USER, description='Owner kind')

    @classmethod
    def from_user(cls, data: Dict[str, Any]) -> 'Owner':
        """Build the owner for the authenticated user from ``GET /user``."""
        return cls(
            id=data['id'],
            name=data.get('full_name') or data['login'],
            username=data['login'],
            email=data.get('email') or None,
            kind=OwnerKind.USER,
        )

    @classmethod
    def from_org(cls, data: Dict[str, Any]) -> 'Owner':
        """Build an organization owner from a ``GET /user/orgs`` record."""
        return cls(
            id=data['id'],
            name=data.get('full_name') or data['username'],
            username=data['username'],
            email=data.get('email') or None,
            kind=OwnerKind.ORGANIZATION,
        )
