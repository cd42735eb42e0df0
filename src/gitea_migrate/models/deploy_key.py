"""Deploy key model."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class DeployKey(BaseModel):
    """Deploy key attached to a single GitLab project."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description='Key ID')
    title: str = Field(..., description='Key title')
    key: str = Field(..., description='Public key material')
    read_only: bool = Field(default=False, description='Key cannot push')

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'DeployKey':
        """Build a key from a GitLab ``deploy_keys`` record."""
        return cls(
            id=data['id'],
            title=data['title'],
            key=data['key'],
            # Only an explicit can_push=false marks the key read-only
            read_only=data.get('can_push') is False,
        )
