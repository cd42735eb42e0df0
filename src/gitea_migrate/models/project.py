"""GitLab project model."""

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

FULL_NAME_SEPARATOR = ' / '


class Project(BaseModel):
    """GitLab project as listed from the source instance."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description='Project ID')
    name: str = Field(..., description='Project name')
    full_name: str = Field(..., description='Name with namespace, e.g. "Group / Project"')
    path: str = Field(..., description='Project path without namespace')
    namespace_path: str = Field(..., description='Full path of the namespace')
    full_path: str = Field(..., description='Project path with namespace')
    http_url: str = Field(..., description='HTTP clone URL')
    description: Optional[str] = Field(default=None, description='Project description')
    visibility: str = Field(default='private', description='Project visibility')

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Project':
        """Build a project from a GitLab ``/projects`` record."""
        namespace = data.get('namespace') or {}
        return cls(
            id=data['id'],
            name=data['name'],
            full_name=data['name_with_namespace'],
            path=data['path'],
            namespace_path=namespace.get('full_path', ''),
            full_path=data['path_with_namespace'],
            http_url=data['http_url_to_repo'],
            description=data.get('description'),
            visibility=data.get('visibility', 'private'),
        )

    @property
    def is_public(self) -> bool:
        return self.visibility == 'public'


def full_name_sort_key(full_name: str) -> Tuple[str, ...]:
    """Depth-aware sort key for a namespaced display name.

    Names are compared segment by segment; a name that is a segment prefix of
    another sorts first, so ``"G / P"`` precedes ``"G / P / Q"``.
    """
    return tuple(full_name.split(FULL_NAME_SEPARATOR))
