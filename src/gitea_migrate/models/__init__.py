"""Data models for migrated entities."""

from .deploy_key import DeployKey
from .outcome import OutcomeStatus, RequestOutcome
from .owner import Owner, OwnerKind
from .project import Project, full_name_sort_key

__all__ = [
    'DeployKey',
    'OutcomeStatus',
    'Owner',
    'OwnerKind',
    'Project',
    'RequestOutcome',
    'full_name_sort_key',
]
