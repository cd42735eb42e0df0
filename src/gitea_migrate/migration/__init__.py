"""Migration orchestration."""

from .engine import MigrationEngine
from .orchestrator import MigrationOrchestrator, repo_name
from .progress import ProgressReporter, RichProgressReporter
from .result import MigrationResult, MigrationSummary

__all__ = [
    'MigrationEngine',
    'MigrationOrchestrator',
    'MigrationResult',
    'MigrationSummary',
    'ProgressReporter',
    'RichProgressReporter',
    'repo_name',
]
