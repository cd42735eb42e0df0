"""Configuration models and loaders."""

from .config import Config, DestinationConfig, LoggingConfig, MigrationConfig, SourceConfig

__all__ = [
    'Config',
    'DestinationConfig',
    'LoggingConfig',
    'MigrationConfig',
    'SourceConfig',
]
