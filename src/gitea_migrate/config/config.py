"""Configuration management for the GitLab to Gitea migration tool."""

from typing import Optional, Dict, Any
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml
from dotenv import load_dotenv


class InstanceConfig(BaseModel):
    """Connection settings shared by both instances."""

    url: str = Field(..., description='Instance URL')
    token: str = Field(..., description='API access token')

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate instance URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        """Reject empty tokens."""
        if not v:
            raise ValueError('Token must not be empty')
        return v


class SourceConfig(InstanceConfig):
    """Configuration for the source GitLab instance."""

    username: str = Field(
        ..., description='GitLab username the destination authenticates as when cloning'
    )
    api_version: str = Field(default='v4', description='GitLab API version')
    project_params: Dict[str, Any] = Field(
        default_factory=dict, description='Base query parameters for project listing'
    )


class DestinationConfig(InstanceConfig):
    """Configuration for the destination Gitea instance."""

    api_version: str = Field(default='v1', description='Gitea API version')
    repository_conflict_status: int = Field(
        default=409, description='Status Gitea returns when a repository already exists'
    )
    key_conflict_status: int = Field(
        default=422, description='Status Gitea returns when a deploy key is already attached'
    )

    @field_validator('repository_conflict_status', 'key_conflict_status')
    @classmethod
    def validate_conflict_status(cls, v):
        """Conflict statuses must be HTTP client errors."""
        if not 400 <= v < 500:
            raise ValueError('Conflict status must be a 4xx HTTP status code')
        return v


class MigrationConfig(BaseModel):
    """Migration-specific configuration."""

    migrate_keys: bool = Field(default=False, description='Also migrate deploy keys')
    show_progress: bool = Field(default=True, description='Render progress bars')


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


TEMPLATE = {
    'source': {
        'url': 'https://gitlab.example.com',
        'token': 'your-gitlab-personal-access-token',
        'username': 'your-gitlab-username',
        'api_version': 'v4',
        'project_params': {'membership': True},
    },
    'destination': {
        'url': 'https://gitea.example.com',
        'token': 'your-gitea-access-token',
        'api_version': 'v1',
        'repository_conflict_status': 409,
        'key_conflict_status': 422,
    },
    'migration': {
        'migrate_keys': False,
        'show_progress': True,
    },
    'logging': {
        'level': 'INFO',
        'file': 'migration.log',
    },
}


class Config(BaseModel):
    """Main configuration class for the migration tool."""

    model_config = ConfigDict(extra='forbid')

    source: SourceConfig = Field(..., description='Source GitLab instance')
    destination: DestinationConfig = Field(..., description='Destination Gitea instance')
    migration: MigrationConfig = Field(
        default_factory=MigrationConfig, description='Migration settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        config_data = {
            'source': {
                'url': os.getenv('SOURCE_GITLAB_URL'),
                'token': os.getenv('SOURCE_GITLAB_TOKEN'),
                'username': os.getenv('SOURCE_GITLAB_USERNAME'),
            },
            'destination': {
                'url': os.getenv('DEST_GITEA_URL'),
                'token': os.getenv('DEST_GITEA_TOKEN'),
            },
            'migration': {
                'migrate_keys': os.getenv('MIGRATE_KEYS', 'false').lower() == 'true',
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        _write_yaml(self.model_dump(), config_path)

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        _write_yaml(TEMPLATE, output_path)


def _write_yaml(data: Dict[str, Any], output_path: str) -> None:
    config_file = Path(output_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
