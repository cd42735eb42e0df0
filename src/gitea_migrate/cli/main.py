"""Main CLI entry point for the Gitea Migration Tool."""

import sys
import asyncio
from typing import List, Optional, Sequence, Tuple
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..api.exceptions import UpstreamUnavailableError
from ..config.config import Config
from ..migration.engine import MigrationEngine
from ..migration.progress import RichProgressReporter
from ..migration.result import MigrationSummary
from ..models.owner import Owner
from ..models.project import Project
from ..utils.logging import setup_logging

console = Console()

DEFAULT_CONFIG_PATHS = ['config.yaml', 'config.yml', '.gitea-migrate.yaml']


@click.group()
@click.version_option(version=__version__, prog_name='gitea-migrate')
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to configuration file',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging',
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """Gitea Migration Tool - Migrate GitLab repositories to Gitea."""
    ctx.ensure_object(dict)

    if config:
        ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    # Basic logging until the configuration is loaded
    setup_logging('DEBUG' if verbose else 'WARNING')


@cli.command()
@click.option(
    '--output',
    '-o',
    default='config.yaml',
    help='Output configuration file path',
)
def init(output: str) -> None:
    """Initialize a new configuration file."""
    try:
        Config.create_template(output)
    except OSError as e:
        console.print(f'[red]✗[/red] Failed to create configuration: {e}')
        sys.exit(1)

    console.print(f'[green]✓[/green] Configuration template created at: {output}')
    console.print(
        f'[yellow]Please edit {output} with your GitLab and Gitea details[/yellow]'
    )


@cli.command()
@click.pass_context
def projects(ctx: click.Context) -> None:
    """List source projects with their selection numbers."""
    engine = _create_engine(ctx)
    try:
        found = asyncio.run(engine.list_projects())
    finally:
        engine.close()

    if not found:
        console.print('No projects found to migrate.')
        return

    _print_projects(found)


@cli.command()
@click.pass_context
def owners(ctx: click.Context) -> None:
    """List possible owners of migrated repositories."""
    engine = _create_engine(ctx)
    try:
        candidates = _fetch_owners(engine)
    finally:
        engine.close()

    _print_owners(candidates)


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check connectivity to both instances."""
    engine = _create_engine(ctx)
    try:
        engine.test_connectivity()
    except ConnectionError as e:
        console.print(f'[red]✗[/red] Validation failed: {e}')
        sys.exit(1)
    finally:
        engine.close()

    console.print('[green]✓[/green] Connectivity validation passed')


@cli.command()
@click.option(
    '--project',
    '-p',
    'paths',
    multiple=True,
    help='Full path of a project to migrate (repeatable)',
)
@click.option('--all', 'select_all', is_flag=True, help='Migrate every listed project')
@click.option('--owner', '-o', 'owner_login', help='Login of the destination owner')
@click.option(
    '--keys/--no-keys',
    default=None,
    help='Also migrate deploy keys (defaults to the configured setting)',
)
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def migrate(
    ctx: click.Context,
    paths: Tuple[str, ...],
    select_all: bool,
    owner_login: Optional[str],
    keys: Optional[bool],
    yes: bool,
) -> None:
    """Migrate GitLab projects to Gitea."""
    console.print(
        Panel.fit(
            '[bold blue]Gitea Migration Tool[/bold blue]\n'
            'Migrating GitLab repositories...',
            border_style='blue',
        )
    )

    engine = _create_engine(ctx, progress=True)
    try:
        with console.status('Loading projects'):
            found = asyncio.run(engine.list_projects())

        if not found:
            console.print('No projects found to migrate.')
            return

        candidates = _fetch_owners(engine)

        selected = _select_projects(found, paths, select_all)
        owner = _select_owner(candidates, owner_login)

        if keys is None:
            keys = engine.config.migration.migrate_keys
            if not yes:
                keys = click.confirm(
                    'Would you also like to migrate deploy keys?', default=keys
                )

        if not yes and not click.confirm(
            f'Are you sure you want to migrate {len(selected)} project(s) '
            f'to {owner.username}?'
        ):
            return

        summary = asyncio.run(engine.migrate(selected, owner, migrate_keys=keys))
    finally:
        engine.close()

    _display_migration_summary(summary)


def _load_config(ctx: click.Context) -> Config:
    """Load configuration from file or environment."""
    config_path = ctx.obj.get('config_path')

    if config_path:
        return Config.from_file(config_path)

    for path in DEFAULT_CONFIG_PATHS:
        if Path(path).exists():
            return Config.from_file(path)

    # Fall back to environment variables
    try:
        return Config.from_env()
    except ValueError:
        raise FileNotFoundError(
            'No configuration found. Use --config to specify a file or run '
            '"gitea-migrate init" to create one.'
        )


def _setup_logging_with_config(ctx: click.Context, config: Config) -> None:
    """Setup logging with configuration from config file."""
    verbose = ctx.obj.get('verbose', False)
    log_level = 'DEBUG' if verbose else config.logging.level

    setup_logging(
        level=log_level, log_file=config.logging.file, log_format=config.logging.format
    )


def _create_engine(ctx: click.Context, progress: bool = False) -> MigrationEngine:
    try:
        config = _load_config(ctx)
    except (FileNotFoundError, ValueError) as e:
        console.print(f'[red]✗[/red] {e}')
        sys.exit(1)

    _setup_logging_with_config(ctx, config)

    reporter = None
    if progress and config.migration.show_progress:
        reporter = RichProgressReporter(console=console)

    return MigrationEngine(config, progress=reporter)


def _fetch_owners(engine: MigrationEngine) -> List[Owner]:
    try:
        return asyncio.run(engine.list_owners())
    except UpstreamUnavailableError as e:
        console.print(f'✗ {e}', style='red', markup=False)
        sys.exit(1)


def parse_selection(text: str, count: int) -> List[int]:
    """Parse ``1,3,5-7`` style input into zero-based indices.

    Raises:
        ValueError: On malformed input or numbers outside ``1..count``
    """
    indices: List[int] = []
    for part in text.replace(' ', '').split(','):
        if not part:
            continue
        if '-' in part:
            first, last = (int(value) for value in part.split('-', 1))
        else:
            first = last = int(part)
        if first < 1 or last > count or first > last:
            raise ValueError(f'Selection out of range: {part}')
        for number in range(first, last + 1):
            if number - 1 not in indices:
                indices.append(number - 1)

    if not indices:
        raise ValueError('Select at least one project')
    return indices


def _select_projects(
    found: List[Project], paths: Sequence[str], select_all: bool
) -> List[Project]:
    if select_all:
        return found

    if paths:
        by_path = {project.full_path: project for project in found}
        missing = [path for path in paths if path not in by_path]
        if missing:
            raise click.BadParameter(
                f'Unknown project(s): {", ".join(missing)}', param_hint='--project'
            )
        return [by_path[path] for path in paths]

    _print_projects(found)
    while True:
        answer = click.prompt('Please select the GitLab projects to migrate')
        try:
            return [found[index] for index in parse_selection(answer, len(found))]
        except ValueError as e:
            console.print(f'[red]{e}[/red]')


def _select_owner(candidates: List[Owner], login: Optional[str]) -> Owner:
    if login:
        for owner in candidates:
            if owner.username == login:
                return owner
        raise click.BadParameter(f'Unknown owner: {login}', param_hint='--owner')

    _print_owners(candidates)
    number = click.prompt(
        'Please select the owner of the migrated repositories',
        type=click.IntRange(1, len(candidates)),
        default=1,
    )
    return candidates[number - 1]


def _print_projects(found: List[Project]) -> None:
    table = Table(title='GitLab Projects')
    table.add_column('#', style='cyan', justify='right')
    table.add_column('Project', style='green')
    table.add_column('Visibility', style='blue')

    for number, project in enumerate(found, start=1):
        table.add_row(str(number), project.full_name, project.visibility)

    console.print(table)


def _print_owners(candidates: List[Owner]) -> None:
    table = Table(title='Gitea Owners')
    table.add_column('#', style='cyan', justify='right')
    table.add_column('Name', style='green')
    table.add_column('Login', style='blue')
    table.add_column('Kind')

    for number, owner in enumerate(candidates, start=1):
        table.add_row(str(number), owner.name, owner.username, owner.kind.value)

    console.print(table)


def _display_migration_summary(summary: MigrationSummary) -> None:
    """Display migration summary results."""
    for error in summary.errors:
        console.print(error, style='red', markup=False, highlight=False)

    table = Table(title='Migration Summary')
    table.add_column('Pass', style='cyan')
    table.add_column('Migrated', style='green')
    table.add_column('Skipped', style='yellow')
    table.add_column('Failed', style='red')

    table.add_row(
        'Repositories',
        str(len(summary.projects.succeeded)),
        str(len(summary.projects.skipped)),
        str(len(summary.projects.failed)),
    )
    if summary.keys is not None:
        table.add_row(
            'Deploy keys',
            str(len(summary.keys.succeeded)),
            str(len(summary.keys.skipped)),
            str(len(summary.keys.failed)),
        )

    console.print()
    console.print('All done!')
    console.print(table)

    if summary.completed_at:
        duration = summary.completed_at - summary.started_at
        console.print(f'\n[blue]Migration Duration:[/blue] {duration}')


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print('\n[red]Migration interrupted by user[/red]')
        sys.exit(1)


if __name__ == '__main__':
    main()
