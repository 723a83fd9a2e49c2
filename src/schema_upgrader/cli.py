"""CLI interface for Schema-Upgrader."""

import sys
from pathlib import Path

# Runtime version check - must be before other imports
if sys.version_info < (3, 11):
    print("Error: Schema-Upgrader requires Python 3.11 or higher", file=sys.stderr)
    version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print(f"Current version: {version}", file=sys.stderr)
    sys.exit(1)

import json
import logging
from typing import NoReturn

import click
from rich.console import Console

from . import __version__
from .config import Config, load_config
from .constants import LOG_DATE_FORMAT, LOG_FORMAT, SUPPORTED_SCHEMA_VERSIONS
from .display import display_migrations_table, display_status, display_upgrade_results
from .error_guidance import GuidanceProvider
from .errors import UpgradeError
from .migrations import default_migrations
from .state import StateStore
from .upgrade import check_if_upgrade_is_needed, upgrade_session
from .utils import progress_spinner, prompt_confirm

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def _report_upgrade_error(error: UpgradeError, config: Config) -> None:
    """Print an upgrade error with guidance when available."""
    console.print(f"[red]Error:[/red] {error}")
    guidance = GuidanceProvider.for_error(error, config)
    if guidance:
        console.print(GuidanceProvider.format_guidance(guidance))


def _exit_on_corrupt_state(error: json.JSONDecodeError, config: Config) -> NoReturn:
    """Report an unreadable state file and exit."""
    console.print(f"[red]Error:[/red] State file is not valid JSON: {config.state_file} ({error})")
    console.print(GuidanceProvider.format_guidance(GuidanceProvider.get_corrupt_state(config.state_file)))
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Custom config file path",
)
@click.option("-v", "--verbose", is_flag=True, help="Log upgrade details to stderr")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """Schema-Upgrader: bring the application schema up to the supported version."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    # Load configuration
    try:
        ctx.obj["config"] = load_config(config)
    except (FileNotFoundError, ValueError, OSError, PermissionError) as e:
        console.print(f"[red]Error:[/red] Configuration: {e}")
        sys.exit(1)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """
    Show the recorded schema version and the upgrade path from it.

    Examples:

        \b
        schema-upgrader status
    """
    config = ctx.obj["config"]

    try:
        with upgrade_session(config) as (runner, _context):
            current = runner.current_version()
            planned = runner.plan(default_migrations())
    except json.JSONDecodeError as e:
        _exit_on_corrupt_state(e, config)

    display_status(current, SUPPORTED_SCHEMA_VERSIONS, planned, console)


@cli.command("list")
@click.pass_context
def list_migrations(ctx: click.Context) -> None:
    """
    List registered migrations in registration order.

    Migrations accepting the recorded schema version are highlighted.
    """
    config = ctx.obj["config"]

    try:
        with upgrade_session(config) as (runner, _context):
            current = runner.current_version()
    except json.JSONDecodeError as e:
        _exit_on_corrupt_state(e, config)

    display_migrations_table(default_migrations(), current, console)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show the migrations that would run without applying them")
@click.pass_context
def upgrade(ctx: click.Context, dry_run: bool) -> None:
    """
    Apply pending migrations until the schema is supported.

    Each migration runs with the cache cleared around it and, when enabled,
    with the maintenance marker in place. A failed migration leaves the
    recorded version unchanged so it can be retried.

    Examples:

        \b
        # Preview the upgrade path
        schema-upgrader upgrade --dry-run

        \b
        # Upgrade with detailed logs
        schema-upgrader -v upgrade
    """
    config = ctx.obj["config"]

    if dry_run:
        try:
            with upgrade_session(config) as (runner, _context):
                current = runner.current_version()
                needed = runner.needs_upgrade()
                planned = runner.plan(default_migrations())
        except json.JSONDecodeError as e:
            _exit_on_corrupt_state(e, config)

        if not needed:
            console.print("Schema is up to date, no upgrade needed.")
        elif planned:
            display_migrations_table(planned, current, console, title="Planned Upgrades")
        else:
            console.print(f"[yellow]No migration accepts schema version '{current or '<unset>'}'.[/yellow]")
        return

    try:
        with progress_spinner("Upgrading schema...", console):
            results = check_if_upgrade_is_needed(config)
    except UpgradeError as e:
        _report_upgrade_error(e, config)
        sys.exit(1)
    except json.JSONDecodeError as e:
        _exit_on_corrupt_state(e, config)

    display_upgrade_results(results, console)


@cli.command("set-version")
@click.argument("version")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def set_version(ctx: click.Context, version: str, force: bool) -> None:
    """
    Record a schema version without running any migration.

    Use this to recover after a migration whose changes are known to be
    applied but whose version could not be recorded.
    """
    config = ctx.obj["config"]

    try:
        with StateStore(config.state_file) as state:
            current = state.get_current_version()
            if not force and not prompt_confirm(
                f"Change recorded schema version from {current or '<unset>'} to {version}?"
            ):
                console.print("Cancelled.")
                return

            state.set_current_version(version)
    except json.JSONDecodeError as e:
        _exit_on_corrupt_state(e, config)

    console.print(f"[green]✓[/green] Recorded schema version {version}")


if __name__ == "__main__":
    cli()
