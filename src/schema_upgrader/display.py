"""Display functions for Schema-Upgrader CLI output."""

from collections.abc import Iterable, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .migrations import Migration, UpgradeResult


def display_migrations_table(
    migrations: Sequence[Migration],
    current_version: str,
    console: Console,
    title: str = "Registered Migrations",
) -> None:
    """
    Display migrations in registration order.

    Migrations accepting the current version are highlighted.

    Args:
        migrations: Migrations to list
        current_version: Recorded schema version
        console: Rich console instance for output
        title: Table title
    """
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("From", style="cyan")
    table.add_column("To", style="magenta")
    table.add_column("Description")

    for index, migration in enumerate(migrations, start=1):
        accepted = ", ".join(sorted(migration.accepted_versions))
        style = "bold green" if migration.can_upgrade(current_version) else None
        table.add_row(str(index), accepted, migration.target_version, migration.description, style=style)

    console.print(table)


def display_status(
    current_version: str,
    supported_versions: Iterable[str],
    planned: Sequence[Migration],
    console: Console,
) -> None:
    """
    Display the recorded version and the upgrade that would run.

    Args:
        current_version: Recorded schema version
        supported_versions: Versions the codebase supports
        planned: Migrations an upgrade would apply, in order
        console: Rich console instance for output
    """
    supported = sorted(supported_versions)
    lines = [
        f"Current schema version: [cyan]{current_version or '<unset>'}[/cyan]",
        f"Supported versions: [cyan]{', '.join(supported)}[/cyan]",
    ]

    if current_version in supported:
        lines.append("[green]✓ Schema is up to date[/green]")
        border = "green"
    elif planned:
        path = " → ".join([current_version] + [m.target_version for m in planned])
        lines.append(f"[yellow]Upgrade needed:[/yellow] {path}")
        border = "yellow"
    else:
        lines.append("[red]✗ No migration accepts the current version[/red]")
        border = "red"

    if planned and planned[-1].target_version not in supported:
        lines.append(f"[red]✗ Chain stops at unsupported version {planned[-1].target_version}[/red]")
        border = "red"

    console.print(Panel("\n".join(lines), title="Schema Status", border_style=border))


def display_upgrade_results(results: Sequence[UpgradeResult], console: Console) -> None:
    """
    Display applied upgrades in a table.

    Args:
        results: Applied upgrades in order
        console: Rich console instance for output
    """
    if not results:
        console.print("Schema is up to date, no upgrade performed.")
        return

    table = Table(title="Upgrade Results")
    table.add_column("From", style="cyan")
    table.add_column("To", style="magenta")
    table.add_column("Description")
    table.add_column("Time", justify="right")

    for result in results:
        table.add_row(result.from_version, result.to_version, result.description, f"{result.elapsed_ms} ms")

    console.print(table)
