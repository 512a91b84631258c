"""
dumpkeeper CLI - Command-line interface.

    dumpkeeper               manual run: dump and compress
    dumpkeeper --scheduled   automated run: dump, compress and prune
    dumpkeeper list          show artifacts and their retention verdicts
    dumpkeeper prune         apply retention only

Exit status is 0 when the dump succeeded and 1 otherwise.
"""

import logging
from datetime import datetime, timezone

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dumpkeeper.config import Settings
from dumpkeeper.core.exceptions import DumpKeeperError, format_exception
from dumpkeeper.core.models import RunResult
from dumpkeeper.orchestrator.core import BackupOrchestrator
from dumpkeeper.retention.engine import RetentionEngine

app = typer.Typer(
    name="dumpkeeper",
    help="dumpkeeper - Scheduled database dumps with compression and tiered retention",
    add_completion=False,
)
console = Console()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except DumpKeeperError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def _result_panel(result: RunResult) -> Panel:
    if result.success:
        lines = [
            "[bold green]Backup completed successfully[/bold green]",
            f"File: {result.artifact_path}",
            f"Size: {result.size_mb:.2f} MB" + (" (compressed)" if result.compressed else ""),
        ]
        if result.retention is not None:
            lines.append(f"Kept: {result.retention.kept} backups")
            lines.append(f"Removed: {result.retention.removed} old backups")
        elif result.scheduled:
            lines.append("[yellow]Cleanup skipped[/yellow]")
    else:
        lines = [
            "[bold red]Backup failed[/bold red]",
            f"Error: {result.error}",
        ]
    if result.duration_seconds is not None:
        lines.append(f"Duration: {result.duration_seconds:.1f}s")
    return Panel.fit("\n".join(lines), title="Result")


@app.callback(invoke_without_command=True)
def backup(
    ctx: typer.Context,
    scheduled: bool = typer.Option(
        False,
        "--scheduled",
        help="Automated run: also prune old backups per the retention policy",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Dump the database, compress the dump and, for scheduled runs, prune old dumps."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    settings = _load_settings()
    console.print(
        Panel.fit(
            f"[bold blue]Database Backup[/bold blue]\n"
            f"Database: {settings.database.target}\n"
            f"Directory: {settings.backup.directory}\n"
            f"Mode: {'scheduled' if scheduled else 'manual'}\n"
            f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        )
    )

    try:
        orchestrator = BackupOrchestrator.from_settings(settings)
    except DumpKeeperError as e:
        console.print(f"[red]{format_exception(e)}[/red]")
        raise typer.Exit(1)

    result = orchestrator.run(scheduled=scheduled)
    console.print(_result_panel(result))

    if not result.success:
        raise typer.Exit(1)


@app.command("list")
def list_artifacts():
    """List backups with the decision the retention policy would make now."""
    settings = _load_settings()
    directory = settings.backup.directory

    if not directory.is_dir():
        console.print(f"[yellow]Backup directory does not exist: {directory}[/yellow]")
        return

    engine = RetentionEngine(settings.backup)
    try:
        decisions = engine.plan(settings.retention, directory)
    except DumpKeeperError as e:
        console.print(f"[red]{format_exception(e)}[/red]")
        raise typer.Exit(1)

    if not decisions:
        console.print("[yellow]No backups found[/yellow]")
        return

    now = datetime.now(timezone.utc)
    table = Table(title=f"Backups in {directory} ({len(decisions)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Modified")
    table.add_column("Age (days)", justify="right")
    table.add_column("Size (MB)", justify="right")
    table.add_column("Retention")

    total_bytes = 0
    for decision in decisions:
        artifact = decision.artifact
        total_bytes += artifact.size_bytes
        style = "green" if decision.keep else "red"
        table.add_row(
            str(decision.index),
            artifact.name,
            artifact.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            f"{artifact.age_seconds(now) / 86400:.1f}",
            f"{artifact.size_mb:.2f}",
            f"[{style}]{decision.reason.value}[/{style}]",
        )

    console.print(table)
    console.print(f"\nTotal size: {total_bytes / (1024 * 1024):.2f} MB")
    console.print(f"Policy: {settings.retention.policy.value}")


@app.command()
def prune(
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show what would be removed"),
):
    """Apply the retention policy without taking a new dump."""
    settings = _load_settings()
    if not settings.backup.directory.is_dir():
        console.print(f"[red]Backup directory does not exist: {settings.backup.directory}[/red]")
        raise typer.Exit(1)

    try:
        orchestrator = BackupOrchestrator.from_settings(settings)
        result = orchestrator.prune(dry_run=dry_run)
    except DumpKeeperError as e:
        console.print(f"[red]Cleanup failed:[/red] {format_exception(e)}")
        raise typer.Exit(1)

    verb = "Would remove" if dry_run else "Removed"
    console.print(f"Kept: {result.kept} backups")
    console.print(f"{verb}: {result.removed} old backups ({result.freed_bytes / (1024 * 1024):.2f} MB)")

    for error in result.errors:
        console.print(f"[red]{error}[/red]")
    if result.errors:
        raise typer.Exit(1)


@app.command()
def version():
    """Show dumpkeeper version."""
    from dumpkeeper import __version__

    console.print(f"dumpkeeper v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
