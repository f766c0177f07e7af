"""Sync command for botbox.

    botbox sync [--project-root PATH] [--check]

Without --check, brings the project up to date: reconciles stale bundles
into .agents/botbox, rewrites their markers, splices the AGENTS.md managed
section and applies pending config migrations.

With --check, only reports what is out of date and exits 1 if anything is.
Nothing is written.
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from botbox.errors import BotboxError, SyncError
from botbox.sync_engine import CheckResult, SyncEngine, SyncPhase, SyncReport

logger = logging.getLogger(__name__)
console = Console()

STATUS_STYLES = {
    "up-to-date": "green",
    "stale": "yellow",
    "missing": "red",
}


def _warn(message: str) -> None:
    click.echo(f"Warning: {message}", err=True)


def _show_check(result: CheckResult) -> None:
    table = Table(title="botbox sync status")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Installed", style="dim")
    table.add_column("Current", style="dim")

    for status in result.bundles:
        style = STATUS_STYLES[status.staleness.value]
        table.add_row(
            status.bundle,
            f"[{style}]{status.staleness.value}[/{style}]",
            status.stored or "-",
            status.current,
        )

    if result.managed_section_error:
        agents_status = "[red]invalid[/red]"
    elif result.managed_section_stale:
        agents_status = "[yellow]stale[/yellow]"
    else:
        agents_status = "[green]up-to-date[/green]"
    table.add_row("AGENTS.md", agents_status, "", "")

    if result.pending_migrations:
        table.add_row(
            "config",
            "[yellow]stale[/yellow]",
            "",
            f"pending: {', '.join(result.pending_migrations)}",
        )

    console.print(table)
    if result.managed_section_error:
        click.echo(f"Error: {result.managed_section_error}", err=True)


def _show_report(report: SyncReport) -> None:
    if report.phase == SyncPhase.UP_TO_DATE:
        click.echo("Everything is up to date.")
        return

    if report.bundles_updated:
        click.echo(f"Synced: {', '.join(report.bundles_updated)}")
    if report.migrations_applied:
        click.echo(f"Migrations applied: {', '.join(report.migrations_applied)}")
    click.echo("Sync complete.")


@click.command(name="sync")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project to sync",
)
@click.option("--check", is_flag=True, help="Report stale components and exit 1; write nothing")
def sync_command(project_root: Path, check: bool) -> None:
    """Bring bundled docs, scripts, prompts and config up to date.

    Files in .agents/botbox that botbox no longer ships are reported, never
    deleted. Content outside the managed section of AGENTS.md is never
    touched.

    \b
    EXAMPLES:
        $ botbox sync
        $ botbox sync --check
        $ botbox sync --project-root ../other-project
    """
    engine = SyncEngine(project_root, log=click.echo, warn=_warn)

    try:
        if check:
            result = engine.check()
            _show_check(result)
            if not result.up_to_date:
                click.echo(
                    f"Out of date: {', '.join(result.stale_components)}. Run `botbox sync`.",
                    err=True,
                )
                sys.exit(1)
            return

        report = engine.run()
        _show_report(report)

    except SyncError as e:
        click.echo(f"Error: {e}", err=True)
        if e.report.bundles_updated:
            click.echo(
                f"Synced before the failure: {', '.join(e.report.bundles_updated)}. "
                "Re-running `botbox sync` is safe.",
                err=True,
            )
        sys.exit(e.exit_code)
    except BotboxError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.error(f"Sync failed: {e}", exc_info=True)
        sys.exit(1)
