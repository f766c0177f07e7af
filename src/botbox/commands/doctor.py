"""Doctor command for botbox.

Reports toolchain and project health without changing anything:

- external tools on PATH (bus, maw, br, crit, botty, jj)
- project config present and fully migrated
- managed directory present, every bundle synced
- AGENTS.md present with a valid managed section
- CLAUDE.md linked to AGENTS.md

Exits 1 when any check fails; warnings alone exit 0.
"""

import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from botbox.bundles import DESIGN, DOCS
from botbox.config_manager import ProjectConfig
from botbox.errors import BotboxError, VersionParseError
from botbox.migrations import current_migration_version
from botbox.sync_engine import AGENTS_MD, CLAUDE_MD, MANAGED_DIR, SyncEngine
from botbox.templates import check_bundle_descriptions
from botbox.versions import compare_versions

logger = logging.getLogger(__name__)
console = Console()

OK = "ok"
WARN = "warn"
FAIL = "fail"

STATUS_STYLES = {OK: "green", WARN: "yellow", FAIL: "red"}

# Tool name in .botbox.json -> binaries it needs
TOOL_BINARIES: dict[str, tuple[str, ...]] = {
    "botbus": ("bus",),
    "maw": ("maw", "jj"),
    "beads": ("br",),
    "crit": ("crit",),
    "botty": ("botty",),
}


@dataclass
class DoctorCheck:
    """Outcome of one doctor check."""

    name: str
    status: str
    detail: str = ""


def _tool_checks(enabled_tools: list[str]) -> list[DoctorCheck]:
    checks = []
    for tool, binaries in TOOL_BINARIES.items():
        missing = [binary for binary in binaries if shutil.which(binary) is None]
        if not missing:
            checks.append(DoctorCheck(f"tool: {tool}", OK, ", ".join(binaries)))
        elif tool in enabled_tools:
            checks.append(DoctorCheck(f"tool: {tool}", FAIL, f"not on PATH: {', '.join(missing)}"))
        else:
            checks.append(DoctorCheck(f"tool: {tool}", WARN, "not installed (not enabled)"))
    return checks


def _config_check(config_path: Path | None, config: ProjectConfig | None) -> DoctorCheck:
    if config is None:
        return DoctorCheck("config", FAIL, "no .botbox.json (run `botbox init`)")

    latest = current_migration_version()
    try:
        order = compare_versions(config.version, latest)
    except VersionParseError as e:
        return DoctorCheck("config", FAIL, str(e))

    if order == 0:
        return DoctorCheck("config", OK, f"{config_path.name} at {config.version}")
    if order > 0:
        return DoctorCheck(
            "config",
            WARN,
            f"at {config.version}, newer than this botbox ({latest}); upgrade botbox",
        )
    return DoctorCheck(
        "config", FAIL, f"at {config.version}, latest is {latest} (run `botbox sync`)"
    )


def run_checks(project_root: Path) -> list[DoctorCheck]:
    """Run every doctor check against a project (read-only)."""
    engine = SyncEngine(project_root)
    checks: list[DoctorCheck] = []

    try:
        check_bundle_descriptions(DOCS.list_files(), DESIGN.list_files())
        checks.append(DoctorCheck("bundled docs", OK, "every doc has a description"))
    except BotboxError as e:
        checks.append(DoctorCheck("bundled docs", FAIL, str(e)))

    config_path, config = engine.load_config()
    checks += _tool_checks(config.enabled_tools if config else [])

    checks.append(_config_check(config_path, config))

    if engine.managed_dir.is_dir():
        checks.append(DoctorCheck("managed dir", OK, str(MANAGED_DIR)))
    else:
        checks.append(
            DoctorCheck("managed dir", FAIL, f"{MANAGED_DIR} missing (run `botbox sync`)")
        )

    result = engine.check()
    for status in result.bundles:
        if status.stale:
            detail = f"{status.staleness.value} (run `botbox sync`)"
            checks.append(DoctorCheck(f"bundle: {status.bundle}", FAIL, detail))
        else:
            checks.append(DoctorCheck(f"bundle: {status.bundle}", OK, status.current))

    if not engine.agents_md.exists():
        checks.append(DoctorCheck(AGENTS_MD, FAIL, "missing (run `botbox init`)"))
    elif result.managed_section_error:
        checks.append(DoctorCheck(AGENTS_MD, FAIL, result.managed_section_error))
    elif result.managed_section_stale:
        checks.append(
            DoctorCheck(AGENTS_MD, FAIL, "managed section out of date (run `botbox sync`)")
        )
    else:
        checks.append(DoctorCheck(AGENTS_MD, OK, "managed section up to date"))

    claude_md = engine.project_root / CLAUDE_MD
    if claude_md.is_symlink() and Path(claude_md.readlink()).name == AGENTS_MD:
        checks.append(DoctorCheck(CLAUDE_MD, OK, f"-> {AGENTS_MD}"))
    elif claude_md.exists():
        checks.append(DoctorCheck(CLAUDE_MD, WARN, f"exists but is not a link to {AGENTS_MD}"))
    else:
        checks.append(DoctorCheck(CLAUDE_MD, WARN, "missing"))

    return checks


@click.command(name="doctor")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project to check",
)
def doctor_command(project_root: Path) -> None:
    """Check external tools and project health.

    \b
    EXAMPLES:
        $ botbox doctor
        $ botbox doctor --project-root ../other-project
    """
    try:
        checks = run_checks(project_root)
    except BotboxError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)

    table = Table(title="botbox doctor")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    for check in checks:
        style = STATUS_STYLES[check.status]
        table.add_row(check.name, f"[{style}]{check.status}[/{style}]", check.detail)
    console.print(table)

    failures = [check for check in checks if check.status == FAIL]
    if failures:
        click.echo(f"{len(failures)} check(s) failed.", err=True)
        sys.exit(1)
    click.echo("All checks passed.")
