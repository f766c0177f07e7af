"""Init command for botbox.

Bootstraps a project for multi-agent workflows: writes .botbox.json,
installs the bundled docs, scripts and prompts into .agents/botbox,
creates AGENTS.md and links CLAUDE.md to it.

Running init on a project that already has a config keeps that config and
migrates it forward instead.
"""

import logging
import os
import sys
from pathlib import Path

import click

from botbox import managed_section
from botbox.config_manager import (
    CONFIG_JSON,
    KNOWN_TOOLS,
    PROJECT_TYPES,
    REVIEWER_ROLES,
    ConfigManager,
    ProjectConfig,
)
from botbox.errors import BotboxError
from botbox.migrations import current_migration_version
from botbox.reconciler import write_file
from botbox.sync_engine import AGENTS_MD, CLAUDE_MD, SyncEngine
from botbox.templates import AgentsMdHeader, parse_agents_md_header

logger = logging.getLogger(__name__)


def _warn(message: str) -> None:
    click.echo(f"Warning: {message}", err=True)


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _validate(values: list[str], allowed: tuple[str, ...], option: str) -> list[str]:
    unknown = [value for value in values if value not in allowed]
    if unknown:
        raise click.BadParameter(
            f"unknown value(s) {', '.join(unknown)}; choose from {', '.join(allowed)}",
            param_hint=option,
        )
    return values


def _resolve_answers(
    root: Path,
    header: AgentsMdHeader,
    name: str | None,
    project_type: str | None,
    tools: str | None,
    reviewers: str | None,
    interactive: bool,
) -> tuple[str, list[str], list[str], list[str]]:
    """Combine flags, an existing AGENTS.md header and prompts into init answers."""
    name = name or header.name
    if not name:
        name = click.prompt("Project name", default=root.name) if interactive else root.name

    types = _split(project_type) or header.project_types
    if not types:
        if not interactive:
            raise click.UsageError("--type is required with --no-interactive")
        types = _split(click.prompt(f"Project type ({', '.join(PROJECT_TYPES)})", default="cli"))

    tool_list = _split(tools) if tools is not None else header.tools
    if tools is None and not tool_list:
        default_tools = ",".join(KNOWN_TOOLS)
        answer = click.prompt("Tools", default=default_tools) if interactive else default_tools
        tool_list = _split(answer)

    reviewer_list = _split(reviewers) if reviewers is not None else header.reviewers

    return (
        name,
        _validate(types, PROJECT_TYPES, "--type"),
        _validate(tool_list, KNOWN_TOOLS, "--tools"),
        _validate(reviewer_list, REVIEWER_ROLES, "--reviewers"),
    )


def _link_claude_md(root: Path) -> None:
    link = root / CLAUDE_MD
    if link.exists() or link.is_symlink():
        return
    try:
        os.symlink(AGENTS_MD, link)
        click.echo(f"Linked {CLAUDE_MD} -> {AGENTS_MD}")
    except OSError as e:
        _warn(f"Could not create {CLAUDE_MD} symlink: {e}")


@click.command(name="init")
@click.option("--name", help="Project name (default: directory name)")
@click.option(
    "--type",
    "project_type",
    help=f"Project type(s), comma separated: {', '.join(PROJECT_TYPES)}",
)
@click.option("--tools", help=f"Enabled tools, comma separated: {', '.join(KNOWN_TOOLS)}")
@click.option("--reviewers", help=f"Reviewer roles, comma separated: {', '.join(REVIEWER_ROLES)}")
@click.option("--force", is_flag=True, help="Overwrite existing config and AGENTS.md")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project to initialize",
)
@click.option("--no-interactive", is_flag=True, help="Never prompt; fail if --type is missing")
def init_command(
    name: str | None,
    project_type: str | None,
    tools: str | None,
    reviewers: str | None,
    force: bool,
    project_root: Path,
    no_interactive: bool,
) -> None:
    """Bootstrap a project for multi-agent workflows.

    Missing answers are prompted for, prefilled from an existing AGENTS.md
    header when there is one.

    \b
    EXAMPLES:
        $ botbox init
        $ botbox init --name myapp --type cli,tui --tools beads,maw,crit,botbus
        $ botbox init --name api --type api --reviewers security --no-interactive
        $ botbox init --force      # regenerate config and AGENTS.md
    """
    root = project_root.resolve()
    engine = SyncEngine(root, log=click.echo, warn=_warn)
    agents_md = root / AGENTS_MD

    try:
        config_path, existing = engine.load_config()
        header = AgentsMdHeader()
        if agents_md.exists():
            content = agents_md.read_text(encoding="utf-8")
            if not force:
                # Refuse before writing the config or any bundle
                managed_section.validate(content, agents_md)
            header = parse_agents_md_header(content)

        config = existing
        if existing is None or force:
            answers = _resolve_answers(
                root, header, name, project_type, tools, reviewers, not no_interactive
            )
            config = ProjectConfig.new(*answers, version=current_migration_version())
            config_path = config_path or root / CONFIG_JSON
        else:
            click.echo(f"Using existing {config_path.name}")

        with engine.lock(operation="init"):
            if config is not existing:
                ConfigManager.save(config, config_path)
                click.echo(f"Wrote {config_path.name}")

            if agents_md.exists() and force:
                write_file(agents_md, engine.render_agents_md(config).encode("utf-8"), "write")
                click.echo(f"Regenerated {AGENTS_MD}")
            elif agents_md.exists():
                click.echo(
                    f"{AGENTS_MD} exists; updating its managed section only "
                    "(--force to regenerate)"
                )

            report = engine.sync()

        _link_claude_md(root)

        if report.migrations_applied:
            click.echo(f"Migrations applied: {', '.join(report.migrations_applied)}")
        click.echo(f"\nbotbox initialized in {root}")
        click.echo("Next: review AGENTS.md and commit .botbox.json, .agents/ and AGENTS.md")

    except BotboxError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        logger.error(f"Init failed: {e}", exc_info=True)
        sys.exit(1)
