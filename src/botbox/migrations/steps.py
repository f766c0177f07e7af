"""The shipped migrations, oldest first.

Every `up` checks for its own "nothing to do" state first and returns
quietly, so re-running a migration on an already migrated project is safe.
"""

import logging
import shutil
from pathlib import Path

from botbox.bundles import SCRIPT_REGISTRY, SCRIPTS
from botbox.bus import CLAIM_TTL_SECONDS, Hook, HookSpec
from botbox.config_manager import KNOWN_TOOLS
from botbox.errors import ConfigError, ExternalToolError
from botbox.fingerprint import fingerprint
from botbox.markers import MarkerStore
from botbox.migrations.engine import Migration, MigrationContext
from botbox.reconciler import reconcile

logger = logging.getLogger(__name__)

AGENT_DEFAULTS: dict[str, dict[str, object]] = {
    "dev": {"model": "strong", "timeout": 1800},
    "worker": {"model": "balanced", "timeout": 900},
    "reviewer": {"model": "strong", "timeout": 900},
    "responder": {"model": "fast", "timeout": 300},
}

LEGACY_SCRIPT_SUFFIX = ".sh"


def convert_tools_list(ctx: MigrationContext) -> None:
    tools = ctx.config.data.get("tools")
    if not isinstance(tools, list):
        return

    listed = ctx.config.enabled_tools
    converted = {tool: tool in listed for tool in KNOWN_TOOLS}
    for tool in listed:
        converted.setdefault(tool, True)
    ctx.config.data["tools"] = converted
    ctx.log(f"Converted tools list to map: {', '.join(listed) or '(none enabled)'}")


def move_legacy_scripts(ctx: MigrationContext) -> None:
    """Move <root>/scripts/ into <managed-dir>/scripts/.

    When the destination already exists the two are merged file by file:
    identical duplicates in the legacy directory are dropped, conflicting
    files stay where they are. The legacy directory is removed once empty.
    """
    legacy_dir = ctx.project_root / "scripts"
    managed_scripts = ctx.managed_dir / "scripts"

    if not legacy_dir.is_dir():
        return

    if not managed_scripts.exists():
        managed_scripts.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(legacy_dir), str(managed_scripts))
        ctx.log(f"Moved scripts/ to {managed_scripts.relative_to(ctx.project_root)}/")
        return

    conflicts = []
    for source in sorted(legacy_dir.iterdir()):
        dest = managed_scripts / source.name
        if not source.is_file():
            conflicts.append(source.name)
        elif not dest.exists():
            shutil.move(str(source), str(dest))
            ctx.log(f"Moved scripts/{source.name}")
        elif dest.is_file() and dest.read_bytes() == source.read_bytes():
            source.unlink()
        else:
            conflicts.append(source.name)

    if conflicts:
        ctx.warn(
            f"Left in scripts/ (already present in {managed_scripts.name}/ with different "
            f"content): {', '.join(conflicts)}. Remove them manually if no longer needed."
        )
    else:
        legacy_dir.rmdir()
        ctx.log("Merged scripts/ into the managed scripts directory")


def replace_shell_scripts(ctx: MigrationContext) -> None:
    scripts_dir = SCRIPTS.target_dir(ctx.managed_dir)
    if not scripts_dir.is_dir():
        return

    for script in sorted(scripts_dir.glob(f"*{LEGACY_SCRIPT_SUFFIX}")):
        if script.is_file():
            script.unlink()
            ctx.log(f"Removed legacy script: {script.name}")

    files = SCRIPTS.load(ctx.config)
    changed = reconcile(files, scripts_dir, executable=True)
    MarkerStore(ctx.managed_dir).write(SCRIPTS, fingerprint(files))
    if changed:
        ctx.log(f"Installed scripts: {', '.join(changed)}")


def _rewrite_command(hook: Hook, scripts_dir: Path) -> list[str] | None:
    """New command for a hook, or None if a .sh script has no bundled replacement."""
    command = []
    for part in hook.command:
        if part == "bash":
            command.append("python3")
        elif part.endswith(LEGACY_SCRIPT_SUFFIX):
            replacement = Path(part).stem + ".py"
            if replacement not in SCRIPT_REGISTRY:
                return None
            command.append(str(scripts_dir / replacement))
        else:
            command.append(part)
    return command


def _hook_spec(hook: Hook, command: list[str], agent: str | None) -> HookSpec:
    spec = HookSpec(command=command, agent=agent, channel=hook.channel, cwd=hook.cwd)
    condition = hook.condition
    if condition.get("type") == "claim_available" and condition.get("pattern"):
        pattern = str(condition["pattern"])
        spec.claim = pattern
        spec.claim_owner = hook.claim_owner or pattern.removeprefix("agent://")
        spec.ttl = CLAIM_TTL_SECONDS
    if condition.get("type") == "mention_received" and condition.get("agent"):
        spec.mention = str(condition["agent"]).removeprefix("@")
    return spec


def update_bus_hooks(ctx: MigrationContext) -> None:
    """Point message bus hooks that still run .sh scripts at the Python scripts.

    The bus is outside botbox's control: any bus failure is a warning and
    the migration carries on.
    """
    try:
        hooks = ctx.bus.list_hooks()
    except ExternalToolError as e:
        ctx.warn(f"Could not list bus hooks, skipping hook migration: {e}")
        return

    project_dir = str(ctx.project_root)
    stale = [
        hook
        for hook in hooks
        if hook.cwd == project_dir
        and hook.active
        and any(part.endswith(LEGACY_SCRIPT_SUFFIX) for part in hook.command)
    ]
    if not stale:
        return

    scripts_dir = SCRIPTS.target_dir(ctx.managed_dir)
    agent = ctx.config.default_agent
    for hook in stale:
        command = _rewrite_command(hook, scripts_dir)
        if command is None:
            ctx.warn(f"Hook {hook.id} runs a script with no replacement, leaving it as is")
            continue

        try:
            ctx.bus.remove_hook(hook.id)
        except ExternalToolError as e:
            ctx.warn(f"Could not remove hook {hook.id}, skipping: {e}")
            continue

        try:
            ctx.bus.add_hook(_hook_spec(hook, command, agent))
        except ExternalToolError as e:
            ctx.warn(f"Could not re-add hook {hook.id}: {e}")
            continue
        ctx.log(f"Updated hook {hook.id}: {' '.join(hook.command)} -> {' '.join(command)}")


def add_agent_identity(ctx: MigrationContext) -> None:
    name = ctx.config.project_name
    if not name:
        ctx.warn("No project.name in config, skipping default_agent/channel migration")
        return

    project = ctx.config.data.setdefault("project", {})
    added = []
    if not project.get("default_agent"):
        project["default_agent"] = f"{name}-dev"
        added.append(f"default_agent: {project['default_agent']}")
    if not project.get("channel"):
        project["channel"] = name
        added.append(f"channel: {project['channel']}")
    if added:
        ctx.log(f"Added {', '.join(added)}")


def add_agent_defaults(ctx: MigrationContext) -> None:
    agents = ctx.config.agent_settings
    reviewers = ctx.config.reviewers
    review = ctx.config.review
    before = ctx.config.to_dict()

    for role, defaults in AGENT_DEFAULTS.items():
        settings = agents.setdefault(role, {})
        for key, value in defaults.items():
            settings.setdefault(key, value)
    ctx.config.data["agents"] = agents

    review["reviewers"] = reviewers
    enabled = review.setdefault("enabled", bool(reviewers))
    if not isinstance(enabled, bool):
        raise ConfigError(f"review.enabled must be true or false, got {enabled!r}")
    ctx.config.data["review"] = review

    if ctx.config.data != before:
        ctx.log("Added default agent settings and normalized review config")


MIGRATIONS: list[Migration] = [
    Migration(
        id="1.0.1",
        title="Convert tools list to map",
        description="Rewrites a legacy tools list as a map of tool name to enabled flag.",
        up=convert_tools_list,
    ),
    Migration(
        id="1.0.2",
        title="Move scripts into .agents/botbox/scripts",
        description="Migrates the legacy scripts/ directory to the managed location.",
        up=move_legacy_scripts,
    ),
    Migration(
        id="1.0.3",
        title="Replace .sh scripts with Python scripts",
        description="Removes legacy .sh scripts and installs the bundled Python scripts.",
        up=replace_shell_scripts,
    ),
    Migration(
        id="1.0.4",
        title="Update bus hooks from .sh to Python scripts",
        description="Re-registers message bus hooks so they run the new script paths.",
        up=update_bus_hooks,
    ),
    Migration(
        id="1.0.5",
        title="Add default_agent and channel to project config",
        description="Adds project.default_agent and project.channel.",
        up=add_agent_identity,
    ),
    Migration(
        id="1.0.6",
        title="Add per-role agent settings",
        description="Adds default model and timeout per agent role; normalizes the review block.",
        up=add_agent_defaults,
    ),
]
