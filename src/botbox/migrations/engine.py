"""Migration engine.

A migration moves a project from one botbox version's expectations to the
next: it may reshape the project config and/or the project's files. Each
migration has a version id; the config's `version` field records the
highest id that has completed.

Guarantees:
- Pending migrations run in ascending numeric id order ("1.0.2" < "1.0.10")
- The config is saved after every successful migration, so `version`
  always names the last migration whose `up` completed
- A migration that raises leaves the saved config untouched and stops the
  batch; the next run retries from the same point
- Every `up` must be safe to run again on an already-migrated project
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from botbox.bus import BusCli, HookBus
from botbox.config_manager import INITIAL_VERSION, ConfigManager, ProjectConfig
from botbox.errors import MigrationError
from botbox.versions import compare_versions, parse_version, version_key

logger = logging.getLogger(__name__)

__all__ = [
    "Migration",
    "MigrationContext",
    "apply_all",
    "current_migration_version",
    "pending_migrations",
    "sorted_migrations",
]


@dataclass
class MigrationContext:
    """Everything a migration's `up` may look at or change.

    Attributes:
        project_root: Target project root
        managed_dir: Managed directory (.agents/botbox)
        config_path: Project config file
        config: Parsed project config; `up` mutates `config.data` in place
        log: Progress sink
        warn: Warning sink
        bus: Message bus boundary for hook migrations
    """

    project_root: Path
    managed_dir: Path
    config_path: Path
    config: ProjectConfig
    log: Callable[[str], None] = logger.info
    warn: Callable[[str], None] = logger.warning
    bus: HookBus = field(default_factory=BusCli)


@dataclass(frozen=True)
class Migration:
    """A versioned, idempotent project transformation."""

    id: str
    title: str
    description: str
    up: Callable[[MigrationContext], None]


def _default_migrations() -> list[Migration]:
    from botbox.migrations.steps import MIGRATIONS

    return MIGRATIONS


def sorted_migrations(migrations: list[Migration] | None = None) -> list[Migration]:
    """Return migrations in ascending id order.

    Raises:
        VersionParseError: If a migration id is malformed
        ValueError: If two migrations share an id
    """
    if migrations is None:
        migrations = _default_migrations()
    for migration in migrations:
        parse_version(migration.id, source=f"migration {migration.title!r}")

    ordered = sorted(migrations, key=lambda m: version_key(m.id))
    for previous, current in zip(ordered, ordered[1:]):
        if compare_versions(previous.id, current.id) == 0:
            raise ValueError(f"Duplicate migration id: {previous.id} and {current.id}")
    return ordered


def current_migration_version(migrations: list[Migration] | None = None) -> str:
    """Id of the newest migration, or "0.0.0" when there are none."""
    ordered = sorted_migrations(migrations)
    return ordered[-1].id if ordered else INITIAL_VERSION


def pending_migrations(
    installed_version: str, migrations: list[Migration] | None = None
) -> list[Migration]:
    """Return migrations with an id strictly greater than the installed version.

    Raises:
        VersionParseError: If the installed version is malformed
    """
    parse_version(installed_version, source="installed version")
    return [
        migration
        for migration in sorted_migrations(migrations)
        if compare_versions(migration.id, installed_version) > 0
    ]


def apply_all(ctx: MigrationContext, migrations: list[Migration] | None = None) -> list[str]:
    """Run every pending migration in order, saving the config after each.

    Each `up` works on a copy of the config; the copy replaces `ctx.config`
    only after `up` returns and the config (with `version` advanced) has been
    saved.

    Returns:
        Ids of the migrations that were applied

    Raises:
        MigrationError: If a migration raises; earlier migrations stay applied
        VersionParseError: If the config version is malformed
    """
    pending = pending_migrations(ctx.config.version, migrations)
    if not pending:
        logger.debug(f"No pending migrations (at {ctx.config.version})")
        return []

    applied = []
    for migration in pending:
        logger.debug(f"Applying migration {migration.id}: {migration.title}")
        working = ctx.config.copy()
        step_ctx = MigrationContext(
            project_root=ctx.project_root,
            managed_dir=ctx.managed_dir,
            config_path=ctx.config_path,
            config=working,
            log=ctx.log,
            warn=ctx.warn,
            bus=ctx.bus,
        )
        try:
            migration.up(step_ctx)
        except Exception as e:
            raise MigrationError(migration.id, e) from e

        working.data["version"] = migration.id
        ConfigManager.save(working, ctx.config_path)
        ctx.config.data = working.data
        applied.append(migration.id)
        ctx.log(f"Migration {migration.id} applied: {migration.title}")

    return applied
