"""Sync pipeline.

`botbox sync` brings a target project up to date with the installed
botbox:

    Checking -> UpToDate                                   (nothing to do)
    Checking -> NeedsUpdate -> Reconciling -> MarkersUpdated
             -> SplicingDoc -> MigrationsApplied -> Done
    any step -> Failed                  (SyncError with a partial report)

Every step is idempotent (bundle files are rewritten only when their bytes
differ, markers are written right after their bundle, AGENTS.md is spliced
from scratch), so re-running after a failure is always safe.

Migrations can change what a project selects (enabled tools, project
types) or how AGENTS.md renders (identity fields); when any were applied,
bundles and the managed section are synced once more against the migrated
config so the next `sync --check` comes back clean.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from botbox.bundles import ALL_BUNDLES, Bundle, BundleFile
from botbox.bus import BusCli, HookBus
from botbox.config_manager import ConfigManager, ProjectConfig
from botbox.errors import BotboxError, BundleIOError, ManagedSectionError, SyncError
from botbox.file_lock import LOCK_FILE_NAME, acquire_file_lock
from botbox.fingerprint import fingerprint
from botbox.managed_section import splice
from botbox.markers import MarkerStore, Staleness, compare
from botbox.migrations.engine import Migration, MigrationContext, apply_all, pending_migrations
from botbox.reconciler import find_orphans, reconcile, write_file
from botbox.templates import render_header, render_managed_section

logger = logging.getLogger(__name__)

MANAGED_DIR = Path(".agents") / "botbox"
AGENTS_MD = "AGENTS.md"
CLAUDE_MD = "CLAUDE.md"

__all__ = [
    "AGENTS_MD",
    "CLAUDE_MD",
    "MANAGED_DIR",
    "BundleStatus",
    "CheckResult",
    "SyncEngine",
    "SyncPhase",
    "SyncReport",
]


class SyncPhase(str, Enum):
    """Where a sync run is (or stopped)."""

    CHECKING = "checking"
    UP_TO_DATE = "up-to-date"
    NEEDS_UPDATE = "needs-update"
    RECONCILING = "reconciling"
    MARKERS_UPDATED = "markers-updated"
    SPLICING_DOC = "splicing-doc"
    MIGRATIONS_APPLIED = "migrations-applied"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BundleStatus:
    """Staleness of one bundle in the target project."""

    bundle: str
    current: str
    stored: str | None
    staleness: Staleness

    @property
    def stale(self) -> bool:
        return self.staleness != Staleness.UP_TO_DATE


@dataclass
class CheckResult:
    """Read-only view of everything `sync` would change."""

    bundles: list[BundleStatus]
    managed_section_stale: bool = False
    managed_section_error: str | None = None
    pending_migrations: list[str] = field(default_factory=list)

    @property
    def stale_components(self) -> list[str]:
        components = [status.bundle for status in self.bundles if status.stale]
        if self.managed_section_stale:
            components.append(AGENTS_MD)
        if self.pending_migrations:
            components.append("config")
        return components

    @property
    def up_to_date(self) -> bool:
        return not self.stale_components


@dataclass
class SyncReport:
    """What a sync run did, filled in as it goes."""

    phase: SyncPhase = SyncPhase.CHECKING
    bundles_updated: list[str] = field(default_factory=list)
    changed_files: dict[str, list[str]] = field(default_factory=dict)
    orphans: dict[str, list[str]] = field(default_factory=dict)
    managed_section_updated: bool = False
    migrations_applied: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class _LoadedBundle:
    bundle: Bundle
    files: list[BundleFile]
    status: BundleStatus


class SyncEngine:
    """Check and sync one target project.

    Example:
        >>> engine = SyncEngine(Path("."))
        >>> if not engine.check().up_to_date:
        ...     report = engine.run()
    """

    def __init__(
        self,
        project_root: Path,
        bundles: tuple[Bundle, ...] = ALL_BUNDLES,
        migrations: list[Migration] | None = None,
        bus: HookBus | None = None,
        log: Callable[[str], None] | None = None,
        warn: Callable[[str], None] | None = None,
    ):
        self.project_root = project_root.resolve()
        self.managed_dir = self.project_root / MANAGED_DIR
        self.agents_md = self.project_root / AGENTS_MD
        self.bundles = bundles
        self.migrations = migrations
        self.bus = bus
        self.log = log or logger.info
        self.warn = warn or logger.warning
        self.markers = MarkerStore(self.managed_dir)

    def load_config(self) -> tuple[Path | None, ProjectConfig | None]:
        """Load the project config, if the project has one."""
        return ConfigManager.load_project(self.project_root)

    def _bundle_named(self, name: str) -> Bundle | None:
        return next((bundle for bundle in self.bundles if bundle.name == name), None)

    def _load_bundles(self, config: ProjectConfig | None) -> list[_LoadedBundle]:
        loaded = []
        for bundle in self.bundles:
            files = bundle.load(config)
            current = fingerprint(files)
            stored = self.markers.read(bundle)
            status = BundleStatus(bundle.name, current, stored, compare(current, stored))
            loaded.append(_LoadedBundle(bundle, files, status))
        return loaded

    def _render(self, config: ProjectConfig | None) -> tuple[str, str]:
        """Render (scaffold header, managed interior) for the project."""
        render_config = config or ProjectConfig.default_for(self.project_root)
        docs = self._bundle_named("docs")
        design = self._bundle_named("design")
        interior = render_managed_section(
            render_config,
            docs.select(config) if docs else [],
            design.select(config) if design else [],
        )
        return render_header(render_config), interior

    def render_agents_md(self, config: ProjectConfig | None) -> str:
        """Render a complete AGENTS.md (scaffold header plus managed section)."""
        scaffold, interior = self._render(config)
        return splice(None, interior, scaffold=scaffold)

    def _read_agents_md(self) -> str | None:
        # Bytes, not text mode, so CRLF line endings survive the splice
        try:
            return self.agents_md.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise BundleIOError("read", self.agents_md, e) from e

    def _check(self, config: ProjectConfig | None) -> tuple[CheckResult, list[_LoadedBundle]]:
        loaded = self._load_bundles(config)
        result = CheckResult(bundles=[item.status for item in loaded])

        scaffold, interior = self._render(config)
        existing = self._read_agents_md()
        try:
            spliced = splice(existing, interior, scaffold=scaffold, path=self.agents_md)
            result.managed_section_stale = spliced != existing
        except ManagedSectionError as e:
            result.managed_section_stale = True
            result.managed_section_error = str(e)

        if config is not None:
            pending = pending_migrations(config.version, self.migrations)
            result.pending_migrations = [migration.id for migration in pending]
        return result, loaded

    def check(self) -> CheckResult:
        """Report what `run` would change, without writing anything.

        Raises:
            ConfigError: If the config cannot be loaded
            VersionParseError: If the config version is malformed
            BundleIOError: If a bundle or marker cannot be read
            ConfigurationCompletenessError: If a bundled doc has no description
        """
        _, config = self.load_config()
        result, _ = self._check(config)
        return result

    def lock(self, operation: str = "sync") -> AbstractContextManager[None]:
        """Exclusive lock on the project's managed directory."""
        return acquire_file_lock(self.managed_dir / LOCK_FILE_NAME, operation=operation)

    def run(self) -> SyncReport:
        """Run the full pipeline under the project's sync lock.

        Raises:
            SyncError: If any step fails; `error.report` shows what was done
            LockTimeoutError: If another sync holds the lock
        """
        with self.lock():
            return self.sync()

    def sync(self) -> SyncReport:
        """Run the full pipeline; the caller must already hold `lock()`.

        Raises:
            SyncError: If any step fails; `error.report` shows what was done
        """
        report = SyncReport()
        try:
            self._run(report)
        except (BotboxError, OSError, ValueError) as e:
            report.phase = SyncPhase.FAILED
            report.error = str(e)
            raise SyncError(report, e) from e
        return report

    def _run(self, report: SyncReport) -> None:
        config_path, config = self.load_config()
        check, loaded = self._check(config)
        if check.up_to_date:
            report.phase = SyncPhase.UP_TO_DATE
            logger.debug("Project is up to date")
            return

        report.phase = SyncPhase.NEEDS_UPDATE
        self._sync_content(report, config, loaded)

        if config is not None and config_path is not None and check.pending_migrations:
            ctx = MigrationContext(
                project_root=self.project_root,
                managed_dir=self.managed_dir,
                config_path=config_path,
                config=config,
                log=self.log,
                warn=self.warn,
                bus=self.bus if self.bus is not None else BusCli(),
            )
            report.migrations_applied = apply_all(ctx, self.migrations)
            if report.migrations_applied:
                self._sync_content(report, ctx.config, self._load_bundles(ctx.config))
            report.phase = SyncPhase.MIGRATIONS_APPLIED

        report.phase = SyncPhase.DONE

    def _sync_content(
        self, report: SyncReport, config: ProjectConfig | None, loaded: list[_LoadedBundle]
    ) -> None:
        report.phase = SyncPhase.RECONCILING
        for item in loaded:
            if not item.status.stale:
                continue
            bundle = item.bundle
            target_dir = bundle.target_dir(self.managed_dir)
            changed = reconcile(item.files, target_dir, executable=bundle.executable)
            self.markers.write(bundle, item.status.current)

            if bundle.name not in report.bundles_updated:
                report.bundles_updated.append(bundle.name)
            if changed:
                report.changed_files.setdefault(bundle.name, [])
                report.changed_files[bundle.name] += [
                    path for path in changed if path not in report.changed_files[bundle.name]
                ]
                self.log(f"Updated {bundle.name}: {', '.join(changed)}")

            orphans = find_orphans(item.files, target_dir, bundle.suffixes)
            if orphans:
                report.orphans[bundle.name] = orphans
                self.warn(
                    f"No longer shipped in {bundle.name} (left in place): {', '.join(orphans)}"
                )
        report.phase = SyncPhase.MARKERS_UPDATED

        report.phase = SyncPhase.SPLICING_DOC
        scaffold, interior = self._render(config)
        existing = self._read_agents_md()
        spliced = splice(existing, interior, scaffold=scaffold, path=self.agents_md)
        if spliced != existing:
            write_file(self.agents_md, spliced.encode("utf-8"), operation="write")
            report.managed_section_updated = True
            self.log(f"{'Created' if existing is None else 'Updated'} {AGENTS_MD}")
