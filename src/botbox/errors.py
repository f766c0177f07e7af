"""Exception hierarchy for botbox.

Every failure the sync pipeline can surface is one of these types, so the
CLI layer can turn them into exit codes and messages without inspecting
strings.

Kinds:
    BundleIOError: a file could not be read or written
    ConfigurationCompletenessError: generated docs would be incomplete
    ManagedSectionError: AGENTS.md delimiters are missing or malformed
    ExternalToolError: a companion CLI (e.g. the message bus) failed
    VersionParseError: a version string is not dot-separated integers
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from botbox.sync_engine import SyncReport

__all__ = [
    "BotboxError",
    "BundleIOError",
    "ConfigError",
    "ConfigurationCompletenessError",
    "ExternalToolError",
    "ManagedSectionError",
    "MigrationError",
    "SyncError",
    "VersionParseError",
]


class BotboxError(Exception):
    """Base exception for botbox errors."""

    exit_code = 1


class BundleIOError(BotboxError):
    """Raised when a bundle, marker or managed file cannot be read or written."""

    def __init__(self, operation: str, path: Path, cause: Exception | None = None):
        self.operation = operation
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to {operation} {path}{detail}")


class ConfigurationCompletenessError(BotboxError):
    """Raised when a bundled doc and its description entry do not match up."""


class ManagedSectionError(BotboxError):
    """Raised when the managed section delimiters of a document are unusable."""

    def __init__(self, path: Path | None, problem: str):
        self.path = path
        self.problem = problem
        where = f" in {path}" if path else ""
        super().__init__(
            f"Managed section {problem}{where}. "
            "Fix the botbox:managed-start / botbox:managed-end markers by hand "
            "and run `botbox sync` again."
        )


class ExternalToolError(BotboxError):
    """Raised when a companion command line tool fails or is missing."""

    def __init__(self, command: list[str], message: str, returncode: int | None = None):
        self.command = command
        self.returncode = returncode
        super().__init__(f"`{' '.join(command)}` failed: {message}")


class VersionParseError(BotboxError):
    """Raised when a version string is not made of dot-separated integers."""

    def __init__(self, version: object, source: str | None = None):
        self.version = version
        where = f" in {source}" if source else ""
        super().__init__(
            f"Invalid version {version!r}{where}: expected dot-separated numbers like 1.0.3"
        )


class ConfigError(BotboxError):
    """Raised when the project config cannot be loaded, saved or has the wrong shape."""


class MigrationError(BotboxError):
    """Raised when a migration step fails; the config stays at the previous version."""

    def __init__(self, migration_id: str, cause: Exception):
        self.migration_id = migration_id
        self.cause = cause
        super().__init__(f"Migration {migration_id} failed: {cause}")


class SyncError(BotboxError):
    """Raised when the sync pipeline fails part way; carries the partial report."""

    def __init__(self, report: SyncReport, cause: Exception):
        self.report = report
        self.cause = cause
        super().__init__(str(cause))
