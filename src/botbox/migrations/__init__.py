"""Versioned project migrations.

Public API:
    MIGRATIONS: The shipped migrations, oldest first
    Migration, MigrationContext: Migration step and its inputs
    pending_migrations: Migrations newer than an installed version
    apply_all: Run pending migrations, saving the config after each
    current_migration_version: Id of the newest migration
"""

from botbox.migrations.engine import (
    Migration,
    MigrationContext,
    apply_all,
    current_migration_version,
    pending_migrations,
    sorted_migrations,
)
from botbox.migrations.steps import MIGRATIONS

__all__ = [
    "MIGRATIONS",
    "Migration",
    "MigrationContext",
    "apply_all",
    "current_migration_version",
    "pending_migrations",
    "sorted_migrations",
]
