"""Forward-only schema migrations for the local database."""

from .m001_initial_schema import InitialSchemaMigration
from .m002_sync_queue import SyncQueueMigration
from .runner import Migration, MigrationRunner

ALL_MIGRATIONS: list[Migration] = [InitialSchemaMigration(), SyncQueueMigration()]

__all__ = [
    "ALL_MIGRATIONS",
    "Migration",
    "MigrationRunner",
]
