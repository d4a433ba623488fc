"""Migration 002: sync outbox and unlocked achievements."""

import sqlite3

from pomotrack_cli.storage import schema

from .runner import Migration


class SyncQueueMigration(Migration):
    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return "Sync queue and achievements"

    def up(self, connection: sqlite3.Connection) -> None:
        connection.execute(schema.CREATE_SYNC_QUEUE_TABLE)
        connection.execute(schema.CREATE_ACHIEVEMENTS_TABLE)
        for statement in schema.CREATE_QUEUE_INDEXES:
            connection.execute(statement)
