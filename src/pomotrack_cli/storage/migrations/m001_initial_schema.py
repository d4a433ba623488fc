"""Migration 001: sessions and the timer event log."""

import sqlite3

from pomotrack_cli.storage import schema

from .runner import Migration


class InitialSchemaMigration(Migration):
    @property
    def version(self) -> int:
        return 1

    @property
    def description(self) -> str:
        return "Sessions and timer events"

    def up(self, connection: sqlite3.Connection) -> None:
        connection.execute(schema.CREATE_SESSIONS_TABLE)
        connection.execute(schema.CREATE_TIMER_EVENTS_TABLE)
        for statement in schema.CREATE_INDEXES:
            connection.execute(statement)
