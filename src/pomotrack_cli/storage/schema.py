"""Table definitions for the local Pomotrack database."""

from __future__ import annotations

# Finished and in-progress sessions; times are UTC ISO 8601 strings
CREATE_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL CHECK (kind IN ('focus', 'break')),
    status TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    planned_seconds INTEGER NOT NULL,
    duration_seconds INTEGER NOT NULL DEFAULT 0,
    paused_seconds INTEGER NOT NULL DEFAULT 0,
    pause_time TEXT,
    completed INTEGER NOT NULL DEFAULT 0,
    interruptions INTEGER NOT NULL DEFAULT 0,
    category TEXT,
    tags TEXT NOT NULL DEFAULT '[]',
    notes TEXT,
    device_id TEXT,
    updated_at TEXT NOT NULL
)
"""

# Append-only; seq preserves insertion order across equal timestamps
CREATE_TIMER_EVENTS_TABLE = """
CREATE TABLE IF NOT EXISTS timer_events (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    session_id TEXT NOT NULL,
    kind TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    note TEXT,
    FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE
)
"""

# Outbox of actions waiting for the remote store
CREATE_SYNC_QUEUE_TABLE = """
CREATE TABLE IF NOT EXISTS sync_queue (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL,
    action TEXT NOT NULL,
    payload TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'dead')),
    attempts INTEGER NOT NULL DEFAULT 0,
    last_error TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

CREATE_ACHIEVEMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS achievements (
    id TEXT PRIMARY KEY,
    unlocked_at TEXT NOT NULL
)
"""

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_sessions_start ON sessions(start_time)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_status ON sessions(status)",
    "CREATE INDEX IF NOT EXISTS idx_events_session ON timer_events(session_id)",
]

CREATE_QUEUE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_queue_status ON sync_queue(status, id)",
    "CREATE INDEX IF NOT EXISTS idx_queue_session ON sync_queue(session_id)",
]
