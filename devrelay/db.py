"""SQLite storage for the heartbeat history.

The database file is chosen by the caller (normally
:attr:`RelaySettings.db_path <devrelay.config.RelaySettings.db_path>`);
nothing here reads the environment.

Usage::

    from devrelay.db import connect, init_db
    conn = connect(path)       # WAL mode, rows as sqlite3.Row
    init_db(conn)              # creates missing tables
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


def connect(path: str | Path) -> sqlite3.Connection:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create the history tables on *conn* if they do not exist yet."""
    conn.executescript(_SCHEMA_SQL)
    conn.commit()


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS device_logs (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    sql_status  TEXT NOT NULL CHECK (sql_status IN ('HIGH', 'LOW')),
    dql_status  TEXT NOT NULL CHECK (dql_status IN ('HIGH', 'LOW')),
    timestamp   TIMESTAMP NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_device_logs_ts ON device_logs(timestamp);
"""
