"""Heartbeat history sinks.

The relay never reads its history back; it only hands each
:class:`~devrelay.models.StatusLogRecord` to a :class:`LogSink`.  Writes go
through :class:`LogWriter`, which runs them as detached tasks so the device
gets its reply regardless of storage latency or failure.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import sqlite3
import threading
from pathlib import Path

from devrelay.db import connect, init_db
from devrelay.models import StatusLogRecord

logger = logging.getLogger(__name__)


class PersistenceFailure(RuntimeError):
    """A history record could not be stored."""


class LogSink(abc.ABC):
    """Append-only destination for heartbeat records."""

    @abc.abstractmethod
    async def write(self, record: StatusLogRecord) -> None:
        """Persist *record*; raise :class:`PersistenceFailure` on error."""
        raise NotImplementedError


class NullLogSink(LogSink):
    """Discards every record; selected when history is turned off."""

    async def write(self, record: StatusLogRecord) -> None:
        return None


class SqliteLogSink(LogSink):
    """Stores records in the ``device_logs`` table of the database at *path*.

    Each worker thread opens its own connection to this sink's file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._local = threading.local()

    def _connection(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = connect(self.path)
            init_db(conn)
            self._local.conn = conn
        return conn

    def _insert(self, record: StatusLogRecord) -> None:
        conn = self._connection()
        conn.execute(
            "INSERT INTO device_logs (sql_status, dql_status, timestamp) VALUES (?, ?, ?)",
            (record.sql.value, record.dql.value, record.timestamp.isoformat()),
        )
        conn.commit()

    async def write(self, record: StatusLogRecord) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._insert, record)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(f"Failed to store heartbeat log: {exc}") from exc


class LogWriter:
    """Fire-and-forget front end for a :class:`LogSink`.

    Each :meth:`submit` spawns its own task.  Failures are logged and
    counted but never propagate to the submitter.
    """

    def __init__(self, sink: LogSink) -> None:
        self.sink = sink
        self.failures = 0
        self._tasks: set[asyncio.Task] = set()

    def submit(self, record: StatusLogRecord) -> asyncio.Task:
        task = asyncio.create_task(self._write(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _write(self, record: StatusLogRecord) -> None:
        try:
            await self.sink.write(record)
        except PersistenceFailure:
            self.failures += 1
            logger.exception("Heartbeat log write failed")
        except Exception:
            self.failures += 1
            logger.exception("Unexpected error in log sink %s", type(self.sink).__name__)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight write to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
