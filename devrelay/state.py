"""In-memory state shared between heartbeat and dashboard handlers.

Both containers guard every operation with a :class:`threading.Lock`, so a
single call is atomic whether it runs on the event loop or in a worker
thread.  Callers must never read-modify-write either container outside
these methods.
"""

from __future__ import annotations

import threading

from devrelay.models import UNKNOWN_STATUS, Command, DeviceStatus


class StatusStore:
    """Holds the single latest :class:`DeviceStatus` for the process lifetime."""

    def __init__(self, initial: DeviceStatus = UNKNOWN_STATUS) -> None:
        self._status = initial
        self._lock = threading.Lock()

    def get(self) -> DeviceStatus:
        with self._lock:
            return self._status

    def set(self, status: DeviceStatus) -> None:
        with self._lock:
            self._status = status


class CommandMailbox:
    """Holds at most one command awaiting delivery to the device.

    Enqueuing overwrites any undelivered command.  :meth:`take_and_clear`
    is the only way a command leaves the mailbox, so each command reaches
    the device at most once.
    """

    def __init__(self) -> None:
        self._pending: Command | None = None
        self._lock = threading.Lock()

    def enqueue(self, command: Command) -> Command | None:
        """Store *command* and return the command it replaced, if any."""
        with self._lock:
            previous, self._pending = self._pending, command
            return previous

    def take_and_clear(self) -> Command | None:
        with self._lock:
            command, self._pending = self._pending, None
            return command

    def peek(self) -> Command | None:
        with self._lock:
            return self._pending
