"""pytest configuration and shared fakes for devrelay tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from devrelay.logsink import LogSink, PersistenceFailure
from devrelay.models import StatusLogRecord

FIXED_NOW = datetime(2025, 8, 2, 9, 4, 5, tzinfo=timezone.utc)


# Configure asyncio mode for pytest-asyncio
def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


class RecordingSink(LogSink):
    """Keeps every record in memory."""

    def __init__(self) -> None:
        self.records: list[StatusLogRecord] = []

    async def write(self, record: StatusLogRecord) -> None:
        self.records.append(record)


class FailingSink(LogSink):
    async def write(self, record: StatusLogRecord) -> None:
        raise PersistenceFailure("disk on fire")


class FakeSession:
    """Stands in for a DashboardSession inside the hub."""

    def __init__(self, name: str = "fake", error: Exception | None = None) -> None:
        self.session_id = name
        self.received: list[dict] = []
        self._error = error

    def deliver(self, message: dict) -> None:
        if self._error is not None:
            raise self._error
        self.received.append(message)


class FakeWebSocket:
    """Minimal fake WebSocket that replays scripted ASGI receive events."""

    def __init__(self, incoming: list[dict] | None = None, fail_send: bool = False) -> None:
        self._incoming = list(incoming or [])
        self.sent: list[dict] = []
        self.accepted = False
        self._fail_send = fail_send

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict) -> None:
        if self._fail_send:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    async def receive(self) -> dict:
        if not self._incoming:
            return {"type": "websocket.disconnect", "code": 1000}
        return self._incoming.pop(0)


@pytest.fixture()
def recording_sink() -> RecordingSink:
    return RecordingSink()
