"""Coordinating service that owns the shared state and wires the handlers.

One :class:`RelayService` serves exactly one device: it holds a single
:class:`~devrelay.state.StatusStore` and a single
:class:`~devrelay.state.CommandMailbox`.  Handlers receive these by
reference instead of reaching for module globals.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from devrelay.config import RelaySettings
from devrelay.dashboard import DashboardHandler
from devrelay.hub import BroadcastHub
from devrelay.ingress import DeviceIngress, utcnow
from devrelay.logsink import LogSink, LogWriter, NullLogSink, SqliteLogSink
from devrelay.state import CommandMailbox, StatusStore

logger = logging.getLogger(__name__)


def _default_sink(settings: RelaySettings) -> LogSink:
    if not settings.history:
        logger.info("Heartbeat history disabled")
        return NullLogSink()
    return SqliteLogSink(settings.db_path)


class RelayService:
    def __init__(
        self,
        settings: RelaySettings | None = None,
        sink: LogSink | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.settings = settings or RelaySettings()
        self.store = StatusStore()
        self.mailbox = CommandMailbox()
        self.hub = BroadcastHub(tz=self.settings.tz)
        self.log_writer = LogWriter(sink or _default_sink(self.settings))
        self.ingress = DeviceIngress(
            self.store, self.mailbox, self.hub, self.log_writer, clock=clock
        )
        self.dashboards = DashboardHandler(
            self.store, self.mailbox, self.hub,
            queue_size=self.settings.session_queue_size,
        )

    async def handle_heartbeat(self, sql: str | None, dql: str | None) -> str:
        return await self.ingress.handle_heartbeat(sql, dql)

    def snapshot(self) -> dict[str, Any]:
        pending = self.mailbox.peek()
        return {
            "status": self.store.get().to_wire(self.settings.tz),
            "pending_command": pending.value if pending else None,
            "dashboards": len(self.hub),
        }

    def health(self) -> dict[str, Any]:
        failures = self.log_writer.failures
        return {
            "status": "ok" if failures == 0 else "degraded",
            "dashboards": len(self.hub),
            "log_failures": failures,
        }

    async def shutdown(self) -> None:
        """Let in-flight history writes finish."""
        if self.log_writer.pending:
            logger.info("Waiting for %d history writes", self.log_writer.pending)
        await self.log_writer.drain()
