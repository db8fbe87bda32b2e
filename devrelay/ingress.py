"""Device heartbeat handling.

The device cannot be reached directly, so it polls
``/device-heartbeat?sql=<0|1>&dql=<0|1>`` every few seconds.  Each poll
updates the status store, is appended to history, is pushed to every
dashboard, and carries back the pending command (if any).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from devrelay.hub import BroadcastHub
from devrelay.logsink import LogWriter
from devrelay.models import DeviceStatus, Signal, StatusLogRecord
from devrelay.state import CommandMailbox, StatusStore

logger = logging.getLogger(__name__)

ACK = "OK"

_RAW_SIGNALS = {
    "1": Signal.HIGH,
    "0": Signal.LOW,
}


class MalformedRequest(ValueError):
    """A heartbeat arrived with missing or unrecognised parameters."""


def parse_signal(name: str, raw: str | None) -> Signal:
    if raw is None:
        raise MalformedRequest("Bad Request: Missing sql or dql parameters.")
    signal = _RAW_SIGNALS.get(raw.strip())
    if signal is None:
        raise MalformedRequest(f"Bad Request: Invalid value for {name}: {raw!r}")
    return signal


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceIngress:
    """Processes heartbeats against the shared relay state."""

    def __init__(
        self,
        store: StatusStore,
        mailbox: CommandMailbox,
        hub: BroadcastHub,
        log_writer: LogWriter,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.mailbox = mailbox
        self.hub = hub
        self.log_writer = log_writer
        self.clock = clock

    async def handle_heartbeat(self, sql: str | None, dql: str | None) -> str:
        """Apply one heartbeat and return the reply body for the device.

        Raises :class:`MalformedRequest` before touching any state if either
        parameter is missing or invalid.
        """
        logger.info("Heartbeat from device: SQL=%s, DQL=%s", sql, dql)
        if sql is None or dql is None:
            raise MalformedRequest("Bad Request: Missing sql or dql parameters.")
        status = DeviceStatus(
            sql=parse_signal("sql", sql),
            dql=parse_signal("dql", dql),
            last_update=self.clock(),
        )

        self.store.set(status)
        self.log_writer.submit(StatusLogRecord.from_status(status))
        self.hub.broadcast_status(status)

        command = self.mailbox.take_and_clear()
        if command is None:
            return ACK

        logger.info("Delivering command %s to device", command.value)
        self.hub.broadcast_log(f"Command '{command.value}' sent to device.")
        return command.value
