"""Data model shared by the relay components.

Only one device is tracked per process, so :class:`DeviceStatus` carries no
device identity.  Serving several devices would mean keying both the status
store and the command mailbox by device id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any

from pydantic import BaseModel


class Signal(str, Enum):
    """Level of one device input."""

    HIGH = "HIGH"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @property
    def wire(self) -> str:
        # Dashboards render "N/A" until the first heartbeat arrives
        return "N/A" if self is Signal.UNKNOWN else self.value


class Command(str, Enum):
    """Commands a dashboard may queue for the device."""

    R1ON = "R1ON"
    R2ON = "R2ON"

    @property
    def label(self) -> str:
        return _COMMAND_LABELS[self]

    @classmethod
    def lookup(cls, action: str) -> Command | None:
        """Return the command for a wire identifier, or *None* if unknown."""
        try:
            return cls(action)
        except ValueError:
            return None


_COMMAND_LABELS = {
    Command.R1ON: "Relay 1",
    Command.R2ON: "Relay 2",
}


def format_timestamp(moment: datetime | None, tz: tzinfo = timezone.utc) -> str:
    """Render *moment* the way dashboards display it (``8/2/2025, 3:04:05 PM``)."""
    if moment is None:
        return "N/A"
    local = moment.astimezone(tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {suffix}"
    )


@dataclass(frozen=True)
class DeviceStatus:
    """Latest known device state; replaced wholesale on every heartbeat."""

    sql: Signal = Signal.UNKNOWN
    dql: Signal = Signal.UNKNOWN
    last_update: datetime | None = None

    def to_wire(self, tz: tzinfo = timezone.utc) -> dict[str, str]:
        return {
            "sql": self.sql.wire,
            "dql": self.dql.wire,
            "last_update": format_timestamp(self.last_update, tz),
        }


UNKNOWN_STATUS = DeviceStatus()


@dataclass(frozen=True)
class StatusLogRecord:
    """Immutable history entry handed to the log sink once per heartbeat."""

    sql: Signal
    dql: Signal
    timestamp: datetime

    @classmethod
    def from_status(cls, status: DeviceStatus) -> StatusLogRecord:
        moment = status.last_update or datetime.now(timezone.utc)
        return cls(sql=status.sql, dql=status.dql, timestamp=moment.astimezone(timezone.utc))


# ── Wire messages ─────────────────────────────────────────────────

class CommandRequest(BaseModel):
    """Inbound dashboard message: ``{"action": "R1ON"}``."""

    action: str


def status_message(status: DeviceStatus, tz: tzinfo = timezone.utc) -> dict[str, Any]:
    return {"type": "status", "data": status.to_wire(tz)}


def log_message(text: str) -> dict[str, Any]:
    return {"type": "log", "data": text}
