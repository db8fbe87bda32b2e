"""Dashboard session registry and broadcast fan-out.

Every dashboard connection is wrapped in a :class:`DashboardSession` with
its own bounded outbound queue.  A single writer task per session drains
that queue onto the socket, so messages reach each dashboard in the order
:meth:`BroadcastHub.broadcast` was called and a slow dashboard never stalls
a heartbeat.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import threading
import uuid
from datetime import timezone, tzinfo
from typing import Any, Callable, Protocol

from devrelay.models import DeviceStatus, log_message, status_message

logger = logging.getLogger(__name__)


class DeliveryFailure(RuntimeError):
    """A message could not be queued for one dashboard session."""


class MessageSocket(Protocol):
    async def send_json(self, data: Any) -> None: ...


class SessionState(str, enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class DashboardSession:
    """One live dashboard connection."""

    def __init__(
        self,
        websocket: MessageSocket,
        queue_size: int = 100,
        on_dead: Callable[[DashboardSession], None] | None = None,
    ) -> None:
        self.websocket = websocket
        self.on_dead = on_dead
        self.session_id = f"dash-{uuid.uuid4().hex[:8]}"
        self.state = SessionState.CONNECTING
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task | None = None

    def __repr__(self) -> str:
        return f"<DashboardSession {self.session_id} {self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    def start(self) -> None:
        """Mark the session open and start draining its outbound queue."""
        if self.state is not SessionState.CONNECTING:
            raise RuntimeError(f"Cannot start session in state {self.state.value}")
        self.state = SessionState.OPEN
        self._writer = asyncio.create_task(self._pump())

    def deliver(self, message: dict[str, Any]) -> None:
        """Queue *message* for this dashboard without waiting for the socket."""
        if not self.is_open:
            raise DeliveryFailure(f"Session {self.session_id} is {self.state.value}")
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            raise DeliveryFailure(
                f"Outbound queue full for session {self.session_id}"
            ) from None

    async def _pump(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self.websocket.send_json(message)
            except Exception as exc:
                logger.info("Send to %s failed: %s", self.session_id, exc)
                self.state = SessionState.CLOSED
                if self.on_dead is not None:
                    self.on_dead(self)
                return
            finally:
                self._outbox.task_done()

    async def flush(self) -> None:
        """Wait until every queued message has been handed to the socket."""
        if self._writer is None or self._writer.done():
            return
        joined = asyncio.ensure_future(self._outbox.join())
        try:
            await asyncio.wait({joined, self._writer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            joined.cancel()

    async def close(self) -> None:
        self.state = SessionState.CLOSED
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None


class BroadcastHub:
    """Non-owning registry of open dashboard sessions."""

    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self.tz = tz
        self._sessions: set[DashboardSession] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def register(self, session: DashboardSession) -> None:
        with self._lock:
            self._sessions.add(session)
        logger.debug("Registered %s (%d open)", session.session_id, len(self))

    def unregister(self, session: DashboardSession) -> None:
        with self._lock:
            self._sessions.discard(session)
        logger.debug("Unregistered %s (%d open)", session.session_id, len(self))

    def broadcast(self, message: dict[str, Any]) -> int:
        """Queue *message* for every registered session.

        Returns the number of sessions that accepted it.  A failing session
        is logged and skipped.
        """
        with self._lock:
            sessions = list(self._sessions)

        delivered = 0
        for session in sessions:
            try:
                session.deliver(message)
            except DeliveryFailure as exc:
                logger.warning("Dropping %s message: %s", message.get("type"), exc)
                continue
            except Exception:
                logger.exception("Unexpected delivery error for %s", session.session_id)
                continue
            delivered += 1
        return delivered

    def broadcast_status(self, status: DeviceStatus) -> int:
        return self.broadcast(status_message(status, self.tz))

    def broadcast_log(self, text: str) -> int:
        return self.broadcast(log_message(text))
