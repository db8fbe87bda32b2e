"""Dashboard WebSocket sessions.

  Server → Dashboard:
    {"type": "status", "data": {...}}   current device status
    {"type": "log", "data": "..."}      human-readable event line

  Dashboard → Server:
    {"action": "R1ON"}                  queue a command for the device
"""

from __future__ import annotations

import logging

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from devrelay.hub import BroadcastHub, DashboardSession
from devrelay.models import Command, CommandRequest, status_message
from devrelay.state import CommandMailbox, StatusStore

logger = logging.getLogger(__name__)


class MalformedCommand(ValueError):
    """A dashboard message could not be parsed as a command request."""


def parse_command_request(raw: str | bytes) -> CommandRequest:
    try:
        return CommandRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedCommand(str(exc)) from exc


class DashboardHandler:
    """Drives the Connecting → Open → Closed lifecycle of dashboard sessions."""

    def __init__(
        self,
        store: StatusStore,
        mailbox: CommandMailbox,
        hub: BroadcastHub,
        queue_size: int = 100,
    ) -> None:
        self.store = store
        self.mailbox = mailbox
        self.hub = hub
        self.queue_size = queue_size

    def open(self, session: DashboardSession) -> None:
        """Register *session* and send it the current status snapshot."""
        session.start()
        self.hub.register(session)
        session.deliver(status_message(self.store.get(), self.hub.tz))
        logger.info("Dashboard client connected: %s", session.session_id)

    async def close(self, session: DashboardSession) -> None:
        self.hub.unregister(session)
        await session.close()
        logger.info("Dashboard client disconnected: %s", session.session_id)

    def handle_message(self, raw: str | bytes) -> Command | None:
        """Queue the command carried by *raw*; return it, or *None* if ignored."""
        logger.info("Received command from dashboard: %s", raw)
        try:
            request = parse_command_request(raw)
        except MalformedCommand as exc:
            logger.warning("Failed to parse command from dashboard: %s", exc)
            return None

        command = Command.lookup(request.action)
        if command is None:
            logger.debug("Ignoring unknown dashboard action %r", request.action)
            return None

        replaced = self.mailbox.enqueue(command)
        if replaced is not None and replaced is not command:
            logger.info("Command %s replaced undelivered %s", command.value, replaced.value)
        self.hub.broadcast_log(f"{command.label} command queued for device.")
        return command

    async def serve(self, websocket: WebSocket) -> None:
        """Run one dashboard connection until the client goes away."""
        await websocket.accept()
        session = DashboardSession(
            websocket, queue_size=self.queue_size, on_dead=self.hub.unregister
        )
        self.open(session)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                self.handle_message(raw)
        except WebSocketDisconnect:
            pass
        finally:
            await self.close(session)
