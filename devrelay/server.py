"""devrelay — standalone relay server.

Exposes:
  GET  /device-heartbeat?sql=&dql=  — device poll; replies "OK" or a command id
  WS   /  and  /ws                  — dashboard status/command channel
  GET  /status                      — current status and pending command
  GET  /health                      — liveness check
  GET  /*                           — dashboard assets (when RELAY_STATIC_DIR exists)

Start with::

    python -m devrelay.server
    # or
    uvicorn devrelay.server:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import APIRouter, FastAPI, Request, WebSocket
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from devrelay import __version__
from devrelay.config import RelaySettings
from devrelay.ingress import MalformedRequest
from devrelay.service import RelayService

logger = logging.getLogger(__name__)

router = APIRouter()


def _relay(conn: Request | WebSocket) -> RelayService:
    return conn.app.state.relay


# ──────────────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────────────

@router.get("/device-heartbeat", response_class=PlainTextResponse)
async def device_heartbeat(request: Request, sql: str | None = None, dql: str | None = None):
    try:
        reply = await _relay(request).handle_heartbeat(sql, dql)
    except MalformedRequest as exc:
        logger.warning("Rejected heartbeat: %s", exc)
        return PlainTextResponse(str(exc), status_code=400)
    return PlainTextResponse(reply)


@router.get("/status")
async def status(request: Request):
    return _relay(request).snapshot()


@router.get("/health")
async def health(request: Request):
    return _relay(request).health()


async def dashboard_ws(websocket: WebSocket) -> None:
    await _relay(websocket).dashboards.serve(websocket)


router.add_api_websocket_route("/", dashboard_ws)
router.add_api_websocket_route("/ws", dashboard_ws)


# ──────────────────────────────────────────────────────────────────
# Application factory
# ──────────────────────────────────────────────────────────────────

def create_app(service: RelayService | None = None) -> FastAPI:
    relay = service or RelayService(RelaySettings.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await relay.shutdown()

    app = FastAPI(title="devrelay", version=__version__, lifespan=lifespan)
    app.state.relay = relay
    app.include_router(router)

    static_dir = relay.settings.static_dir
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="dashboard")
        logger.info("Serving dashboard assets from %s", static_dir)
    return app


app = create_app()


# ──────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────

def main():
    import uvicorn
    settings = RelaySettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting devrelay server on %s:%d", settings.host, settings.port)
    uvicorn.run("devrelay.server:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
