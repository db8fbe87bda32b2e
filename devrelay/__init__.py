"""devrelay — heartbeat relay between a polling device and live dashboards.

A single embedded device reports two signals by polling
``GET /device-heartbeat``; connected dashboards receive every status update
over a WebSocket and can queue one command that is handed to the device on
its next poll.

Quickstart::

    uvicorn devrelay.server:app --host 0.0.0.0 --port 3000
"""

__version__ = "1.0.0"
