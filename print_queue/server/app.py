"""FastAPI application that receives Slack Events API webhooks.

WHY: In production Slack delivers events by POSTing JSON to a public
URL. Slack requires a 200 response within 3 seconds, signed-request
verification, and a one-time URL verification challenge. slack-bolt's
request handler already does all three; this module mounts it on a
small FastAPI app next to a health endpoint.

HOW: create_server() builds the FastAPI app around an already
bootstrapped Bolt App. POST /slack/events is delegated to Bolt's
SlackRequestHandler, which verifies the signature, answers challenges,
acks the event and runs the listener. GET /health reports the queue
length for supervisors. serve() runs the app under uvicorn.

RULES:
- The events path must match the Request URL set in the Slack app config
- This module never touches the queue directly except to read its length
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from slack_bolt import App
from slack_bolt.adapter.fastapi import SlackRequestHandler

from print_queue import __version__
from print_queue.config import EVENTS_PATH, BotConfig
from print_queue.core.commands import CommandInterpreter
from print_queue.server.models import HealthResponse

logger = logging.getLogger(__name__)


def create_server(bolt_app: App, interpreter: CommandInterpreter) -> FastAPI:
    """Build the FastAPI app for one bot instance."""
    api = FastAPI(
        title="print-queue",
        description="Slack bot that keeps the waiting line for the 3D printer.",
        version=__version__,
    )
    handler = SlackRequestHandler(bolt_app)

    @api.post(EVENTS_PATH, tags=["slack"])
    async def slack_events(request: Request):
        """Entry point for Slack Events API deliveries."""
        return await handler.handle(request)

    @api.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        queue = interpreter.queue
        return HealthResponse(
            status="ok",
            version=__version__,
            queue_length=len(queue),
            backup_in_sync=queue.backup_in_sync,
        )

    return api


def serve(api: FastAPI, config: BotConfig) -> None:
    """Run the HTTP server until interrupted."""
    import uvicorn

    logger.info(
        "Listening for Slack events on http://%s:%d%s",
        config.host, config.port, EVENTS_PATH,
    )
    uvicorn.run(api, host=config.host, port=config.port)
