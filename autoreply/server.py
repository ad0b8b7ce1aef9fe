from __future__ import annotations

import asyncio

import uvicorn

from autoreply.adapters.webex import WebexAdapter
from autoreply.config import Settings
from autoreply.logging_setup import get_logger
from autoreply.responder import Responder, RunStats


async def serve(adapter: WebexAdapter, responder: Responder, *, settings: Settings) -> RunStats:
    """Run the webhook receiver and the responder side by side in one loop.

    The server stops when the responder returns or raises; stopping the server
    (Ctrl+C) closes the event stream, which ends the responder.
    """
    logger = get_logger("server")
    config = uvicorn.Config(
        adapter.app,
        host=settings.WEBHOOK_HOST,
        port=settings.WEBHOOK_PORT,
        access_log=False,
        log_level="warning",
        log_config=None,
    )
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve(), name="webhook-server")
    logger.info(
        "Webhook receiver on http://%s:%s%s",
        settings.WEBHOOK_HOST,
        settings.WEBHOOK_PORT,
        settings.WEBHOOK_PATH,
    )

    try:
        return await responder.run()
    finally:
        server.should_exit = True
        await server_task
        await adapter.close()
        logger.info("Webhook receiver stopped.")
