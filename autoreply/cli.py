from __future__ import annotations

import asyncio
import json

import typer

from autoreply.adapters.base import AdapterError, MessagingAdapter
from autoreply.adapters.mock import MockAdapter
from autoreply.adapters.webex import WebexAdapter
from autoreply.config import ConfigError, Settings, load_settings
from autoreply.domain import BotIdentity
from autoreply.logging_setup import get_logger, setup_logging
from autoreply.responder import Responder
from autoreply.server import serve

app = typer.Typer(help="autoreply - Webex auto-responder bot")


def _load() -> Settings:
    try:
        settings = load_settings()
    except ConfigError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2)
    setup_logging(json_logs=settings.LOG_JSON, level=settings.LOG_LEVEL)
    return settings


def _build_adapter(settings: Settings) -> MessagingAdapter:
    key = settings.ADAPTER.lower()
    if key == "webex":
        return WebexAdapter(settings)
    if key == "mock":
        return MockAdapter.demo(settings)
    typer.echo(f"error: unsupported ADAPTER={settings.ADAPTER!r}; choose 'webex' or 'mock'", err=True)
    raise typer.Exit(code=2)


@app.callback()
def main() -> None:
    """All configuration is read from the environment (BOT_ACCESS_TOKEN, BOT_EMAIL, ...)."""


@app.command()
def run() -> None:
    """Serve the webhook receiver and reply to messages that mention the bot.

    With ADAPTER=mock a scripted demo stream is replayed instead, without a server.
    """
    settings = _load()
    adapter = _build_adapter(settings)
    responder = Responder(adapter, BotIdentity(email=settings.BOT_EMAIL), settings)
    logger = get_logger("cli")

    try:
        if isinstance(adapter, WebexAdapter):
            stats = asyncio.run(serve(adapter, responder, settings=settings))
        else:
            stats = asyncio.run(responder.run())
    except KeyboardInterrupt:
        logger.info("Interrupted: %s", responder.stats.summary())
        return
    except AdapterError as exc:
        logger.error("Responder stopped: %s", exc)
        raise typer.Exit(code=1)
    if isinstance(adapter, MockAdapter):
        for reply in adapter.sent:
            typer.echo(f"-> {reply.room_id or reply.to_person_id}: {reply.text}")
    typer.echo(stats.summary())


@app.command()
def whoami() -> None:
    """Check the access token by fetching the bot's own person record."""
    settings = _load()
    adapter = _build_adapter(settings)
    if not isinstance(adapter, WebexAdapter):
        typer.echo(f"error: whoami needs ADAPTER=webex, not {settings.ADAPTER!r}", err=True)
        raise typer.Exit(code=2)

    async def _fetch() -> dict:
        try:
            return await adapter.whoami()
        finally:
            await adapter.close()

    try:
        person = asyncio.run(_fetch())
    except AdapterError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(person, indent=2, ensure_ascii=False))
    emails = [e.casefold() for e in person.get("emails", [])]
    if emails and settings.BOT_EMAIL.casefold() not in emails:
        typer.echo(f"warning: BOT_EMAIL={settings.BOT_EMAIL} is not one of the token's emails", err=True)
