from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from autoreply.adapters.base import FetchError, MessagingAdapter, SendError
from autoreply.config import Settings
from autoreply.domain import Event, EventKind, Message, OutgoingReply, WireModel
from autoreply.logging_setup import get_logger

SIGNATURE_HEADER = "X-Spark-Signature"


class WebhookData(WireModel):
    id: str | None = None
    room_id: str | None = None
    person_id: str | None = None
    person_email: str | None = None


class WebhookNotification(WireModel):
    """Body of a Webex webhook delivery."""

    resource: str
    event: str
    actor_id: str | None = None
    created: datetime | None = None
    data: WebhookData = WebhookData()

    def to_event(self) -> Event:
        return Event(
            kind=EventKind.from_webhook(self.resource, self.event),
            global_id=self.data.id,
            actor_id=self.actor_id,
            room_id=self.data.room_id,
            created=self.created,
        )


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha1).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


class WebexAdapter(MessagingAdapter):
    """Webex adapter: REST calls over httpx, events from a webhook receiver.

    ``app`` is a FastAPI application that accepts webhook deliveries and queues
    them; ``events()`` drains that queue. Shutting the app down ends the stream.
    """

    name = "webex"

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._logger = get_logger(self.__class__.__name__)
        self._client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_S)
        self._headers = {"Authorization": f"Bearer {settings.BOT_ACCESS_TOKEN}"}
        self._queue: asyncio.Queue[Event | None] = asyncio.Queue()
        self.app = self._build_app()

    # Public API -----------------------------------------------------------------
    async def events(self) -> AsyncIterator[Event]:
        while True:
            event = await self._queue.get()
            if event is None:
                self._logger.info("Event stream closed")
                return
            yield event

    def publish(self, event: Event) -> None:
        self._queue.put_nowait(event)

    def close_stream(self) -> None:
        self._queue.put_nowait(None)

    async def get_message(self, global_id: str) -> Message:
        data = await self._request("GET", f"messages/{global_id}", error=FetchError)
        try:
            return Message.model_validate(data)
        except ValidationError as exc:
            raise FetchError(f"unexpected message payload for {global_id}: {exc}") from exc

    async def send_message(self, reply: OutgoingReply) -> Message:
        data = await self._request("POST", "messages", error=SendError, json=reply.to_payload())
        try:
            return Message.model_validate(data)
        except ValidationError as exc:
            raise SendError(f"unexpected response to send: {exc}") from exc

    async def whoami(self) -> dict[str, Any]:
        """Return the bot's own person record; useful to check the token."""
        return await self._request("GET", "people/me", error=FetchError)

    async def close(self) -> None:
        await self._client.aclose()

    # Internals -----------------------------------------------------------------
    async def _request(
        self, method: str, path: str, *, error: type[Exception], **kwargs: Any
    ) -> dict[str, Any]:
        url = self.settings.WEBEX_API_BASE + path
        try:
            resp = await self._client.request(method, url, headers=self._headers, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            tracking = exc.response.headers.get("trackingid", "-")
            raise error(
                f"{method} {path} -> HTTP {exc.response.status_code} (trackingid {tracking})"
            ) from exc
        except httpx.HTTPError as exc:
            raise error(f"{method} {path} failed: {exc!r}") from exc
        return resp.json()

    def _build_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI):
            yield
            self.close_stream()

        app = FastAPI(title="autoreply webhook receiver", lifespan=lifespan)
        secret = self.settings.WEBHOOK_SECRET

        @app.post(self.settings.WEBHOOK_PATH)
        async def receive(request: Request) -> JSONResponse:
            body = await request.body()
            if secret and not verify_signature(secret, body, request.headers.get(SIGNATURE_HEADER)):
                self._logger.warning("Rejected webhook with bad signature")
                raise HTTPException(status_code=401, detail="bad signature")
            try:
                notification = WebhookNotification.model_validate(json.loads(body))
            except (ValueError, ValidationError) as exc:
                raise HTTPException(status_code=422, detail=f"unparseable webhook: {exc}")
            self.publish(notification.to_event())
            return JSONResponse({"accepted": True}, status_code=202)

        @app.get("/health")
        async def health() -> JSONResponse:
            return JSONResponse({"ok": True, "queued": self._queue.qsize()})

        return app
