from __future__ import annotations

from pydantic import BaseModel

from autoreply.adapters.base import FetchError, MessagingAdapter, SendError
from autoreply.config import Settings
from autoreply.domain import (
    BotIdentity,
    Event,
    EventKind,
    MissingTextError,
    OutgoingReply,
    build_reply_text,
)
from autoreply.logging_setup import get_logger


class RunStats(BaseModel):
    """Counters for one pass over the event stream."""

    events: int = 0
    ignored: int = 0
    fetch_failures: int = 0
    skipped: int = 0
    replies: int = 0
    send_failures: int = 0

    def summary(self) -> str:
        return (
            f"{self.events} event(s): {self.replies} replied, "
            f"{self.ignored} ignored, {self.skipped} skipped, "
            f"{self.fetch_failures} fetch failure(s), {self.send_failures} send failure(s)"
        )


class Responder:
    """Answers every posted message that did not come from the bot itself."""

    def __init__(self, adapter: MessagingAdapter, identity: BotIdentity, settings: Settings) -> None:
        self.adapter = adapter
        self.identity = identity
        self.settings = settings
        self.stats = RunStats()
        self._logger = get_logger(self.__class__.__name__)

    async def run(self) -> RunStats:
        """Process events in stream order until the stream ends.

        Stream errors, and send errors under the default policy, propagate.
        """
        self._logger.info("Listening for events as %s via %s", self.identity.email, self.adapter.name)
        async for event in self.adapter.events():
            self.stats.events += 1
            await self.handle_event(event)
        self._logger.info("Stream ended: %s", self.stats.summary())
        return self.stats

    async def handle_event(self, event: Event) -> bool:
        """Handle a single event. Returns True when a reply was sent."""
        ctx = {"event_id": event.global_id, "kind": event.kind.value}
        if event.kind != EventKind.MESSAGE_POSTED:
            self.stats.ignored += 1
            self._logger.debug("Ignoring %s event", event.kind.value, extra=ctx)
            return False

        if not event.global_id:
            self.stats.fetch_failures += 1
            self._logger.warning("Message event without a global id; dropped", extra=ctx)
            return False

        try:
            message = await self.adapter.get_message(event.global_id)
        except FetchError as exc:
            self.stats.fetch_failures += 1
            self._logger.warning("Fetch failed, dropping event: %s", exc, extra=ctx)
            return False

        sender = message.person_email
        if sender is None or self.identity.is_self(sender):
            self.stats.skipped += 1
            self._logger.debug("No reply for sender %s", sender, extra=ctx)
            return False

        reply = OutgoingReply.from_message(message)
        try:
            reply.text = build_reply_text(sender, message.text)
        except MissingTextError as exc:
            self.stats.skipped += 1
            self._logger.warning("Skipping reply: %s", exc, extra=ctx)
            return False

        try:
            await self.adapter.send_message(reply)
        except SendError:
            self.stats.send_failures += 1
            self._logger.exception("Send failed for reply to %s", sender, extra=ctx)
            if self.settings.ABORT_ON_SEND_FAILURE:
                raise
            return False

        self.stats.replies += 1
        self._logger.info("Replied to %s", sender, extra=ctx)
        return True
