from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncIterator, Iterable

from autoreply.adapters.base import FetchError, MessagingAdapter, SendError, StreamError
from autoreply.config import Settings
from autoreply.domain import Event, EventKind, Message, OutgoingReply, RoomType
from autoreply.logging_setup import get_logger


class MockAdapter(MessagingAdapter):
    """In-memory adapter replaying a scripted event stream.

    - Serves messages from a dict keyed by global id
    - Fails fetches for ids listed in ``failing_ids``, and every send when ``fail_sends`` is set
    - Raises ``StreamError`` after the script when ``stream_error`` is set
    - Simulates latency per settings.MOCK_LATENCY_MS_RANGE
    """

    name = "mock"

    def __init__(
        self,
        settings: Settings,
        *,
        events: Iterable[Event] = (),
        messages: Iterable[Message] = (),
        failing_ids: Iterable[str] = (),
        fail_sends: bool = False,
        stream_error: bool = False,
    ) -> None:
        self.settings = settings
        self._rng = random.Random(settings.SEED)
        self._logger = get_logger(self.__class__.__name__)

        self._events: list[Event] = list(events)
        self._messages: dict[str, Message] = {m.id: m for m in messages}
        self._failing_ids: set[str] = set(failing_ids)
        self._fail_sends = fail_sends
        self._stream_error = stream_error

        # Recorded side effects
        self.fetched_ids: list[str] = []
        self.sent: list[OutgoingReply] = []
        self.closed = False

    @classmethod
    def demo(cls, settings: Settings) -> MockAdapter:
        """A short scripted conversation for `ADAPTER=mock` runs."""
        posted = EventKind.MESSAGE_POSTED
        messages = [
            Message(id="demo-1", room_id="demo-room", room_type=RoomType.GROUP,
                    person_email="alice@example.com", text="hello bot"),
            Message(id="demo-2", room_id="demo-room", room_type=RoomType.GROUP,
                    person_email=settings.BOT_EMAIL, text="talking to myself"),
            Message(id="demo-4", room_id="demo-dm", room_type=RoomType.DIRECT,
                    person_id="p-carol", person_email="carol@example.com", text="are you there?"),
        ]
        events = [
            Event(kind=posted, global_id="demo-1"),
            Event(kind=EventKind.ROOM_JOINED, global_id="demo-membership"),
            Event(kind=posted, global_id="demo-2"),
            Event(kind=posted, global_id="demo-3"),
            Event(kind=posted, global_id="demo-4"),
        ]
        return cls(settings, events=events, messages=messages, failing_ids={"demo-3"})

    # Public API -----------------------------------------------------------------
    async def events(self) -> AsyncIterator[Event]:
        for event in self._events:
            await self._simulate_latency()
            yield event
        if self._stream_error:
            raise StreamError("mock stream dropped")

    async def get_message(self, global_id: str) -> Message:
        await self._simulate_latency()
        self.fetched_ids.append(global_id)
        if global_id in self._failing_ids:
            raise FetchError(f"simulated network error fetching {global_id}")
        try:
            return self._messages[global_id]
        except KeyError:
            raise FetchError(f"message not found: {global_id}") from None

    async def send_message(self, reply: OutgoingReply) -> Message:
        await self._simulate_latency()
        if self._fail_sends:
            raise SendError("simulated send failure")
        self.sent.append(reply.model_copy())
        sent = Message(
            id=f"mock-sent-{len(self.sent)}",
            room_id=reply.room_id,
            parent_id=reply.parent_id,
            person_email=self.settings.BOT_EMAIL,
            text=reply.text,
        )
        self._messages[sent.id] = sent
        return sent

    async def close(self) -> None:
        self.closed = True

    # Internals -----------------------------------------------------------------
    async def _simulate_latency(self) -> None:
        low_ms, high_ms = self.settings.MOCK_LATENCY_MS_RANGE
        if high_ms <= 0:
            return
        await asyncio.sleep(self._rng.uniform(low_ms / 1000.0, high_ms / 1000.0))
