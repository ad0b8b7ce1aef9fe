from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from autoreply.domain import Event, Message, OutgoingReply


class AdapterError(RuntimeError):
    """Base class for failures reported by a messaging adapter."""


class FetchError(AdapterError):
    """A resource could not be resolved from its global id."""


class SendError(AdapterError):
    """An outgoing message was not accepted by the service."""


class StreamError(AdapterError):
    """The event stream failed and cannot produce further events."""


class MessagingAdapter(ABC):
    """Adapter interface for a messaging service.

    The responder only talks to the service through this interface. Session
    handling, stream transport and retries are the adapter's business.
    """

    name: str = "base"

    @abstractmethod
    def events(self) -> AsyncIterator[Event]:  # pragma: no cover - interface
        """Yield inbound events in arrival order until the stream ends."""

    @abstractmethod
    async def get_message(self, global_id: str) -> Message:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def send_message(self, reply: OutgoingReply) -> Message:  # pragma: no cover - interface
        ...

    async def close(self) -> None:
        return None
