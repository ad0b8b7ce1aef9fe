from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

REPLY_FORMAT = "{sender}, you said: {text}"


class MissingTextError(ValueError):
    """The message being replied to carries no text to echo."""


class WireModel(BaseModel):
    """Base for models exchanged with the messaging API (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class EventKind(str, Enum):
    MESSAGE_POSTED = "message_posted"
    MESSAGE_DELETED = "message_deleted"
    ROOM_JOINED = "room_joined"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        # Unknown activity types are ignored downstream, never rejected.
        return cls.OTHER

    @classmethod
    def from_webhook(cls, resource: str, event: str) -> EventKind:
        key = (resource.lower(), event.lower())
        if key == ("messages", "created"):
            return cls.MESSAGE_POSTED
        if key == ("messages", "deleted"):
            return cls.MESSAGE_DELETED
        if key == ("memberships", "created"):
            return cls.ROOM_JOINED
        return cls.OTHER


class Event(BaseModel):
    """A notification that something happened; carries a reference, not content."""

    kind: EventKind
    global_id: str | None = None
    actor_id: str | None = None
    room_id: str | None = None
    created: datetime | None = None


class RoomType(str, Enum):
    DIRECT = "direct"
    GROUP = "group"


class Message(WireModel):
    """A message as returned by the messaging API."""

    model_config = ConfigDict(frozen=True)

    id: str
    room_id: str | None = None
    room_type: RoomType | None = None
    parent_id: str | None = None
    person_id: str | None = None
    person_email: str | None = None
    text: str | None = None
    markdown: str | None = None
    created: datetime | None = None


class OutgoingReply(WireModel):
    """Payload for a message sent back in the context of a received one."""

    room_id: str | None = None
    parent_id: str | None = None
    to_person_id: str | None = None
    to_person_email: str | None = None
    text: str | None = None
    markdown: str | None = None

    @classmethod
    def from_message(cls, message: Message) -> OutgoingReply:
        if message.room_type == RoomType.GROUP:
            # Stay in the original's thread, if any; never open a new one.
            return cls(room_id=message.room_id, parent_id=message.parent_id)
        if message.person_id:
            return cls(to_person_id=message.person_id)
        if message.person_email:
            return cls(to_person_email=message.person_email)
        return cls(room_id=message.room_id)

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BotIdentity(BaseModel):
    """The bot's own address, used to avoid answering itself."""

    email: str = Field(min_length=1)

    def is_self(self, sender: str | None) -> bool:
        if sender is None:
            return False
        return sender.strip().casefold() == self.email.strip().casefold()


def build_reply_text(sender: str, text: str | None) -> str:
    if text is None:
        raise MissingTextError(f"message from {sender} has no text")
    return REPLY_FORMAT.format(sender=sender, text=text)
