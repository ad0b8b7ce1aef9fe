from __future__ import annotations

import pytest

from autoreply.adapters.base import SendError, StreamError
from autoreply.adapters.mock import MockAdapter
from autoreply.config import Settings
from autoreply.domain import BotIdentity, Event, EventKind, Message, RoomType
from autoreply.responder import Responder


def _posted(global_id: str | None) -> Event:
    return Event(kind=EventKind.MESSAGE_POSTED, global_id=global_id)


def _msg(msg_id: str, sender: str | None, text: str | None = "hi") -> Message:
    return Message(
        id=msg_id,
        room_id="room-1",
        room_type=RoomType.GROUP,
        person_email=sender,
        text=text,
    )


async def _run(adapter: MockAdapter, settings: Settings):
    responder = Responder(adapter, BotIdentity(email=settings.BOT_EMAIL), settings)
    return await responder.run()


@pytest.mark.asyncio
async def test_replies_to_other_sender(settings):
    adapter = MockAdapter(settings, events=[_posted("m1")], messages=[_msg("m1", "alice@x.com")])

    stats = await _run(adapter, settings)

    assert len(adapter.sent) == 1
    assert adapter.sent[0].text == "alice@x.com, you said: hi"
    assert adapter.sent[0].room_id == "room-1"
    assert stats.replies == 1


@pytest.mark.asyncio
async def test_no_reply_to_self(settings):
    adapter = MockAdapter(settings, events=[_posted("m1")], messages=[_msg("m1", "bot@x.com")])

    stats = await _run(adapter, settings)

    assert adapter.sent == []
    assert stats.skipped == 1


@pytest.mark.asyncio
async def test_self_check_ignores_case(settings):
    adapter = MockAdapter(settings, events=[_posted("m1")], messages=[_msg("m1", "Bot@X.com")])

    await _run(adapter, settings)

    assert adapter.sent == []


@pytest.mark.asyncio
async def test_no_reply_without_sender(settings):
    adapter = MockAdapter(settings, events=[_posted("m1")], messages=[_msg("m1", None)])

    await _run(adapter, settings)

    assert adapter.sent == []


@pytest.mark.asyncio
async def test_non_message_events_have_no_side_effects(settings):
    events = [
        Event(kind=EventKind.ROOM_JOINED, global_id="r1"),
        Event(kind=EventKind.MESSAGE_DELETED, global_id="m1"),
        Event(kind="something_new", global_id="x1"),
    ]
    adapter = MockAdapter(settings, events=events, messages=[_msg("m1", "alice@x.com")])

    stats = await _run(adapter, settings)

    assert adapter.fetched_ids == []
    assert adapter.sent == []
    assert stats.ignored == 3


@pytest.mark.asyncio
async def test_fetch_failure_does_not_stop_loop(settings):
    adapter = MockAdapter(
        settings,
        events=[_posted("m1"), _posted("m2")],
        messages=[_msg("m1", "alice@x.com", "first"), _msg("m2", "carol@x.com", "second")],
        failing_ids={"m1"},
    )

    stats = await _run(adapter, settings)

    assert adapter.fetched_ids == ["m1", "m2"]
    assert [r.text for r in adapter.sent] == ["carol@x.com, you said: second"]
    assert stats.fetch_failures == 1


@pytest.mark.asyncio
async def test_event_without_global_id_is_dropped(settings):
    adapter = MockAdapter(settings, events=[_posted(None), _posted("m1")], messages=[_msg("m1", "alice@x.com")])

    stats = await _run(adapter, settings)

    assert adapter.fetched_ids == ["m1"]
    assert len(adapter.sent) == 1
    assert stats.fetch_failures == 1


@pytest.mark.asyncio
async def test_missing_text_is_skipped_not_fatal(settings):
    adapter = MockAdapter(
        settings,
        events=[_posted("m1"), _posted("m2")],
        messages=[_msg("m1", "alice@x.com", None), _msg("m2", "alice@x.com", "again")],
    )

    stats = await _run(adapter, settings)

    assert [r.text for r in adapter.sent] == ["alice@x.com, you said: again"]
    assert stats.skipped == 1


@pytest.mark.asyncio
async def test_send_failure_aborts_by_default(settings):
    adapter = MockAdapter(
        settings,
        events=[_posted("m1"), _posted("m2")],
        messages=[_msg("m1", "alice@x.com"), _msg("m2", "alice@x.com")],
        fail_sends=True,
    )

    with pytest.raises(SendError):
        await _run(adapter, settings)
    assert adapter.fetched_ids == ["m1"]


@pytest.mark.asyncio
async def test_send_failure_can_be_tolerated():
    settings = Settings(BOT_ACCESS_TOKEN="t", BOT_EMAIL="bot@x.com", ABORT_ON_SEND_FAILURE=False)
    adapter = MockAdapter(
        settings,
        events=[_posted("m1"), _posted("m2")],
        messages=[_msg("m1", "alice@x.com"), _msg("m2", "alice@x.com")],
        fail_sends=True,
    )

    stats = await _run(adapter, settings)

    assert adapter.fetched_ids == ["m1", "m2"]
    assert stats.send_failures == 2


@pytest.mark.asyncio
async def test_stream_error_propagates(settings):
    adapter = MockAdapter(
        settings, events=[_posted("m1")], messages=[_msg("m1", "alice@x.com")], stream_error=True
    )

    with pytest.raises(StreamError):
        await _run(adapter, settings)
    assert len(adapter.sent) == 1


@pytest.mark.asyncio
async def test_events_processed_in_stream_order():
    settings = Settings(BOT_ACCESS_TOKEN="t", BOT_EMAIL="bot@x.com", MOCK_LATENCY_MS_RANGE=(0, 2))
    senders = [f"user{i}@x.com" for i in range(5)]
    adapter = MockAdapter(
        settings,
        events=[_posted(f"m{i}") for i in range(5)],
        messages=[_msg(f"m{i}", s, str(i)) for i, s in enumerate(senders)],
    )

    await _run(adapter, settings)

    assert [r.text for r in adapter.sent] == [f"{s}, you said: {i}" for i, s in enumerate(senders)]


@pytest.mark.asyncio
async def test_demo_script(settings):
    adapter = MockAdapter.demo(settings)

    stats = await _run(adapter, settings)

    assert [r.text for r in adapter.sent] == [
        "alice@example.com, you said: hello bot",
        "carol@example.com, you said: are you there?",
    ]
    assert adapter.sent[0].room_id == "demo-room"
    assert adapter.sent[1].to_person_id == "p-carol"
    assert (stats.ignored, stats.skipped, stats.fetch_failures) == (1, 1, 1)
