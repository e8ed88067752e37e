import asyncio

import pytest

from pollchat.cache import RedisKeys, MessageLogCacheService
from pollchat.exceptions import InvalidArgument
from pollchat.models import Message


@pytest.mark.asyncio
class TestSend:

    async def test_message_fields(self, chat_service, clock):
        message = await chat_service.send("alice", "bob", "hi")
        assert message.id == int(clock.now * 1000)
        assert message.sender_id == "alice"
        assert message.recipient_id == "bob"
        assert message.body == "hi"
        assert message.sent is True

    async def test_ids_strictly_increase_within_same_millisecond(self, chat_service):
        first = await chat_service.send("alice", "bob", "one")
        second = await chat_service.send("bob", "alice", "two")
        third = await chat_service.send("alice", "bob", "three")
        assert first.id < second.id < third.id

    async def test_ids_increase_when_clock_regresses(self, chat_service, clock):
        first = await chat_service.send("alice", "bob", "one")
        clock.advance(-5)
        second = await chat_service.send("alice", "bob", "two")
        assert second.id > first.id

    async def test_concurrent_sends_get_unique_ids(self, chat_service):
        messages = await asyncio.gather(
            *(chat_service.send("alice", "bob", f"m{i}") for i in range(20))
        )
        assert len({m.id for m in messages}) == 20

    async def test_send_links_both_users(self, chat_service):
        await chat_service.send("alice", "bob", "hi")
        assert await chat_service.partners("alice") == {"bob"}
        assert await chat_service.partners("bob") == {"alice"}

    @pytest.mark.parametrize("sender,recipient,body", [
        ("", "bob", "hi"),
        ("alice", "  ", "hi"),
        ("alice", "bob", ""),
        ("alice", "bob", "   "),
    ])
    async def test_rejects_empty_fields(self, chat_service, sender, recipient, body):
        with pytest.raises(InvalidArgument):
            await chat_service.send(sender, recipient, body)

    async def test_rejects_self_send(self, chat_service):
        with pytest.raises(InvalidArgument):
            await chat_service.send("alice", "alice", "hi")

    async def test_rejected_send_leaves_no_trace(self, chat_service):
        with pytest.raises(InvalidArgument):
            await chat_service.send("alice", "bob", "   ")
        assert await chat_service.list_messages("alice", "bob") == []
        assert await chat_service.partners("alice") == set()


@pytest.mark.asyncio
class TestListMessages:

    async def test_oldest_first(self, chat_service, clock):
        await chat_service.send("alice", "bob", "one")
        clock.advance(1)
        await chat_service.send("bob", "alice", "two")
        clock.advance(1)
        await chat_service.send("alice", "bob", "three")

        messages = await chat_service.list_messages("bob", "alice")
        assert [m.body for m in messages] == ["one", "two", "three"]

    async def test_same_view_from_both_sides(self, chat_service):
        await chat_service.send("alice", "bob", "one")
        await chat_service.send("bob", "alice", "two")
        from_alice = await chat_service.list_messages("alice", "bob")
        from_bob = await chat_service.list_messages("bob", "alice")
        assert from_alice == from_bob

    async def test_empty_conversation(self, chat_service):
        assert await chat_service.list_messages("alice", "bob") == []

    async def test_limit_returns_most_recent(self, chat_service, clock):
        for body in ("one", "two", "three", "four"):
            await chat_service.send("alice", "bob", body)
            clock.advance(1)
        messages = await chat_service.list_messages("alice", "bob", limit=2)
        assert [m.body for m in messages] == ["three", "four"]

    async def test_invalid_limit(self, chat_service):
        with pytest.raises(InvalidArgument):
            await chat_service.list_messages("alice", "bob", limit=0)

    async def test_corrupt_records_are_skipped(self, chat_service, store):
        await chat_service.send("alice", "bob", "one")
        pair = RedisKeys.pair("alice", "bob")
        await store.lpush(RedisKeys.messages(pair), "{not json")
        await store.lpush(RedisKeys.messages(pair), '{"id": "x"}')
        await chat_service.send("bob", "alice", "two")

        messages = await chat_service.list_messages("alice", "bob")
        assert [m.body for m in messages] == ["one", "two"]

    async def test_log_expires_with_presence_window(self, chat_service, clock, timing):
        await chat_service.send("alice", "bob", "one")
        clock.advance(timing.presence_ttl)
        assert await chat_service.list_messages("alice", "bob") == []


@pytest.mark.asyncio
class TestMessageLogCacheService:

    async def test_log_is_capped(self, store):
        log = MessageLogCacheService(store, ttl=60, max_length=3)
        for i in range(5):
            await log.append("alice", "bob", f"m{i}", 1000)
        messages = await log.history(RedisKeys.pair("alice", "bob"))
        assert [m.body for m in messages] == ["m2", "m3", "m4"]

    async def test_checkpoint_separates_old_and_new(self, store):
        log = MessageLogCacheService(store, ttl=60)
        pair = RedisKeys.pair("alice", "bob")
        before = await log.append("alice", "bob", "before", 1000)
        position = await log.checkpoint(pair, 1000)
        after = await log.append("alice", "bob", "after", 1000)
        assert before.id < position < after.id


class TestMessageRecord:

    def test_record_roundtrip(self):
        message = Message(
            id=1, sender_id="a", recipient_id="b", body="hi",
            sent_at="2024-01-01T00:00:00Z",
        )
        assert Message.from_record(message.to_record()) == message

    @pytest.mark.parametrize("raw", ["", "null", "[]", "{broken", '{"id": 1}'])
    def test_corrupt_record(self, raw):
        assert Message.from_record(raw) is None
