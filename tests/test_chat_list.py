import pytest

from pollchat.cache import RedisKeys
from pollchat.exceptions import InvalidArgument, StoreUnavailable
from pollchat.utils.config import TimingSettings
from pollchat.models import timestamp_from_ms
from pollchat.views.chat import ChatSummary
from pollchat.services import sort_summaries

from conftest import FaultyStore, make_services


@pytest.mark.asyncio
class TestListChats:

    async def test_no_partners(self, chat_list_service):
        assert await chat_list_service.list_chats("alice") == []

    async def test_partner_without_messages(self, chat_service, chat_list_service):
        await chat_service.register("bob")
        await chat_service.search("alice", "bob")

        chats = await chat_list_service.list_chats("alice")
        assert chats == [ChatSummary.empty("bob")]

    async def test_summary_fields(self, chat_service, chat_list_service, clock):
        await chat_service.send("bob", "alice", "first")
        clock.advance(1)
        last = await chat_service.send("bob", "alice", "second")

        [summary] = await chat_list_service.list_chats("alice")
        assert summary.partner_id == "bob"
        assert summary.last_message_body == "second"
        assert summary.last_message_id == last.id
        assert summary.last_message_at == last.sent_at
        assert summary.unread_count == 2
        assert summary.has_unread is True
        assert summary.degraded is False

    async def test_mark_read_clears_unread(self, chat_service, chat_list_service):
        await chat_service.send("bob", "alice", "hi")
        await chat_service.mark_read("alice", "bob")
        [summary] = await chat_list_service.list_chats("alice")
        assert summary.unread_count == 0
        assert summary.has_unread is False

    async def test_own_messages_are_not_unread(self, chat_service, chat_list_service):
        await chat_service.send("alice", "bob", "hi")
        [summary] = await chat_list_service.list_chats("alice")
        assert summary.unread_count == 0

    async def test_ordering(self, chat_service, chat_list_service, clock):
        await chat_service.register("dave")
        await chat_service.search("alice", "dave")
        await chat_service.send("bob", "alice", "unread old")
        clock.advance(1)
        await chat_service.send("alice", "carol", "read newest")
        clock.advance(1)
        await chat_service.send("erin", "alice", "unread newest")
        clock.advance(1)
        await chat_service.send("alice", "frank", "read newer")
        clock.advance(1)
        await chat_service.send("alice", "carol", "read newest")

        chats = await chat_list_service.list_chats("alice")
        assert [c.partner_id for c in chats] == ["erin", "bob", "carol", "frank", "dave"]

    async def test_unread_counted_beyond_window(self, store, clock):
        timing = TimingSettings(chat_window=3)
        chat_service, chat_list_service = make_services(store, clock, timing)
        for i in range(5):
            await chat_service.send("bob", "alice", f"m{i}")

        [summary] = await chat_list_service.list_chats("alice")
        assert summary.unread_count == 5
        assert summary.last_message_body == "m4"

    async def test_rejects_empty_identity(self, chat_list_service):
        with pytest.raises(InvalidArgument):
            await chat_list_service.list_chats("  ")


@pytest.mark.asyncio
class TestListChatsFaultIsolation:

    async def test_failing_partner_degrades(self, clock):
        store = FaultyStore(clock)
        chat_service, chat_list_service = make_services(store, clock)
        await chat_service.send("bob", "alice", "from bob")
        await chat_service.send("carol", "alice", "from carol")
        store.broken_keys.add(RedisKeys.messages(RedisKeys.pair("alice", "carol")))

        chats = {c.partner_id: c for c in await chat_list_service.list_chats("alice")}
        assert set(chats) == {"bob", "carol"}
        assert chats["bob"].last_message_body == "from bob"
        assert chats["bob"].degraded is False
        assert chats["carol"] == ChatSummary.empty("carol", degraded=True)

    async def test_slow_partner_times_out(self, clock):
        store = FaultyStore(clock)
        timing = TimingSettings(chat_fetch_timeout=0.05)
        chat_service, chat_list_service = make_services(store, clock, timing)
        await chat_service.send("bob", "alice", "from bob")
        await chat_service.send("carol", "alice", "from carol")
        store.slow_keys[RedisKeys.messages(RedisKeys.pair("alice", "carol"))] = 5

        chats = {c.partner_id: c for c in await chat_list_service.list_chats("alice")}
        assert chats["bob"].unread_count == 1
        assert chats["carol"].degraded is True
        assert chats["carol"].unread_count == 0
        assert chats["carol"].last_message_body == ""

    async def test_partner_set_failure_propagates(self, clock):
        store = FaultyStore(clock, broken_ops={"smembers"})
        _, chat_list_service = make_services(store, clock)
        with pytest.raises(StoreUnavailable):
            await chat_list_service.list_chats("alice")


@pytest.mark.asyncio
class TestUnreadBeyondWindow:

    async def test_own_reply_inside_window(self, store, clock):
        timing = TimingSettings(chat_window=5)
        chat_service, chat_list_service = make_services(store, clock, timing)
        for i in range(8):
            await chat_service.send("bob", "alice", f"m{i}")
        await chat_service.send("alice", "bob", "reply")

        [summary] = await chat_list_service.list_chats("alice")
        assert summary.unread_count == 8
        assert summary.last_message_body == "reply"

    async def test_corrupt_record_inside_window(self, store, clock):
        timing = TimingSettings(chat_window=3)
        chat_service, chat_list_service = make_services(store, clock, timing)
        for i in range(5):
            await chat_service.send("bob", "alice", f"m{i}")
        await store.lpush(RedisKeys.messages(RedisKeys.pair("alice", "bob")), "{corrupt")

        [summary] = await chat_list_service.list_chats("alice")
        assert summary.unread_count == 5
        assert summary.last_message_body == "m4"

    async def test_read_window_is_not_recounted(self, store, clock):
        timing = TimingSettings(chat_window=3)
        chat_service, chat_list_service = make_services(store, clock, timing)
        for i in range(5):
            await chat_service.send("bob", "alice", f"m{i}")
        await chat_service.mark_read("alice", "bob")
        clock.advance(1)
        await chat_service.send("bob", "alice", "new")

        [summary] = await chat_list_service.list_chats("alice")
        assert summary.unread_count == 1


@pytest.mark.asyncio
class TestOrderingByTime:

    async def test_burst_does_not_outrank_newer_chat(self, chat_service, chat_list_service, clock):
        for i in range(50):
            await chat_service.send("bob", "alice", f"burst {i}")
        clock.advance(0.010)
        await chat_service.send("carol", "alice", "later")
        await chat_service.mark_read("alice", "bob")
        await chat_service.mark_read("alice", "carol")

        chats = await chat_list_service.list_chats("alice")
        assert [c.partner_id for c in chats] == ["carol", "bob"]


class TestSortSummaries:

    def test_unread_before_read_then_newest_then_empty(self):
        summaries = [
            ChatSummary.empty("empty"),
            ChatSummary("read_old", "x", timestamp_from_ms(1000), 1000, 0, False),
            ChatSummary("unread_old", "x", timestamp_from_ms(2000), 2000, 1, True),
            ChatSummary("read_new", "x", timestamp_from_ms(10000), 10000, 0, False),
            ChatSummary("unread_new", "x", timestamp_from_ms(5000), 5000, 3, True),
        ]
        ordered = [s.partner_id for s in sort_summaries(summaries)]
        assert ordered == ["unread_new", "unread_old", "read_new", "read_old", "empty"]

    def test_send_time_wins_over_id(self):
        summaries = [
            ChatSummary("burst", "x", timestamp_from_ms(1000), 1049, 0, False),
            ChatSummary("later", "x", timestamp_from_ms(1010), 1010, 0, False),
        ]
        assert [s.partner_id for s in sort_summaries(summaries)] == ["later", "burst"]

    def test_id_breaks_ties_at_same_time(self):
        summaries = [
            ChatSummary("first", "x", timestamp_from_ms(1000), 1000, 0, False),
            ChatSummary("second", "x", timestamp_from_ms(1000), 1001, 0, False),
        ]
        assert [s.partner_id for s in sort_summaries(summaries)] == ["second", "first"]
