"""
Tests for the conversation store and its retention policy.
"""

from datetime import datetime, timedelta, timezone

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from trip_planner.conversation import Conversation, ConversationStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 12, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


def _seed():
    return SystemMessage(content="You are a trip planner.")


@pytest.fixture
def clock():
    return FakeClock()


class TestConversation:
    """The conversation record itself."""

    def test_must_start_with_system_message(self):
        with pytest.raises(ValueError):
            Conversation("c1", messages=[HumanMessage(content="hi")])

    def test_only_one_system_message(self):
        with pytest.raises(ValueError):
            Conversation("c1", messages=[_seed(), _seed()])

    def test_append_rejects_system_message(self):
        conv = Conversation("c1", messages=[_seed()])
        with pytest.raises(ValueError):
            conv.append(_seed())
        assert len(conv.messages) == 1

    def test_append_keeps_order(self):
        conv = Conversation("c1", messages=[_seed()])
        conv.append(HumanMessage(content="a"), AIMessage(content="b"))
        assert [m.content for m in conv.messages[1:]] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_busy_while_locked(self):
        conv = Conversation("c1", messages=[_seed()])
        assert not conv.busy
        async with conv.lock:
            assert conv.busy
        assert not conv.busy


class TestStoreLifecycle:
    """Create, fetch and delete."""

    def test_get_or_create_new(self, clock):
        store = ConversationStore(clock=clock)

        conv, created = store.get_or_create("c1", _seed)

        assert created
        assert conv.conversation_id == "c1"
        assert isinstance(conv.messages[0], SystemMessage)
        assert conv.created_at == clock.now
        assert "c1" in store

    def test_get_or_create_existing(self):
        store = ConversationStore()
        first, _ = store.get_or_create("c1", _seed)

        second, created = store.get_or_create("c1", _seed)

        assert not created
        assert second is first

    def test_missing_id_is_generated(self):
        store = ConversationStore()

        a, _ = store.get_or_create(None, _seed)
        b, _ = store.get_or_create(None, _seed)

        assert a.conversation_id != b.conversation_id
        assert len(store) == 2

    def test_delete_is_idempotent(self):
        store = ConversationStore()
        store.get_or_create("c1", _seed)

        assert store.delete("c1") is True
        assert store.delete("c1") is False
        assert store.delete("never") is False
        assert store.get("c1") is None

    def test_touch_updates_activity(self, clock):
        store = ConversationStore(clock=clock)
        conv, _ = store.get_or_create("c1", _seed)

        clock.advance(60)
        store.touch(conv)

        assert conv.last_activity == clock.now
        assert conv.created_at == clock.now - timedelta(seconds=60)

    def test_invalid_max_conversations(self):
        with pytest.raises(ValueError):
            ConversationStore(max_conversations=0)


class TestRetention:
    """Idle and capacity eviction."""

    def test_idle_conversations_evicted(self, clock):
        store = ConversationStore(max_idle_seconds=600, clock=clock)
        store.get_or_create("old", _seed)
        clock.advance(601)

        store.get_or_create("new", _seed)

        assert store.conversation_ids() == ["new"]

    def test_least_recently_active_evicted_at_capacity(self, clock):
        store = ConversationStore(max_conversations=2, clock=clock)
        a, _ = store.get_or_create("a", _seed)
        clock.advance(1)
        store.get_or_create("b", _seed)
        clock.advance(1)
        store.touch(a)

        store.get_or_create("c", _seed)

        assert sorted(store.conversation_ids()) == ["a", "c"]

    @pytest.mark.asyncio
    async def test_busy_conversations_survive_eviction(self, clock):
        store = ConversationStore(max_conversations=1, max_idle_seconds=10, clock=clock)
        busy, _ = store.get_or_create("busy", _seed)
        clock.advance(60)

        async with busy.lock:
            store.get_or_create("next", _seed)

        assert "busy" in store
        assert "next" in store

    def test_unbounded_store_keeps_everything(self):
        store = ConversationStore()
        for i in range(50):
            store.get_or_create(f"c{i}", _seed)
        assert len(store) == 50

    def test_on_evict_receives_every_evicted_id(self, clock):
        evicted = []
        store = ConversationStore(max_conversations=2, max_idle_seconds=600, clock=clock, on_evict=evicted.append)
        store.get_or_create("stale", _seed)
        clock.advance(601)
        store.get_or_create("a", _seed)
        clock.advance(1)
        store.get_or_create("b", _seed)
        clock.advance(1)

        store.get_or_create("c", _seed)

        assert evicted == ["stale", "a"]
        assert sorted(store.conversation_ids()) == ["b", "c"]

    def test_delete_does_not_call_on_evict(self):
        evicted = []
        store = ConversationStore(on_evict=evicted.append)
        store.get_or_create("c1", _seed)

        store.delete("c1")

        assert evicted == []
