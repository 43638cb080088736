from unittest.mock import MagicMock

import pytest

from app.services.memory_store import MemoryStore, make_entry


@pytest.mark.asyncio
async def test_fetch_unknown_user_is_empty(memory_store):
    snapshot = await memory_store.fetch("user-1")
    assert snapshot.entries == []
    assert snapshot.profile == {}
    assert snapshot.is_empty


@pytest.mark.asyncio
async def test_save_then_fetch(memory_store):
    entry = make_entry("How do I equalize deeper?", "Try mouthfill from 30m.")
    assert await memory_store.save("user-1", [entry], {"pb": 45}) is True

    snapshot = await memory_store.fetch("user-1")
    assert [e.userMessage for e in snapshot.entries] == ["How do I equalize deeper?"]
    assert snapshot.profile == {"pb": 45}


@pytest.mark.asyncio
async def test_save_appends_and_replaces_profile(memory_store):
    await memory_store.save("user-1", [make_entry("first", "one")], {"pb": 40})
    await memory_store.save("user-1", [make_entry("second", "two")], {"pb": 42})

    snapshot = await memory_store.fetch("user-1")
    assert [e.userMessage for e in snapshot.entries] == ["first", "second"]
    assert snapshot.profile == {"pb": 42}


@pytest.mark.asyncio
async def test_log_keeps_newest_entries(session_factory):
    store = MemoryStore(session_factory, max_entries=3)
    for i in range(5):
        await store.save("user-1", [make_entry(f"question {i}", f"answer {i}")], {})

    snapshot = await store.fetch("user-1")
    assert [e.userMessage for e in snapshot.entries] == ["question 2", "question 3", "question 4"]


def test_entry_truncates_long_text():
    entry = make_entry("q" * 600, "a" * 1200)
    assert len(entry.userMessage) == 500
    assert len(entry.assistantReply) == 1000
    assert entry.timestamp


@pytest.mark.asyncio
async def test_fetch_failure_returns_empty_snapshot():
    factory = MagicMock(side_effect=RuntimeError("database unavailable"))
    snapshot = await MemoryStore(factory).fetch("user-1")
    assert snapshot.is_empty


@pytest.mark.asyncio
async def test_save_failure_returns_false():
    factory = MagicMock(side_effect=RuntimeError("database unavailable"))
    assert await MemoryStore(factory).save("user-1", [make_entry("q", "a")], {}) is False


@pytest.mark.asyncio
async def test_scheduled_save_result_is_observable(memory_store):
    task = memory_store.schedule_save("user-1", [make_entry("q", "a")], {})
    assert await task is True

    failing = MemoryStore(MagicMock(side_effect=RuntimeError("down")))
    assert await failing.schedule_save("user-1", [make_entry("q", "a")], {}) is False


@pytest.mark.asyncio
async def test_drain_waits_for_pending_writes(memory_store):
    task = memory_store.schedule_save("user-2", [make_entry("q", "a")], {"pb": 30})
    await memory_store.drain()
    assert task.done()
    assert (await memory_store.fetch("user-2")).profile == {"pb": 30}
