"""Unit tests for the session stores."""

import json

import pytest

from colloquy.errors import InvalidConfigError, SessionNotFoundError
from colloquy.sessions import (
    InMemorySessionStore,
    JsonFileSessionStore,
    Message,
    Session,
)


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemorySessionStore()
    return JsonFileSessionStore(tmp_path / "sessions")


@pytest.mark.asyncio
async def test_get_unknown_session_raises(store):
    with pytest.raises(SessionNotFoundError) as exc_info:
        await store.get("nope")

    assert exc_info.value.session_id == "nope"
    assert str(exc_info.value) == "Session nope not found"


@pytest.mark.asyncio
async def test_put_then_get(store):
    session = Session("s1")
    session.add_message(Message.user("hello"))

    await store.put(session)
    loaded = await store.get("s1")

    assert loaded.id == "s1"
    assert [m.content for m in loaded.messages()] == ["hello"]


@pytest.mark.asyncio
async def test_get_or_create_creates_once(store):
    first = await store.get_or_create("s1")
    first.add_message(Message.user("hi"))
    await store.put(first)

    second = await store.get_or_create("s1")

    assert second.message_count() == 1
    assert await store.exists("s1")


@pytest.mark.asyncio
async def test_delete(store):
    await store.put(Session("s1"))

    await store.delete("s1")

    assert not await store.exists("s1")
    with pytest.raises(SessionNotFoundError):
        await store.delete("s1")


@pytest.mark.asyncio
async def test_list_ids_sorted(store):
    for session_id in ["b", "c", "a"]:
        await store.put(Session(session_id))

    assert await store.list_ids() == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_json_store_writes_persisted_form(tmp_path):
    store = JsonFileSessionStore(tmp_path)
    session = Session("abc")
    session.add_message(Message.user("hi"))
    session.set_data("k", "v")

    await store.put(session)

    raw = json.loads((tmp_path / "abc.json").read_text(encoding="utf-8"))
    assert raw["id"] == "abc"
    assert raw["messages"][0]["role"] == "user"
    assert raw["data"] == {"k": "v"}
    assert not list(tmp_path.glob("*.tmp"))


@pytest.mark.asyncio
async def test_json_store_rejects_unsafe_ids(tmp_path):
    store = JsonFileSessionStore(tmp_path)

    with pytest.raises(InvalidConfigError):
        await store.put(Session("../escape"))
    with pytest.raises(InvalidConfigError):
        await store.get("a/b")


def test_json_store_creates_directory(tmp_path):
    target = tmp_path / "nested" / "sessions"

    JsonFileSessionStore(target)

    assert target.is_dir()
