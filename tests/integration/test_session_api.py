"""Integration tests for the sessions endpoints."""

import json

import pytest


@pytest.mark.asyncio
async def test_list_sessions_empty(async_client):
    response = await async_client.get("/api/v1/sessions")

    assert response.status_code == 200
    assert response.json() == {"session_ids": []}


@pytest.mark.asyncio
async def test_session_lifecycle(async_client, test_settings):
    await async_client.post("/api/v1/chat/b", json={"message": "hello"})
    await async_client.post("/api/v1/chat/a", json={"message": "hello"})

    listed = await async_client.get("/api/v1/sessions")
    assert listed.json()["session_ids"] == ["a", "b"]

    detail = await async_client.get("/api/v1/sessions/a")
    assert detail.status_code == 200
    data = detail.json()
    assert data["session_id"] == "a"
    assert data["message_count"] == 2
    assert data["created_at"].endswith("Z")
    assert [m["content"] for m in data["messages"]] == ["hello", "Hi! How can I help?"]

    stored = json.loads(
        (test_settings.resolved_sessions_dir / "a.json").read_text(encoding="utf-8")
    )
    assert stored["id"] == "a"
    assert len(stored["messages"]) == 2

    deleted = await async_client.delete("/api/v1/sessions/a")
    assert deleted.status_code == 204

    missing = await async_client.get("/api/v1/sessions/a")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_unknown_session_returns_404(async_client):
    for method, path in [
        ("GET", "/api/v1/sessions/nope"),
        ("GET", "/api/v1/sessions/nope/messages"),
        ("DELETE", "/api/v1/sessions/nope"),
    ]:
        response = await async_client.request(method, path)

        assert response.status_code == 404
        error = response.json()["detail"]["error"]
        assert error["code"] == "session_not_found"
        assert error["details"] == {"session_id": "nope"}
