# tests/test_chat.py — Assistant chat endpoint
import pytest
from httpx import AsyncClient

from chat import FALLBACK_REPLY, MAX_REPLY_TOKENS
from exceptions import ExternalServiceError


@pytest.mark.asyncio
async def test_chat_reply_with_history(client: AsyncClient, fake_llm):
    fake_llm.queue("  Split the epic into smaller tasks.  ")
    resp = await client.post("/api/v1/chat", json={
        "message": "How should I plan this sprint?",
        "history": [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello! How can I help?"},
        ],
    })
    assert resp.status_code == 200
    assert resp.json() == {"reply": "Split the epic into smaller tasks."}

    call = fake_llm.calls[0]
    assert call["prompt"] == "How should I plan this sprint?"
    assert call["context"] == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello! How can I help?"},
    ]
    assert "SyncFlow AI Assistant" in call["system"]
    assert call["max_tokens"] == MAX_REPLY_TOKENS


@pytest.mark.asyncio
async def test_chat_empty_model_output_falls_back(client: AsyncClient, fake_llm):
    fake_llm.queue("   ")
    resp = await client.post("/api/v1/chat", json={"message": "Hello"})
    assert resp.status_code == 200
    assert resp.json() == {"reply": FALLBACK_REPLY}


@pytest.mark.asyncio
async def test_chat_requires_message(client: AsyncClient, fake_llm):
    assert (await client.post("/api/v1/chat", json={"message": ""})).status_code == 400
    assert (await client.post("/api/v1/chat", json={"message": "   "})).status_code == 400
    assert (await client.post("/api/v1/chat", json={"history": []})).status_code == 400
    assert fake_llm.calls == []


@pytest.mark.asyncio
async def test_chat_bad_history_role(client: AsyncClient):
    resp = await client.post("/api/v1/chat", json={"message": "Hi", "history": [{"role": "system", "content": "x"}]})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_chat_model_failure(client: AsyncClient, fake_llm):
    fake_llm.queue(ExternalServiceError("Language model returned HTTP 503"))
    resp = await client.post("/api/v1/chat", json={"message": "Hello"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Language model returned HTTP 503"
