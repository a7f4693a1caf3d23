# tests/test_llm.py — Language-model client against a mocked HTTP backend
import httpx
import pytest

import llm
from exceptions import ExternalServiceError
from llm import LLMClient, resolve_provider


@pytest.fixture
def openai_configured(monkeypatch):
    monkeypatch.setattr(llm, "PREFERRED_PROVIDER", "")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("GROQ_API_KEY", raising=False)


@pytest.fixture
def mock_backend(monkeypatch):
    """Route every httpx.AsyncClient created by llm.py through a handler"""
    state = {"handler": None, "requests": []}
    real_client = httpx.AsyncClient

    def handler(request):
        state["requests"].append(request)
        return state["handler"](request)

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(llm.httpx, "AsyncClient", factory)
    return state


def _completion(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def test_no_provider_configured(monkeypatch):
    monkeypatch.setattr(llm, "PREFERRED_PROVIDER", "")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.setitem(llm.LLM_PROVIDERS["local"], "base_url", "")
    assert resolve_provider() is None


def test_preferred_provider_first(monkeypatch):
    monkeypatch.setattr(llm, "PREFERRED_PROVIDER", "groq")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    monkeypatch.setenv("GROQ_API_KEY", "gsk-groq")
    name, _, key = resolve_provider()
    assert (name, key) == ("groq", "gsk-groq")


@pytest.mark.asyncio
async def test_generate_builds_chat_request(openai_configured, mock_backend):
    mock_backend["handler"] = lambda request: _completion('{"summary": "ok"}')

    text = await LLMClient(model="test-model").generate(
        "Analyze", [{"role": "user", "content": "earlier"}], system="Be brief", json_mode=True, max_tokens=50,
    )
    assert text == '{"summary": "ok"}'

    request = mock_backend["requests"][0]
    assert request.url.path.endswith("/chat/completions")
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = httpx.Response(200, content=request.content).json()
    assert body["model"] == "test-model"
    assert body["max_tokens"] == 50
    assert body["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in body["messages"]] == ["system", "user", "user"]


@pytest.mark.asyncio
async def test_generate_http_error(openai_configured, mock_backend):
    mock_backend["handler"] = lambda request: httpx.Response(503, json={"error": "down"})
    with pytest.raises(ExternalServiceError, match="HTTP 503"):
        await LLMClient().generate("hi")


@pytest.mark.asyncio
async def test_generate_timeout(openai_configured, mock_backend):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    mock_backend["handler"] = handler
    with pytest.raises(ExternalServiceError, match="timed out"):
        await LLMClient().generate("hi")


@pytest.mark.asyncio
async def test_generate_empty_content(openai_configured, mock_backend):
    mock_backend["handler"] = lambda request: _completion("")
    with pytest.raises(ExternalServiceError):
        await LLMClient().generate("hi")
    assert await LLMClient().generate("hi", require_content=False) == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    b"<html>",
    b"[1, 2]",
    b"{\"choices\": [null]}",
    b"{\"choices\": [\"x\"]}",
    b"{\"choices\": {\"a\": 1}}",
    b"{\"choices\": [{\"message\": \"hi\"}]}",
    b"{\"choices\": [{\"message\": {\"content\": [\"a\", \"b\"]}}]}",
])
async def test_generate_malformed_payload(openai_configured, mock_backend, payload):
    mock_backend["handler"] = lambda request: httpx.Response(200, content=payload)
    with pytest.raises(ExternalServiceError):
        await LLMClient().generate("hi")
