# llm.py — Language-model client behind a single generate() capability
import os
import logging
from typing import Optional, Dict, Any, List

import httpx

from exceptions import ExternalServiceError

logger = logging.getLogger("syncflow.llm")

# OpenAI-compatible chat-completions backends, tried in this order
LLM_PROVIDERS = {
    "openai": {
        "base_url": os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        "env_key": "OPENAI_API_KEY",
        "default_model": "gpt-4o-mini",
    },
    "groq": {
        "base_url": "https://api.groq.com/openai/v1",
        "env_key": "GROQ_API_KEY",
        "default_model": "llama-3.3-70b-versatile",
    },
    "local": {
        "base_url": os.getenv("LOCAL_LLM_URL", ""),
        "env_key": None,
        "default_model": "llama3.1:8b",
    },
}
PROVIDER_ORDER = ["openai", "groq", "local"]
PREFERRED_PROVIDER = os.getenv("LLM_PROVIDER", "").lower()
LLM_MODEL = os.getenv("LLM_MODEL")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))


def _provider_credentials(name: str):
    cfg = LLM_PROVIDERS[name]
    if cfg["env_key"] is None:
        # Local servers need no key, only a URL
        return "local" if cfg["base_url"] else None
    return os.getenv(cfg["env_key"])


def resolve_provider():
    """Pick (name, config, api_key), or None when nothing is configured."""
    order = list(PROVIDER_ORDER)
    if PREFERRED_PROVIDER in LLM_PROVIDERS:
        order.remove(PREFERRED_PROVIDER)
        order.insert(0, PREFERRED_PROVIDER)
    for name in order:
        api_key = _provider_credentials(name)
        if api_key:
            return name, LLM_PROVIDERS[name], api_key
    return None


def _extract_content(data) -> str:
    """Reply text from a chat-completions payload; "" when the model sent none."""
    if not isinstance(data, dict):
        raise ExternalServiceError("Language model returned an unexpected payload")
    choices = data.get("choices")
    if not choices:
        return ""
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise ExternalServiceError("Language model returned an unexpected payload")
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        raise ExternalServiceError("Language model returned an unexpected payload")
    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise ExternalServiceError("Language model returned an unexpected payload")
    return content


class LLMClient:
    """Text generation over an OpenAI-compatible chat-completions API.

    ``generate`` returns the reply text or raises ExternalServiceError. An empty
    reply is an error unless ``require_content=False``. No retries.
    """

    def __init__(self, timeout: float = LLM_TIMEOUT_SECONDS, model: Optional[str] = LLM_MODEL):
        self.timeout = timeout
        self.model = model

    async def generate(
        self,
        prompt: str,
        context: Optional[List[Dict[str, str]]] = None,
        *,
        system: Optional[str] = None,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
        require_content: bool = True,
    ) -> str:
        resolved = resolve_provider()
        if resolved is None:
            raise ExternalServiceError("No language model provider is configured")
        name, cfg, api_key = resolved
        model = self.model or cfg["default_model"]

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.extend(context or [])
        messages.append({"role": "user", "content": prompt})

        payload: Dict[str, Any] = {"model": model, "messages": messages}
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {"Content-Type": "application/json"}
        if cfg["env_key"]:
            headers["Authorization"] = f"Bearer {api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(f"{cfg['base_url']}/chat/completions", headers=headers, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as e:
            logger.warning(f"LLM call timed out ({name}/{model}) after {self.timeout}s")
            raise ExternalServiceError("Language model request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"LLM call failed ({name}/{model}): HTTP {e.response.status_code}")
            raise ExternalServiceError(f"Language model returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"LLM call failed ({name}/{model}): {e}")
            raise ExternalServiceError("Language model request failed") from e

        content = _extract_content(data)
        if not content.strip():
            if not require_content:
                return ""
            raise ExternalServiceError("Language model returned no content")
        return content


_client = LLMClient()


def get_llm_client() -> LLMClient:
    """FastAPI dependency; tests override it with a fake generator"""
    return _client
