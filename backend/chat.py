# chat.py — Stateless team assistant over the language-model client
from typing import List

from fastapi import Depends

from exceptions import ValidationError
from llm import LLMClient, get_llm_client
from schemas import ChatMessage

SYSTEM_PROMPT = """You are SyncFlow AI Assistant, a helpful assistant for a collaborative task management platform. You help users with:
- Project management and task organization
- Code review best practices
- Architecture decisions (ADRs)
- Team collaboration and communication
- Time zone coordination for distributed teams

Be concise, friendly, and helpful. Keep responses under 150 words unless more detail is needed."""

FALLBACK_REPLY = "Sorry, I couldn't generate a response."
MAX_REPLY_TOKENS = 500


class ChatAssistant:
    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def reply(self, message: str, history: List[ChatMessage]) -> str:
        if not message or not message.strip():
            raise ValidationError.single("message", "Message is required")
        context = [{"role": h.role, "content": h.content} for h in history]
        text = await self.llm.generate(
            message, context, system=SYSTEM_PROMPT, max_tokens=MAX_REPLY_TOKENS, require_content=False,
        )
        return text.strip() or FALLBACK_REPLY


def get_chat_assistant(llm: LLMClient = Depends(get_llm_client)) -> ChatAssistant:
    return ChatAssistant(llm)
