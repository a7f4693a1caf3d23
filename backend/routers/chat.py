# routers/chat.py — Team assistant chat
from fastapi import APIRouter, Depends

from chat import ChatAssistant, get_chat_assistant
from schemas import ChatRequest, ChatResponse

router = APIRouter(prefix="/api/v1/chat", tags=["AI Assistant"])


@router.post("", response_model=ChatResponse)
async def chat(data: ChatRequest, assistant: ChatAssistant = Depends(get_chat_assistant)):
    """Stateless: the client sends prior turns in ``history`` on every call"""
    return ChatResponse(reply=await assistant.reply(data.message, data.history))
