"""Chat endpoint for questions about the user's files."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cortex.api.deps import get_chat_service, get_current_user
from cortex.db.models import User
from cortex.schemas.chat import ChatRequest, ChatResponse
from cortex.services.chat import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest | None = None,
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Ask a natural-language question about the user's files."""
    reply = await service.generate_reply(
        user.id,
        body.message if body else None,
        context=body.context if body else None,
    )
    return ChatResponse(reply=reply)
