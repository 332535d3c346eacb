"""Pydantic schemas for the chat API."""

from __future__ import annotations

from cortex.schemas.common import CamelModel


class ChatRequest(CamelModel):
    """A question about the user's files."""

    message: str | None = None
    context: str | None = None


class ChatResponse(CamelModel):
    """The model's answer."""

    reply: str
