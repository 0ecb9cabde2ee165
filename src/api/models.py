"""Pydantic request/response schemas for the Whiteboard Strategy API."""

from __future__ import annotations

from pydantic import BaseModel

from src.strategy.models import ChatMessage, PipelineState


class SessionResponse(BaseModel):
    """A session id with the current pipeline state."""

    session_id: str
    state: PipelineState


class ChatRequest(BaseModel):
    """Request body for the /api/sessions/{id}/chat endpoint."""

    message: str


class ChatResponse(BaseModel):
    """The full chat transcript after the latest exchange."""

    session_id: str
    messages: list[ChatMessage]
    error: str | None = None


class ImageUploadRequest(BaseModel):
    """Request body for /api/sessions/{id}/upload-base64.

    ``image`` is base64, optionally prefixed as a ``data:image/...;base64,`` URL.
    """

    image: str
