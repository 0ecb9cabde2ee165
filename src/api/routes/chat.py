"""Chat endpoints: follow-up questions about a finished strategy."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.api.models import ChatRequest, ChatResponse
from src.strategy.chat import StrategyChat
from src.strategy.errors import ChatError, MissingCredentialError
from src.strategy.prompts import CHAT_ERROR_REPLY
from src.strategy.sessions import get_session_store

router = APIRouter()


def _open_chat(session_id: str) -> StrategyChat:
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    try:
        return session.get_chat()
    except LookupError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except MissingCredentialError as exc:
        raise HTTPException(status_code=501, detail=str(exc)) from exc


@router.get("/api/sessions/{session_id}/chat", response_model=ChatResponse)
async def get_chat(session_id: str) -> ChatResponse:
    """Return the chat transcript, opening the chat on first access."""
    chat = _open_chat(session_id)
    return ChatResponse(session_id=session_id, messages=list(chat.messages))


@router.post("/api/sessions/{session_id}/chat", response_model=ChatResponse)
async def send_chat_message(session_id: str, request: ChatRequest) -> ChatResponse:
    """Send a message to the strategy assistant.

    A failed Gemini call does not fail the request: the transcript gets an
    apology from the assistant and ``error`` carries the cause.
    """
    chat = _open_chat(session_id)
    error: str | None = None
    try:
        await chat.send(request.message)
    except ChatError as exc:
        chat.add_model_message(CHAT_ERROR_REPLY)
        error = str(exc)
    return ChatResponse(session_id=session_id, messages=list(chat.messages), error=error)
