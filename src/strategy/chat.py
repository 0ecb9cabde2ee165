"""Follow-up chat assistant seeded with the finished strategy document."""

from __future__ import annotations

import logging
from typing import Any

import google.generativeai as genai

from src.config import settings
from src.strategy.errors import ChatError
from src.strategy.gemini import configure, response_text
from src.strategy.models import ChatMessage, StrategyResult
from src.strategy.prompts import CHAT_FALLBACK_REPLY, CHAT_GREETING, CHAT_SYSTEM_TEMPLATE

logger = logging.getLogger(__name__)


class StrategyChat:
    """A stateful Gemini chat whose only context is one StrategyResult.

    The assistant never sees snippets or the classification, only the final
    document serialised into the system instruction.
    """

    def __init__(self, strategy: StrategyResult, session: Any) -> None:
        self.strategy = strategy
        self._session = session
        self._messages: list[ChatMessage] = [ChatMessage(role="model", text=CHAT_GREETING)]

    @classmethod
    def open(
        cls,
        strategy: StrategyResult,
        model_name: str | None = None,
        api_key: str | None = None,
    ) -> StrategyChat:
        """Start a chat session. Raises MissingCredentialError without a key."""
        configure(api_key)
        model = genai.GenerativeModel(  # type: ignore[attr-defined]
            model_name or settings.chat_model,
            system_instruction=CHAT_SYSTEM_TEMPLATE.format(
                strategy_json=strategy.model_dump_json()
            ),
        )
        return cls(strategy, model.start_chat())

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def add_model_message(self, text: str) -> ChatMessage:
        message = ChatMessage(role="model", text=text)
        self._messages.append(message)
        return message

    async def send(self, text: str) -> ChatMessage | None:
        """Send a user message and append the assistant's reply.

        Blank input is ignored and returns None. On failure the user message
        stays in the transcript and ChatError is raised.
        """
        if not text.strip():
            return None
        self._messages.append(ChatMessage(role="user", text=text))
        try:
            response = await self._session.send_message_async(text)
        except Exception as exc:
            logger.warning("Chat request failed: %s", exc)
            raise ChatError(f"Chat request failed: {exc}") from exc
        return self.add_model_message(response_text(response) or CHAT_FALLBACK_REPLY)
