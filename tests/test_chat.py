"""Tests for the strategy chat assistant (Gemini chat session is mocked)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.strategy.chat import StrategyChat
from src.strategy.demo import DEMO_STRATEGY
from src.strategy.errors import ChatError, MissingCredentialError
from src.strategy.prompts import CHAT_FALLBACK_REPLY, CHAT_GREETING


def _chat(reply: str | Exception = "Focus on the security audit first.") -> StrategyChat:
    session = MagicMock()
    if isinstance(reply, Exception):
        session.send_message_async = AsyncMock(side_effect=reply)
    else:
        response = MagicMock()
        response.text = reply
        session.send_message_async = AsyncMock(return_value=response)
    return StrategyChat(DEMO_STRATEGY, session)


class TestOpen:
    def test_system_instruction_carries_strategy(self) -> None:
        with (
            patch("src.strategy.gemini.settings") as mock_settings,
            patch("src.strategy.chat.genai") as mock_genai,
            patch("src.strategy.gemini.genai"),
        ):
            mock_settings.google_api_key = "fake-key"
            chat = StrategyChat.open(DEMO_STRATEGY, model_name="chat-model")

        args, kwargs = mock_genai.GenerativeModel.call_args
        assert args == ("chat-model",)
        assert DEMO_STRATEGY.model_dump_json() in kwargs["system_instruction"]
        mock_genai.GenerativeModel.return_value.start_chat.assert_called_once_with()
        assert chat.strategy is DEMO_STRATEGY

    def test_missing_key_fails_fast(self) -> None:
        with (
            patch("src.strategy.gemini.settings") as mock_settings,
            patch("src.strategy.chat.genai") as mock_genai,
        ):
            mock_settings.google_api_key = ""
            with pytest.raises(MissingCredentialError):
                StrategyChat.open(DEMO_STRATEGY)

        mock_genai.GenerativeModel.assert_not_called()


class TestSend:
    def test_transcript_starts_with_greeting(self) -> None:
        messages = _chat().messages
        assert len(messages) == 1
        assert messages[0].role == "model"
        assert messages[0].text == CHAT_GREETING

    def test_reply_appended(self) -> None:
        chat = _chat()

        reply = asyncio.run(chat.send("What should we do first?"))

        assert reply is not None
        assert reply.text == "Focus on the security audit first."
        assert [m.role for m in chat.messages] == ["model", "user", "model"]
        assert chat.messages[1].text == "What should we do first?"

    def test_blank_message_ignored(self) -> None:
        chat = _chat()

        assert asyncio.run(chat.send("   ")) is None
        assert len(chat.messages) == 1

    def test_empty_reply_uses_fallback(self) -> None:
        chat = _chat(reply="")

        reply = asyncio.run(chat.send("Anything?"))

        assert reply is not None
        assert reply.text == CHAT_FALLBACK_REPLY

    def test_failure_raises_chat_error_and_keeps_user_message(self) -> None:
        chat = _chat(reply=ConnectionError("quota exceeded"))

        with pytest.raises(ChatError, match="quota exceeded"):
            asyncio.run(chat.send("Hello?"))

        assert [m.role for m in chat.messages] == ["model", "user"]
