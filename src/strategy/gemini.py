"""Thin async wrapper around google-generativeai for JSON-only calls."""

from __future__ import annotations

import json
import re
from typing import Any

import google.generativeai as genai

from src.config import settings
from src.pipeline_config import StageConfig
from src.strategy.errors import MissingCredentialError

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def require_api_key(api_key: str | None = None) -> str:
    """Return the configured Gemini key or raise MissingCredentialError."""
    key = api_key if api_key is not None else settings.google_api_key
    if not key:
        raise MissingCredentialError()
    return key


def configure(api_key: str | None = None) -> None:
    genai.configure(api_key=require_api_key(api_key))  # type: ignore[attr-defined]


def response_text(response: Any) -> str:
    """Extract text from a Gemini response.

    ``response.text`` raises ValueError when the candidate was blocked or has
    no text part; treat that the same as an empty response.
    """
    try:
        text = response.text
    except ValueError:
        return ""
    return text or ""


def decode_json(text: str) -> Any:
    """Parse a JSON response body, tolerating a surrounding markdown fence."""
    if not text.strip():
        raise ValueError("Gemini returned an empty response")
    body = text.strip()
    match = _FENCE_RE.match(body)
    if match:
        body = match.group(1)
    return json.loads(body)


async def generate_json(stage: StageConfig, parts: list[Any], api_key: str | None = None) -> Any:
    """Send ``parts`` to the stage's model and return the decoded JSON body.

    Raises MissingCredentialError before any network call when no key is set.
    Transport errors and JSON decode errors propagate to the caller.
    """
    configure(api_key)
    model = genai.GenerativeModel(  # type: ignore[attr-defined]
        stage.model,
        generation_config={
            "response_mime_type": "application/json",
            "temperature": stage.temperature,
        },
    )
    response = await model.generate_content_async(parts)
    return decode_json(response_text(response))
