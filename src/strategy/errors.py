"""Error taxonomy for the strategy pipeline and chat assistant."""

from __future__ import annotations


class StrategyError(Exception):
    """Base class for all errors raised by the strategy package."""


class MissingCredentialError(StrategyError):
    """GOOGLE_API_KEY is not configured; raised before any network call."""

    def __init__(self, message: str = "Gemini API key is missing: set GOOGLE_API_KEY.") -> None:
        super().__init__(message)


class StageError(StrategyError):
    """A pipeline stage failed. The message is shown to the user as-is."""

    stage = "pipeline"


class TranscriptionError(StageError):
    stage = "transcription"


class ClassificationError(StageError):
    stage = "classification"


class SynthesisError(StageError):
    stage = "synthesis"


class ChatError(StrategyError):
    """The chat assistant could not produce a reply."""


class PipelineBusyError(StrategyError):
    """An upload arrived while a run was still in progress."""
