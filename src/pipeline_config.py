"""Pipeline configuration: step enum and per-stage model settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from src.config import Settings, settings


class PipelineStep(StrEnum):
    """Steps of the whiteboard-to-strategy state machine."""

    IDLE = "IDLE"
    TRANSCRIBING = "TRANSCRIBING"
    CLASSIFYING = "CLASSIFYING"
    SYNTHESIZING = "SYNTHESIZING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"

    @property
    def is_working(self) -> bool:
        return self in _WORKING_STEPS


_WORKING_STEPS = frozenset(
    {PipelineStep.TRANSCRIBING, PipelineStep.CLASSIFYING, PipelineStep.SYNTHESIZING}
)


@dataclass(frozen=True)
class StageConfig:
    """Model and sampling temperature for one Gemini call."""

    model: str
    temperature: float


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for the three pipeline stages.

    Defaults mirror the project's current behaviour: the fast vision model for
    transcription, the stronger reasoning model for classification and synthesis.
    """

    transcription: StageConfig = StageConfig("gemini-2.5-flash", 0.2)
    classification: StageConfig = StageConfig("gemini-3-pro-preview", 0.3)
    synthesis: StageConfig = StageConfig("gemini-3-pro-preview", 0.5)
    reference_date: str = "2025-12-01"
    min_snippet_confidence: str | None = None
    demo_delays: tuple[float, float, float] = field(default=(0.8, 1.0, 1.2))

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> PipelineConfig:
        s = source or settings
        return cls(
            transcription=StageConfig(s.vision_model, s.transcription_temperature),
            classification=StageConfig(s.reasoning_model, s.classification_temperature),
            synthesis=StageConfig(s.reasoning_model, s.synthesis_temperature),
            reference_date=s.reference_date,
            min_snippet_confidence=s.min_snippet_confidence,
        )
