"""Data models for the whiteboard-to-strategy pipeline.

Every entity is a frozen Pydantic model: one stage produces it, the next one
reads it, nobody mutates it. Validation happens right after a Gemini response
is decoded, so malformed model output never reaches the next stage.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.pipeline_config import PipelineStep


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# Stage 1: transcription
# ---------------------------------------------------------------------------


class BoundingRegion(StrEnum):
    """Coarse position of a snippet on the board."""

    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    CENTER = "center"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


class Snippet(_Frozen):
    """A single piece of transcribed text with position and confidence."""

    id: str = Field(min_length=1)
    text: str
    bbox: BoundingRegion
    confidence: Confidence


# ---------------------------------------------------------------------------
# Stage 2: classification
# ---------------------------------------------------------------------------


class ItemType(StrEnum):
    OBJECTIVE = "Objective"
    KEY_RESULT = "KeyResult"
    ACTION_ITEM = "ActionItem"
    OWNER = "Owner"
    DATE = "Date"
    METRIC = "Metric"
    RISK = "Risk"
    NOTE = "Note"
    UNKNOWN = "Unknown"


class RelationType(StrEnum):
    CONTRIBUTES = "contributes"
    DEPENDS_ON = "depends_on"
    OWNED_BY = "owned_by"
    PRECEDES = "precedes"


class ClassifiedItem(_Frozen):
    """A snippet tagged with its semantic type. ``id`` is the snippet id."""

    id: str = Field(min_length=1)
    text: str
    type: ItemType


class Relation(_Frozen):
    """A directed, typed edge between two classified items."""

    source: str
    target: str
    type: RelationType

    @field_validator("type", mode="before")
    @classmethod
    def _accept_legacy_spelling(cls, value: Any) -> Any:
        # Older prompts asked for "preceding"
        return "precedes" if value == "preceding" else value


class Classification(_Frozen):
    """Typed items plus the relation graph between them."""

    items: tuple[ClassifiedItem, ...] = ()
    relations: tuple[Relation, ...] = ()


# ---------------------------------------------------------------------------
# Stage 3: synthesis
# ---------------------------------------------------------------------------


class Level(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def _missing_(cls, value: object) -> Level | None:
        # Models sometimes answer "high" or "HIGH"
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class OKR(_Frozen):
    objective: str
    key_results: tuple[str, ...] = ()


class ActionItem(_Frozen):
    title: str
    owner: str | None = None
    duration: str | None = None
    priority: Level | None = None


class TimelineItem(_Frozen):
    """A roadmap phase. Dates are kept as the model wrote them."""

    phase: str
    start_date: str
    end_date: str
    description: str = ""


class Stakeholder(_Frozen):
    name: str
    role: str
    influence: Level
    interest: Level


class Risk(_Frozen):
    description: str
    severity: Level
    mitigation: str = ""


class TaskPayload(_Frozen):
    title: str
    owner: str | None = None


class NotifyPayload(_Frozen):
    channel: str
    message: str


class CalendarPayload(_Frozen):
    title: str
    date: str | None = None


class TaskCreateAutomation(_Frozen):
    type: Literal["task.create"] = "task.create"
    payload: TaskPayload


class NotifyChannelAutomation(_Frozen):
    type: Literal["notify.channel"] = "notify.channel"
    payload: NotifyPayload


class CalendarEventAutomation(_Frozen):
    type: Literal["calendar.event"] = "calendar.event"
    payload: CalendarPayload


class UnknownAutomation(_Frozen):
    """Automation with an unrecognised type; the payload is carried opaquely."""

    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


Automation = (
    TaskCreateAutomation | NotifyChannelAutomation | CalendarEventAutomation | UnknownAutomation
)

_AUTOMATION_TYPES: dict[str, type[BaseModel]] = {
    "task.create": TaskCreateAutomation,
    "notify.channel": NotifyChannelAutomation,
    "calendar.event": CalendarEventAutomation,
}


def parse_automation(raw: Any) -> Automation:
    """Build the typed automation variant for ``raw``.

    Known types whose payload does not fit their schema fall back to
    ``UnknownAutomation`` so the data is kept but never treated as typed.
    """
    if isinstance(raw, BaseModel):
        return raw  # type: ignore[return-value]
    if not isinstance(raw, dict):
        raise ValueError(f"automation must be an object, got {type(raw).__name__}")
    model = _AUTOMATION_TYPES.get(str(raw.get("type", "")))
    if model is not None:
        try:
            return model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError:
            pass
    return UnknownAutomation.model_validate(raw)


class StrategyResult(_Frozen):
    """The strategy document rendered by the dashboard and fed to the chat."""

    okrs: tuple[OKR, ...] = ()
    action_items: tuple[ActionItem, ...] = ()
    timeline: tuple[TimelineItem, ...] = ()
    stakeholders: tuple[Stakeholder, ...] = ()
    risks: tuple[Risk, ...] = ()
    automations: tuple[Automation, ...] = ()

    @field_validator("okrs", "action_items", "timeline", "stakeholders", "risks", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("automations", mode="before")
    @classmethod
    def _parse_automations(cls, value: Any) -> Any:
        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            raise ValueError("automations must be a list")
        return tuple(parse_automation(raw) for raw in value)


# ---------------------------------------------------------------------------
# Pipeline state and uploads
# ---------------------------------------------------------------------------


class PipelineState(_Frozen):
    """The orchestrator's working state. Replaced wholesale on every transition."""

    step: PipelineStep = PipelineStep.IDLE
    snippets: tuple[Snippet, ...] = ()
    classified: Classification | None = None
    strategy: StrategyResult | None = None
    error: str | None = None
    image_preview: str | None = None

    @classmethod
    def idle(cls) -> PipelineState:
        return cls()


_DATA_URL_RE = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)


@dataclass(frozen=True)
class UploadedImage:
    """Raw image bytes plus MIME type, as read from an upload."""

    data: bytes
    mime_type: str = "image/png"

    @classmethod
    def from_data_url(cls, value: str) -> UploadedImage:
        """Decode a base64 string, stripping a ``data:image/...;base64,`` prefix if present.

        Raises ``binascii.Error`` when the remainder is not valid base64.
        """
        mime_type = "image/png"
        value = value.strip()
        match = _DATA_URL_RE.match(value)
        if match:
            mime_type = match.group(1).lower()
            value = value[match.end() :]
        return cls(data=base64.b64decode(value, validate=True), mime_type=mime_type)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatMessage(_Frozen):
    role: Literal["user", "model"]
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
