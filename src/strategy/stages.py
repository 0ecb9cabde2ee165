"""The three Gemini-backed pipeline stages: transcribe -> classify -> synthesize.

Each stage sends one request, validates the decoded JSON against the models in
``src.strategy.models`` and raises its own StageError subclass on any failure.
No stage retries and none keeps partial output.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from src.pipeline_config import PipelineConfig, StageConfig
from src.strategy.errors import (
    ClassificationError,
    MissingCredentialError,
    StageError,
    SynthesisError,
    TranscriptionError,
)
from src.strategy.gemini import generate_json
from src.strategy.models import (
    Classification,
    ClassifiedItem,
    Confidence,
    Relation,
    Snippet,
    StrategyResult,
    UploadedImage,
)
from src.strategy.prompts import CLASSIFICATION_PROMPT, TRANSCRIPTION_PROMPT, synthesis_prompt

logger = logging.getLogger(__name__)

_SNIPPETS = TypeAdapter(list[Snippet])


async def _call_stage(error_cls: type[StageError], stage: StageConfig, parts: list[Any]) -> Any:
    """Run one Gemini call, wrapping transport and decode failures in ``error_cls``."""
    started = time.perf_counter()
    try:
        payload = await generate_json(stage, parts)
    except MissingCredentialError:
        raise
    except json.JSONDecodeError as exc:
        label = error_cls.stage.capitalize()
        raise error_cls(f"{label} failed: model returned invalid JSON ({exc})") from exc
    except Exception as exc:
        raise error_cls(f"{error_cls.stage.capitalize()} failed: {exc}") from exc
    logger.info(
        "%s call to %s finished in %.2fs",
        error_cls.stage,
        stage.model,
        time.perf_counter() - started,
    )
    return payload


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{exc.error_count()} invalid field(s), first at {location}: {first['msg']}"


# ---------------------------------------------------------------------------
# Stage 1: transcription
# ---------------------------------------------------------------------------


def parse_snippets(payload: Any, min_confidence: str | None = None) -> list[Snippet]:
    """Validate a transcription payload into snippets.

    Raises TranscriptionError when the payload is not a list, any entry does
    not fit the Snippet shape, or two snippets share an id.
    """
    if not isinstance(payload, list):
        raise TranscriptionError(
            f"Transcription failed: expected a JSON array of snippets, got {type(payload).__name__}"
        )
    try:
        snippets = _SNIPPETS.validate_python(payload)
    except ValidationError as exc:
        raise TranscriptionError(f"Transcription failed: {_describe(exc)}") from exc

    seen: set[str] = set()
    for snippet in snippets:
        if snippet.id in seen:
            raise TranscriptionError(f"Transcription failed: duplicate snippet id {snippet.id!r}")
        seen.add(snippet.id)

    if min_confidence:
        floor = Confidence(min_confidence).rank
        kept = [s for s in snippets if s.confidence.rank >= floor]
        if len(kept) != len(snippets):
            logger.info(
                "Dropped %d snippet(s) below %s confidence",
                len(snippets) - len(kept),
                min_confidence,
            )
        snippets = kept
    return snippets


async def transcribe_image(
    image: UploadedImage, config: PipelineConfig | None = None
) -> list[Snippet]:
    """Transcribe a whiteboard photo into an ordered list of snippets."""
    config = config or PipelineConfig.from_settings()
    if not image.data:
        raise TranscriptionError("Transcription failed: image is empty")
    parts: list[Any] = [{"mime_type": image.mime_type, "data": image.data}, TRANSCRIPTION_PROMPT]
    payload = await _call_stage(TranscriptionError, config.transcription, parts)
    snippets = parse_snippets(payload, config.min_snippet_confidence)
    logger.info("Transcribed %d snippet(s)", len(snippets))
    return snippets


# ---------------------------------------------------------------------------
# Stage 2: classification
# ---------------------------------------------------------------------------


def drop_dangling_relations(classification: Classification) -> Classification:
    """Return a copy without relations whose endpoints are not known item ids."""
    ids = {item.id for item in classification.items}
    kept = tuple(r for r in classification.relations if r.source in ids and r.target in ids)
    dropped = len(classification.relations) - len(kept)
    if dropped:
        logger.warning("Dropped %d relation(s) referencing unknown item ids", dropped)
        return classification.model_copy(update={"relations": kept})
    return classification


def parse_classification(payload: Any, snippet_ids: set[str] | None = None) -> Classification:
    """Validate a classification payload and enforce referential integrity.

    Items whose id is not one of ``snippet_ids`` are dropped (when ids are
    given), then relations that point at missing items are dropped.
    """
    if not isinstance(payload, dict):
        raise ClassificationError(
            f"Classification failed: expected a JSON object, got {type(payload).__name__}"
        )
    try:
        classification = Classification.model_validate(payload)
    except ValidationError as exc:
        raise ClassificationError(f"Classification failed: {_describe(exc)}") from exc

    if snippet_ids is not None:
        items = tuple(item for item in classification.items if item.id in snippet_ids)
        if len(items) != len(classification.items):
            logger.warning(
                "Dropped %d classified item(s) with no matching snippet",
                len(classification.items) - len(items),
            )
            classification = classification.model_copy(update={"items": items})

    return drop_dangling_relations(classification)


async def classify_snippets(
    snippets: Sequence[Snippet], config: PipelineConfig | None = None
) -> Classification:
    """Classify snippets into typed items and infer relations between them."""
    config = config or PipelineConfig.from_settings()
    snippet_json = json.dumps([s.model_dump(mode="json") for s in snippets])
    parts: list[Any] = [CLASSIFICATION_PROMPT, f"Here are the snippets: {snippet_json}"]
    payload = await _call_stage(ClassificationError, config.classification, parts)
    classification = parse_classification(payload, {s.id for s in snippets})
    logger.info(
        "Classified %d item(s) with %d relation(s)",
        len(classification.items),
        len(classification.relations),
    )
    return classification


# ---------------------------------------------------------------------------
# Stage 3: synthesis
# ---------------------------------------------------------------------------


def parse_strategy(payload: Any) -> StrategyResult:
    """Validate a synthesis payload into a StrategyResult."""
    if not isinstance(payload, dict):
        raise SynthesisError(
            f"Synthesis failed: expected a JSON object, got {type(payload).__name__}"
        )
    try:
        return StrategyResult.model_validate(payload)
    except ValidationError as exc:
        raise SynthesisError(f"Synthesis failed: {_describe(exc)}") from exc


async def synthesize_strategy(
    items: Sequence[ClassifiedItem],
    relations: Sequence[Relation],
    config: PipelineConfig | None = None,
) -> StrategyResult:
    """Turn classified items and their relations into a strategy document."""
    config = config or PipelineConfig.from_settings()
    structure = json.dumps(
        {
            "items": [i.model_dump(mode="json") for i in items],
            "relations": [r.model_dump(mode="json") for r in relations],
        }
    )
    parts: list[Any] = [
        synthesis_prompt(config.reference_date),
        f"Here is the classified structure: {structure}",
    ]
    payload = await _call_stage(SynthesisError, config.synthesis, parts)
    strategy = parse_strategy(payload)
    logger.info(
        "Synthesised %d OKR(s), %d action item(s), %d risk(s)",
        len(strategy.okrs),
        len(strategy.action_items),
        len(strategy.risks),
    )
    return strategy
