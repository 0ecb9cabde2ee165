"""Pipeline orchestrator: drives the three stages and owns the PipelineState.

State machine::

    IDLE -> TRANSCRIBING -> CLASSIFYING -> SYNTHESIZING -> COMPLETE
                 \\               |               /
                  +---------> ERROR <----------+

ERROR and COMPLETE return to IDLE through ``reset()``; a new upload from
either of them starts a fresh run. Uploads while a run is in flight are
rejected with PipelineBusyError.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from src.pipeline_config import PipelineConfig, PipelineStep
from src.strategy.demo import DEMO_IMAGE_PREVIEW, DEMO_STRATEGY
from src.strategy.errors import PipelineBusyError, StrategyError
from src.strategy.models import (
    Classification,
    ClassifiedItem,
    PipelineState,
    Relation,
    Snippet,
    StrategyResult,
    UploadedImage,
)
from src.strategy.stages import classify_snippets, synthesize_strategy, transcribe_image

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred."

Transcribe = Callable[[UploadedImage, PipelineConfig], Awaitable[list[Snippet]]]
Classify = Callable[[Sequence[Snippet], PipelineConfig], Awaitable[Classification]]
Synthesize = Callable[
    [Sequence[ClassifiedItem], Sequence[Relation], PipelineConfig], Awaitable[StrategyResult]
]


@dataclass(frozen=True)
class PipelineStages:
    """The three async stage callables. Tests substitute fakes here."""

    transcribe: Transcribe
    classify: Classify
    synthesize: Synthesize

    @classmethod
    def live(cls) -> PipelineStages:
        return cls(transcribe_image, classify_snippets, synthesize_strategy)


class StrategyPipeline:
    """Owns exactly one PipelineState and moves it through the stages."""

    def __init__(
        self,
        stages: PipelineStages | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self._stages = stages or PipelineStages.live()
        self._config = config or PipelineConfig.from_settings()
        self._state = PipelineState.idle()
        self._run_id = 0

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def _set(self, state: PipelineState) -> None:
        if state.step is not self._state.step:
            logger.info("Pipeline %s -> %s", self._state.step, state.step)
        self._state = state

    def _is_current(self, run_id: int) -> bool:
        if run_id != self._run_id:
            logger.info("Discarding result of superseded run %d", run_id)
            return False
        return True

    def _start(self, preview: str | None) -> int:
        if self._state.step.is_working:
            raise PipelineBusyError(f"A run is already in progress ({self._state.step}).")
        self._run_id += 1
        self._set(PipelineState(step=PipelineStep.TRANSCRIBING, image_preview=preview))
        return self._run_id

    def begin(self, image: UploadedImage) -> int:
        """Move to TRANSCRIBING for ``image`` and return the run token for ``advance``."""
        return self._start(image.to_data_url())

    async def advance(self, image: UploadedImage, run_id: int) -> PipelineState:
        """Run all three stages for a run started with ``begin``.

        Stage failures land in ERROR with a human-readable message. If the
        pipeline was reset meanwhile, the late result is dropped.
        """
        try:
            snippets = await self._stages.transcribe(image, self._config)
            if not self._is_current(run_id):
                return self._state
            self._set(
                self._state.model_copy(
                    update={"step": PipelineStep.CLASSIFYING, "snippets": tuple(snippets)}
                )
            )

            classified = await self._stages.classify(snippets, self._config)
            if not self._is_current(run_id):
                return self._state
            self._set(
                self._state.model_copy(
                    update={"step": PipelineStep.SYNTHESIZING, "classified": classified}
                )
            )

            strategy = await self._stages.synthesize(
                classified.items, classified.relations, self._config
            )
            if not self._is_current(run_id):
                return self._state
            self._set(
                self._state.model_copy(update={"step": PipelineStep.COMPLETE, "strategy": strategy})
            )
        except StrategyError as exc:
            logger.warning("Pipeline failed during %s: %s", self._state.step, exc)
            self._fail(run_id, str(exc))
        except Exception as exc:
            logger.exception("Pipeline failed during %s", self._state.step)
            self._fail(run_id, str(exc))
        return self._state

    def _fail(self, run_id: int, message: str) -> None:
        if not self._is_current(run_id):
            return
        self._set(
            self._state.model_copy(
                update={"step": PipelineStep.ERROR, "error": message or UNEXPECTED_ERROR}
            )
        )

    async def run(self, image: UploadedImage) -> PipelineState:
        """Begin and complete a run in one call."""
        run_id = self.begin(image)
        return await self.advance(image, run_id)

    def reset(self) -> PipelineState:
        """Return to the exact IDLE shape, invalidating any in-flight run."""
        self._run_id += 1
        self._set(PipelineState.idle())
        return self._state

    def begin_demo(self) -> int:
        return self._start(DEMO_IMAGE_PREVIEW)

    async def advance_demo(self, run_id: int) -> PipelineState:
        """Scripted traversal to COMPLETE with the fixed demo strategy; no network."""
        first, second, third = self._config.demo_delays
        for delay, step in ((first, PipelineStep.CLASSIFYING), (second, PipelineStep.SYNTHESIZING)):
            await asyncio.sleep(delay)
            if not self._is_current(run_id):
                return self._state
            self._set(self._state.model_copy(update={"step": step}))
        await asyncio.sleep(third)
        if self._is_current(run_id):
            self._set(PipelineState(step=PipelineStep.COMPLETE, strategy=DEMO_STRATEGY))
        return self._state

    async def run_demo(self) -> PipelineState:
        return await self.advance_demo(self.begin_demo())
