"""In-process session registry: one pipeline (and at most one chat) per session."""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field

from src.config import settings
from src.pipeline_config import PipelineStep
from src.strategy.chat import StrategyChat
from src.strategy.orchestrator import StrategyPipeline

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A user session. ``chat`` is opened lazily once a strategy exists."""

    id: str
    pipeline: StrategyPipeline
    chat: StrategyChat | None = None

    def reset(self) -> None:
        self.pipeline.reset()
        self.chat = None

    def get_chat(self) -> StrategyChat:
        """Return the chat for the current strategy, opening it on first use.

        Raises LookupError when the pipeline has not completed.
        """
        state = self.pipeline.state
        if state.step is not PipelineStep.COMPLETE or state.strategy is None:
            raise LookupError("Strategy is not ready yet")
        if self.chat is None or self.chat.strategy is not state.strategy:
            self.chat = StrategyChat.open(state.strategy)
        return self.chat


@dataclass
class SessionStore:
    """Sessions keyed by id, least recently used first.

    When ``max_sessions`` is exceeded the oldest sessions whose pipeline is not
    running are evicted. Running sessions are only dropped once nothing else
    is left to evict.
    """

    pipeline_factory: Callable[[], StrategyPipeline] = StrategyPipeline
    max_sessions: int | None = None
    _sessions: OrderedDict[str, Session] = field(default_factory=OrderedDict)

    def create(self) -> Session:
        session = Session(id=uuid.uuid4().hex, pipeline=self.pipeline_factory())
        self._sessions[session.id] = session
        self._evict(keep=session.id)
        return session

    def get(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict(self, keep: str) -> None:
        if self.max_sessions is None:
            return
        while len(self._sessions) > self.max_sessions:
            candidates = [sid for sid in self._sessions if sid != keep]
            idle = [
                sid for sid in candidates if not self._sessions[sid].pipeline.state.step.is_working
            ]
            victim = (idle or candidates)[0]
            del self._sessions[victim]
            logger.info("Evicted session %s (limit %d)", victim, self.max_sessions)


_store = SessionStore(max_sessions=settings.max_sessions)


def get_session_store() -> SessionStore:
    """Return the process-wide session store."""
    return _store
