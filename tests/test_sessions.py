"""Tests for the in-process session store and its eviction."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from src.pipeline_config import PipelineConfig, PipelineStep
from src.strategy.demo import DEMO_STRATEGY
from src.strategy.orchestrator import StrategyPipeline
from src.strategy.sessions import SessionStore


def _pipeline() -> StrategyPipeline:
    return StrategyPipeline(config=PipelineConfig(demo_delays=(0.0, 0.0, 0.0)))


class TestSessionStore:
    def test_create_and_get(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline)
        session = store.create()

        assert store.get(session.id) is session
        assert session.pipeline.state.step is PipelineStep.IDLE
        assert store.get("missing") is None

    def test_delete(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline)
        session = store.create()

        assert store.delete(session.id) is True
        assert store.delete(session.id) is False
        assert len(store) == 0

    def test_unbounded_without_limit(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline)
        for _ in range(50):
            store.create()
        assert len(store) == 50


class TestEviction:
    def test_oldest_session_evicted_past_limit(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline, max_sessions=2)
        first = store.create()
        second = store.create()
        third = store.create()

        assert len(store) == 2
        assert store.get(first.id) is None
        assert store.get(second.id) is second
        assert store.get(third.id) is third

    def test_recently_used_session_survives(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline, max_sessions=2)
        first = store.create()
        second = store.create()
        store.get(first.id)

        store.create()

        assert store.get(first.id) is first
        assert store.get(second.id) is None

    def test_running_session_evicted_last(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline, max_sessions=2)
        running = store.create()
        running.pipeline.begin_demo()
        idle = store.create()

        store.create()

        assert store.get(running.id) is running
        assert store.get(idle.id) is None

    def test_all_running_drops_oldest(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline, max_sessions=1)
        first = store.create()
        first.pipeline.begin_demo()

        newest = store.create()

        assert len(store) == 1
        assert store.get(newest.id) is newest

    def test_completed_session_is_evictable(self) -> None:
        store = SessionStore(pipeline_factory=_pipeline, max_sessions=1)
        done = store.create()
        asyncio.run(done.pipeline.run_demo())

        store.create()

        assert store.get(done.id) is None


class TestSessionChat:
    def test_chat_requires_complete_strategy(self) -> None:
        session = SessionStore(pipeline_factory=_pipeline).create()
        with pytest.raises(LookupError):
            session.get_chat()

    def test_chat_opened_once_per_strategy(self) -> None:
        session = SessionStore(pipeline_factory=_pipeline).create()
        asyncio.run(session.pipeline.run_demo())
        chat = MagicMock(strategy=DEMO_STRATEGY)

        with patch("src.strategy.sessions.StrategyChat.open", return_value=chat) as mock_open:
            assert session.get_chat() is chat
            assert session.get_chat() is chat

        mock_open.assert_called_once_with(DEMO_STRATEGY)
