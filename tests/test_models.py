"""Tests for the pipeline data model."""

from __future__ import annotations

import base64
import binascii

import pytest
from pydantic import ValidationError

from src.pipeline_config import PipelineStep
from src.strategy.demo import DEMO_STRATEGY
from src.strategy.models import (
    CalendarEventAutomation,
    NotifyChannelAutomation,
    PipelineState,
    Snippet,
    StrategyResult,
    TaskCreateAutomation,
    UnknownAutomation,
    UploadedImage,
    parse_automation,
)


class TestSnippet:
    def test_frozen(self) -> None:
        snippet = Snippet(id="s1", text="x", bbox="center", confidence="high")
        with pytest.raises(ValidationError):
            snippet.text = "y"  # type: ignore[misc]

    def test_extra_keys_ignored(self) -> None:
        snippet = Snippet.model_validate(
            {"id": "s1", "text": "x", "bbox": "center", "confidence": "low", "angle": 12}
        )
        assert not hasattr(snippet, "angle")

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Snippet(id="", text="x", bbox="center", confidence="high")


class TestAutomations:
    def test_task_create(self) -> None:
        automation = parse_automation(
            {"type": "task.create", "payload": {"title": "Set up dashboard", "owner": "Dev"}}
        )
        assert isinstance(automation, TaskCreateAutomation)
        assert automation.payload.owner == "Dev"

    def test_notify_channel(self) -> None:
        automation = parse_automation(
            {"type": "notify.channel", "payload": {"channel": "#launches", "message": "Live"}}
        )
        assert isinstance(automation, NotifyChannelAutomation)

    def test_calendar_event(self) -> None:
        automation = parse_automation(
            {"type": "calendar.event", "payload": {"title": "Kickoff", "date": "2025-12-01"}}
        )
        assert isinstance(automation, CalendarEventAutomation)

    def test_unknown_type_keeps_payload(self) -> None:
        automation = parse_automation({"type": "jira.epic", "payload": {"key": "GROW"}})
        assert isinstance(automation, UnknownAutomation)
        assert automation.payload == {"key": "GROW"}

    def test_known_type_with_bad_payload_falls_back(self) -> None:
        automation = parse_automation({"type": "task.create", "payload": {"owner": "Dev"}})
        assert isinstance(automation, UnknownAutomation)
        assert automation.type == "task.create"

    def test_non_object_rejected(self) -> None:
        with pytest.raises(ValidationError):
            StrategyResult.model_validate({"automations": ["task.create"]})

    def test_round_trip_through_json(self) -> None:
        restored = StrategyResult.model_validate_json(DEMO_STRATEGY.model_dump_json())
        assert restored == DEMO_STRATEGY
        assert isinstance(restored.automations[0], TaskCreateAutomation)


class TestStrategyResult:
    def test_defaults_are_empty_lists(self) -> None:
        data = StrategyResult().model_dump(mode="json")
        assert data == {
            "okrs": [],
            "action_items": [],
            "timeline": [],
            "stakeholders": [],
            "risks": [],
            "automations": [],
        }

    def test_null_sections_become_empty(self) -> None:
        result = StrategyResult.model_validate({"okrs": None, "automations": None})
        assert result.okrs == ()
        assert result.automations == ()

    def test_demo_strategy_is_complete(self) -> None:
        assert len(DEMO_STRATEGY.okrs) == 2
        assert DEMO_STRATEGY.timeline[0].start_date == "2025-12-01"
        assert all(s.influence in {"High", "Medium", "Low"} for s in DEMO_STRATEGY.stakeholders)


class TestPipelineState:
    def test_idle_shape(self) -> None:
        data = PipelineState.idle().model_dump(mode="json")
        assert data == {
            "step": "IDLE",
            "snippets": [],
            "classified": None,
            "strategy": None,
            "error": None,
            "image_preview": None,
        }

    def test_working_steps(self) -> None:
        assert PipelineStep.TRANSCRIBING.is_working
        assert PipelineStep.SYNTHESIZING.is_working
        assert not PipelineStep.IDLE.is_working
        assert not PipelineStep.ERROR.is_working
        assert not PipelineStep.COMPLETE.is_working


class TestUploadedImage:
    def test_data_url_prefix_stripped(self) -> None:
        raw = b"\xff\xd8\xff jpeg"
        encoded = "data:image/jpeg;base64," + base64.b64encode(raw).decode()
        image = UploadedImage.from_data_url(encoded)
        assert image.data == raw
        assert image.mime_type == "image/jpeg"

    def test_bare_base64_defaults_to_png(self) -> None:
        image = UploadedImage.from_data_url(base64.b64encode(b"abc").decode())
        assert image.data == b"abc"
        assert image.mime_type == "image/png"

    def test_invalid_base64_raises(self) -> None:
        with pytest.raises(binascii.Error):
            UploadedImage.from_data_url("data:image/png;base64,@@@")

    def test_to_data_url_round_trip(self) -> None:
        image = UploadedImage(data=b"abc", mime_type="image/webp")
        assert UploadedImage.from_data_url(image.to_data_url()) == image
