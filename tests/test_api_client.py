"""Tests for the Streamlit-side HTTP client (httpx calls mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx

from src.ui import api_client


def _ok(body: dict) -> MagicMock:  # type: ignore[type-arg]
    response = MagicMock()
    response.json.return_value = body
    return response


def test_poll_asks_server_to_skip_preview() -> None:
    with patch("src.ui.api_client.httpx.get", return_value=_ok({"state": {}})) as mock_get:
        api_client.get_session("abc", include_preview=False)

    assert mock_get.call_args.kwargs["params"] == {"include_preview": "false"}
    assert mock_get.call_args.args[0].endswith("/api/sessions/abc")


def test_full_fetch_includes_preview_by_default() -> None:
    with patch("src.ui.api_client.httpx.get", return_value=_ok({"state": {}})) as mock_get:
        api_client.get_session("abc")

    assert mock_get.call_args.kwargs["params"] == {"include_preview": "true"}


def test_missing_session_returns_empty() -> None:
    with patch("src.ui.api_client.httpx.get", side_effect=httpx.ConnectError("down")):
        assert api_client.get_session("gone", include_preview=False) == {}
