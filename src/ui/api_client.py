"""HTTP client wrapper for the Whiteboard Strategy FastAPI backend."""

from __future__ import annotations

import os

import httpx
import streamlit as st

API_URL = os.getenv("API_URL", "http://localhost:8000")


def check_health() -> bool:
    """Return True if the API server responds to /health."""
    try:
        r = httpx.get(f"{API_URL}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.ConnectError:
        return False


def create_session() -> dict:  # type: ignore[type-arg]
    """Create a new pipeline session."""
    try:
        r = httpx.post(f"{API_URL}/api/sessions", timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Could not start a session: {e}")
        return {}


def get_session(session_id: str, include_preview: bool = True) -> dict:  # type: ignore[type-arg]
    """Fetch the current pipeline state for a session.

    Pass ``include_preview=False`` when polling to skip the image data URL.
    """
    try:
        r = httpx.get(
            f"{API_URL}/api/sessions/{session_id}",
            params={"include_preview": str(include_preview).lower()},
            timeout=10.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def upload_whiteboard(
    session_id: str,
    file_content: bytes,
    filename: str,
    mime_type: str,
) -> dict:  # type: ignore[type-arg]
    """Upload a whiteboard photo and start the pipeline."""
    try:
        r = httpx.post(
            f"{API_URL}/api/sessions/{session_id}/upload",
            files={"file": (filename, file_content, mime_type)},
            timeout=300.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPStatusError as e:
        st.error(f"Upload failed: {e.response.json().get('detail', e)}")
        return {}
    except httpx.HTTPError as e:
        st.error(f"Upload failed: {e}")
        return {}


def run_demo(session_id: str) -> dict:  # type: ignore[type-arg]
    """Start the scripted demo run."""
    try:
        r = httpx.post(f"{API_URL}/api/sessions/{session_id}/demo", timeout=30.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Demo failed: {e}")
        return {}


def reset_session(session_id: str) -> dict:  # type: ignore[type-arg]
    try:
        r = httpx.post(f"{API_URL}/api/sessions/{session_id}/reset", timeout=10.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def get_chat(session_id: str) -> dict:  # type: ignore[type-arg]
    """Fetch the chat transcript for a completed strategy."""
    try:
        r = httpx.get(f"{API_URL}/api/sessions/{session_id}/chat", timeout=30.0)
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError:
        return {}


def send_chat_message(session_id: str, message: str) -> dict:  # type: ignore[type-arg]
    """Send a follow-up question to the strategy assistant."""
    try:
        r = httpx.post(
            f"{API_URL}/api/sessions/{session_id}/chat",
            json={"message": message},
            timeout=120.0,
        )
        r.raise_for_status()
        return r.json()  # type: ignore[no-any-return]
    except httpx.HTTPError as e:
        st.error(f"Chat failed: {e}")
        return {}
