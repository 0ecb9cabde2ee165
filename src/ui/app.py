"""Whiteboard Strategy -- Streamlit UI.

Upload a whiteboard photo, follow the pipeline as it runs, then browse the
generated strategy and ask the assistant follow-up questions.
"""

from __future__ import annotations

import time
from typing import Any, cast

import streamlit as st

from src.pipeline_config import PipelineStep
from src.ui.api_client import (
    check_health,
    create_session,
    get_chat,
    get_session,
    reset_session,
    run_demo,
    send_chat_message,
    upload_whiteboard,
)

_LEVEL_SCORE = {"Low": 1, "Medium": 2, "High": 3}

_STEP_LABELS = {
    PipelineStep.TRANSCRIBING: "Reading the whiteboard...",
    PipelineStep.CLASSIFYING: "Classifying notes and relations...",
    PipelineStep.SYNTHESIZING: "Synthesising the strategy...",
}

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(page_title="Whiteboard Strategy", layout="wide")

if "session_id" not in st.session_state:
    st.session_state.session_id = create_session().get("session_id")

# ---------------------------------------------------------------------------
# Sidebar -- API status
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("Whiteboard Strategy")
    st.markdown("---")

    api_healthy = check_health()
    if api_healthy:
        st.markdown(":green_circle: API connected")
    else:
        st.markdown(":red_circle: API unreachable")

if not api_healthy or not st.session_state.session_id:
    st.warning("The API server is not reachable. Start it and reload the page.")
    st.stop()

session_id = cast(str, st.session_state.session_id)

# Polls skip the image data URL; the preview comes from the upload response
session_data = get_session(session_id, include_preview=False)
if not session_data:
    # Session was evicted or the server restarted
    del st.session_state.session_id
    st.session_state.pop("preview", None)
    st.rerun()
state: dict[str, Any] = session_data.get("state", {})
step = PipelineStep(state.get("step", PipelineStep.IDLE))


def _render_dashboard(strategy: dict[str, Any]) -> None:
    tabs = st.tabs(["OKRs", "Action Items", "Timeline", "Stakeholders", "Risks", "Automations"])

    with tabs[0]:
        for okr in strategy.get("okrs", []):
            st.subheader(okr["objective"])
            for kr in okr.get("key_results", []):
                st.write(f"- {kr}")

    with tabs[1]:
        st.dataframe(strategy.get("action_items", []), use_container_width=True)

    with tabs[2]:
        st.dataframe(strategy.get("timeline", []), use_container_width=True)

    with tabs[3]:
        stakeholders = strategy.get("stakeholders", [])
        st.dataframe(stakeholders, use_container_width=True)
        if stakeholders:
            st.scatter_chart(
                {
                    "interest": [_LEVEL_SCORE.get(s["interest"], 0) for s in stakeholders],
                    "influence": [_LEVEL_SCORE.get(s["influence"], 0) for s in stakeholders],
                },
                x="interest",
                y="influence",
            )

    with tabs[4]:
        st.dataframe(strategy.get("risks", []), use_container_width=True)

    with tabs[5]:
        for automation in strategy.get("automations", []):
            st.write(f"**{automation['type']}**")
            st.json(automation.get("payload", {}))


def _render_chat() -> None:
    st.subheader("Strategy Assistant")
    transcript = get_chat(session_id).get("messages", [])
    for message in transcript:
        with st.chat_message("assistant" if message["role"] == "model" else "user"):
            st.write(message["text"])

    question = st.chat_input("Ask about risks, timeline conflicts, or new OKRs")
    if question:
        result = send_chat_message(session_id, question)
        if result.get("error"):
            st.error(result["error"])
        st.rerun()


# ---------------------------------------------------------------------------
# Page: Complete -- dashboard + chat
# ---------------------------------------------------------------------------
if step is PipelineStep.COMPLETE and state.get("strategy"):
    st.header("Strategy")
    if st.button("Analyze another board"):
        reset_session(session_id)
        st.session_state.pop("preview", None)
        st.rerun()
    _render_dashboard(state["strategy"])
    st.markdown("---")
    _render_chat()

# ---------------------------------------------------------------------------
# Page: Error
# ---------------------------------------------------------------------------
elif step is PipelineStep.ERROR:
    st.header("Analysis Failed")
    st.error(state.get("error") or "An unexpected error occurred.")
    if st.button("Try again"):
        reset_session(session_id)
        st.session_state.pop("preview", None)
        st.rerun()

# ---------------------------------------------------------------------------
# Page: Processing
# ---------------------------------------------------------------------------
elif step.is_working:
    st.header("Analyzing")
    if "preview" not in st.session_state:
        full = get_session(session_id).get("state", {})
        st.session_state.preview = full.get("image_preview")
    preview = st.session_state.preview
    if preview:
        st.image(preview, width=480)
    order = list(_STEP_LABELS)
    st.progress((order.index(step) + 1) / (len(order) + 1), text=_STEP_LABELS[step])
    time.sleep(1.0)
    st.rerun()

# ---------------------------------------------------------------------------
# Page: Upload
# ---------------------------------------------------------------------------
else:
    st.header("Turn Whiteboards into Strategy")
    st.write(
        "Upload a photo of your meeting notes to generate OKRs, a roadmap, "
        "a risk register and follow-up tasks."
    )

    uploaded_file = st.file_uploader("Choose an image", type=["png", "jpg", "jpeg", "webp"])

    col_a, col_b = st.columns(2)
    if col_a.button("Analyze", disabled=uploaded_file is None) and uploaded_file is not None:
        result = upload_whiteboard(
            session_id,
            file_content=uploaded_file.getvalue(),
            filename=uploaded_file.name,
            mime_type=uploaded_file.type or "image/png",
        )
        if result:
            st.session_state.preview = result["state"].get("image_preview")
            st.rerun()
        # Error case is already handled inside upload_whiteboard via st.error

    if col_b.button("Try demo"):
        result = run_demo(session_id)
        if result:
            st.session_state.preview = result["state"].get("image_preview")
            st.rerun()
