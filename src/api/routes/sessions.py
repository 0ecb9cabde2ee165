"""Session endpoints: create, inspect, upload a whiteboard, run the demo, reset."""

from __future__ import annotations

import binascii
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, Response, UploadFile

from src.api.models import ImageUploadRequest, SessionResponse
from src.config import settings
from src.pipeline_config import PipelineStep
from src.strategy.errors import PipelineBusyError
from src.strategy.models import StrategyResult, UploadedImage
from src.strategy.sessions import Session, get_session_store

router = APIRouter()


def _get_session(session_id: str) -> Session:
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _response(session: Session, include_preview: bool = True) -> SessionResponse:
    state = session.pipeline.state
    if not include_preview:
        state = state.model_copy(update={"image_preview": None})
    return SessionResponse(session_id=session.id, state=state)


async def read_image(file: UploadFile) -> UploadedImage:
    """Read an uploaded image into memory, enforcing type and size limits."""
    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type {content_type or 'unknown'}: upload an image.",
        )
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Uploaded image is empty")
    _check_size(len(raw))
    return UploadedImage(data=raw, mime_type=content_type)


def _check_size(size: int) -> None:
    if size > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)} MB."
            ),
        )


def _require_api_key() -> None:
    # Fail fast: no network call without a key
    if not settings.google_api_key:
        raise HTTPException(
            status_code=501,
            detail="Whiteboard analysis not available: GOOGLE_API_KEY is not configured.",
        )


def _start_run(
    session: Session, image: UploadedImage, background_tasks: BackgroundTasks
) -> SessionResponse:
    try:
        run_id = session.pipeline.begin(image)
    except PipelineBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    session.chat = None

    background_tasks.add_task(session.pipeline.advance, image, run_id)
    return _response(session)


@router.post("/api/sessions", response_model=SessionResponse, status_code=201)
async def create_session() -> SessionResponse:
    """Create a session with an idle pipeline."""
    return _response(get_session_store().create())


@router.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, include_preview: bool = True) -> SessionResponse:
    """Return the current pipeline state.

    The UI polls this while a run is in flight with ``include_preview=false``
    so the image data URL is not resent on every poll.
    """
    return _response(_get_session(session_id), include_preview=include_preview)


@router.post("/api/sessions/{session_id}/upload", response_model=SessionResponse, status_code=202)
async def upload_whiteboard(
    session_id: str,
    background_tasks: BackgroundTasks,
    file: Annotated[UploadFile, File(...)],
) -> SessionResponse:
    """Start the transcribe -> classify -> synthesize pipeline for an image.

    The pipeline enters TRANSCRIBING before this returns; the stages then run
    in the background. Returns 409 if a run is already in progress and 501 if
    GOOGLE_API_KEY is not configured.
    """
    session = _get_session(session_id)
    _require_api_key()
    image = await read_image(file)
    return _start_run(session, image, background_tasks)


@router.post(
    "/api/sessions/{session_id}/upload-base64", response_model=SessionResponse, status_code=202
)
async def upload_whiteboard_base64(
    session_id: str, request: ImageUploadRequest, background_tasks: BackgroundTasks
) -> SessionResponse:
    """Same as the multipart upload, for clients that hold the image as base64 or a data URL."""
    session = _get_session(session_id)
    _require_api_key()
    try:
        image = UploadedImage.from_data_url(request.image)
    except binascii.Error as exc:
        raise HTTPException(status_code=400, detail=f"Image is not valid base64: {exc}") from exc
    if not image.data:
        raise HTTPException(status_code=400, detail="Uploaded image is empty")
    _check_size(len(image.data))
    return _start_run(session, image, background_tasks)


@router.post("/api/sessions/{session_id}/demo", response_model=SessionResponse, status_code=202)
async def run_demo(session_id: str, background_tasks: BackgroundTasks) -> SessionResponse:
    """Play the scripted demo run. Needs no API key and makes no network calls."""
    session = _get_session(session_id)
    try:
        run_id = session.pipeline.begin_demo()
    except PipelineBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    session.chat = None

    background_tasks.add_task(session.pipeline.advance_demo, run_id)
    return _response(session)


@router.post("/api/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset_session(session_id: str) -> SessionResponse:
    """Discard all pipeline data and return to IDLE."""
    session = _get_session(session_id)
    session.reset()
    return _response(session)


@router.get("/api/sessions/{session_id}/strategy", response_model=StrategyResult)
async def get_strategy(session_id: str) -> StrategyResult:
    """Return the finished strategy document (409 until the run is COMPLETE)."""
    state = _get_session(session_id).pipeline.state
    if state.step is not PipelineStep.COMPLETE or state.strategy is None:
        raise HTTPException(status_code=409, detail=f"Strategy not ready (step: {state.step})")
    return state.strategy


@router.delete("/api/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str) -> Response:
    if not get_session_store().delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)
