"""FastAPI routes for the scene pipeline stages and video delivery."""

import re
from pathlib import Path
from typing import Any, Iterator, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import StreamingResponse

from scenecast.core.config import settings
from scenecast.core.exceptions import SceneValidationError
from scenecast.core.logging_config import get_logger
from scenecast.models.schemas import (
    AudioOptions,
    CompileOptions,
    ProcessTextRequest,
    SegmentationOptions,
    SessionStageRequest,
    VisualOptions,
)
from scenecast.pipelines.run_full_pipeline import ScenePipeline
from scenecast.services.cleanup import cleanup_session
from scenecast.storage.repository import STAGE_AUDIO, STAGE_SEGMENTED, STAGE_VISUALS, validate_session_id

router = APIRouter(tags=["pipeline"])

STREAM_CHUNK_SIZE = 1024 * 1024
RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")
MEDIA_TYPES = {".mp4": "video/mp4", ".webm": "video/webm", ".mov": "video/quicktime", ".vtt": "text/vtt"}


def get_pipeline() -> ScenePipeline:
    """Build a pipeline from global settings (overridden in tests)."""
    return ScenePipeline(settings, get_logger(__name__))


def _stage_response(result: Any) -> dict[str, Any]:
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error or "Stage failed")
    return {"success": True, "data": result.data.model_dump(mode="json")}


def _check_session_id(session_id: str) -> str:
    try:
        return validate_session_id(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _load_previous(pipeline: ScenePipeline, session_id: str, stage: str):
    _check_session_id(session_id)
    loaded = pipeline.repository.load_stage(session_id, stage)
    if not loaded:
        raise HTTPException(status_code=404, detail=f"Session {session_id} has no '{stage}' state")
    session, scenes, _ = loaded
    session.ensure_dirs()
    return session, scenes


@router.post("/pipeline/text")
def process_text(request: ProcessTextRequest, pipeline: ScenePipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Segment a script into scenes and extract keywords."""
    options = SegmentationOptions(
        min_scene_length=request.min_scene_length,
        max_scene_length=request.max_scene_length,
        target_scene_count=request.target_scene_count,
        scene_duration_seconds=request.scene_duration_seconds,
        words_per_second=pipeline.settings.words_per_second,
    )
    try:
        result = pipeline.process_text(request.script, options)
    except SceneValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _stage_response(result)


@router.post("/pipeline/audio")
def process_audio(request: SessionStageRequest, pipeline: ScenePipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Narrate every scene of a segmented session."""
    session, scenes = _load_previous(pipeline, request.session_id, STAGE_SEGMENTED)
    try:
        options = AudioOptions(**{**pipeline.audio_synthesizer.default_options().model_dump(), **request.options})
        result = pipeline.process_audio(session, scenes, options)
    except (SceneValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _stage_response(result)


@router.post("/pipeline/visuals")
def process_visuals(request: SessionStageRequest, pipeline: ScenePipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Resolve a stock visual for every scene of a narrated session."""
    session, scenes = _load_previous(pipeline, request.session_id, STAGE_AUDIO)
    try:
        options = VisualOptions(**{**pipeline.visual_resolver.default_options().model_dump(), **request.options})
        result = pipeline.process_visuals(session, scenes, options)
    except (SceneValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _stage_response(result)


@router.post("/pipeline/video")
def process_video(request: SessionStageRequest, pipeline: ScenePipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Render and compile the final video for a session with visuals."""
    session, scenes = _load_previous(pipeline, request.session_id, STAGE_VISUALS)
    try:
        options = CompileOptions(**{**pipeline.video_compiler.default_options().model_dump(), **request.options})
        result = pipeline.process_video(session, scenes, options)
    except (SceneValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _stage_response(result)


@router.post("/pipeline/cleanup")
def cleanup(request: SessionStageRequest, pipeline: ScenePipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Delete a session's intermediate files and stored state."""
    _check_session_id(request.session_id)
    latest = pipeline.repository.load_latest(request.session_id)
    if not latest:
        raise HTTPException(status_code=404, detail=f"Session {request.session_id} not found")
    _, session, _ = latest
    summary = cleanup_session(session, pipeline.logger, pipeline.repository)
    return {"success": True, "data": summary}


@router.get("/pipeline/sessions")
def list_sessions(pipeline: ScenePipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """List sessions with saved state."""
    return {"sessions": pipeline.repository.list_sessions()}


def parse_range_header(range_header: str, file_size: int) -> Optional[tuple[int, int]]:
    """
    Parse a single "bytes=start-end" range.

    Args:
        range_header: Value of the Range header
        file_size: Size of the file in bytes

    Returns:
        Inclusive (start, end), or None if the range is malformed or unsatisfiable
    """
    match = RANGE_PATTERN.match(range_header.strip())
    if not match or file_size == 0:
        return None
    start_text, end_text = match.groups()
    if not start_text and not end_text:
        return None
    if not start_text:
        # Suffix range: last N bytes
        length = int(end_text)
        if length == 0:
            return None
        return max(0, file_size - length), file_size - 1
    start = int(start_text)
    end = int(end_text) if end_text else file_size - 1
    end = min(end, file_size - 1)
    if start > end:
        return None
    return start, end


def _iter_file(path: Path, start: int, end: int) -> Iterator[bytes]:
    remaining = end - start + 1
    with open(path, "rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(STREAM_CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


@router.get("/videos/{filename}")
def get_video(
    filename: str,
    range_header: Optional[str] = Header(default=None, alias="Range"),
    pipeline: ScenePipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """Stream a compiled video, honouring byte-range requests."""
    if Path(filename).name != filename or filename.startswith("."):
        raise HTTPException(status_code=400, detail="Invalid filename")

    file_path = Path(pipeline.settings.output_dir) / filename
    if not file_path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    file_size = file_path.stat().st_size
    media_type = MEDIA_TYPES.get(file_path.suffix.lower(), "application/octet-stream")

    if range_header:
        byte_range = parse_range_header(range_header, file_size)
        if byte_range is None:
            raise HTTPException(
                status_code=416,
                detail="Requested range not satisfiable",
                headers={"Content-Range": f"bytes */{file_size}"},
            )
        start, end = byte_range
        return StreamingResponse(
            _iter_file(file_path, start, end),
            status_code=206,
            media_type=media_type,
            headers={
                "Content-Range": f"bytes {start}-{end}/{file_size}",
                "Accept-Ranges": "bytes",
                "Content-Length": str(end - start + 1),
            },
        )

    return StreamingResponse(
        _iter_file(file_path, 0, file_size - 1),
        media_type=media_type,
        headers={"Accept-Ranges": "bytes", "Content-Length": str(file_size)},
    )
