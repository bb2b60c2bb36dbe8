"""Tests for the HTTP API."""

import pytest
import spacy
from pathlib import Path
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from scenecast.api.routes_video import get_pipeline, parse_range_header
from scenecast.main import app
from scenecast.models.schemas import AudioStageReport, StageResult
from scenecast.pipelines.run_full_pipeline import ScenePipeline
from scenecast.services.keyword_extractor import KeywordExtractor

VIDEO_BYTES = bytes(range(100))


@pytest.fixture
def pipeline(settings, logger):
    """Pipeline with real text stage and mocked media stages."""
    return ScenePipeline(
        settings,
        logger,
        keyword_extractor=KeywordExtractor(settings, logger, nlp=spacy.blank("en")),
        audio_synthesizer=MagicMock(),
        visual_resolver=MagicMock(),
        video_compiler=MagicMock(),
    )


@pytest.fixture
def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def video_file(settings):
    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / "compiled_video_test.mp4"
    path.write_bytes(VIDEO_BYTES)
    return path


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_process_text(client, sample_script):
    response = client.post(
        "/pipeline/text",
        json={"script": sample_script, "min_scene_length": 20, "max_scene_length": 80},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_scenes"] == 2
    assert data["session_id"].startswith("session_")
    assert [s["id"] for s in data["scenes"]] == [1, 2]


def test_process_text_blank_script(client):
    response = client.post("/pipeline/text", json={"script": "   "})

    assert response.status_code == 400


def test_audio_stage_unknown_session(client):
    response = client.post("/pipeline/audio", json={"session_id": "session_missing"})

    assert response.status_code == 404


def test_audio_stage_continues_text_session(client, pipeline, sample_script):
    session_id = client.post("/pipeline/text", json={"script": sample_script}).json()["data"]["session_id"]
    pipeline.audio_synthesizer.default_options.return_value.model_dump.return_value = {"language": "en"}
    pipeline.audio_synthesizer.process_scenes.return_value = StageResult(
        success=True, data=AudioStageReport(total_scenes=1, successful_generations=1, session_id=session_id)
    )

    response = client.post("/pipeline/audio", json={"session_id": session_id, "options": {"slow": True}})

    assert response.status_code == 200
    assert response.json()["data"]["successful_generations"] == 1
    _, session, options = pipeline.audio_synthesizer.process_scenes.call_args[0]
    assert session.session_id == session_id
    assert options.slow is True


def test_get_video_full(client, video_file):
    response = client.get(f"/videos/{video_file.name}")

    assert response.status_code == 200
    assert response.content == VIDEO_BYTES
    assert response.headers["content-type"] == "video/mp4"
    assert response.headers["accept-ranges"] == "bytes"


def test_get_video_range(client, video_file):
    response = client.get(f"/videos/{video_file.name}", headers={"Range": "bytes=10-19"})

    assert response.status_code == 206
    assert response.content == VIDEO_BYTES[10:20]
    assert response.headers["content-range"] == "bytes 10-19/100"
    assert response.headers["content-length"] == "10"


def test_get_video_open_ended_range(client, video_file):
    response = client.get(f"/videos/{video_file.name}", headers={"Range": "bytes=90-"})

    assert response.status_code == 206
    assert response.content == VIDEO_BYTES[90:]


def test_get_video_unsatisfiable_range(client, video_file):
    response = client.get(f"/videos/{video_file.name}", headers={"Range": "bytes=200-300"})

    assert response.status_code == 416


def test_get_video_missing(client):
    assert client.get("/videos/nope.mp4").status_code == 404


def test_get_video_rejects_hidden_file(client):
    assert client.get("/videos/.env").status_code == 400


@pytest.mark.parametrize(
    "header,expected",
    [
        ("bytes=0-9", (0, 9)),
        ("bytes=95-200", (95, 99)),
        ("bytes=-10", (90, 99)),
        ("bytes=50-", (50, 99)),
        ("bytes=100-", None),
        ("bytes=abc", None),
        ("items=0-9", None),
    ],
)
def test_parse_range_header(header, expected):
    assert parse_range_header(header, 100) == expected


@pytest.mark.parametrize("session_id", ["../outside", "a/b", "..", "session\n"])
def test_stage_rejects_unsafe_session_id(client, session_id):
    response = client.post("/pipeline/audio", json={"session_id": session_id})

    assert response.status_code == 400


def test_cleanup_rejects_unsafe_session_id(client, tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()

    response = client.post("/pipeline/cleanup", json={"session_id": "../../outside"})

    assert response.status_code == 400
    assert outside.exists()


def test_resume_rejects_unsafe_session_id(pipeline):
    result = pipeline.run(resume_session_id="../outside")

    assert result.success is False
    assert "Invalid session id" in result.error
