"""Tests for full pipeline orchestrator."""

import sys
import pytest
import spacy
from datetime import datetime
from unittest.mock import MagicMock, patch

from scenecast.core.exceptions import SceneValidationError
from scenecast.models.schemas import (
    AudioStageReport,
    CompiledVideo,
    ProcessingInfo,
    StageResult,
    VideoMetadata,
    VisualStageReport,
)
from scenecast.pipelines.run_full_pipeline import ScenePipeline, main
from scenecast.services.keyword_extractor import KeywordExtractor
from scenecast.storage.repository import STAGE_AUDIO, STAGE_COMPILED, STAGE_SEGMENTED, STAGE_VISUALS


def make_manifest(session_id="session_test", video_path="/tmp/compiled_video_test.mp4"):
    now = datetime.now()
    return CompiledVideo(
        video_path=video_path,
        file_name="compiled_video_test.mp4",
        metadata=VideoMetadata(duration=12.0, total_scenes=2),
        processing=ProcessingInfo(start_time=now, end_time=now, processing_time=0.0, session_id=session_id),
    )


@pytest.fixture
def stages():
    """Mocked media stages that pass scenes through unchanged."""
    audio = MagicMock()
    audio.process_scenes.side_effect = lambda scenes, session, options: StageResult(
        success=True, data=AudioStageReport(scenes=scenes, total_scenes=len(scenes), successful_generations=len(scenes))
    )
    visuals = MagicMock()
    visuals.process_scenes.side_effect = lambda scenes, session, options: StageResult(
        success=True, data=VisualStageReport(scenes=scenes, total_scenes=len(scenes), successful_downloads=len(scenes))
    )
    compiler = MagicMock()
    compiler.compile.side_effect = lambda scenes, session, options: StageResult(
        success=True, data=make_manifest(session.session_id)
    )
    return audio, visuals, compiler


@pytest.fixture
def pipeline(settings, logger, stages):
    audio, visuals, compiler = stages
    return ScenePipeline(
        settings,
        logger,
        keyword_extractor=KeywordExtractor(settings, logger, nlp=spacy.blank("en")),
        audio_synthesizer=audio,
        visual_resolver=visuals,
        video_compiler=compiler,
    )


def test_run_executes_every_stage(pipeline, stages, sample_script):
    audio, visuals, compiler = stages

    result = pipeline.run(sample_script)

    assert result.success is True
    audio.process_scenes.assert_called_once()
    visuals.process_scenes.assert_called_once()
    compiler.compile.assert_called_once()

    scenes, session, _ = compiler.compile.call_args[0]
    assert [s.id for s in scenes] == [1]
    assert scenes[0].keywords
    assert result.data.processing.session_id == session.session_id


def test_run_saves_each_stage(pipeline, sample_script):
    result = pipeline.run(sample_script)
    session_id = result.data.processing.session_id

    for stage in (STAGE_SEGMENTED, STAGE_AUDIO, STAGE_VISUALS, STAGE_COMPILED):
        assert pipeline.repository.load_stage(session_id, stage) is not None


def test_run_stops_when_audio_fails(pipeline, stages, sample_script):
    audio, visuals, compiler = stages
    audio.process_scenes.side_effect = None
    audio.process_scenes.return_value = StageResult(success=False, error="Narration failed for every scene")

    result = pipeline.run(sample_script)

    assert result.success is False
    assert "Narration failed" in result.error
    visuals.process_scenes.assert_not_called()
    compiler.compile.assert_not_called()


def test_run_resumes_from_saved_stage(pipeline, stages, sample_script):
    audio, visuals, compiler = stages
    session_id = pipeline.process_text(sample_script).data.session_id

    result = pipeline.run(resume_session_id=session_id)

    assert result.success is True
    audio.process_scenes.assert_called_once()
    _, session, _ = compiler.compile.call_args[0]
    assert session.session_id == session_id


def test_run_resume_compiled_returns_manifest(pipeline, stages, sample_script):
    audio, visuals, compiler = stages
    session_id = pipeline.run(sample_script).data.processing.session_id
    compiler.compile.reset_mock()

    result = pipeline.run(resume_session_id=session_id)

    assert result.success is True
    assert result.data.processing.session_id == session_id
    compiler.compile.assert_not_called()


def test_run_unknown_resume_session(pipeline):
    result = pipeline.run(resume_session_id="session_missing")

    assert result.success is False


def test_process_text_rejects_blank_script(pipeline):
    with pytest.raises(SceneValidationError):
        pipeline.process_text("   ")


def test_process_text_all_symbols_fails(pipeline):
    result = pipeline.process_text("@@@ ###")

    assert result.success is False


@patch("scenecast.pipelines.run_full_pipeline.ScenePipeline")
def test_main_success(mock_pipeline_class, tmp_path, capsys):
    mock_pipeline = MagicMock()
    mock_pipeline.run.return_value = StageResult(success=True, data=make_manifest(video_path=str(tmp_path / "v.mp4")))
    mock_pipeline_class.return_value = mock_pipeline

    test_args = ["run_full_pipeline.py", "--script", "The sun rose.", "--resolution", "1080p", "--no-subtitles"]
    with patch.object(sys, "argv", test_args):
        exit_code = main()

    assert exit_code == 0
    kwargs = mock_pipeline.run.call_args.kwargs
    assert kwargs["script"] == "The sun rose."
    assert kwargs["compile_options"].resolution == "1080p"
    assert kwargs["compile_options"].include_subtitles is False
    assert str(tmp_path / "v.mp4") in capsys.readouterr().out


@patch("scenecast.pipelines.run_full_pipeline.ScenePipeline")
def test_main_reads_script_file(mock_pipeline_class, tmp_path):
    script_file = tmp_path / "script.txt"
    script_file.write_text("A lone rider pedaled home.", encoding="utf-8")
    mock_pipeline = MagicMock()
    mock_pipeline.run.return_value = StageResult(success=True, data=make_manifest())
    mock_pipeline_class.return_value = mock_pipeline

    with patch.object(sys, "argv", ["run_full_pipeline.py", "--script-file", str(script_file)]):
        assert main() == 0

    assert mock_pipeline.run.call_args.kwargs["script"] == "A lone rider pedaled home."


@patch("scenecast.pipelines.run_full_pipeline.ScenePipeline")
def test_main_failure_returns_one(mock_pipeline_class):
    mock_pipeline = MagicMock()
    mock_pipeline.run.return_value = StageResult(success=False, error="No scene could be rendered")
    mock_pipeline_class.return_value = mock_pipeline

    with patch.object(sys, "argv", ["run_full_pipeline.py", "--script", "Hello there."]):
        assert main() == 1


def test_main_requires_input():
    with patch.object(sys, "argv", ["run_full_pipeline.py"]):
        with pytest.raises(SystemExit):
            main()
