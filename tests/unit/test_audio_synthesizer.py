"""Tests for narration synthesis."""

import pytest
from unittest.mock import MagicMock

from scenecast.core.exceptions import SceneValidationError, SpeechSynthesisError
from scenecast.models.schemas import AudioOptions, FitAction, FitQuality, Scene
from scenecast.services.audio_synthesizer import (
    AudioSynthesizer,
    classify_fit,
    rate_fit_quality,
    validate_scenes_for_audio,
)


def write_fake_audio(text, output_path, language="en", slow=False):
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(b"\x00" * 3000)


@pytest.fixture
def tts_client():
    """TTS client that writes a small file."""
    client = MagicMock()
    client.provider = "mock"
    client.generate_speech.side_effect = write_fake_audio
    return client


@pytest.fixture
def media_inspector():
    inspector = MagicMock()
    inspector.get_duration.return_value = 8.0
    return inspector


@pytest.fixture
def synthesizer(settings, logger, tts_client, media_inspector):
    return AudioSynthesizer(settings, logger, tts_client=tts_client, media_inspector=media_inspector)


@pytest.fixture
def options():
    return AudioOptions(scene_duration_seconds=6.0)


@pytest.mark.parametrize(
    "actual,target,expected",
    [
        (6.0, 6.0, FitAction.PERFECT_FIT),
        (6.4, 6.0, FitAction.PERFECT_FIT),
        (8.0, 6.0, FitAction.TRIM_NEEDED),
        (4.0, 6.0, FitAction.PADDING_NEEDED),
    ],
)
def test_classify_fit(actual, target, expected):
    assert classify_fit(actual, target) == expected


@pytest.mark.parametrize(
    "actual,expected",
    [
        (6.0, FitQuality.EXCELLENT),
        (6.6, FitQuality.GOOD),
        (4.5, FitQuality.FAIR),
        (3.0, FitQuality.POOR),
        (12.0, FitQuality.POOR),
    ],
)
def test_rate_fit_quality(actual, expected):
    assert rate_fit_quality(actual, 6.0) == expected


def test_validate_scenes_rejects_bad_input():
    with pytest.raises(SceneValidationError):
        validate_scenes_for_audio([])
    with pytest.raises(SceneValidationError):
        validate_scenes_for_audio("not a list")
    with pytest.raises(SceneValidationError):
        validate_scenes_for_audio([Scene(id=1, text="   ")])


def test_synthesize_measures_and_classifies(synthesizer, sample_scenes, session, options, tts_client):
    """Measured duration drives the fit classification."""
    audio = synthesizer.synthesize(sample_scenes[0], options, session)

    assert audio.success is True
    assert audio.duration == 8.0
    assert audio.optimization_applied == FitAction.TRIM_NEEDED
    assert audio.trimming_needed == pytest.approx(2.0)
    assert audio.padding_needed == 0.0
    assert audio.file_name == "scene_1_audio.mp3"
    assert audio.cleaned_text.endswith(".")
    tts_client.generate_speech.assert_called_once()


def test_synthesize_falls_back_to_size_estimate(synthesizer, sample_scenes, session, options, media_inspector):
    """Without a measured duration, duration is estimated from the file size."""
    media_inspector.get_duration.return_value = None

    audio = synthesizer.synthesize(sample_scenes[0], options, session)

    assert audio.success is True
    assert audio.fallback_used is True
    assert audio.duration == pytest.approx(2.0)


def test_synthesize_failure_returns_record(synthesizer, sample_scenes, session, options, tts_client):
    tts_client.generate_speech.side_effect = SpeechSynthesisError("provider down")

    audio = synthesizer.synthesize(sample_scenes[0], options, session)

    assert audio.success is False
    assert "provider down" in audio.error


def test_process_scenes_sets_actual_duration(synthesizer, sample_scenes, session, options, media_inspector):
    """actual_duration is the ceiling of the measured audio length."""
    media_inspector.get_duration.return_value = 7.2

    result = synthesizer.process_scenes(sample_scenes, session, options)

    assert result.success is True
    report = result.data
    assert report.successful_generations == 2
    assert report.failed_generations == 0
    assert report.success_rate == 100.0
    assert report.total_audio_duration == pytest.approx(14.4)
    assert [s.actual_duration for s in report.scenes] == [8, 8]
    assert report.fit_quality_distribution["poor"] == 0
    assert session.total_audio_duration == pytest.approx(14.4)
    assert session.processed_scene_ids == [1, 2]


def test_process_scenes_partial_failure(synthesizer, sample_scenes, session, options, tts_client):
    """One failing scene does not fail the stage."""

    def fail_second(text, output_path, language="en", slow=False):
        if "scene_2" in output_path.name:
            raise SpeechSynthesisError("quota exceeded")
        write_fake_audio(text, output_path)

    tts_client.generate_speech.side_effect = fail_second

    result = synthesizer.process_scenes(sample_scenes, session, options)

    assert result.success is True
    assert result.data.successful_generations == 1
    assert result.data.failed_generations == 1
    assert result.data.scenes[1].audio.success is False
    assert result.data.scenes[1].actual_duration is None


def test_process_scenes_all_fail(synthesizer, sample_scenes, session, options, tts_client):
    tts_client.generate_speech.side_effect = SpeechSynthesisError("offline")

    result = synthesizer.process_scenes(sample_scenes, session, options)

    assert result.success is False
    assert result.data.successful_generations == 0
    assert result.error
