"""Tests for the ffmpeg and ffprobe wrappers."""

import json
import subprocess
import pytest
from unittest.mock import MagicMock, patch

from scenecast.core.exceptions import MediaEncodingError
from scenecast.services.ffmpeg_runner import FFmpegRunner
from scenecast.services.media_inspector import MediaInspector, parse_frame_rate

FFPROBE_OUTPUT = {
    "format": {"duration": "12.480000", "bit_rate": "2500000"},
    "streams": [
        {"codec_type": "video", "codec_name": "h264", "width": 720, "height": 1280, "r_frame_rate": "30/1"},
        {"codec_type": "audio", "codec_name": "aac"},
    ],
}


@patch("scenecast.services.ffmpeg_runner.subprocess.run")
def test_ffmpeg_run_passes_args(mock_run, settings, logger):
    FFmpegRunner(settings, logger).run(["-y", "-i", "in.mp4", "out.mp4"])

    cmd = mock_run.call_args[0][0]
    assert cmd == ["ffmpeg", "-y", "-i", "in.mp4", "out.mp4"]


@patch("scenecast.services.ffmpeg_runner.subprocess.run")
def test_ffmpeg_failure_carries_stderr(mock_run, settings, logger):
    mock_run.side_effect = subprocess.CalledProcessError(1, ["ffmpeg"], stderr=b"line one\nInvalid data found")

    with pytest.raises(MediaEncodingError) as exc_info:
        FFmpegRunner(settings, logger).run(["-i", "broken.mp4", "out.mp4"])

    assert exc_info.value.returncode == 1
    assert "Invalid data found" in str(exc_info.value)


@patch("scenecast.services.ffmpeg_runner.subprocess.run")
def test_ffmpeg_missing_binary(mock_run, settings, logger):
    mock_run.side_effect = FileNotFoundError("ffmpeg")

    with pytest.raises(MediaEncodingError):
        FFmpegRunner(settings, logger).run(["-version"])
    assert FFmpegRunner(settings, logger).is_available() is False


@pytest.mark.parametrize("value,expected", [("30/1", 30.0), ("30000/1001", 29.97), ("25", 25.0), ("0/0", 0.0), (None, 0.0)])
def test_parse_frame_rate(value, expected):
    assert parse_frame_rate(value) == pytest.approx(expected, abs=0.01)


@patch("scenecast.services.media_inspector.subprocess.run")
def test_inspect_video_metadata(mock_run, settings, logger, tmp_path):
    mock_run.return_value = MagicMock(stdout=json.dumps(FFPROBE_OUTPUT))

    metadata = MediaInspector(settings, logger).get_video_metadata(tmp_path / "video.mp4")

    assert metadata.duration == pytest.approx(12.48)
    assert metadata.width == 720
    assert metadata.height == 1280
    assert metadata.framerate == 30.0
    assert metadata.video_codec == "h264"
    assert metadata.audio_codec == "aac"


@patch("scenecast.services.media_inspector.subprocess.run")
def test_inspect_duration(mock_run, settings, logger, tmp_path):
    mock_run.return_value = MagicMock(stdout=json.dumps(FFPROBE_OUTPUT))

    assert MediaInspector(settings, logger).get_duration(tmp_path / "audio.mp3") == pytest.approx(12.48)


@patch("scenecast.services.media_inspector.subprocess.run")
def test_inspect_failure_returns_defaults(mock_run, settings, logger, tmp_path):
    mock_run.side_effect = FileNotFoundError("ffprobe")
    inspector = MediaInspector(settings, logger)

    assert inspector.get_duration(tmp_path / "audio.mp3") is None
    assert inspector.get_video_metadata(tmp_path / "video.mp4").video_codec == "unknown"
