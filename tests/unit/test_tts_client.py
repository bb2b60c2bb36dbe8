"""Tests for the TTS client."""

import pytest
from unittest.mock import MagicMock, patch

from scenecast.core.exceptions import SpeechSynthesisError
from scenecast.services.tts_client import TTSClient


def test_provider_auto_detects_elevenlabs(settings, logger):
    settings = settings.model_copy(
        update={"tts_provider": "auto", "elevenlabs_api_key": "key", "elevenlabs_voice_id": "voice"}
    )

    assert TTSClient(settings, logger).provider == "elevenlabs"


def test_provider_auto_defaults_to_gtts(settings, logger):
    settings = settings.model_copy(update={"tts_provider": "auto"})

    assert TTSClient(settings, logger).provider == "gtts"


def test_empty_text_rejected(settings, logger, tmp_path):
    client = TTSClient(settings, logger)

    with pytest.raises(ValueError):
        client.generate_speech("   ", tmp_path / "out.mp3")


@patch("scenecast.services.tts_client.gTTS")
def test_gtts_provider_saves_file(mock_gtts, settings, logger, tmp_path):
    settings = settings.model_copy(update={"tts_provider": "gtts"})
    client = TTSClient(settings, logger)
    output_path = tmp_path / "audio" / "scene_1_audio.mp3"

    client.generate_speech("Hello there.", output_path, language="en", slow=False)

    mock_gtts.assert_called_once_with(text="Hello there.", lang="en", slow=False, timeout=settings.tts_timeout_seconds)
    mock_gtts.return_value.save.assert_called_once_with(str(output_path))


@patch("scenecast.services.tts_client.requests.post")
def test_elevenlabs_error_status_raises(mock_post, settings, logger, tmp_path):
    settings = settings.model_copy(
        update={"tts_provider": "elevenlabs", "elevenlabs_api_key": "key", "elevenlabs_voice_id": "voice"}
    )
    mock_post.return_value = MagicMock(status_code=401, text="unauthorized")
    client = TTSClient(settings, logger)

    with pytest.raises(SpeechSynthesisError):
        client.generate_speech("Hello there.", tmp_path / "out.mp3")


@patch("scenecast.services.tts_client.requests.post")
def test_elevenlabs_writes_response_body(mock_post, settings, logger, tmp_path):
    settings = settings.model_copy(
        update={"tts_provider": "elevenlabs", "elevenlabs_api_key": "key", "elevenlabs_voice_id": "voice"}
    )
    mock_post.return_value = MagicMock(status_code=200, content=b"mp3-bytes")
    client = TTSClient(settings, logger)
    output_path = tmp_path / "out.mp3"

    client.generate_speech("Hello there.", output_path)

    assert output_path.read_bytes() == b"mp3-bytes"
