"""TTS (Text-to-Speech) client abstraction for multiple providers."""

from pathlib import Path
from typing import Any, Optional

import requests
from gtts import gTTS, gTTSError
from pydub import AudioSegment

from scenecast.core.config import Settings
from scenecast.core.exceptions import SpeechSynthesisError

SUPPORTED_PROVIDERS = ("gtts", "openai", "elevenlabs", "stub")


class TTSClient:
    """TTS client supporting gTTS, OpenAI, ElevenLabs and a silent stub."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize TTS client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.provider = self._detect_provider()

    def _detect_provider(self) -> str:
        """Use the configured provider, or pick one from available credentials when set to 'auto'."""
        provider = (self.settings.tts_provider or "auto").lower()
        if provider in SUPPORTED_PROVIDERS:
            return provider
        if provider != "auto":
            self.logger.warning(f"Unknown TTS provider '{provider}', detecting from credentials")
        if self.settings.elevenlabs_api_key and self.settings.elevenlabs_voice_id:
            return "elevenlabs"
        if self.settings.openai_api_key:
            return "openai"
        return "gtts"

    def generate_speech(
        self,
        text: str,
        output_path: Path,
        language: str = "en",
        slow: bool = False,
    ) -> None:
        """
        Generate speech from text and save to file.

        Args:
            text: Text to convert to speech
            output_path: Path to save audio file
            language: Language code
            slow: Slow speech (gTTS only)

        Raises:
            ValueError: If text is empty
            SpeechSynthesisError: If the provider fails
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger.debug(f"Generating speech using {self.provider} provider for {len(text)} characters...")

        if self.provider == "elevenlabs":
            self._generate_elevenlabs(text, output_path)
        elif self.provider == "openai":
            self._generate_openai(text, output_path)
        elif self.provider == "stub":
            self._generate_stub(text, output_path)
        else:
            self._generate_gtts(text, output_path, language, slow)

    def _generate_gtts(self, text: str, output_path: Path, language: str, slow: bool) -> None:
        """Generate speech using Google Translate TTS."""
        try:
            tts = gTTS(text=text, lang=language, slow=slow, timeout=self.settings.tts_timeout_seconds)
            tts.save(str(output_path))
        except (gTTSError, AssertionError, ValueError) as e:
            raise SpeechSynthesisError(f"gTTS error: {e}") from e

    def _generate_elevenlabs(self, text: str, output_path: Path, voice_id: Optional[str] = None) -> None:
        """Generate speech using ElevenLabs API."""
        if not self.settings.elevenlabs_api_key:
            raise SpeechSynthesisError("ElevenLabs API key not configured")

        voice_id = voice_id or self.settings.elevenlabs_voice_id
        if not voice_id:
            raise SpeechSynthesisError("ElevenLabs voice ID not configured")

        url = f"https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }
        data = {
            "text": text,
            "model_id": "eleven_turbo_v2",
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
        }

        try:
            response = requests.post(url, json=data, headers=headers, timeout=self.settings.tts_timeout_seconds)
        except requests.exceptions.RequestException as e:
            raise SpeechSynthesisError(f"Network error calling ElevenLabs API: {e}") from e

        if response.status_code != 200:
            raise SpeechSynthesisError(f"ElevenLabs API returned status {response.status_code}: {response.text}")
        output_path.write_bytes(response.content)

    def _generate_openai(self, text: str, output_path: Path) -> None:
        """Generate speech using OpenAI TTS API."""
        from openai import OpenAI

        if not self.settings.openai_api_key:
            raise SpeechSynthesisError("OpenAI API key not configured")

        client = OpenAI(api_key=self.settings.openai_api_key, timeout=self.settings.tts_timeout_seconds)
        try:
            response = client.audio.speech.create(
                model="tts-1",
                voice=self.settings.openai_tts_voice,
                input=text,
                response_format=self.settings.audio_format,
            )
            response.write_to_file(str(output_path))
        except Exception as e:
            raise SpeechSynthesisError(f"OpenAI TTS API error: {e}") from e

    def _generate_stub(self, text: str, output_path: Path) -> None:
        """
        Generate silent audio sized to the text.

        Used for offline runs when no speech provider should be called.
        """
        self.logger.warning("Using stub TTS - generating silent audio placeholder")
        # 150 words per minute = 2.5 words per second
        duration_seconds = max(1.0, len(text.split()) / 2.5)
        silent_audio = AudioSegment.silent(duration=int(duration_seconds * 1000))
        fmt = output_path.suffix.lstrip(".") or self.settings.audio_format
        silent_audio.export(str(output_path), format=fmt)
