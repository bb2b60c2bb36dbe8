"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    See .env.example for a template.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="SceneCast", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional path to a rotating log file")

    # ========================================================================
    # LLM Settings (semantic segmentation)
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model name")
    llm_timeout_seconds: int = Field(default=30, description="Timeout for LLM requests")
    use_llm_for_segmentation: bool = Field(
        default=True,
        description="Try LLM-based semantic segmentation when a target scene count is given (default: true)",
    )

    # ========================================================================
    # Scene Segmentation Settings
    # ========================================================================
    scene_duration_seconds: float = Field(default=6.0, description="Target duration per scene in seconds")
    min_scene_length: int = Field(default=80, description="Minimum scene length in characters")
    max_scene_length: int = Field(default=300, description="Maximum scene length in characters (soft ceiling)")
    words_per_second: float = Field(default=2.5, description="Speaking rate used for scene length advisories")
    spacy_model: str = Field(
        default="en_core_web_sm",
        description="spaCy pipeline for entities and part-of-speech tags (blank English if not installed)",
    )

    # ========================================================================
    # TTS (Text-to-Speech) Settings
    # ========================================================================
    tts_provider: str = Field(
        default="gtts",
        description="TTS provider: 'gtts', 'openai', 'elevenlabs', 'stub', or 'auto' (detect from credentials)",
    )
    tts_language: str = Field(default="en", description="Narration language code")
    tts_slow: bool = Field(default=False, description="Slow speech rate for gTTS")
    tts_timeout_seconds: int = Field(default=30, description="Timeout for remote TTS requests")
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key")
    elevenlabs_voice_id: Optional[str] = Field(default=None, description="ElevenLabs voice ID")
    openai_tts_voice: str = Field(default="alloy", description="OpenAI TTS voice")
    audio_format: str = Field(default="mp3", description="Audio container for narration files")
    words_per_minute: int = Field(default=150, description="Speaking rate for text-based duration estimates")
    duration_tolerance_seconds: float = Field(
        default=0.5, description="Allowed difference between narration and target duration"
    )

    # ========================================================================
    # Stock Media (Pexels) Settings
    # ========================================================================
    pexels_api_key: Optional[str] = Field(default=None, description="Pexels API key")
    pexels_photo_search_url: str = Field(
        default="https://api.pexels.com/v1/search", description="Pexels photo search endpoint"
    )
    pexels_video_search_url: str = Field(
        default="https://api.pexels.com/videos/search", description="Pexels video search endpoint"
    )
    photo_search_timeout_seconds: int = Field(default=10, description="Photo search timeout")
    video_search_timeout_seconds: int = Field(default=15, description="Video search timeout")
    download_timeout_seconds: int = Field(default=30, description="Media download timeout")
    max_search_results: int = Field(default=15, description="Maximum candidates gathered per scene")
    max_queries_per_scene: int = Field(default=5, description="Maximum search queries per scene")
    visual_orientation: str = Field(default="portrait", description="Requested media orientation")
    download_quality: str = Field(default="large", description="Requested photo size")
    prefer_videos: bool = Field(default=False, description="Also search stock videos when photos are scarce")
    ensure_diversity: bool = Field(default=True, description="Favour photographers not used yet in this session")
    fallback_image_url: str = Field(
        default="https://images.pexels.com/photos/3184291/pexels-photo-3184291.jpeg",
        description="Image used when no candidate is found for a scene",
    )
    user_agent: str = Field(default="scenecast/1.0", description="User-Agent header for outbound requests")

    # ========================================================================
    # Rendering Settings
    # ========================================================================
    ffmpeg_binary: str = Field(default="ffmpeg", description="Path to the ffmpeg binary")
    ffprobe_binary: str = Field(default="ffprobe", description="Path to the ffprobe binary")
    video_resolution: str = Field(default="720p", description="Output resolution preset: 480p, 720p or 1080p")
    video_framerate: int = Field(default=30, description="Output framerate")
    video_codec: str = Field(default="libx264", description="Video codec")
    audio_codec: str = Field(default="aac", description="Audio codec")
    output_format: str = Field(default="mp4", description="Output container")
    include_subtitles: bool = Field(default=True, description="Write a WebVTT subtitle track")

    # ========================================================================
    # Pacing & Parallelism Settings
    # ========================================================================
    audio_scene_delay_seconds: float = Field(default=1.0, description="Pause between narration requests")
    visual_scene_delay_seconds: float = Field(default=1.0, description="Pause between stock-media lookups")
    render_scene_delay_seconds: float = Field(default=0.5, description="Pause between scene renders")
    max_parallel_tts: int = Field(
        default=1,
        description="Maximum concurrent narration requests (default: 1, sequential)",
    )

    # ========================================================================
    # Storage Settings
    # ========================================================================
    temp_dir: str = Field(default="temp", description="Working directory for intermediate files")
    output_dir: str = Field(default="outputs/videos", description="Directory for compiled videos")
    storage_path: str = Field(default="storage/sessions", description="Storage path for session state")


# Global settings instance
settings = Settings()
