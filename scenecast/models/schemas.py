"""Pydantic models and schemas for the scene pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ============================================================================
# Enums
# ============================================================================


class FitAction(str, Enum):
    """How narration length relates to the scene's target duration."""

    PERFECT_FIT = "perfect-fit"
    PADDING_NEEDED = "padding-needed"
    TRIM_NEEDED = "trim-needed"
    NONE = "none"


class FitQuality(str, Enum):
    """Coarse rating of actual/target narration duration ratio."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class VisualType(str, Enum):
    """Kind of stock media."""

    IMAGE = "image"
    VIDEO = "video"


# ============================================================================
# Audio Models
# ============================================================================


class SceneAudio(BaseModel):
    """Narration audio produced for one scene."""

    success: bool = Field(..., description="Whether the audio file was produced")
    scene_id: int = Field(..., description="Scene this audio belongs to")
    file_path: Optional[str] = Field(default=None, description="Path to the audio file")
    file_name: Optional[str] = Field(default=None, description="Audio file name")
    file_size: int = Field(default=0, description="File size in bytes")
    duration: float = Field(default=0.0, description="Measured duration in seconds")
    estimated_duration: float = Field(default=0.0, description="Text-based duration estimate in seconds")
    cleaned_text: str = Field(default="", description="Text actually sent to speech synthesis")
    language: str = Field(default="en", description="Narration language")
    audio_format: str = Field(default="mp3", description="Audio container")
    optimization_applied: FitAction = Field(default=FitAction.NONE, description="Advisory fit action")
    target_duration: float = Field(default=0.0, description="Scene target duration in seconds")
    padding_needed: float = Field(default=0.0, description="Seconds short of the target")
    trimming_needed: float = Field(default=0.0, description="Seconds over the target")
    fit_quality: Optional[FitQuality] = Field(default=None, description="Rating of actual/target ratio")
    fallback_used: bool = Field(default=False, description="Duration came from a fallback estimate")
    error: Optional[str] = Field(default=None, description="Error message when synthesis failed")
    generated_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


# ============================================================================
# Visual Models
# ============================================================================


class VisualDimensions(BaseModel):
    """Pixel size of a visual."""

    width: int = Field(default=0, description="Width in pixels")
    height: int = Field(default=0, description="Height in pixels")
    aspect_ratio: float = Field(default=0.0, description="Height divided by width")

    @classmethod
    def from_size(cls, width: int, height: int) -> "VisualDimensions":
        """Build dimensions, computing the height/width ratio."""
        ratio = (height / width) if width else 0.0
        return cls(width=width, height=height, aspect_ratio=ratio)


class VisualCandidate(BaseModel):
    """A stock-media search hit, with scores once evaluated."""

    id: str = Field(..., description="Source identifier")
    type: VisualType = Field(default=VisualType.IMAGE, description="image or video")
    download_url: str = Field(..., description="URL to download the asset")
    original_url: Optional[str] = Field(default=None, description="Page URL at the source")
    thumbnail_url: Optional[str] = Field(default=None, description="Small preview URL")
    description: str = Field(default="", description="Alt text or generated description")
    photographer: str = Field(default="Unknown", description="Credited author")
    photographer_url: Optional[str] = Field(default=None, description="Author profile URL")
    dimensions: VisualDimensions = Field(default_factory=VisualDimensions, description="Asset size")
    duration: Optional[float] = Field(default=None, description="Clip length for videos")
    avg_color: Optional[str] = Field(default=None, description="Average colour reported by the source")
    source: str = Field(default="pexels", description="Media source name")
    relevance_score: float = Field(default=0.0, description="Keyword relevance (0-10)")
    quality_score: float = Field(default=0.0, description="Resolution/orientation quality (0-10)")
    diversity_score: float = Field(default=0.0, description="Photographer novelty (0-10)")
    suitability_score: float = Field(default=0.0, description="Vertical-video suitability (0-10)")
    total_score: float = Field(default=0.0, description="Weighted total (0-10)")
    is_fallback: bool = Field(default=False, description="Fixed fallback asset, not a search hit")


class SelectedVisual(VisualCandidate):
    """The candidate chosen for a scene plus its download outcome."""

    scene_id: int = Field(..., description="Scene this visual belongs to")
    selection_reason: str = Field(default="", description="Human-readable selection explanation")
    selected_at: datetime = Field(default_factory=datetime.now, description="Selection timestamp")
    local_path: Optional[str] = Field(default=None, description="Downloaded file path")
    file_name: Optional[str] = Field(default=None, description="Downloaded file name")
    file_size: int = Field(default=0, description="Downloaded size in bytes")
    download_success: bool = Field(default=False, description="Whether the download succeeded")
    download_error: Optional[str] = Field(default=None, description="Download failure message")
    fallback_used: bool = Field(default=False, description="Whether the fallback asset was used")


class SceneVisual(BaseModel):
    """Visual resolution outcome for a scene."""

    selected: SelectedVisual = Field(..., description="Chosen visual")
    alternatives: list[VisualCandidate] = Field(default_factory=list, description="Up to three runners-up")
    search_query: str = Field(default="", description="Primary search query")
    search_results: int = Field(default=0, description="Number of unique candidates considered")
    selection_reason: str = Field(default="", description="Why the chosen visual won")


# ============================================================================
# Scene Model
# ============================================================================


class Scene(BaseModel):
    """One contiguous chunk of narration, rendered as one clip."""

    id: int = Field(..., ge=1, description="1-based scene index (playback order)")
    text: str = Field(..., min_length=1, description="Cleaned narration text")
    word_count: int = Field(default=0, description="Number of words")
    estimated_reading_time: int = Field(default=0, description="ceil(words / 3) seconds")
    duration: float = Field(default=6.0, gt=0, description="Target duration in seconds")
    estimated_speech_time: float = Field(default=0.0, description="Estimated narration time in seconds")
    keywords: list[str] = Field(default_factory=list, description="General keywords (max 6)")
    primary_keywords: list[str] = Field(default_factory=list, description="Best keywords (max 3)")
    entities: list[str] = Field(default_factory=list, description="Named entity hits (max 3)")
    visual_concepts: list[str] = Field(default_factory=list, description="Descriptive adjectives (max 3)")
    audio: Optional[SceneAudio] = Field(default=None, description="Narration audio")
    visual: Optional[SceneVisual] = Field(default=None, description="Resolved visual")
    actual_duration: Optional[int] = Field(default=None, ge=1, description="Whole seconds of measured audio")

    @property
    def effective_duration(self) -> float:
        """Duration the renderer will honour: measured if known, else the target."""
        return float(self.actual_duration) if self.actual_duration else self.duration


# ============================================================================
# Stage Options
# ============================================================================


class SegmentationOptions(BaseModel):
    """Options for splitting a script into scenes."""

    min_scene_length: int = Field(default=80, ge=1, description="Minimum scene length in characters")
    max_scene_length: int = Field(default=300, ge=1, description="Maximum scene length in characters")
    target_scene_count: Optional[int] = Field(default=None, ge=1, description="Desired number of scenes")
    scene_duration_seconds: float = Field(default=6.0, gt=0, description="Target seconds per scene")
    words_per_second: float = Field(default=2.5, gt=0, description="Speaking rate for advisories")


class AudioOptions(BaseModel):
    """Options for narration synthesis."""

    language: str = Field(default="en", description="Narration language")
    slow: bool = Field(default=False, description="Slow speech")
    scene_duration_seconds: float = Field(default=6.0, gt=0, description="Target seconds per scene")
    audio_format: str = Field(default="mp3", description="Audio container")


class VisualOptions(BaseModel):
    """Options for stock-media resolution."""

    orientation: str = Field(default="portrait", description="Requested orientation")
    max_results: int = Field(default=15, ge=1, description="Maximum candidates per scene")
    ensure_diversity: bool = Field(default=True, description="Score photographer novelty")
    prefer_videos: bool = Field(default=False, description="Search videos when photos are scarce")
    download_quality: str = Field(default="large", description="Requested photo size")


class CompileOptions(BaseModel):
    """Options for per-scene rendering and final compilation."""

    resolution: str = Field(default="720p", description="480p, 720p or 1080p")
    framerate: int = Field(default=30, ge=1, description="Frames per second")
    video_codec: str = Field(default="libx264", description="Video codec")
    audio_codec: str = Field(default="aac", description="Audio codec")
    include_subtitles: bool = Field(default=True, description="Write a WebVTT track")
    output_format: str = Field(default="mp4", description="Output container")


# ============================================================================
# Render & Compile Models
# ============================================================================


class SceneRenderResult(BaseModel):
    """Outcome of rendering one scene clip."""

    success: bool = Field(..., description="Whether the clip exists")
    scene_id: int = Field(..., description="Rendered scene")
    output_path: Optional[str] = Field(default=None, description="Clip path")
    file_name: Optional[str] = Field(default=None, description="Clip file name")
    file_size: int = Field(default=0, description="Clip size in bytes")
    duration: float = Field(default=0.0, description="Clip duration in seconds")
    resolution: Optional[str] = Field(default=None, description="Resolution preset used")
    error: Optional[str] = Field(default=None, description="Failure message")
    processed_at: datetime = Field(default_factory=datetime.now, description="Render timestamp")


class VideoMetadata(BaseModel):
    """Measured stream info and compile facts for the final video."""

    duration: float = Field(default=0.0, description="Duration in seconds")
    bitrate: int = Field(default=0, description="Overall bitrate in bits/s")
    width: int = Field(default=0, description="Frame width")
    height: int = Field(default=0, description="Frame height")
    framerate: float = Field(default=0.0, description="Frames per second")
    video_codec: str = Field(default="unknown", description="Video codec name")
    audio_codec: str = Field(default="unknown", description="Audio codec name")
    file_size: int = Field(default=0, description="File size in bytes")
    total_scenes: int = Field(default=0, description="Number of clips concatenated")
    resolution: Optional[str] = Field(default=None, description="Resolution preset")
    includes_subtitles: bool = Field(default=False, description="Whether a subtitle track was written")


class SceneSummary(BaseModel):
    """Per-scene entry of the final manifest."""

    id: int = Field(..., description="Scene id")
    start_time: str = Field(..., description="Cumulative start (HH:MM:SS)")
    end_time: str = Field(..., description="Cumulative end (HH:MM:SS)")
    text: str = Field(default="", description="Narration preview")
    visual_used: Optional[str] = Field(default=None, description="Visual file name")
    audio_file: Optional[str] = Field(default=None, description="Audio file name")
    success: bool = Field(default=True, description="Whether the clip was included")


class ProcessingInfo(BaseModel):
    """Timing facts for a compilation run."""

    start_time: datetime = Field(..., description="Compilation start")
    end_time: datetime = Field(..., description="Compilation end")
    processing_time: float = Field(..., description="Wall-clock seconds")
    session_id: str = Field(..., description="Pipeline session")


class CompiledVideo(BaseModel):
    """Final manifest for a compiled video."""

    video_path: str = Field(..., description="Output file path")
    file_name: str = Field(..., description="Output file name")
    metadata: VideoMetadata = Field(..., description="Measured stream info and compile facts")
    processing: ProcessingInfo = Field(..., description="Timing facts")
    scenes: list[SceneSummary] = Field(default_factory=list, description="Included scenes in order")
    subtitle_file: Optional[str] = Field(default=None, description="WebVTT path")
    concat_list_file: Optional[str] = Field(default=None, description="Concat list path")


# ============================================================================
# Stage Reports
# ============================================================================


class StageResult(BaseModel, Generic[T]):
    """Uniform envelope returned by every stage entry point."""

    success: bool = Field(..., description="Whether the stage produced usable output")
    data: Optional[T] = Field(default=None, description="Stage payload")
    error: Optional[str] = Field(default=None, description="Failure message")


class SegmentationReport(BaseModel):
    """Result of the text stage."""

    total_scenes: int = Field(..., description="Number of scenes")
    estimated_duration: float = Field(..., description="Sum of target durations")
    scenes: list[Scene] = Field(default_factory=list, description="Scenes with keywords")
    original_length: int = Field(default=0, description="Raw text length")
    cleaned_length: int = Field(default=0, description="Cleaned text length")
    average_scene_length: int = Field(default=0, description="Mean scene length in characters")
    session_id: Optional[str] = Field(default=None, description="Session that owns the scenes")


class AudioStageReport(BaseModel):
    """Aggregates for the audio stage."""

    scenes: list[Scene] = Field(default_factory=list, description="Scenes with audio attached")
    total_scenes: int = Field(default=0, description="Scenes processed")
    successful_generations: int = Field(default=0, description="Scenes with audio")
    failed_generations: int = Field(default=0, description="Scenes without audio")
    total_audio_duration: float = Field(default=0.0, description="Sum of measured durations")
    average_duration: float = Field(default=0.0, description="Mean measured duration")
    success_rate: float = Field(default=0.0, description="Percentage of successful scenes")
    fit_quality_distribution: dict[str, int] = Field(default_factory=dict, description="Counts per fit quality")
    session_id: Optional[str] = Field(default=None, description="Pipeline session")


class VisualStageReport(BaseModel):
    """Aggregates for the visuals stage."""

    scenes: list[Scene] = Field(default_factory=list, description="Scenes with visuals attached")
    total_scenes: int = Field(default=0, description="Scenes processed")
    successful_downloads: int = Field(default=0, description="Scenes whose visual is on disk")
    failed_downloads: int = Field(default=0, description="Scenes whose download failed")
    fallbacks_used: int = Field(default=0, description="Scenes using the fixed fallback image")
    unique_photographers: int = Field(default=0, description="Distinct photographers downloaded")
    session_id: Optional[str] = Field(default=None, description="Pipeline session")


# ============================================================================
# API Request Models
# ============================================================================


class ProcessTextRequest(BaseModel):
    """Request for the text stage."""

    script: str = Field(..., min_length=1, description="Raw narration script")
    min_scene_length: int = Field(default=80, ge=1, description="Minimum scene length in characters")
    max_scene_length: int = Field(default=300, ge=1, description="Maximum scene length in characters")
    target_scene_count: Optional[int] = Field(default=None, ge=1, description="Desired number of scenes")
    scene_duration_seconds: float = Field(default=6.0, gt=0, description="Target seconds per scene")


class SessionStageRequest(BaseModel):
    """Request for a stage that continues an existing session."""

    session_id: str = Field(..., description="Session returned by the text stage")
    options: dict[str, Any] = Field(default_factory=dict, description="Stage option overrides")
