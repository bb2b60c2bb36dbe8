"""Audio Synthesizer - narration audio per scene with duration reconciliation."""

import math
from pathlib import Path
from typing import Any, Optional

from scenecast.core.config import Settings
from scenecast.core.exceptions import SceneValidationError
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import AudioOptions, AudioStageReport, FitAction, FitQuality, Scene, SceneAudio, StageResult
from scenecast.services.media_inspector import MediaInspector
from scenecast.services.tts_client import TTSClient
from scenecast.utils.error_handler import format_error_message, get_fallback_suggestion
from scenecast.utils.io_utils import file_size, format_file_size
from scenecast.utils.parallel_executor import ParallelExecutor
from scenecast.utils.text_utils import clean_text_for_tts, estimate_spoken_duration

# Rough MP3 bitrate used when ffprobe cannot read the file.
BYTES_PER_SECOND_ESTIMATE = 1500
DEFAULT_DURATION_SECONDS = 5.0

# (low, high) ratio bands of actual/target duration, best first.
FIT_QUALITY_BANDS = [
    (FitQuality.EXCELLENT, 0.95, 1.05),
    (FitQuality.GOOD, 0.85, 1.15),
    (FitQuality.FAIR, 0.7, 1.3),
]


def classify_fit(actual: float, target: float, tolerance: float = 0.5) -> FitAction:
    """
    Classify narration length against the target duration.

    Args:
        actual: Measured duration in seconds
        target: Target duration in seconds
        tolerance: Allowed absolute difference in seconds

    Returns:
        perfect-fit, trim-needed or padding-needed
    """
    if abs(actual - target) <= tolerance:
        return FitAction.PERFECT_FIT
    if actual > target:
        return FitAction.TRIM_NEEDED
    return FitAction.PADDING_NEEDED


def rate_fit_quality(actual: float, target: float) -> FitQuality:
    """Rate the actual/target ratio as excellent, good, fair or poor."""
    if target <= 0:
        return FitQuality.POOR
    ratio = actual / target
    for quality, low, high in FIT_QUALITY_BANDS:
        if low <= ratio <= high:
            return quality
    return FitQuality.POOR


def validate_scenes_for_audio(scenes: Any) -> None:
    """
    Check stage input before any scene is processed.

    Raises:
        SceneValidationError: If scenes is not a non-empty list of scenes with text
    """
    if not isinstance(scenes, list):
        raise SceneValidationError("Scenes must be a list")
    if not scenes:
        raise SceneValidationError("Scenes list cannot be empty")
    for i, scene in enumerate(scenes, 1):
        if not isinstance(scene, Scene):
            raise SceneValidationError(f"Scene {i} must be a Scene")
        if not scene.text or not scene.text.strip():
            raise SceneValidationError(f"Scene {i} text cannot be empty")


class AudioSynthesizer:
    """Produces one narration file per scene and measures it."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        tts_client: Optional[TTSClient] = None,
        media_inspector: Optional[MediaInspector] = None,
    ):
        """
        Initialize audio synthesizer.

        Args:
            settings: Application settings
            logger: Logger instance
            tts_client: Optional speech client (created from settings if omitted)
            media_inspector: Optional inspector (created from settings if omitted)
        """
        self.settings = settings
        self.logger = logger
        self.tts_client = tts_client or TTSClient(settings, logger)
        self.media_inspector = media_inspector or MediaInspector(settings, logger)
        self.parallel_executor = ParallelExecutor(settings, logger)

    def default_options(self) -> AudioOptions:
        return AudioOptions(
            language=self.settings.tts_language,
            slow=self.settings.tts_slow,
            scene_duration_seconds=self.settings.scene_duration_seconds,
            audio_format=self.settings.audio_format,
        )

    def measure_duration(self, audio_path: Path) -> tuple[float, bool]:
        """
        Measure an audio file.

        Args:
            audio_path: Audio file

        Returns:
            (duration in seconds, whether a fallback estimate was used)
        """
        duration = self.media_inspector.get_duration(audio_path)
        if duration:
            return duration, False
        try:
            size = audio_path.stat().st_size
        except OSError:
            return DEFAULT_DURATION_SECONDS, True
        return max(1.0, size / BYTES_PER_SECOND_ESTIMATE), True

    def synthesize(self, scene: Scene, options: AudioOptions, session: PipelineSession) -> SceneAudio:
        """
        Generate and measure narration for one scene.

        Failures are returned as an unsuccessful record rather than raised.

        Args:
            scene: Scene to narrate
            options: Audio options
            session: Current pipeline session

        Returns:
            Audio record for the scene
        """
        cleaned = clean_text_for_tts(scene.text)
        target = options.scene_duration_seconds
        estimated = estimate_spoken_duration(cleaned, self.settings.words_per_minute)
        file_name = f"scene_{scene.id}_audio.{options.audio_format}"
        audio_path = session.temp_path / file_name

        try:
            self.tts_client.generate_speech(cleaned, audio_path, language=options.language, slow=options.slow)
            if file_size(audio_path) == 0:
                raise ValueError(f"Speech provider produced an empty file: {audio_path}")
        except Exception as e:
            self.logger.error(
                format_error_message(
                    "Generating narration audio",
                    e,
                    context={"scene_id": scene.id, "session_id": session.session_id},
                    suggestion=get_fallback_suggestion("Speech Synthesis", e),
                )
            )
            return SceneAudio(
                success=False,
                scene_id=scene.id,
                estimated_duration=round(estimated, 2),
                cleaned_text=cleaned,
                language=options.language,
                audio_format=options.audio_format,
                target_duration=target,
                error=str(e),
            )

        duration, fallback_used = self.measure_duration(audio_path)
        fit = classify_fit(duration, target, self.settings.duration_tolerance_seconds)
        quality = rate_fit_quality(duration, target)
        size = file_size(audio_path)

        self.logger.info(
            f"✅ Scene {scene.id} audio: {duration:.2f}s for {target:.0f}s target "
            f"({fit.value}, {quality.value}, {format_file_size(size)})"
        )
        return SceneAudio(
            success=True,
            scene_id=scene.id,
            file_path=str(audio_path),
            file_name=file_name,
            file_size=size,
            duration=round(duration, 3),
            estimated_duration=round(estimated, 2),
            cleaned_text=cleaned,
            language=options.language,
            audio_format=options.audio_format,
            optimization_applied=fit,
            target_duration=target,
            padding_needed=round(max(0.0, target - duration), 3),
            trimming_needed=round(max(0.0, duration - target), 3),
            fit_quality=quality,
            fallback_used=fallback_used,
        )

    @staticmethod
    def apply_audio(scene: Scene, audio: SceneAudio) -> Scene:
        """Attach an audio record to a scene and set its authoritative duration."""
        update: dict[str, Any] = {"audio": audio, "estimated_speech_time": audio.estimated_duration}
        update["actual_duration"] = max(1, math.ceil(audio.duration)) if audio.success else None
        return scene.model_copy(update=update)

    def process_scenes(
        self,
        scenes: list[Scene],
        session: PipelineSession,
        options: Optional[AudioOptions] = None,
    ) -> StageResult[AudioStageReport]:
        """
        Narrate every scene and aggregate the results.

        Every scene is awaited before statistics are computed.

        Args:
            scenes: Scenes from the text stage
            session: Current pipeline session
            options: Audio options (defaults from settings)

        Returns:
            Stage result with updated scenes and statistics

        Raises:
            SceneValidationError: If the input is malformed
        """
        validate_scenes_for_audio(scenes)
        options = options or self.default_options()
        session.reset_audio()
        session.ensure_dirs()

        self.logger.info(f"🎙️ Generating narration for {len(scenes)} scenes ({self.tts_client.provider})")
        ordered = sorted(scenes, key=lambda s: s.id)
        tasks = [lambda scene=scene: self.synthesize(scene, options, session) for scene in ordered]
        outcomes = self.parallel_executor.execute_batch(
            tasks,
            task_names=[f"scene_{s.id}_audio" for s in ordered],
            delay_seconds=self.settings.audio_scene_delay_seconds,
        )

        updated: list[Scene] = []
        for scene, (audio, error) in zip(ordered, outcomes):
            if audio is None:
                audio = SceneAudio(success=False, scene_id=scene.id, target_duration=options.scene_duration_seconds, error=str(error))
            if audio.success:
                session.record_audio(scene.id, audio.duration)
            updated.append(self.apply_audio(scene, audio))

        report = self.build_report(updated, session)
        self.logger.info(
            f"Audio stage: {report.successful_generations}/{report.total_scenes} scenes, "
            f"{report.total_audio_duration:.1f}s total, distribution {report.fit_quality_distribution}"
        )
        if report.successful_generations == 0:
            return StageResult(success=False, data=report, error="Narration failed for every scene")
        return StageResult(success=True, data=report)

    @staticmethod
    def build_report(scenes: list[Scene], session: PipelineSession) -> AudioStageReport:
        """Aggregate statistics over scenes that already carry audio records."""
        audios = [s.audio for s in scenes if s.audio is not None]
        successful = [a for a in audios if a.success]
        distribution = {q.value: 0 for q in FitQuality}
        for audio in successful:
            if audio.fit_quality:
                distribution[audio.fit_quality.value] += 1

        total_duration = sum(a.duration for a in successful)
        return AudioStageReport(
            scenes=scenes,
            total_scenes=len(scenes),
            successful_generations=len(successful),
            failed_generations=len(scenes) - len(successful),
            total_audio_duration=round(total_duration, 3),
            average_duration=round(total_duration / len(successful), 3) if successful else 0.0,
            success_rate=round(len(successful) / len(scenes) * 100, 1) if scenes else 0.0,
            fit_quality_distribution=distribution,
            session_id=session.session_id,
        )
