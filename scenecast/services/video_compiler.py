"""Video Compiler - renders scene clips and concatenates them into the final video."""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from scenecast.core.config import Settings
from scenecast.core.exceptions import MediaEncodingError, SceneValidationError
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import (
    CompiledVideo,
    CompileOptions,
    ProcessingInfo,
    Scene,
    SceneRenderResult,
    SceneSummary,
    StageResult,
)
from scenecast.services.ffmpeg_runner import FFmpegRunner
from scenecast.services.media_inspector import MediaInspector
from scenecast.services.scene_renderer import SceneRenderer
from scenecast.services.subtitle_builder import write_vtt
from scenecast.utils.error_handler import format_error_message, get_fallback_suggestion
from scenecast.utils.io_utils import file_size, format_file_size, format_timestamp, output_timestamp

CONCAT_LIST_NAME = "concat_list.txt"
SUBTITLE_FILE_NAME = "master_subtitles.vtt"
TEXT_PREVIEW_CHARS = 100


def validate_scenes_for_compile(scenes: Any) -> None:
    """
    Check stage input before rendering.

    Raises:
        SceneValidationError: If scenes is not a non-empty list of scenes with id and text
    """
    if not isinstance(scenes, list) or not scenes:
        raise SceneValidationError("Scenes must be a non-empty list")
    for i, scene in enumerate(scenes, 1):
        if not isinstance(scene, Scene):
            raise SceneValidationError(f"Scene {i} must be a Scene")
        if not scene.text.strip():
            raise SceneValidationError(f"Scene {scene.id} text cannot be empty")


def concat_list_line(path: Path) -> str:
    """One concat-demuxer entry, with single quotes escaped."""
    escaped = str(path.resolve()).replace("'", "'\\''")
    return f"file '{escaped}'"


def text_preview(text: str, limit: int = TEXT_PREVIEW_CHARS) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


class VideoCompiler:
    """Produces the final vertical video and its manifest."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        renderer: Optional[SceneRenderer] = None,
        ffmpeg: Optional[FFmpegRunner] = None,
        media_inspector: Optional[MediaInspector] = None,
    ):
        """
        Initialize video compiler.

        Args:
            settings: Application settings
            logger: Logger instance
            renderer: Optional scene renderer
            ffmpeg: Optional encoder wrapper
            media_inspector: Optional media inspector
        """
        self.settings = settings
        self.logger = logger
        self.ffmpeg = ffmpeg or FFmpegRunner(settings, logger)
        self.media_inspector = media_inspector or MediaInspector(settings, logger)
        self.renderer = renderer or SceneRenderer(settings, logger, ffmpeg=self.ffmpeg, media_inspector=self.media_inspector)

    def default_options(self) -> CompileOptions:
        return CompileOptions(
            resolution=self.settings.video_resolution,
            framerate=self.settings.video_framerate,
            video_codec=self.settings.video_codec,
            audio_codec=self.settings.audio_codec,
            include_subtitles=self.settings.include_subtitles,
            output_format=self.settings.output_format,
        )

    def write_concat_list(self, results: list[SceneRenderResult], session: PipelineSession) -> Path:
        list_path = session.temp_path / CONCAT_LIST_NAME
        lines = [concat_list_line(Path(r.output_path)) for r in results]
        list_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return list_path

    def concatenate(self, list_path: Path, output_path: Path) -> None:
        """Join clips listed in ``list_path`` without re-encoding."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.ffmpeg.run(["-y", "-f", "concat", "-safe", "0", "-i", str(list_path), "-c", "copy", str(output_path)])

    @staticmethod
    def build_summaries(scenes: list[Scene]) -> list[SceneSummary]:
        """Per-scene manifest entries with cumulative start and end times."""
        summaries = []
        offset = 0.0
        for scene in scenes:
            end = offset + scene.effective_duration
            summaries.append(
                SceneSummary(
                    id=scene.id,
                    start_time=format_timestamp(offset),
                    end_time=format_timestamp(end),
                    text=text_preview(scene.text),
                    visual_used=scene.visual.selected.file_name if scene.visual else None,
                    audio_file=scene.audio.file_name if scene.audio else None,
                )
            )
            offset = end
        return summaries

    def compile(
        self,
        scenes: list[Scene],
        session: PipelineSession,
        options: Optional[CompileOptions] = None,
    ) -> StageResult[CompiledVideo]:
        """
        Render every scene and concatenate the successful clips.

        Args:
            scenes: Scenes with audio and visuals
            session: Current pipeline session
            options: Encoding options (defaults from settings)

        Returns:
            Stage result with the final manifest

        Raises:
            SceneValidationError: If the input is malformed
        """
        validate_scenes_for_compile(scenes)
        options = options or self.default_options()
        session.ensure_dirs()
        start_time = datetime.now()

        self.logger.info("=" * 60)
        self.logger.info(f"Compiling {len(scenes)} scenes at {options.resolution} ({session.session_id})")
        self.logger.info("=" * 60)

        ordered = sorted(scenes, key=lambda s: s.id)
        results = self.renderer.render_all(ordered, session, options)
        succeeded = [r for r in results if r.success]
        if not succeeded:
            return StageResult(success=False, error="No scene could be rendered")

        included_ids = {r.scene_id for r in succeeded}
        included = [s for s in ordered if s.id in included_ids]
        skipped = [r.scene_id for r in results if not r.success]
        if skipped:
            self.logger.warning(f"⚠️ Skipping scenes without a clip: {skipped}")

        list_path = self.write_concat_list(succeeded, session)
        output_path = session.output_path / f"compiled_video_{output_timestamp()}.{options.output_format}"
        try:
            self.concatenate(list_path, output_path)
        except MediaEncodingError as e:
            self.logger.error(
                format_error_message(
                    "Concatenating scene clips",
                    e,
                    context={"session_id": session.session_id, "clips": len(succeeded)},
                    suggestion=get_fallback_suggestion("Media Encoding", e),
                )
            )
            return StageResult(success=False, error=str(e))

        subtitle_path = None
        if options.include_subtitles:
            subtitle_path = write_vtt(included, session.temp_path / SUBTITLE_FILE_NAME)
            self.logger.info(f"Subtitles written: {subtitle_path}")

        metadata = self.media_inspector.get_video_metadata(output_path)
        metadata = metadata.model_copy(
            update={
                "file_size": file_size(output_path),
                "total_scenes": len(included),
                "resolution": options.resolution,
                "includes_subtitles": subtitle_path is not None,
            }
        )

        end_time = datetime.now()
        manifest = CompiledVideo(
            video_path=str(output_path),
            file_name=output_path.name,
            metadata=metadata,
            processing=ProcessingInfo(
                start_time=start_time,
                end_time=end_time,
                processing_time=round((end_time - start_time).total_seconds(), 3),
                session_id=session.session_id,
            ),
            scenes=self.build_summaries(included),
            subtitle_file=str(subtitle_path) if subtitle_path else None,
            concat_list_file=str(list_path),
        )
        self.logger.info(
            f"✅ Compiled {output_path.name}: {len(included)} scenes, {format_file_size(metadata.file_size)}"
        )
        return StageResult(success=True, data=manifest)
