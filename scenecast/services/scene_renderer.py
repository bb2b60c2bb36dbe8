"""Scene Renderer - encodes one vertical clip per scene with ffmpeg."""

import math
import time
from pathlib import Path
from typing import Any, Optional

from scenecast.core.config import Settings
from scenecast.core.exceptions import SceneRenderError
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import CompileOptions, Scene, SceneRenderResult, VisualType
from scenecast.services.ffmpeg_runner import FFmpegRunner
from scenecast.services.media_inspector import MediaInspector
from scenecast.utils.error_handler import format_error_message, get_fallback_suggestion
from scenecast.utils.io_utils import file_size

# name: (width, height, video bitrate)
RESOLUTION_PRESETS = {
    "480p": (480, 854, "1000k"),
    "720p": (720, 1280, "2500k"),
    "1080p": (1080, 1920, "4000k"),
}
DEFAULT_RESOLUTION = "720p"


def resolve_preset(resolution: str) -> tuple[int, int, str]:
    """Look up a resolution preset, defaulting to 720p for unknown names."""
    return RESOLUTION_PRESETS.get(resolution, RESOLUTION_PRESETS[DEFAULT_RESOLUTION])


def scale_and_pad_filter(width: int, height: int) -> str:
    """Fit the input inside width x height and letterbox the rest."""
    return (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1"
    )


class SceneRenderer:
    """Combines a scene's visual and narration into a temporary clip."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        ffmpeg: Optional[FFmpegRunner] = None,
        media_inspector: Optional[MediaInspector] = None,
    ):
        """
        Initialize scene renderer.

        Args:
            settings: Application settings
            logger: Logger instance
            ffmpeg: Optional encoder wrapper
            media_inspector: Optional inspector used when a scene has no measured duration
        """
        self.settings = settings
        self.logger = logger
        self.ffmpeg = ffmpeg or FFmpegRunner(settings, logger)
        self.media_inspector = media_inspector or MediaInspector(settings, logger)

    def check_preconditions(self, scene: Scene) -> tuple[Path, Path]:
        """
        Make sure both inputs exist before the encoder is started.

        Returns:
            (visual path, audio path)

        Raises:
            SceneRenderError: If either input is missing or empty
        """
        if not scene.visual or not scene.visual.selected.local_path:
            raise SceneRenderError(scene.id, "no downloaded visual")
        if not scene.audio or not scene.audio.file_path:
            raise SceneRenderError(scene.id, "no narration audio")

        visual_path = Path(scene.visual.selected.local_path)
        audio_path = Path(scene.audio.file_path)
        for label, path in (("visual", visual_path), ("audio", audio_path)):
            if file_size(path) == 0:
                raise SceneRenderError(scene.id, f"{label} file missing or empty: {path}")
        return visual_path, audio_path

    def clip_duration(self, scene: Scene, audio_path: Path) -> int:
        """Measured duration in whole seconds, reading the audio file when the scene has none."""
        if scene.actual_duration:
            return max(1, scene.actual_duration)
        measured = self.media_inspector.get_duration(audio_path)
        if measured:
            return max(1, math.ceil(measured))
        return max(1, math.ceil(scene.duration))

    def build_args(
        self,
        visual_path: Path,
        audio_path: Path,
        output_path: Path,
        duration: int,
        options: CompileOptions,
        is_video: bool = False,
    ) -> list[str]:
        """ffmpeg arguments for one scene clip."""
        width, height, bitrate = resolve_preset(options.resolution)
        loop_args = ["-stream_loop", "-1"] if is_video else ["-loop", "1"]
        return [
            "-y",
            *loop_args,
            "-i", str(visual_path),
            "-i", str(audio_path),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-c:v", options.video_codec,
            "-c:a", options.audio_codec,
            "-r", str(options.framerate),
            "-vf", scale_and_pad_filter(width, height),
            "-b:v", bitrate,
            "-t", str(duration),
            "-pix_fmt", "yuv420p",
            str(output_path),
        ]

    def render(self, scene: Scene, session: PipelineSession, options: CompileOptions) -> SceneRenderResult:
        """
        Render one scene clip.

        Args:
            scene: Scene with audio and visual
            session: Current pipeline session
            options: Encoding options

        Returns:
            Successful render result

        Raises:
            SceneRenderError: If inputs are missing or the output is empty
            MediaEncodingError: If ffmpeg fails
        """
        visual_path, audio_path = self.check_preconditions(scene)
        duration = self.clip_duration(scene, audio_path)
        output_path = session.temp_path / f"temp_scene_{scene.id}.mp4"
        is_video = scene.visual.selected.type == VisualType.VIDEO

        self.logger.info(f"🎬 Rendering scene {scene.id} ({duration}s, {options.resolution})")
        self.ffmpeg.run(self.build_args(visual_path, audio_path, output_path, duration, options, is_video))

        size = file_size(output_path)
        if size == 0:
            raise SceneRenderError(scene.id, f"encoder produced no output at {output_path}")

        return SceneRenderResult(
            success=True,
            scene_id=scene.id,
            output_path=str(output_path),
            file_name=output_path.name,
            file_size=size,
            duration=float(duration),
            resolution=options.resolution,
        )

    def render_all(
        self,
        scenes: list[Scene],
        session: PipelineSession,
        options: CompileOptions,
    ) -> list[SceneRenderResult]:
        """
        Render scenes in id order, recording per-scene failures instead of raising.

        Args:
            scenes: Scenes to render
            session: Current pipeline session
            options: Encoding options

        Returns:
            One result per scene, in id order
        """
        results: list[SceneRenderResult] = []
        for i, scene in enumerate(sorted(scenes, key=lambda s: s.id)):
            if i > 0 and self.settings.render_scene_delay_seconds > 0:
                time.sleep(self.settings.render_scene_delay_seconds)
            try:
                result = self.render(scene, session, options)
                if scene.id not in session.rendered_scene_ids:
                    session.rendered_scene_ids.append(scene.id)
            except Exception as e:
                self.logger.error(
                    format_error_message(
                        "Rendering scene clip",
                        e,
                        context={"scene_id": scene.id, "session_id": session.session_id},
                        suggestion=get_fallback_suggestion("Media Encoding", e),
                    )
                )
                result = SceneRenderResult(success=False, scene_id=scene.id, error=str(e), resolution=options.resolution)
            results.append(result)

        ok = sum(1 for r in results if r.success)
        self.logger.info(f"Rendered {ok}/{len(results)} scene clips")
        return results
