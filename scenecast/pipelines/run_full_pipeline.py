"""Full pipeline orchestrator - script → scenes → narration → visuals → video."""

import argparse
import sys
from pathlib import Path
from typing import Any, Optional

from scenecast.core.config import Settings, settings
from scenecast.core.exceptions import SceneValidationError
from scenecast.core.logging_config import get_logger, setup_logging
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import (
    AudioOptions,
    AudioStageReport,
    CompiledVideo,
    CompileOptions,
    Scene,
    SegmentationOptions,
    SegmentationReport,
    StageResult,
    VisualOptions,
    VisualStageReport,
)
from scenecast.services.audio_synthesizer import AudioSynthesizer
from scenecast.services.cleanup import cleanup_session
from scenecast.services.keyword_extractor import KeywordExtractor
from scenecast.services.scene_segmenter import SceneSegmenter
from scenecast.services.video_compiler import VideoCompiler
from scenecast.services.visual_resolver import VisualResolver
from scenecast.storage.repository import (
    STAGE_AUDIO,
    STAGE_COMPILED,
    STAGE_SEGMENTED,
    STAGE_VISUALS,
    SceneRepository,
)


class ScenePipeline:
    """Runs the four processing stages and persists state between them."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        segmenter: Optional[SceneSegmenter] = None,
        keyword_extractor: Optional[KeywordExtractor] = None,
        audio_synthesizer: Optional[AudioSynthesizer] = None,
        visual_resolver: Optional[VisualResolver] = None,
        video_compiler: Optional[VideoCompiler] = None,
        repository: Optional[SceneRepository] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Application settings
            logger: Logger instance
            segmenter: Optional scene segmenter
            keyword_extractor: Optional keyword extractor
            audio_synthesizer: Optional audio synthesizer
            visual_resolver: Optional visual resolver
            video_compiler: Optional video compiler
            repository: Optional session repository
        """
        self.settings = settings
        self.logger = logger
        self.segmenter = segmenter or SceneSegmenter(settings, logger)
        self.keyword_extractor = keyword_extractor or KeywordExtractor(settings, logger)
        self.audio_synthesizer = audio_synthesizer or AudioSynthesizer(settings, logger)
        self.visual_resolver = visual_resolver or VisualResolver(settings, logger)
        self.video_compiler = video_compiler or VideoCompiler(settings, logger)
        self.repository = repository or SceneRepository(settings, logger)

    def process_text(
        self,
        script: str,
        options: Optional[SegmentationOptions] = None,
        session: Optional[PipelineSession] = None,
    ) -> StageResult[SegmentationReport]:
        """
        Stage 1: clean, segment and extract keywords.

        Raises:
            SceneValidationError: If the script is not a non-empty string
        """
        if not isinstance(script, str) or not script.strip():
            raise SceneValidationError("Script must be a non-empty string")

        options = options or self.segmenter.default_options()
        session = session or PipelineSession.create(self.settings)
        self.logger.info(f"📝 Processing script ({len(script)} chars) for {session.session_id}")

        scenes = self.segmenter.segment(script, options)
        if not scenes:
            return StageResult(success=False, error="Script produced no scenes after cleaning")

        scenes = self.keyword_extractor.extract_all(scenes)
        cleaned_length = sum(len(s.text) for s in scenes)
        report = SegmentationReport(
            total_scenes=len(scenes),
            estimated_duration=sum(s.duration for s in scenes),
            scenes=scenes,
            original_length=len(script),
            cleaned_length=cleaned_length,
            average_scene_length=round(cleaned_length / len(scenes)),
            session_id=session.session_id,
        )
        self.repository.save_stage(session, STAGE_SEGMENTED, scenes)
        return StageResult(success=True, data=report)

    def process_audio(
        self,
        session: PipelineSession,
        scenes: list[Scene],
        options: Optional[AudioOptions] = None,
    ) -> StageResult[AudioStageReport]:
        """Stage 2: narration audio for every scene."""
        result = self.audio_synthesizer.process_scenes(scenes, session, options)
        if result.data:
            self.repository.save_stage(session, STAGE_AUDIO, result.data.scenes)
        return result

    def process_visuals(
        self,
        session: PipelineSession,
        scenes: list[Scene],
        options: Optional[VisualOptions] = None,
    ) -> StageResult[VisualStageReport]:
        """Stage 3: one stock visual per scene."""
        result = self.visual_resolver.process_scenes(scenes, session, options)
        if result.data:
            self.repository.save_stage(session, STAGE_VISUALS, result.data.scenes)
        return result

    def process_video(
        self,
        session: PipelineSession,
        scenes: list[Scene],
        options: Optional[CompileOptions] = None,
    ) -> StageResult[CompiledVideo]:
        """Stage 4: render clips and compile the final video."""
        result = self.video_compiler.compile(scenes, session, options)
        if result.success and result.data:
            self.repository.save_stage(
                session, STAGE_COMPILED, scenes, extra={"manifest": result.data.model_dump(mode="json")}
            )
        return result

    def run(
        self,
        script: Optional[str] = None,
        segmentation: Optional[SegmentationOptions] = None,
        audio: Optional[AudioOptions] = None,
        visuals: Optional[VisualOptions] = None,
        compile_options: Optional[CompileOptions] = None,
        resume_session_id: Optional[str] = None,
    ) -> StageResult[CompiledVideo]:
        """
        Run every remaining stage, stopping at the first stage-fatal failure.

        Args:
            script: Raw script (required unless resuming)
            segmentation: Segmentation options
            audio: Audio options
            visuals: Visual options
            compile_options: Encoding options
            resume_session_id: Continue a saved session from its last completed stage

        Returns:
            Final stage result
        """
        stage = None
        if resume_session_id:
            try:
                latest = self.repository.load_latest(resume_session_id)
            except ValueError as e:
                return StageResult(success=False, error=str(e))
            if not latest:
                return StageResult(success=False, error=f"No saved state for session {resume_session_id}")
            stage, session, scenes = latest
            session.ensure_dirs()
            self.logger.info(f"Resuming {resume_session_id} after stage '{stage}'")
            if stage == STAGE_COMPILED:
                loaded = self.repository.load_stage(resume_session_id, STAGE_COMPILED)
                manifest = loaded[2].get("manifest") if loaded else None
                if not manifest:
                    return StageResult(success=False, error=f"Session {resume_session_id} has no compiled manifest")
                return StageResult(success=True, data=CompiledVideo.model_validate(manifest))
        else:
            if script is None:
                raise SceneValidationError("A script is required when not resuming")
            session = PipelineSession.create(self.settings)
            text_result = self.process_text(script, segmentation, session)
            if not text_result.success:
                return StageResult(success=False, error=text_result.error)
            scenes = text_result.data.scenes
            stage = STAGE_SEGMENTED

        if stage == STAGE_SEGMENTED:
            audio_result = self.process_audio(session, scenes, audio)
            if not audio_result.success:
                return StageResult(success=False, error=audio_result.error)
            scenes = audio_result.data.scenes
            stage = STAGE_AUDIO

        if stage == STAGE_AUDIO:
            visual_result = self.process_visuals(session, scenes, visuals)
            if not visual_result.success:
                return StageResult(success=False, error=visual_result.error)
            scenes = visual_result.data.scenes

        return self.process_video(session, scenes, compile_options)


def main():
    """Main entrypoint for full pipeline."""
    parser = argparse.ArgumentParser(
        description="SceneCast - turn a narration script into a short vertical video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--script", type=str, default=None, help="Script text")
    parser.add_argument("--script-file", type=str, default=None, help="Path to a UTF-8 script file")
    parser.add_argument(
        "--resume",
        type=str,
        default=None,
        metavar="SESSION_ID",
        help="Resume a saved session from its last completed stage",
    )
    parser.add_argument(
        "--target-scenes",
        type=int,
        default=None,
        help="Desired number of scenes (enables LLM segmentation when OPENAI_API_KEY is set)",
    )
    parser.add_argument(
        "--min-scene-length",
        type=int,
        default=settings.min_scene_length,
        help=f"Minimum scene length in characters (default: {settings.min_scene_length})",
    )
    parser.add_argument(
        "--max-scene-length",
        type=int,
        default=settings.max_scene_length,
        help=f"Maximum scene length in characters (default: {settings.max_scene_length})",
    )
    parser.add_argument(
        "--scene-duration",
        type=float,
        default=settings.scene_duration_seconds,
        help=f"Target seconds per scene (default: {settings.scene_duration_seconds:g})",
    )
    parser.add_argument("--language", type=str, default=settings.tts_language, help="Narration language code")
    parser.add_argument(
        "--resolution",
        type=str,
        default=settings.video_resolution,
        choices=["480p", "720p", "1080p"],
        help=f"Output resolution (default: {settings.video_resolution})",
    )
    parser.add_argument("--prefer-videos", action="store_true", help="Also search stock videos when photos are scarce")
    parser.add_argument("--no-subtitles", action="store_true", help="Do not write a WebVTT subtitle track")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help=f"Output directory for videos (default: {settings.output_dir})",
    )
    parser.add_argument("--cleanup", action="store_true", help="Delete intermediate files after a successful run")

    args = parser.parse_args()

    if args.script and args.script_file:
        parser.error("--script and --script-file are mutually exclusive")
    if not args.resume and not (args.script or args.script_file):
        parser.error("Provide --script, --script-file or --resume")

    run_settings = settings.model_copy(update={"output_dir": args.output_dir}) if args.output_dir else settings
    setup_logging(log_level=run_settings.log_level, log_file=run_settings.log_file)
    logger = get_logger(__name__)

    logger.info("=" * 60)
    logger.info(f"{run_settings.app_name} - Full Pipeline")
    logger.info("=" * 60)

    try:
        script = args.script
        if args.script_file:
            script = Path(args.script_file).read_text(encoding="utf-8")

        pipeline = ScenePipeline(run_settings, logger)
        result = pipeline.run(
            script=script,
            segmentation=SegmentationOptions(
                min_scene_length=args.min_scene_length,
                max_scene_length=args.max_scene_length,
                target_scene_count=args.target_scenes,
                scene_duration_seconds=args.scene_duration,
                words_per_second=run_settings.words_per_second,
            ),
            audio=AudioOptions(
                language=args.language,
                slow=run_settings.tts_slow,
                scene_duration_seconds=args.scene_duration,
                audio_format=run_settings.audio_format,
            ),
            visuals=VisualOptions(
                orientation=run_settings.visual_orientation,
                max_results=run_settings.max_search_results,
                ensure_diversity=run_settings.ensure_diversity,
                prefer_videos=args.prefer_videos or run_settings.prefer_videos,
                download_quality=run_settings.download_quality,
            ),
            compile_options=CompileOptions(
                resolution=args.resolution,
                framerate=run_settings.video_framerate,
                video_codec=run_settings.video_codec,
                audio_codec=run_settings.audio_codec,
                include_subtitles=not args.no_subtitles and run_settings.include_subtitles,
                output_format=run_settings.output_format,
            ),
            resume_session_id=args.resume,
        )

        if not result.success:
            logger.error(f"❌ Pipeline failed: {result.error}")
            return 1

        manifest = result.data
        logger.info("=" * 60)
        logger.info("✅ Video compiled")
        logger.info(f"Video: {manifest.video_path}")
        logger.info(f"Scenes: {len(manifest.scenes)} | Duration: {manifest.metadata.duration:.1f}s")
        if manifest.subtitle_file:
            logger.info(f"Subtitles: {manifest.subtitle_file}")
        logger.info(f"Session: {manifest.processing.session_id}")
        logger.info("=" * 60)

        if args.cleanup:
            loaded = pipeline.repository.load_stage(manifest.processing.session_id, STAGE_COMPILED)
            if loaded:
                cleanup_session(loaded[0], logger)

        print(manifest.video_path)
        return 0

    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        return 1
    except (SceneValidationError, OSError) as e:
        logger.error(f"❌ Error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
