"""Visual Resolver - picks and downloads one stock visual per scene."""

import re
import time
from typing import Any, Optional

from PIL import Image

from scenecast.core.config import Settings
from scenecast.core.exceptions import SceneValidationError
from scenecast.core.session import PipelineSession
from scenecast.models.schemas import (
    Scene,
    SceneVisual,
    SelectedVisual,
    StageResult,
    VisualCandidate,
    VisualDimensions,
    VisualOptions,
    VisualStageReport,
    VisualType,
)
from scenecast.services.stock_media_client import StockMediaClient
from scenecast.services.visual_scorer import VisualScorer
from scenecast.utils.error_handler import format_error_message, get_fallback_suggestion
from scenecast.utils.io_utils import format_file_size

GENERIC_QUERIES = ["business professional", "technology", "modern lifestyle"]
MAX_QUERIES = 5
MAX_ALTERNATIVES = 3
MIN_PHOTOS_BEFORE_VIDEO_SEARCH = 3
FALLBACK_WIDTH = 1080
FALLBACK_HEIGHT = 1920


def generate_search_queries(scene: Scene, limit: int = MAX_QUERIES) -> list[str]:
    """
    Build search queries for a scene, most specific first.

    Args:
        scene: Scene with keywords
        limit: Maximum number of queries

    Returns:
        Queries; generic stock terms when the scene has no keywords
    """
    queries: list[str] = []
    if scene.primary_keywords:
        queries.append(" ".join(scene.primary_keywords[:3]))
        queries.extend(k for k in scene.primary_keywords if len(k) > 3)
    for keyword in scene.keywords[:2]:
        if len(keyword) > 4 and keyword not in queries:
            queries.append(keyword)
    for entity in scene.entities[:1]:
        if entity not in queries:
            queries.append(entity)
    if not queries:
        queries = list(GENERIC_QUERIES)
    return queries[:limit]


def build_search_query(keywords: list[str]) -> str:
    """Join up to three keywords longer than two characters, without punctuation."""
    joined = " ".join([k for k in keywords if k and len(k) > 2][:3])
    return re.sub(r"[^\w\s]", "", joined).strip()


class VisualResolver:
    """Searches stock media, ranks candidates and downloads the winner."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        client: Optional[StockMediaClient] = None,
        scorer: Optional[VisualScorer] = None,
    ):
        """
        Initialize visual resolver.

        Args:
            settings: Application settings
            logger: Logger instance
            client: Optional stock media client
            scorer: Optional candidate scorer
        """
        self.settings = settings
        self.logger = logger
        self.client = client or StockMediaClient(settings, logger)
        self.scorer = scorer or VisualScorer()

    def default_options(self) -> VisualOptions:
        return VisualOptions(
            orientation=self.settings.visual_orientation,
            max_results=self.settings.max_search_results,
            ensure_diversity=self.settings.ensure_diversity,
            prefer_videos=self.settings.prefer_videos,
            download_quality=self.settings.download_quality,
        )

    def search(self, scene: Scene, options: VisualOptions) -> list[VisualCandidate]:
        """
        Run the scene's queries until enough candidates are gathered.

        A failing query is logged and skipped.
        """
        results: list[VisualCandidate] = []
        for query in generate_search_queries(scene, self.settings.max_queries_per_scene):
            self.logger.debug(f"Scene {scene.id}: searching '{query}'")
            try:
                photos = self.client.search_photos(
                    query,
                    max_results=options.max_results,
                    orientation=options.orientation,
                    size=options.download_quality,
                )
                results.extend(photos)
                if options.prefer_videos and len(photos) < MIN_PHOTOS_BEFORE_VIDEO_SEARCH:
                    results.extend(
                        self.client.search_videos(query, max_results=options.max_results, orientation=options.orientation)
                    )
            except Exception as e:
                self.logger.warning(
                    format_error_message(
                        "Stock media search",
                        e,
                        context={"scene_id": scene.id, "query": query},
                        suggestion=get_fallback_suggestion("Visual Search", e),
                    )
                )
                continue
            if len(results) >= options.max_results:
                break
        return results

    def fallback_candidate(self, scene: Scene) -> VisualCandidate:
        return VisualCandidate(
            id=f"fallback_{scene.id}",
            type=VisualType.IMAGE,
            download_url=self.settings.fallback_image_url,
            description="Professional fallback image",
            photographer="Pexels",
            dimensions=VisualDimensions.from_size(FALLBACK_WIDTH, FALLBACK_HEIGHT),
            source="fallback",
            is_fallback=True,
        )

    def select(self, ranked: list[VisualCandidate], scene: Scene) -> SelectedVisual:
        """Choose the top-ranked candidate, or the fallback image when there is none."""
        if not ranked:
            candidate = self.fallback_candidate(scene)
            reason = "Fallback used - no search results found"
        else:
            candidate = ranked[0]
            reason = (
                f"Score: {candidate.total_score:.1f}/10 "
                f"(Relevance: {candidate.relevance_score:.1f}, Quality: {candidate.quality_score:.1f})"
            )
        return SelectedVisual(
            **candidate.model_dump(),
            scene_id=scene.id,
            selection_reason=reason,
            fallback_used=candidate.is_fallback,
        )

    def download(self, selected: SelectedVisual, session: PipelineSession) -> SelectedVisual:
        """
        Download the selected visual into the session temp directory.

        Failures are recorded on the returned copy, never raised.
        """
        extension = "mp4" if selected.type == VisualType.VIDEO else "jpg"
        file_name = f"scene_{selected.scene_id}_{selected.type.value}.{extension}"
        local_path = session.temp_path / file_name

        self.logger.debug(f"📥 Downloading {file_name}...")
        try:
            size = self.client.download(selected.download_url, local_path)
            update: dict[str, Any] = {}
            if selected.type == VisualType.IMAGE:
                with Image.open(local_path) as img:
                    img.verify()
                with Image.open(local_path) as img:
                    update["dimensions"] = VisualDimensions.from_size(*img.size)
        except Exception as e:
            local_path.unlink(missing_ok=True)
            self.logger.error(
                format_error_message(
                    "Downloading visual",
                    e,
                    context={"scene_id": selected.scene_id, "url": selected.download_url},
                    suggestion=get_fallback_suggestion("Visual Search", e),
                )
            )
            return selected.model_copy(
                update={
                    "local_path": None,
                    "download_success": False,
                    "download_error": str(e),
                    "fallback_used": True,
                }
            )

        session.record_photographer(selected.photographer)
        self.logger.info(f"✅ Downloaded {file_name} ({format_file_size(size)})")
        return selected.model_copy(
            update={
                **update,
                "local_path": str(local_path),
                "file_name": file_name,
                "file_size": size,
                "download_success": True,
                "download_error": None,
            }
        )

    def resolve(self, scene: Scene, session: PipelineSession, options: Optional[VisualOptions] = None) -> SceneVisual:
        """
        Search, rank, select and download a visual for one scene.

        Args:
            scene: Scene with keywords
            session: Current pipeline session
            options: Visual options (defaults from settings)

        Returns:
            Visual record (the selected visual may carry a download failure)
        """
        options = options or self.default_options()
        raw = self.search(scene, options)
        ranked = self.scorer.rank(raw, scene, session.downloaded_photographers, options.ensure_diversity)
        selected = self.download(self.select(ranked, scene), session)

        self.logger.info(
            f"Scene {scene.id}: {len(ranked)} candidates, selected {selected.id} ({selected.selection_reason})"
        )
        return SceneVisual(
            selected=selected,
            alternatives=ranked[1 : 1 + MAX_ALTERNATIVES],
            search_query=build_search_query(scene.primary_keywords),
            search_results=len(ranked),
            selection_reason=selected.selection_reason,
        )

    def process_scenes(
        self,
        scenes: list[Scene],
        session: PipelineSession,
        options: Optional[VisualOptions] = None,
    ) -> StageResult[VisualStageReport]:
        """
        Resolve visuals for every scene in id order.

        Args:
            scenes: Scenes with keywords
            session: Current pipeline session
            options: Visual options (defaults from settings)

        Returns:
            Stage result with updated scenes and download counts

        Raises:
            SceneValidationError: If the input is malformed
        """
        if not isinstance(scenes, list) or not scenes:
            raise SceneValidationError("Scenes must be a non-empty list")
        options = options or self.default_options()
        session.ensure_dirs()

        self.logger.info(f"🖼️ Resolving visuals for {len(scenes)} scenes")
        updated: list[Scene] = []
        for i, scene in enumerate(sorted(scenes, key=lambda s: s.id)):
            if i > 0 and self.settings.visual_scene_delay_seconds > 0:
                time.sleep(self.settings.visual_scene_delay_seconds)
            visual = self.resolve(scene, session, options)
            updated.append(scene.model_copy(update={"visual": visual}))

        selected = [s.visual.selected for s in updated if s.visual]
        report = VisualStageReport(
            scenes=updated,
            total_scenes=len(updated),
            successful_downloads=sum(1 for v in selected if v.download_success),
            failed_downloads=sum(1 for v in selected if not v.download_success),
            fallbacks_used=sum(1 for v in selected if v.is_fallback),
            unique_photographers=len(session.downloaded_photographers),
            session_id=session.session_id,
        )
        self.logger.info(
            f"Visual stage: {report.successful_downloads}/{report.total_scenes} downloaded, "
            f"{report.fallbacks_used} fallbacks"
        )
        if report.successful_downloads == 0:
            return StageResult(success=False, data=report, error="No visual could be downloaded for any scene")
        return StageResult(success=True, data=report)
