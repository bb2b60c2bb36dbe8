"""Stock Media Client - Pexels photo/video search and downloads."""

from pathlib import Path
from typing import Any, Optional

import requests

from scenecast.core.config import Settings
from scenecast.core.exceptions import VisualSearchError
from scenecast.models.schemas import VisualCandidate, VisualDimensions, VisualType

MAX_VIDEO_RESULTS = 10
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class StockMediaClient:
    """Client for the Pexels photo and video search APIs."""

    def __init__(self, settings: Settings, logger: Any, session: Optional[requests.Session] = None):
        """
        Initialize stock media client.

        Args:
            settings: Application settings
            logger: Logger instance
            session: Optional requests session (for connection reuse or tests)
        """
        self.settings = settings
        self.logger = logger
        self.http = session or requests.Session()
        self.http.headers.update({"User-Agent": settings.user_agent})

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.pexels_api_key)

    def _search(self, url: str, params: dict[str, Any], timeout: int) -> dict[str, Any]:
        try:
            response = self.http.get(
                url,
                params=params,
                headers={"Authorization": self.settings.pexels_api_key or ""},
                timeout=timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise VisualSearchError(f"Pexels search failed for '{params.get('query')}': {e}") from e
        except ValueError as e:
            raise VisualSearchError(f"Pexels returned invalid JSON for '{params.get('query')}'") from e

    def search_photos(
        self,
        query: str,
        max_results: int = 15,
        orientation: str = "portrait",
        size: str = "large",
    ) -> list[VisualCandidate]:
        """
        Search Pexels photos.

        Args:
            query: Search terms
            max_results: Results per page
            orientation: portrait, landscape or square
            size: large, medium or small

        Returns:
            Candidates in API order (empty when no API key is configured)

        Raises:
            VisualSearchError: On network or HTTP errors
        """
        if not self.is_configured:
            self.logger.warning("⚠️ No Pexels API key configured. Skipping photo search.")
            return []

        data = self._search(
            self.settings.pexels_photo_search_url,
            {"query": query, "per_page": max_results, "orientation": orientation, "size": size, "page": 1},
            self.settings.photo_search_timeout_seconds,
        )
        return [self._photo_to_candidate(photo) for photo in data.get("photos", [])]

    def search_videos(self, query: str, max_results: int = 10, orientation: str = "portrait") -> list[VisualCandidate]:
        """
        Search Pexels videos.

        Args:
            query: Search terms
            max_results: Results per page (capped at 10)
            orientation: portrait, landscape or square

        Returns:
            Candidates in API order (empty when no API key is configured)

        Raises:
            VisualSearchError: On network or HTTP errors
        """
        if not self.is_configured:
            self.logger.warning("⚠️ No Pexels API key configured. Skipping video search.")
            return []

        data = self._search(
            self.settings.pexels_video_search_url,
            {
                "query": query,
                "per_page": min(max_results, MAX_VIDEO_RESULTS),
                "orientation": orientation,
                "size": "medium",
                "page": 1,
            },
            self.settings.video_search_timeout_seconds,
        )
        return [c for c in (self._video_to_candidate(video) for video in data.get("videos", [])) if c]

    @staticmethod
    def _photo_to_candidate(photo: dict[str, Any]) -> VisualCandidate:
        src = photo.get("src", {})
        photographer = photo.get("photographer") or "Unknown"
        return VisualCandidate(
            id=str(photo.get("id")),
            type=VisualType.IMAGE,
            download_url=src.get("large2x") or src.get("original") or src.get("large", ""),
            original_url=photo.get("url"),
            thumbnail_url=src.get("medium"),
            description=photo.get("alt") or f"Photo by {photographer}",
            photographer=photographer,
            photographer_url=photo.get("photographer_url"),
            dimensions=VisualDimensions.from_size(int(photo.get("width") or 0), int(photo.get("height") or 0)),
            avg_color=photo.get("avg_color"),
            source="pexels-photos",
        )

    @staticmethod
    def _video_to_candidate(video: dict[str, Any]) -> Optional[VisualCandidate]:
        files = video.get("video_files") or []
        if not files:
            return None
        portrait_hd = next(
            (f for f in files if f.get("quality") == "hd" and (f.get("width") or 0) < (f.get("height") or 0)),
            None,
        )
        link = (portrait_hd or files[0]).get("link")
        if not link:
            return None
        user = video.get("user") or {}
        return VisualCandidate(
            id=str(video.get("id")),
            type=VisualType.VIDEO,
            download_url=link,
            original_url=video.get("url"),
            thumbnail_url=video.get("image"),
            description=video.get("url") or "",
            photographer=user.get("name") or "Unknown",
            photographer_url=user.get("url"),
            dimensions=VisualDimensions.from_size(int(video.get("width") or 0), int(video.get("height") or 0)),
            duration=video.get("duration"),
            source="pexels-videos",
        )

    def download(self, url: str, destination: Path) -> int:
        """
        Stream a file to disk.

        Args:
            url: Download URL
            destination: Target path

        Returns:
            Bytes written

        Raises:
            VisualSearchError: On network or HTTP errors, or an empty body
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self.http.get(url, stream=True, timeout=self.settings.download_timeout_seconds) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
        except requests.exceptions.RequestException as e:
            destination.unlink(missing_ok=True)
            raise VisualSearchError(f"Download failed for {url}: {e}") from e

        size = destination.stat().st_size
        if size == 0:
            destination.unlink(missing_ok=True)
            raise VisualSearchError(f"Downloaded file is empty: {url}")
        return size
