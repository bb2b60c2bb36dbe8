"""Media Inspector - reads durations and stream facts with ffprobe."""

import json
import subprocess
from pathlib import Path
from typing import Any, Optional

from scenecast.core.config import Settings
from scenecast.models.schemas import VideoMetadata


def parse_frame_rate(value: Optional[str]) -> float:
    """Parse an ffprobe rational like "30000/1001" into frames per second."""
    if not value:
        return 0.0
    try:
        if "/" in value:
            num, den = value.split("/", 1)
            return float(num) / float(den) if float(den) else 0.0
        return float(value)
    except ValueError:
        return 0.0


class MediaInspector:
    """ffprobe wrapper."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize media inspector.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.binary = settings.ffprobe_binary

    def _inspect(self, path: Path) -> dict[str, Any]:
        cmd = [
            self.binary,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return json.loads(result.stdout or "{}")

    def get_duration(self, path: Path) -> Optional[float]:
        """
        Duration of a media file in seconds.

        Args:
            path: Media file

        Returns:
            Duration, or None if ffprobe fails or reports none
        """
        try:
            info = self._inspect(Path(path))
            duration = float(info.get("format", {}).get("duration", 0) or 0)
        except (subprocess.CalledProcessError, FileNotFoundError, json.JSONDecodeError, ValueError) as e:
            self.logger.debug(f"ffprobe could not read duration of {path}: {e}")
            return None
        return duration if duration > 0 else None

    def get_video_metadata(self, path: Path) -> VideoMetadata:
        """
        Stream facts for a compiled video.

        Args:
            path: Video file

        Returns:
            Metadata; zeros and "unknown" when ffprobe fails
        """
        try:
            info = self._inspect(Path(path))
        except (subprocess.CalledProcessError, FileNotFoundError, json.JSONDecodeError) as e:
            self.logger.warning(f"Could not read video metadata for {path}: {e}")
            return VideoMetadata()

        streams = info.get("streams", [])
        video = next((s for s in streams if s.get("codec_type") == "video"), {})
        audio = next((s for s in streams if s.get("codec_type") == "audio"), {})
        fmt = info.get("format", {})

        try:
            return VideoMetadata(
                duration=float(fmt.get("duration", 0) or 0),
                bitrate=int(fmt.get("bit_rate", 0) or 0),
                width=int(video.get("width", 0) or 0),
                height=int(video.get("height", 0) or 0),
                framerate=parse_frame_rate(video.get("r_frame_rate")),
                video_codec=video.get("codec_name", "unknown"),
                audio_codec=audio.get("codec_name", "unknown"),
            )
        except ValueError as e:
            self.logger.warning(f"Unexpected ffprobe output for {path}: {e}")
            return VideoMetadata()
