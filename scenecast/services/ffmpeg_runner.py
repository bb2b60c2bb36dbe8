"""FFmpeg Runner - thin wrapper around the ffmpeg binary."""

import subprocess
from typing import Any

from scenecast.core.config import Settings
from scenecast.core.exceptions import MediaEncodingError


class FFmpegRunner:
    """Runs ffmpeg with an argument list and surfaces failures with stderr."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize ffmpeg runner.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.binary = settings.ffmpeg_binary

    def run(self, args: list[str]) -> None:
        """
        Run ffmpeg to completion.

        No timeout is applied; a hung encoder blocks the caller.

        Args:
            args: Arguments after the binary name

        Raises:
            MediaEncodingError: If ffmpeg is missing or exits non-zero
        """
        cmd = [self.binary, *args]
        self.logger.debug(f"Running: {' '.join(cmd)}")
        try:
            subprocess.run(cmd, capture_output=True, check=True)
        except FileNotFoundError as e:
            raise MediaEncodingError(f"ffmpeg binary not found: {self.binary}") from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            self.logger.error(f"ffmpeg exited with {e.returncode}: {stderr.strip()[-500:]}")
            raise MediaEncodingError("ffmpeg failed", stderr=stderr, returncode=e.returncode) from e

    def is_available(self) -> bool:
        try:
            subprocess.run([self.binary, "-version"], capture_output=True, check=True)
            return True
        except (subprocess.CalledProcessError, FileNotFoundError):
            return False
