"""I/O utility functions for file and directory operations."""

import uuid
from datetime import datetime
from pathlib import Path


def generate_session_id() -> str:
    """
    Generate a sortable, unique session identifier.

    Returns:
        Identifier like "session_20240101T120000_ab12cd34"
    """
    timestamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    return f"session_{timestamp}_{uuid.uuid4().hex[:8]}"


def output_timestamp() -> str:
    """Timestamp used in compiled video file names."""
    return datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")[:-3]


def file_size(path: Path) -> int:
    """Size of a file in bytes, 0 if it does not exist."""
    try:
        return path.stat().st_size
    except OSError:
        return 0


def format_file_size(num_bytes: int) -> str:
    """
    Format a byte count for logs.

    Args:
        num_bytes: Size in bytes

    Returns:
        Human-readable size (e.g. "1.5 MB")
    """
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def format_timestamp(seconds: float) -> str:
    """
    Format seconds as HH:MM:SS.

    Args:
        seconds: Offset in seconds

    Returns:
        Zero-padded timestamp
    """
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_vtt_timestamp(seconds: float) -> str:
    """
    Format seconds as a WebVTT cue time (HH:MM:SS.mmm).

    Args:
        seconds: Offset in seconds

    Returns:
        Zero-padded timestamp with milliseconds
    """
    total_ms = int(round(seconds * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"
