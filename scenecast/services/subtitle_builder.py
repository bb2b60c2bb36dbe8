"""Subtitle Builder - WebVTT track aligned to the compiled scene timeline."""

import math
from pathlib import Path

from scenecast.models.schemas import Scene
from scenecast.utils.io_utils import format_vtt_timestamp

WORDS_PER_CUE = 8


def build_cues(scenes: list[Scene], words_per_cue: int = WORDS_PER_CUE) -> list[tuple[float, float, str]]:
    """
    Split each scene's text into short cues on a running timeline.

    Each scene occupies its effective duration; its words are chunked into
    groups of ``words_per_cue`` that share that time equally.

    Args:
        scenes: Scenes included in the video, in playback order
        words_per_cue: Maximum words per cue

    Returns:
        (start, end, text) tuples
    """
    cues = []
    offset = 0.0
    for scene in scenes:
        duration = scene.effective_duration
        words = scene.text.split()
        if words:
            cue_count = math.ceil(len(words) / words_per_cue)
            cue_length = duration / cue_count
            for i in range(cue_count):
                start = offset + i * cue_length
                end = min(start + cue_length, offset + duration)
                cues.append((start, end, " ".join(words[i * words_per_cue : (i + 1) * words_per_cue])))
        offset += duration
    return cues


def render_vtt(cues: list[tuple[float, float, str]]) -> str:
    lines = ["WEBVTT", ""]
    for start, end, text in cues:
        lines.append(f"{format_vtt_timestamp(start)} --> {format_vtt_timestamp(end)}")
        lines.append(text)
        lines.append("")
    return "\n".join(lines)


def write_vtt(scenes: list[Scene], output_path: Path) -> Path:
    """Write the WebVTT file for the given scenes and return its path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_vtt(build_cues(scenes)), encoding="utf-8")
    return output_path
