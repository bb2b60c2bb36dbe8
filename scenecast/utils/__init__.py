"""Utility functions for SceneCast."""

from scenecast.utils.io_utils import format_file_size, format_timestamp, format_vtt_timestamp, generate_session_id
from scenecast.utils.text_utils import clean_text, clean_text_for_tts, estimate_spoken_duration, split_sentences

__all__ = [
    "format_file_size",
    "format_timestamp",
    "format_vtt_timestamp",
    "generate_session_id",
    "clean_text",
    "clean_text_for_tts",
    "estimate_spoken_duration",
    "split_sentences",
]
