"""Text utility functions for script processing."""

import math
import re

from nltk.tokenize.punkt import PunktSentenceTokenizer

DISALLOWED_CHARS = re.compile(r"[^\w\s.,!?;:()\-\"']")
# Scripts keep unit symbols so narration can spell them out.
SCRIPT_DISALLOWED_CHARS = re.compile(r"[^\w\s.,!?;:()\-\"'%°]")
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

# Applied in order; the unit symbols are expanded before disallowed characters are stripped.
TTS_REPLACEMENTS = [
    (re.compile(r"(\d+)\s*%"), r"\1 percent"),
    (re.compile(r"(\d+)\s*°"), r"\1 degrees"),
    (re.compile(r"\bdr\.", re.IGNORECASE), "doctor"),
    (re.compile(r"\bmrs\.", re.IGNORECASE), "missus"),
    (re.compile(r"\bmr\.", re.IGNORECASE), "mister"),
    (re.compile(r"\bms\.", re.IGNORECASE), "miss"),
    (re.compile(r"\betc\.", re.IGNORECASE), "etcetera"),
    (re.compile(r"\bvs\.", re.IGNORECASE), "versus"),
    (re.compile(r"\be\.g\.", re.IGNORECASE), "for example"),
    (re.compile(r"\bi\.e\.", re.IGNORECASE), "that is"),
    (re.compile(r"\bco\.", re.IGNORECASE), "company"),
    (re.compile(r"\binc\.", re.IGNORECASE), "incorporated"),
]

_sentence_tokenizer = PunktSentenceTokenizer()


def clean_text(text: str) -> str:
    """
    Normalize a raw script.

    Whitespace inside paragraphs is collapsed, blank-line paragraph breaks are
    kept, and characters outside word characters and basic punctuation are
    removed. Percent and degree signs are kept for narration.

    Args:
        text: Raw script text

    Returns:
        Cleaned text (possibly empty)
    """
    if not text:
        return ""
    paragraphs = []
    for paragraph in PARAGRAPH_BREAK.split(text):
        paragraph = SCRIPT_DISALLOWED_CHARS.sub("", paragraph)
        paragraph = re.sub(r"\s+", " ", paragraph).strip()
        if paragraph:
            paragraphs.append(paragraph)
    return "\n\n".join(paragraphs)


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in PARAGRAPH_BREAK.split(text) if p.strip()]


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentences with an untrained Punkt tokenizer.

    Args:
        text: Cleaned text

    Returns:
        Non-empty sentences in order
    """
    flat = re.sub(r"\s+", " ", text).strip()
    if not flat:
        return []
    return [s.strip() for s in _sentence_tokenizer.tokenize(flat) if s.strip()]


def count_words(text: str) -> int:
    return len(text.split())


def clean_text_for_tts(text: str) -> str:
    """
    Prepare narration text for speech synthesis.

    Args:
        text: Scene text

    Returns:
        Text with abbreviations spelled out and terminal punctuation
    """
    cleaned = re.sub(r"\s+", " ", text or "")
    for pattern, replacement in TTS_REPLACEMENTS:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = DISALLOWED_CHARS.sub("", cleaned)
    cleaned = re.sub(r"([.!?])\s*([A-Z])", r"\1 \2", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    if cleaned and cleaned[-1] not in ".!?":
        cleaned += "."
    return cleaned


def estimate_spoken_duration(text: str, words_per_minute: int = 150) -> float:
    """
    Estimate the spoken duration of text in seconds.

    Words are approximated as five characters each.

    Args:
        text: Text to estimate duration for.
        words_per_minute: Average speaking rate (default 150 WPM).

    Returns:
        Estimated duration in seconds, at least 1.
    """
    estimated_words = len(text) / 5
    return max(1.0, estimated_words / words_per_minute * 60)


def reading_time_seconds(word_count: int) -> int:
    return math.ceil(word_count / 3)
