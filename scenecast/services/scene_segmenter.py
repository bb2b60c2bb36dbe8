"""Scene Segmenter - splits a cleaned script into timed scenes."""

from typing import Any, Optional

from scenecast.core.config import Settings
from scenecast.models.schemas import Scene, SegmentationOptions
from scenecast.services.llm_client import LLMClient
from scenecast.utils.error_handler import format_error_message, get_fallback_suggestion
from scenecast.utils.text_utils import clean_text, count_words, reading_time_seconds, split_paragraphs, split_sentences

# Bounds used when semantic segmentation is unavailable, before the caller's own bounds are enforced.
FALLBACK_MIN_LENGTH = 80
FALLBACK_MAX_LENGTH = 250

TOO_LONG_FACTOR = 1.2
TOO_SHORT_FACTOR = 0.6


def pack_sentences(sentences: list[str], min_length: int, max_length: int) -> list[str]:
    """
    Greedily pack sentences into chunks of roughly [min_length, max_length] characters.

    A sentence that would push the current chunk past ``max_length`` starts a
    new chunk only if the current one already has ``min_length`` characters;
    otherwise it is appended anyway, so ``max_length`` is a soft ceiling. A
    trailing chunk shorter than ``min_length`` is merged into the previous one
    (or kept when it is the only chunk).

    Args:
        sentences: Sentences in order
        min_length: Minimum chunk length in characters
        max_length: Preferred maximum chunk length in characters

    Returns:
        Trimmed, non-empty chunks
    """
    chunks: list[str] = []
    current = ""
    for sentence in sentences:
        if current and len(current) + len(sentence) > max_length and len(current) >= min_length:
            chunks.append(current.strip())
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence

    remainder = current.strip()
    if remainder:
        if len(remainder) < min_length and chunks:
            chunks[-1] = f"{chunks[-1]} {remainder}"
        else:
            chunks.append(remainder)
    return chunks


class SegmentationStrategy:
    """One way of splitting text into scene texts."""

    name = "base"

    def split(self, text: str, options: SegmentationOptions) -> Optional[list[str]]:
        """Return scene texts, or None when this strategy cannot handle the input."""
        raise NotImplementedError


class SemanticSegmentation(SegmentationStrategy):
    """Ask the LLM for exactly ``target_scene_count`` sections."""

    name = "semantic"

    def __init__(self, llm_client: LLMClient, logger: Any):
        self.llm_client = llm_client
        self.logger = logger

    def split(self, text: str, options: SegmentationOptions) -> Optional[list[str]]:
        target = options.target_scene_count
        if not target:
            self.logger.debug("No target scene count, skipping semantic segmentation")
            return None
        if not self.llm_client.is_configured:
            self.logger.debug("LLM not configured, skipping semantic segmentation")
            return None

        self.logger.info(f"🧠 Attempting semantic segmentation into {target} scenes...")
        try:
            sections = self.llm_client.split_into_scenes(text, target)
        except Exception as e:
            self.logger.warning(
                format_error_message(
                    "Semantic segmentation",
                    e,
                    context={"target_scenes": target},
                    suggestion=get_fallback_suggestion("LLM", e),
                )
            )
            return None

        if len(sections) != target:
            self.logger.warning(
                f"⚠️ Semantic segmentation returned {len(sections)} sections instead of {target}, falling back"
            )
            return None
        return sections


class SentenceSegmentation(SegmentationStrategy):
    """Greedy sentence packing with fixed or caller-supplied length bounds."""

    name = "sentence"

    def __init__(self, min_length: Optional[int] = None, max_length: Optional[int] = None):
        self.min_length = min_length
        self.max_length = max_length

    def split(self, text: str, options: SegmentationOptions) -> Optional[list[str]]:
        sentences = split_sentences(text)
        if not sentences:
            return None
        min_length = self.min_length if self.min_length is not None else options.min_scene_length
        max_length = self.max_length if self.max_length is not None else options.max_scene_length
        # Unpunctuated multi-paragraph text: leave it to paragraph segmentation.
        if len(sentences) == 1 and len(sentences[0]) > max_length and len(split_paragraphs(text)) > 1:
            return None
        return pack_sentences(sentences, min_length, max_length) or None


class ParagraphSegmentation(SegmentationStrategy):
    """Group blank-line separated paragraphs, splitting oversized groups by sentence."""

    name = "paragraph"

    def split(self, text: str, options: SegmentationOptions) -> Optional[list[str]]:
        paragraphs = split_paragraphs(text)
        if not paragraphs:
            return None

        min_length, max_length = options.min_scene_length, options.max_scene_length
        chunks: list[str] = []
        current = ""
        for paragraph in paragraphs:
            if current and len(current) + len(paragraph) > max_length:
                if len(current) >= min_length:
                    chunks.append(current)
                    current = paragraph
                else:
                    combined = f"{current} {paragraph}"
                    chunks.extend(pack_sentences(split_sentences(combined) or [combined], min_length, max_length))
                    current = ""
            else:
                current = f"{current} {paragraph}" if current else paragraph

        if current:
            if len(current) < min_length and chunks:
                chunks[-1] = f"{chunks[-1]} {current}"
            else:
                chunks.append(current)
        return chunks


class SceneSegmenter:
    """Turns raw script text into an ordered list of scenes."""

    def __init__(self, settings: Settings, logger: Any, llm_client: Optional[LLMClient] = None):
        """
        Initialize scene segmenter.

        Args:
            settings: Application settings
            logger: Logger instance
            llm_client: Optional LLM client (created from settings if omitted)
        """
        self.settings = settings
        self.logger = logger
        self.llm_client = llm_client or LLMClient(settings, logger)

        self.strategies: list[SegmentationStrategy] = []
        if settings.use_llm_for_segmentation:
            self.strategies.append(SemanticSegmentation(self.llm_client, logger))
        self.strategies.append(SentenceSegmentation(FALLBACK_MIN_LENGTH, FALLBACK_MAX_LENGTH))
        self.strategies.append(ParagraphSegmentation())

    def segment(self, raw_text: str, options: Optional[SegmentationOptions] = None) -> list[Scene]:
        """
        Split a script into scenes.

        Args:
            raw_text: Raw script
            options: Segmentation options (defaults from settings)

        Returns:
            Scenes with dense 1-based ids; empty if the cleaned text is empty
        """
        options = options or self.default_options()
        text = clean_text(raw_text)
        if not text:
            self.logger.warning("Script is empty after cleaning, no scenes produced")
            return []

        texts: list[str] = []
        for strategy in self.strategies:
            result = strategy.split(text, options)
            if result:
                self.logger.info(f"Segmented with '{strategy.name}' strategy into {len(result)} scenes")
                texts = result
                break

        if any(len(t) > options.max_scene_length for t in texts):
            self.logger.info(
                f"A scene exceeds {options.max_scene_length} characters, re-segmenting by sentence "
                f"({options.min_scene_length}-{options.max_scene_length})"
            )
            texts = SentenceSegmentation(options.min_scene_length, options.max_scene_length).split(text, options) or texts

        scenes = [self._build_scene(i + 1, t, options) for i, t in enumerate(texts) if t.strip()]
        self.logger.info(f"✅ Segmented into {len(scenes)} scenes")
        return scenes

    def default_options(self) -> SegmentationOptions:
        return SegmentationOptions(
            min_scene_length=self.settings.min_scene_length,
            max_scene_length=self.settings.max_scene_length,
            scene_duration_seconds=self.settings.scene_duration_seconds,
            words_per_second=self.settings.words_per_second,
        )

    def _build_scene(self, scene_id: int, text: str, options: SegmentationOptions) -> Scene:
        text = " ".join(text.split())
        word_count = count_words(text)
        speech_time = word_count / options.words_per_second
        target = options.scene_duration_seconds

        if speech_time > target * TOO_LONG_FACTOR:
            self.logger.warning(f"⚠️ Scene {scene_id} might be too long ({speech_time:.1f}s for {target:.0f}s target)")
        elif speech_time < target * TOO_SHORT_FACTOR:
            self.logger.debug(f"Scene {scene_id} might be too short ({speech_time:.1f}s for {target:.0f}s target)")

        return Scene(
            id=scene_id,
            text=text,
            word_count=word_count,
            estimated_reading_time=reading_time_seconds(word_count),
            duration=target,
            estimated_speech_time=round(speech_time, 2),
        )
