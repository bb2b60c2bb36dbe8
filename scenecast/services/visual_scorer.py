"""Visual Scorer - ranks stock-media candidates for a scene."""

from typing import Optional

from pydantic import BaseModel, Field

from scenecast.models.schemas import Scene, VisualCandidate, VisualType

MIN_SCORE = 0.0
MAX_SCORE = 10.0


class ScoringConfig(BaseModel):
    """
    Coefficients for candidate scoring.

    Each sub-score starts at ``base_score`` and is clamped to [0, 10]. The
    total is ``relevance * relevance_weight + quality * quality_weight +
    suitability * suitability_weight + diversity * diversity_weight``.
    """

    relevance_weight: float = Field(default=0.4, description="Weight of keyword relevance")
    quality_weight: float = Field(default=0.3, description="Weight of resolution/orientation quality")
    suitability_weight: float = Field(default=0.2, description="Weight of vertical-video suitability")
    diversity_weight: float = Field(default=0.1, description="Weight of photographer novelty")

    base_score: float = Field(default=5.0, description="Starting value for every sub-score")

    # Relevance
    keyword_match_bonus: float = Field(default=1.5, description="Per primary/top keyword found in the description")
    entity_match_bonus: float = Field(default=1.0, description="Per entity found in the description")
    relevance_keyword_count: int = Field(default=3, description="General keywords added to primary ones")

    # Quality
    full_hd_bonus: float = Field(default=2.0, description="Height >= 1920 and width >= 1080")
    hd_bonus: float = Field(default=1.0, description="Height >= 1280 and width >= 720")
    ideal_ratio_range: tuple[float, float] = Field(default=(1.6, 1.8), description="Height/width close to 9:16")
    ideal_ratio_bonus: float = Field(default=1.5, description="Bonus inside the ideal ratio range")
    acceptable_ratio_range: tuple[float, float] = Field(default=(1.3, 2.0), description="Tolerable portrait ratios")
    acceptable_ratio_bonus: float = Field(default=0.5, description="Bonus inside the acceptable ratio range")
    landscape_penalty: float = Field(default=1.0, description="Penalty when height/width < 1")
    video_duration_range: tuple[float, float] = Field(default=(5.0, 15.0), description="Preferred clip length")
    video_duration_bonus: float = Field(default=1.0, description="Bonus for clips in the preferred range")

    # Diversity
    repeat_photographer_penalty: float = Field(default=2.0, description="Photographer already used this session")
    session_variety_bonus: float = Field(default=1.0, description="Applied once anything has been downloaded")

    # Suitability
    portrait_ratio_threshold: float = Field(default=1.5, description="Height/width counted as portrait")
    portrait_bonus: float = Field(default=2.0, description="Bonus for portrait media")
    landscape_suitability_penalty: float = Field(default=2.0, description="Penalty for landscape media")
    busy_terms: tuple[str, ...] = Field(default=("text", "sign", "logo"), description="Terms suggesting overlays")
    busy_penalty: float = Field(default=1.0, description="Penalty when a busy term appears")
    clean_terms: tuple[str, ...] = Field(default=("clean", "minimal", "simple"), description="Terms suggesting clean frames")
    clean_bonus: float = Field(default=1.0, description="Bonus when a clean term appears")

    @property
    def weights(self) -> tuple[float, float, float, float]:
        return (self.relevance_weight, self.quality_weight, self.suitability_weight, self.diversity_weight)


def clamp(score: float) -> float:
    return min(max(score, MIN_SCORE), MAX_SCORE)


class VisualScorer:
    """Computes relevance, quality, suitability, diversity and total scores."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def relevance(self, candidate: VisualCandidate, scene: Scene) -> float:
        cfg = self.config
        description = (candidate.description or "").lower()
        score = cfg.base_score
        keywords = scene.primary_keywords + scene.keywords[: cfg.relevance_keyword_count]
        for keyword in keywords:
            if keyword.lower() in description:
                score += cfg.keyword_match_bonus
        for entity in scene.entities:
            if entity.lower() in description:
                score += cfg.entity_match_bonus
        return clamp(score)

    def quality(self, candidate: VisualCandidate) -> float:
        cfg = self.config
        width, height = candidate.dimensions.width, candidate.dimensions.height
        score = cfg.base_score

        if height >= 1920 and width >= 1080:
            score += cfg.full_hd_bonus
        elif height >= 1280 and width >= 720:
            score += cfg.hd_bonus

        ratio = height / width if width else 0.0
        if cfg.ideal_ratio_range[0] <= ratio <= cfg.ideal_ratio_range[1]:
            score += cfg.ideal_ratio_bonus
        elif cfg.acceptable_ratio_range[0] <= ratio <= cfg.acceptable_ratio_range[1]:
            score += cfg.acceptable_ratio_bonus
        elif ratio < 1.0:
            score -= cfg.landscape_penalty

        low, high = cfg.video_duration_range
        if candidate.type == VisualType.VIDEO and candidate.duration is not None and low <= candidate.duration <= high:
            score += cfg.video_duration_bonus
        return clamp(score)

    def diversity(self, candidate: VisualCandidate, used_photographers: set[str]) -> float:
        cfg = self.config
        score = cfg.base_score
        if used_photographers:
            score += cfg.session_variety_bonus
        if candidate.photographer in used_photographers:
            score -= cfg.repeat_photographer_penalty
        return clamp(score)

    def suitability(self, candidate: VisualCandidate) -> float:
        cfg = self.config
        score = cfg.base_score
        ratio = candidate.dimensions.aspect_ratio
        if ratio >= cfg.portrait_ratio_threshold:
            score += cfg.portrait_bonus
        elif ratio < 1.0:
            score -= cfg.landscape_suitability_penalty

        description = (candidate.description or "").lower()
        if any(term in description for term in cfg.busy_terms):
            score -= cfg.busy_penalty
        if any(term in description for term in cfg.clean_terms):
            score += cfg.clean_bonus
        return clamp(score)

    def total(self, relevance: float, quality: float, suitability: float, diversity: float) -> float:
        cfg = self.config
        return (
            relevance * cfg.relevance_weight
            + quality * cfg.quality_weight
            + suitability * cfg.suitability_weight
            + diversity * cfg.diversity_weight
        )

    def score(
        self,
        candidate: VisualCandidate,
        scene: Scene,
        used_photographers: set[str],
        ensure_diversity: bool = True,
    ) -> VisualCandidate:
        """
        Score one candidate.

        Args:
            candidate: Search hit
            scene: Scene being illustrated
            used_photographers: Photographers already downloaded this session
            ensure_diversity: When False the diversity sub-score is the neutral base score

        Returns:
            Copy of the candidate with all scores set
        """
        relevance = self.relevance(candidate, scene)
        quality = self.quality(candidate)
        suitability = self.suitability(candidate)
        diversity = self.diversity(candidate, used_photographers) if ensure_diversity else self.config.base_score
        return candidate.model_copy(
            update={
                "relevance_score": relevance,
                "quality_score": quality,
                "suitability_score": suitability,
                "diversity_score": diversity,
                "total_score": self.total(relevance, quality, suitability, diversity),
            }
        )

    def rank(
        self,
        candidates: list[VisualCandidate],
        scene: Scene,
        used_photographers: set[str],
        ensure_diversity: bool = True,
    ) -> list[VisualCandidate]:
        """Deduplicate by id, score, and sort by total score (stable, descending)."""
        seen: set[str] = set()
        unique = []
        for candidate in candidates:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            unique.append(candidate)
        scored = [self.score(c, scene, used_photographers, ensure_diversity) for c in unique]
        return sorted(scored, key=lambda c: c.total_score, reverse=True)
