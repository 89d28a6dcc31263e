"""Recommendation scoring of catalog styles against a face analysis."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from src.analyzers.types import FaceAnalysisResult

from .catalog import StyleCategory, StyleEntry, SuitabilityCatalog, Tier


@dataclass(frozen=True)
class ScoringConfig:
    excellent: int = 3
    good: int = 2
    good_threshold: int = 2

    @property
    def max_score(self) -> int:
        return max(self.excellent, self.good)

    def points(self, tier: Optional[Tier]) -> int:
        if tier is Tier.EXCELLENT:
            return self.excellent
        if tier is Tier.GOOD:
            return self.good
        return 0


DEFAULT_SCORING = ScoringConfig()


class RecommendationScore(NamedTuple):
    score: int
    meets_good_threshold: bool
    is_top_tier: bool

    def to_dict(self) -> Dict[str, Union[int, bool]]:
        return {
            "score": self.score,
            "meetsGoodThreshold": self.meets_good_threshold,
            "isTopTier": self.is_top_tier,
        }


def _matching_tier(analysis: FaceAnalysisResult, style: StyleEntry) -> Optional[Tier]:
    # 스타일 종류별로 한 축만 평가: 컷 -> 얼굴형, 컬러 -> 퍼스널 컬러
    suitability = style.suitability
    if style.category is StyleCategory.CUT:
        if analysis.face_shape is None or not suitability.face_shapes:
            return None
        return suitability.face_shapes.get(analysis.face_shape)
    if analysis.personal_color is None or not suitability.personal_colors:
        return None
    return suitability.personal_colors.get(analysis.personal_color)


def score_style(
    analysis: FaceAnalysisResult,
    style: StyleEntry,
    config: Optional[ScoringConfig] = None,
) -> RecommendationScore:
    """Score one style; missing entries score 0 and are never an error."""

    cfg = config or DEFAULT_SCORING
    score = cfg.points(_matching_tier(analysis, style))
    return RecommendationScore(
        score=score,
        meets_good_threshold=score >= cfg.good_threshold,
        is_top_tier=score == cfg.max_score,
    )


def score_catalog(
    analysis: FaceAnalysisResult,
    catalog: SuitabilityCatalog,
    config: Optional[ScoringConfig] = None,
) -> List[Tuple[StyleEntry, RecommendationScore]]:
    return [(style, score_style(analysis, style, config)) for style in catalog]


def recommended_styles(
    analysis: FaceAnalysisResult,
    catalog: SuitabilityCatalog,
    category: Optional[Union[StyleCategory, str]] = None,
    config: Optional[ScoringConfig] = None,
) -> List[Tuple[StyleEntry, RecommendationScore]]:
    """Styles meeting the good threshold, best first (ties keep catalog order)."""

    wanted = StyleCategory(category) if category is not None else None
    scored = [
        (style, score)
        for style, score in score_catalog(analysis, catalog, config)
        if score.meets_good_threshold and (wanted is None or style.category is wanted)
    ]
    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    return scored


__all__ = [
    "DEFAULT_SCORING",
    "RecommendationScore",
    "ScoringConfig",
    "recommended_styles",
    "score_catalog",
    "score_style",
]
