"""Style catalog and recommendation scoring."""

from .catalog import (  # noqa: F401
    CatalogValidationError,
    StyleCategory,
    StyleEntry,
    StyleSuitability,
    SuitabilityCatalog,
    Tier,
    load_catalog,
)

from .scorer import (  # noqa: F401
    DEFAULT_SCORING,
    RecommendationScore,
    ScoringConfig,
    recommended_styles,
    score_catalog,
    score_style,
)

__all__ = [
    "CatalogValidationError",
    "StyleCategory",
    "StyleEntry",
    "StyleSuitability",
    "SuitabilityCatalog",
    "Tier",
    "load_catalog",
    "DEFAULT_SCORING",
    "RecommendationScore",
    "ScoringConfig",
    "recommended_styles",
    "score_catalog",
    "score_style",
]
