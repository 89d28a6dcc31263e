"""Typed, read-only view over per-style suitability metadata."""
from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from src.analyzers.types import FaceShape, PersonalColor

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    GOOD = "Good"
    EXCELLENT = "Excellent"


class StyleCategory(str, Enum):
    CUT = "cut"
    COLOR = "color"


class CatalogValidationError(ValueError):
    """Catalog data does not match the suitability schema."""


class _CatalogModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class StyleSuitability(_CatalogModel):
    # 항목이 없으면 "평가 안 됨" (낮은 평가가 아님)
    face_shapes: Optional[Dict[FaceShape, Tier]] = None
    personal_colors: Optional[Dict[PersonalColor, Tier]] = None


class StyleEntry(_CatalogModel):
    id: str = Field(min_length=1)
    name: str
    category: StyleCategory
    suitability: StyleSuitability = Field(default_factory=StyleSuitability)
    url: Optional[str] = None
    gender: Optional[Literal["Female", "Male"]] = None
    tags: List[str] = Field(default_factory=list)


_ENTRIES = TypeAdapter(List[StyleEntry])


class SuitabilityCatalog:
    """Immutable, ordered collection of :class:`StyleEntry` keyed by id."""

    def __init__(self, entries: Iterable[StyleEntry]) -> None:
        by_id: Dict[str, StyleEntry] = {}
        for entry in entries:
            if entry.id in by_id:
                raise CatalogValidationError(f"duplicate style id: {entry.id!r}")
            by_id[entry.id] = entry
        self._by_id = by_id

    def __iter__(self) -> Iterator[StyleEntry]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, style_id: object) -> bool:
        return style_id in self._by_id

    def get(self, style_id: str) -> Optional[StyleEntry]:
        return self._by_id.get(style_id)

    def by_category(self, category: Union[StyleCategory, str]) -> List[StyleEntry]:
        category = StyleCategory(category)
        return [entry for entry in self._by_id.values() if entry.category is category]


def _read_source(source: Any) -> Any:
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        with path.open("r", encoding="utf-8") as fh:
            try:
                return json.load(fh)
            except json.JSONDecodeError as exc:
                raise CatalogValidationError(f"{path}: invalid JSON ({exc})") from exc
    return source


def load_catalog(source: Any) -> SuitabilityCatalog:
    """Load and validate a catalog from a JSON path, a list, or ``{"styles": [...]}``."""

    raw = _read_source(source)
    if isinstance(raw, dict):
        if "styles" not in raw:
            raise CatalogValidationError("catalog object must contain a 'styles' list")
        raw = raw["styles"]

    try:
        entries = _ENTRIES.validate_python(raw)
    except ValidationError as exc:
        logger.warning("Rejected style catalog: %d error(s)", exc.error_count())
        raise CatalogValidationError(str(exc)) from exc

    catalog = SuitabilityCatalog(entries)
    logger.info("Loaded style catalog with %d entries", len(catalog))
    return catalog


__all__ = [
    "CatalogValidationError",
    "StyleCategory",
    "StyleEntry",
    "StyleSuitability",
    "SuitabilityCatalog",
    "Tier",
    "load_catalog",
]
