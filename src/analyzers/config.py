"""Classification thresholds and service settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class FaceShapeThresholds:
    """Ratio boundaries for the geometry classifier (all strict comparisons)."""

    long_hw: float = 1.35        # hwRatio above -> elongated band
    wide_hw: float = 1.1         # hwRatio below -> wide band
    oval_jw: float = 0.7         # elongated band: jwRatio below -> Oval
    round_jw: float = 0.85       # wide band: jwRatio above -> Round
    heart_jw: float = 0.68       # middle band: jwRatio below -> Heart
    diamond_jw: float = 0.88     # middle band: jwRatio above -> Diamond


@dataclass(frozen=True)
class PersonalColorThresholds:
    warm: float = 0.08
    brightness: float = 0.6
    warm_saturation: float = 0.3
    cool_saturation: float = 0.25


@dataclass(frozen=True)
class SkinSampleConfig:
    # forehead, left cheek, right cheek, nose bridge, nose tip
    indices: Tuple[int, ...] = (10, 234, 454, 1, 4)
    default_rgb: Tuple[int, int, int] = (200, 150, 120)


@dataclass(frozen=True)
class AnalysisThresholds:
    face_shape: FaceShapeThresholds = field(default_factory=FaceShapeThresholds)
    personal_color: PersonalColorThresholds = field(default_factory=PersonalColorThresholds)
    skin_sample: SkinSampleConfig = field(default_factory=SkinSampleConfig)


THRESHOLDS = AnalysisThresholds()


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ServiceSettings:
    catalog_path: Optional[str] = None
    min_detection_confidence: float = 0.5
    refine_landmarks: bool = False

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        return cls(
            catalog_path=os.environ.get("STYLE_CATALOG_PATH") or None,
            min_detection_confidence=float(
                os.environ.get("FACE_MESH_MIN_CONFIDENCE", "0.5")
            ),
            refine_landmarks=_env_bool(
                os.environ.get("FACE_MESH_REFINE_LANDMARKS"), False
            ),
        )


__all__ = [
    "AnalysisThresholds",
    "FaceShapeThresholds",
    "PersonalColorThresholds",
    "ServiceSettings",
    "SkinSampleConfig",
    "THRESHOLDS",
]
