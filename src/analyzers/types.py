"""Shared value types for the face analysis pipeline."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

LANDMARK_COUNT = 468

HEX_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})([0-9A-Fa-f]{2})$")


class FaceShape(str, Enum):
    OVAL = "Oval"
    ROUND = "Round"
    SQUARE = "Square"
    HEART = "Heart"
    LONG = "Long"
    DIAMOND = "Diamond"
    OBLONG = "Oblong"


class PersonalColor(str, Enum):
    SPRING_WARM_BRIGHT = "SpringWarmBright"
    SPRING_WARM_MUTED = "SpringWarmMuted"
    AUTUMN_WARM_BRIGHT = "AutumnWarmBright"
    AUTUMN_WARM_MUTED = "AutumnWarmMuted"
    SUMMER_COOL_BRIGHT = "SummerCoolBright"
    SUMMER_COOL_MUTED = "SummerCoolMuted"
    WINTER_COOL_BRIGHT = "WinterCoolBright"
    WINTER_COOL_MUTED = "WinterCoolMuted"

    @property
    def season(self) -> str:
        return re.match(r"[A-Z][a-z]+", self.value).group(0)

    @property
    def tone(self) -> str:
        return "Warm" if "Warm" in self.value else "Cool"


class AbsentReason(str, Enum):
    NO_FACE = "NO_FACE"
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    INVALID_IMAGE = "INVALID_IMAGE"
    INSUFFICIENT_LANDMARKS = "INSUFFICIENT_LANDMARKS"


# 사용자 안내 문구: 사진 문제(guidance)와 시스템 장애(fault)를 구분
REASON_MESSAGES: Dict[AbsentReason, str] = {
    AbsentReason.NO_FACE: "No face detected. Please upload a clearer front-facing photo.",
    AbsentReason.INSUFFICIENT_LANDMARKS: "The face could not be measured. Please upload a clearer front-facing photo.",
    AbsentReason.INVALID_IMAGE: "The uploaded file could not be read as an image.",
    AbsentReason.MODEL_UNAVAILABLE: "The analysis service is temporarily unavailable. Please try again later.",
}

SYSTEM_FAULT_REASONS = frozenset({AbsentReason.MODEL_UNAVAILABLE})


def encode_hex(r: int, g: int, b: int) -> str:
    """Encode an RGB triple as ``#rrggbb`` (lowercase)."""

    for channel in (r, g, b):
        if not 0 <= int(channel) <= 255:
            raise ValueError(f"channel out of range: {channel}")
    return "#{:02x}{:02x}{:02x}".format(int(r), int(g), int(b))


def decode_hex(value: str) -> Tuple[int, int, int]:
    match = HEX_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"invalid hex colour: {value!r}")
    r, g, b = (int(part, 16) for part in match.groups())
    return r, g, b


# ------------------------- 랜드마크 결과 ------------------------- #
@dataclass(frozen=True, eq=False)
class Present:
    """Detector found a face; ``landmarks`` is a ``(468, 3)`` normalised array."""

    landmarks: np.ndarray
    coverage: float = 1.0

    @property
    def present(self) -> bool:
        return True


@dataclass(frozen=True)
class Absent:
    reason: AbsentReason
    message: str = ""

    @property
    def present(self) -> bool:
        return False


@dataclass(frozen=True)
class Indeterminate:
    """Geometry classifier refused to guess a shape."""

    reason: str


# ------------------------- 분석 결과 모델 ------------------------- #
class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class SkinTone(_CamelModel):
    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)
    hex: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_hex(cls, values: Any):  # type: ignore[override]
        if not isinstance(values, dict):
            return values
        try:
            if values.get("hex"):
                # 대문자 / '#' 생략 입력은 소문자 '#rrggbb' 로 정규화
                values = dict(values, hex=encode_hex(*decode_hex(values["hex"])))
            else:
                values = dict(values, hex=encode_hex(values["r"], values["g"], values["b"]))
        except (AttributeError, KeyError, TypeError, ValueError):
            # 필드 검증에서 오류를 보고하도록 그대로 통과
            return values
        return values

    @model_validator(mode="after")
    def _check_hex(self) -> "SkinTone":
        if decode_hex(self.hex) != (self.r, self.g, self.b):
            raise ValueError(f"hex {self.hex!r} does not encode ({self.r}, {self.g}, {self.b})")
        return self

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> "SkinTone":
        r, g, b = int(r), int(g), int(b)
        return cls(r=r, g=g, b=b, hex=encode_hex(r, g, b))

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b


class FaceAnalysisResult(_CamelModel):
    detected: bool
    face_shape: Optional[FaceShape] = None
    personal_color: Optional[PersonalColor] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    skin_tone: Optional[SkinTone] = None
    landmarks: Optional[List[Tuple[float, float, float]]] = None
    message: str = ""
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[AbsentReason] = None
    metrics: Optional[Dict[str, float]] = None
    palette: Optional[List[str]] = None

    @model_validator(mode="after")
    def _undetected_is_empty(self) -> "FaceAnalysisResult":
        if not self.detected:
            filled = [
                name
                for name in ("face_shape", "personal_color", "skin_tone", "metrics", "palette")
                if getattr(self, name) is not None
            ]
            if filled:
                raise ValueError(f"undetected result must not carry {', '.join(filled)}")
            if self.confidence != 0.0:
                raise ValueError("undetected result must have zero confidence")
        return self

    @classmethod
    def undetected(
        cls, reason: AbsentReason, message: Optional[str] = None, **kwargs: Any
    ) -> "FaceAnalysisResult":
        return cls(
            detected=False,
            reason=reason,
            message=message or REASON_MESSAGES[reason],
            **kwargs,
        )

    @property
    def is_system_fault(self) -> bool:
        return self.reason in SYSTEM_FAULT_REASONS


__all__ = [
    "LANDMARK_COUNT",
    "FaceShape",
    "PersonalColor",
    "AbsentReason",
    "REASON_MESSAGES",
    "Present",
    "Absent",
    "Indeterminate",
    "SkinTone",
    "FaceAnalysisResult",
    "encode_hex",
    "decode_hex",
]
