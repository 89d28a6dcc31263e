"""End-to-end face analysis: landmarks -> shape, skin tone -> personal color."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import numpy as np

from .config import THRESHOLDS, AnalysisThresholds
from .face_detection import FaceMeshDetector, LandmarkResult
from .face_shape import classify_face_shape, compute_face_metrics
from .personal_color import (
    classify_personal_color,
    color_metrics,
    lab_metrics,
    palette_for,
)
from .skin_tone import sample_skin_tone
from .types import Absent, AbsentReason, FaceAnalysisResult, Indeterminate

logger = logging.getLogger(__name__)

ANALYSIS_COMPLETE_MESSAGE = "Analysis complete"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FaceAnalyzer:
    """Run the full analysis over one decoded photo."""

    def __init__(
        self,
        detector: FaceMeshDetector,
        thresholds: Optional[AnalysisThresholds] = None,
        clock: Optional[Callable[[], datetime]] = None,
        include_landmarks: bool = True,
    ) -> None:
        self.detector = detector
        self.thresholds = thresholds or THRESHOLDS
        self.clock = clock or _utcnow
        self.include_landmarks = include_landmarks

    def analyze(self, image_bgr: np.ndarray) -> FaceAnalysisResult:
        return self._from_detection(image_bgr, self.detector.detect(image_bgr))

    def analyze_bytes(
        self, image_bytes: bytes, exif_correction: bool = True
    ) -> FaceAnalysisResult:
        detection, image_bgr = self.detector.detect_bytes(
            image_bytes, exif_correction=exif_correction
        )
        return self._from_detection(image_bgr, detection)

    def _from_detection(
        self, image_bgr: Optional[np.ndarray], detection: LandmarkResult
    ) -> FaceAnalysisResult:
        analyzed_at = self.clock()
        if isinstance(detection, Absent):
            logger.info("Detection guardrail triggered: %s", detection.reason.value)
            return FaceAnalysisResult.undetected(
                detection.reason, detection.message or None, analyzed_at=analyzed_at
            )

        landmarks = detection.landmarks
        t = self.thresholds
        shape = classify_face_shape(landmarks, t.face_shape)
        if isinstance(shape, Indeterminate):
            logger.info("Face shape indeterminate: %s", shape.reason)
            return FaceAnalysisResult.undetected(
                AbsentReason.INSUFFICIENT_LANDMARKS, analyzed_at=analyzed_at
            )

        sample = sample_skin_tone(image_bgr, landmarks, t.skin_sample)
        skin = sample.skin_tone
        personal_color = classify_personal_color(skin, t.personal_color)

        geometry = compute_face_metrics(landmarks)
        metrics = {
            "hwRatio": round(geometry.hw_ratio, 4),
            "jwRatio": round(geometry.jw_ratio, 4),
            **{k: round(v, 4) for k, v in color_metrics(*skin.as_tuple()).items()},
            **lab_metrics(skin),
            "validSamples": float(sample.valid_samples),
        }

        # 신뢰도: 프레임 내 랜드마크 비율 x 유효 샘플 비율 (난수 사용 안 함)
        sample_ratio = sample.valid_samples / sample.total_samples if sample.total_samples else 0.0
        confidence = round(detection.coverage * (0.5 + 0.5 * sample_ratio), 4)

        points = None
        if self.include_landmarks:
            points = [tuple(float(v) for v in row) for row in np.asarray(landmarks)[:, :3]]

        return FaceAnalysisResult(
            detected=True,
            face_shape=shape,
            personal_color=personal_color,
            confidence=min(max(confidence, 0.0), 1.0),
            skin_tone=skin,
            landmarks=points,
            message=ANALYSIS_COMPLETE_MESSAGE,
            analyzed_at=analyzed_at,
            metrics=metrics,
            palette=palette_for(personal_color),
        )


__all__ = ["FaceAnalyzer", "ANALYSIS_COMPLETE_MESSAGE"]
