"""Face-shape classification utilities (MediaPipe landmarks 기반)."""
from __future__ import annotations

import logging
from typing import Any, Dict, NamedTuple, Optional, Union

import numpy as np

from .config import THRESHOLDS, FaceShapeThresholds
from .types import LANDMARK_COUNT, FaceShape, Indeterminate

logger = logging.getLogger(__name__)

# Face Mesh 토폴로지 기준 측정 지점
SHAPE_LANDMARKS: Dict[str, int] = {
    "forehead_top": 10,
    "chin_bottom": 152,
    "left_cheek": 234,
    "right_cheek": 454,
    "left_jaw": 172,
    "right_jaw": 397,
}


class FaceMetrics(NamedTuple):
    face_width: float
    face_height: float
    jaw_width: float
    hw_ratio: float
    jw_ratio: float


# ------------------------- 내부 유틸 ------------------------- #
def _validate(landmarks: Any) -> Union[np.ndarray, Indeterminate]:
    if landmarks is None:
        return Indeterminate("NO_LANDMARKS")
    try:
        arr = np.asarray(landmarks, dtype=np.float64)
    except (TypeError, ValueError):
        return Indeterminate("MALFORMED_LANDMARKS")
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        return Indeterminate("MALFORMED_LANDMARKS")
    if arr.shape[0] != LANDMARK_COUNT:
        return Indeterminate("INSUFFICIENT_LANDMARKS")
    if not np.all(np.isfinite(arr)):
        return Indeterminate("MALFORMED_LANDMARKS")
    return arr


def compute_face_metrics(landmarks: np.ndarray) -> FaceMetrics:
    """Measure widths/height from the six shape landmarks (normalised units)."""

    pts = np.asarray(landmarks, dtype=np.float64)
    idx = SHAPE_LANDMARKS
    face_width = abs(pts[idx["right_cheek"], 0] - pts[idx["left_cheek"], 0])
    face_height = abs(pts[idx["chin_bottom"], 1] - pts[idx["forehead_top"], 1])
    jaw_width = abs(pts[idx["right_jaw"], 0] - pts[idx["left_jaw"], 0])
    if face_width == 0.0:
        raise ZeroDivisionError("face width is zero")
    return FaceMetrics(
        face_width=float(face_width),
        face_height=float(face_height),
        jaw_width=float(jaw_width),
        hw_ratio=float(face_height / face_width),
        jw_ratio=float(jaw_width / face_width),
    )


def classify_from_ratios(
    hw_ratio: float,
    jw_ratio: float,
    thresholds: Optional[FaceShapeThresholds] = None,
) -> FaceShape:
    """Map the two ratios onto a shape; first matching rule wins.

    Boundary values fall through to the next comparison, so ``hw_ratio`` equal
    to ``long_hw`` or ``wide_hw`` lands in the middle band.
    """

    t = thresholds or THRESHOLDS.face_shape
    if hw_ratio > t.long_hw:
        return FaceShape.OVAL if jw_ratio < t.oval_jw else FaceShape.LONG
    if hw_ratio < t.wide_hw:
        return FaceShape.ROUND if jw_ratio > t.round_jw else FaceShape.SQUARE
    if jw_ratio < t.heart_jw:
        return FaceShape.HEART
    if jw_ratio > t.diamond_jw:
        return FaceShape.DIAMOND
    return FaceShape.OBLONG


# ------------------------- 외부 API ------------------------- #
def classify_face_shape(
    landmarks: Any,
    thresholds: Optional[FaceShapeThresholds] = None,
) -> Union[FaceShape, Indeterminate]:
    """468-point landmarks -> FaceShape, or Indeterminate when unusable."""

    arr = _validate(landmarks)
    if isinstance(arr, Indeterminate):
        logger.debug("Face shape indeterminate: %s", arr.reason)
        return arr
    try:
        m = compute_face_metrics(arr)
    except ZeroDivisionError:
        logger.debug("Face shape indeterminate: zero face width")
        return Indeterminate("DEGENERATE_GEOMETRY")

    shape = classify_from_ratios(m.hw_ratio, m.jw_ratio, thresholds)
    logger.debug(
        "Face ratios hw=%.3f jw=%.3f -> %s", m.hw_ratio, m.jw_ratio, shape.value
    )
    return shape


def analyze_face_shape(
    landmarks: Any,
    thresholds: Optional[FaceShapeThresholds] = None,
) -> Dict[str, Any]:
    """
    landmarks로 얼굴형을 분석.
    반환: {"status", "shape", "metrics"} 또는 {"status": "guardrail", "code"}
    """
    shape = classify_face_shape(landmarks, thresholds)
    if isinstance(shape, Indeterminate):
        return {"status": "guardrail", "code": shape.reason}
    m = compute_face_metrics(np.asarray(landmarks, dtype=np.float64))
    return {"status": "ok", "shape": shape.value, "metrics": m._asdict()}


__all__ = [
    "SHAPE_LANDMARKS",
    "FaceMetrics",
    "analyze_face_shape",
    "classify_face_shape",
    "classify_from_ratios",
    "compute_face_metrics",
]
