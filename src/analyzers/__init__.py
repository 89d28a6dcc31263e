"""Analysis modules exposed for FastAPI service."""

from .config import (  # noqa: F401
    THRESHOLDS,
    AnalysisThresholds,
    FaceShapeThresholds,
    PersonalColorThresholds,
    ServiceSettings,
    SkinSampleConfig,
)

from .types import (  # noqa: F401
    Absent,
    AbsentReason,
    FaceAnalysisResult,
    FaceShape,
    Indeterminate,
    PersonalColor,
    Present,
    SkinTone,
    decode_hex,
    encode_hex,
)

from .face_detection import FaceMeshDetector  # noqa: F401

from .face_shape import (  # noqa: F401
    analyze_face_shape,
    classify_face_shape,
    classify_from_ratios,
)

from .skin_tone import sample_skin_tone  # noqa: F401

from .personal_color import (  # noqa: F401
    classify_personal_color,
    color_metrics,
)

from .pipeline import FaceAnalyzer  # noqa: F401
from .session import AnalysisSession  # noqa: F401

__all__ = [
    "THRESHOLDS",
    "AnalysisThresholds",
    "FaceShapeThresholds",
    "PersonalColorThresholds",
    "ServiceSettings",
    "SkinSampleConfig",
    "Absent",
    "AbsentReason",
    "FaceAnalysisResult",
    "FaceShape",
    "Indeterminate",
    "PersonalColor",
    "Present",
    "SkinTone",
    "decode_hex",
    "encode_hex",
    "FaceMeshDetector",
    "analyze_face_shape",
    "classify_face_shape",
    "classify_from_ratios",
    "sample_skin_tone",
    "classify_personal_color",
    "color_metrics",
    "FaceAnalyzer",
    "AnalysisSession",
]
