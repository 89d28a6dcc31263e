"""FastAPI application exposing face analysis and style recommendation APIs."""
from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

import cv2
from fastapi import Body, FastAPI, Header, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator
from starlette import status
from starlette.responses import Response

from src.analyzers import (
    AbsentReason,
    FaceAnalysisResult,
    FaceAnalyzer,
    FaceMeshDetector,
    ServiceSettings,
    analyze_face_shape,
)
from src.analyzers.face_detection import denormalise_landmarks, load_image_to_bgr
from src.recommendation import (
    StyleCategory,
    SuitabilityCatalog,
    load_catalog,
    recommended_styles,
    score_catalog,
)

logger = logging.getLogger(__name__)
app = FastAPI(title="Style Fit Service", version="1.0.0")

DATA_URL_PATTERN = re.compile(r"^data:image/[^;]+;base64,")

ERROR_REASONS = {AbsentReason.INVALID_IMAGE, AbsentReason.MODEL_UNAVAILABLE}

settings = ServiceSettings.from_env()
detector = FaceMeshDetector(
    min_detection_confidence=settings.min_detection_confidence,
    refine_landmarks=settings.refine_landmarks,
)
face_analyzer = FaceAnalyzer(detector)
catalog = (
    load_catalog(settings.catalog_path)
    if settings.catalog_path
    else SuitabilityCatalog([])
)


class AnalyzeOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    trace_id: Optional[str] = Field(default=None, alias="traceId")
    exif_correction: bool = Field(default=True, alias="exif_correction")
    debug: Optional[bool] = Field(default=None, alias="debug")
    include_landmarks: bool = Field(default=False, alias="include_landmarks")

    @model_validator(mode="before")
    @classmethod
    def _compat(cls, values: Any):  # type: ignore[override]
        if not isinstance(values, dict):
            return values
        # 역호환: camelCase → snake_case
        if "trace_id" not in values and "traceId" in values:
            values["trace_id"] = values.pop("traceId")
        if "exif_correction" not in values and "exifCorrection" in values:
            values["exif_correction"] = values.pop("exifCorrection")
        if "include_landmarks" not in values and "includeLandmarks" in values:
            values["include_landmarks"] = values.pop("includeLandmarks")
        return values


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    image_base64: str = Field(alias="image_base64")
    options: Optional[AnalyzeOptions] = None

    @model_validator(mode="before")
    @classmethod
    def _compat(cls, values: Any):  # type: ignore[override]
        if not isinstance(values, dict):
            return values
        # 역호환: camelCase → snake_case
        if "image_base64" not in values and "imageBase64" in values:
            values["image_base64"] = values.pop("imageBase64")
        return values


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    analysis: FaceAnalysisResult
    category: Optional[StyleCategory] = None
    recommended_only: bool = Field(default=False, alias="recommendedOnly")


class ScoredStyle(BaseModel):
    id: str
    name: str
    category: StyleCategory
    score: int
    meetsGoodThreshold: bool
    isTopTier: bool


class RecommendationResponse(BaseModel):
    status: Literal["ok"] = "ok"
    styles: List[ScoredStyle]


def _decode_base64_image(data: str) -> Optional[bytes]:
    if DATA_URL_PATTERN.match(data):
        _, encoded = data.split(",", 1)
    else:
        encoded = data
    try:
        return base64.b64decode(encoded)
    except (ValueError, binascii.Error):  # pragma: no cover
        return None


def _draw_landmarks(image_bgr, landmarks):
    overlay = image_bgr.copy()
    height, width = overlay.shape[:2]
    for x, y in denormalise_landmarks(landmarks, width, height).astype(int):
        cv2.circle(overlay, (int(x), int(y)), 1, (0, 255, 0), thickness=-1)
    success, buffer = cv2.imencode(".png", overlay)
    if not success:  # pragma: no cover - OpenCV failure is rare but handled
        return None
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def _status_for(result: FaceAnalysisResult) -> str:
    if result.detected:
        return "ok"
    return "error" if result.reason in ERROR_REASONS else "guardrail"


def _analysis_payload(
    result: FaceAnalysisResult,
    trace_id: str,
    image_bgr=None,
    debug: bool = False,
    include_landmarks: bool = False,
) -> Dict[str, Any]:
    payload = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    landmarks = payload.pop("landmarks", None)
    if include_landmarks and landmarks is not None:
        payload["landmarks"] = landmarks
    if debug and image_bgr is not None and result.landmarks:
        debug_image = _draw_landmarks(image_bgr, result.landmarks)
        if debug_image:
            payload["debug_image_base64"] = debug_image

    payload["status"] = _status_for(result)
    if result.reason is not None:
        payload["code"] = result.reason.value
    payload["traceId"] = trace_id
    return payload


def _invalid_image(trace_id: str) -> Dict[str, Any]:
    result = FaceAnalysisResult.undetected(AbsentReason.INVALID_IMAGE)
    return _analysis_payload(result, trace_id)


def _response_with_trace_dict(payload: Dict[str, Any], trace_id: str) -> JSONResponse:
    """임의 dict 응답에 X-Trace-Id 헤더를 부여."""
    resp = JSONResponse(content=payload, status_code=status.HTTP_200_OK)
    resp.headers["X-Trace-Id"] = trace_id
    return resp


def _run_analysis(
    image_bytes: bytes,
    trace_id: str,
    debug: bool,
    exif_correction: bool,
    include_landmarks: bool = False,
) -> Dict[str, Any]:
    result = face_analyzer.analyze_bytes(image_bytes, exif_correction=exif_correction)

    image_bgr = None
    if debug and result.landmarks:
        # 디버그 오버레이용 원본 이미지
        image_bgr, _ = load_image_to_bgr(image_bytes, exif_correction=exif_correction)
    return _analysis_payload(
        result,
        trace_id,
        image_bgr=image_bgr,
        debug=debug,
        include_landmarks=include_landmarks,
    )


def _run_face_shape(image_bytes: bytes, trace_id: str, exif_correction: bool) -> Dict[str, Any]:
    detection, _ = face_analyzer.detector.detect_bytes(
        image_bytes, exif_correction=exif_correction
    )
    if not detection.present:
        result = {
            "status": "error" if detection.reason in ERROR_REASONS else "guardrail",
            "code": detection.reason.value,
            "message": detection.message,
        }
    else:
        result = analyze_face_shape(detection.landmarks, face_analyzer.thresholds.face_shape)
    result.setdefault("traceId", trace_id)
    return result


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok", "detectorReady": detector.is_ready()}


@app.post("/analyze")
def analyze(
    request: AnalyzeRequest = Body(...),
    x_trace_id: Optional[str] = Header(default=None, alias="X-Trace-Id"),
    debug: bool = Query(default=False),
) -> Response:
    options = request.options
    trace_id = x_trace_id or (options.trace_id if options else None) or str(uuid4())

    effective_debug = debug or (options.debug if options and options.debug is not None else False)
    exif_correction = options.exif_correction if options else True
    include_landmarks = options.include_landmarks if options else False

    image_bytes = _decode_base64_image(request.image_base64)
    if image_bytes is None:
        return _response_with_trace_dict(_invalid_image(trace_id), trace_id)

    payload = _run_analysis(
        image_bytes, trace_id, effective_debug, exif_correction, include_landmarks
    )
    return _response_with_trace_dict(payload, trace_id)


@app.post("/analyze/file")
def analyze_file(
    file: UploadFile,
    x_trace_id: Optional[str] = Header(default=None, alias="X-Trace-Id"),
    debug: bool = Query(default=False),
    exif_correction: bool = Query(default=True),
) -> Response:
    trace_id = x_trace_id or str(uuid4())
    payload = _run_analysis(file.file.read(), trace_id, debug, exif_correction)
    return _response_with_trace_dict(payload, trace_id)


# ------------------ Face shape endpoints ------------------ #
@app.post("/face-shape")
def face_shape_json(
    request: AnalyzeRequest = Body(...),
    x_trace_id: Optional[str] = Header(default=None, alias="X-Trace-Id"),
) -> Response:
    options = request.options
    trace_id = x_trace_id or (options.trace_id if options else None) or str(uuid4())
    exif_correction = options.exif_correction if options else True

    image_bytes = _decode_base64_image(request.image_base64)
    if image_bytes is None:
        return _response_with_trace_dict(
            {"status": "error", "code": "INVALID_IMAGE", "traceId": trace_id},
            trace_id,
        )

    result = _run_face_shape(image_bytes, trace_id, exif_correction)
    return _response_with_trace_dict(result, trace_id)


@app.post("/face-shape/file")
def face_shape_file(
    file: UploadFile,
    x_trace_id: Optional[str] = Header(default=None, alias="X-Trace-Id"),
    exif_correction: bool = Query(default=True),
) -> Response:
    trace_id = x_trace_id or str(uuid4())
    result = _run_face_shape(file.file.read(), trace_id, exif_correction)
    return _response_with_trace_dict(result, trace_id)


# ------------------ Recommendation endpoints ------------------ #
@app.get("/styles")
def list_styles() -> Dict[str, Any]:
    return {
        "status": "ok",
        "styles": [entry.model_dump(mode="json", by_alias=True, exclude_none=True) for entry in catalog],
    }


@app.post("/recommendations")
def recommendations(
    request: RecommendationRequest = Body(...),
    x_trace_id: Optional[str] = Header(default=None, alias="X-Trace-Id"),
) -> Response:
    trace_id = x_trace_id or str(uuid4())
    if request.recommended_only:
        scored = recommended_styles(request.analysis, catalog, request.category)
    else:
        scored = [
            pair
            for pair in score_catalog(request.analysis, catalog)
            if request.category is None or pair[0].category is request.category
        ]

    body = RecommendationResponse(
        styles=[
            ScoredStyle(id=style.id, name=style.name, category=style.category, **score.to_dict())
            for style, score in scored
        ]
    )
    return _response_with_trace_dict(body.model_dump(mode="json"), trace_id)


__all__ = ("app",)
