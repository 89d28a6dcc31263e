"""Face detection helpers built on top of MediaPipe Face Mesh."""
from __future__ import annotations

import logging
import os
import threading
from io import BytesIO
from typing import Any, Callable, Optional, Tuple, Union

os.environ.setdefault("MEDIAPIPE_DISABLE_GPU", "1")
os.environ.setdefault("OPENCV_OPENCL_RUNTIME", "disabled")

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .types import LANDMARK_COUNT, REASON_MESSAGES, Absent, AbsentReason, Present

logger = logging.getLogger(__name__)

# refine_landmarks=True 이면 홍채 10점이 뒤에 추가됨 (468 + 10)
REFINED_LANDMARK_COUNT = 478

LandmarkResult = Union[Present, Absent]
MeshFactory = Callable[[], Any]


def load_image_to_bgr(
    image_bytes: bytes, exif_correction: bool = True
) -> Tuple[np.ndarray, Tuple[int, int]]:
    """Decode raw image bytes into a BGR ndarray and return its size.

    Parameters
    ----------
    image_bytes:
        Raw encoded image payload (e.g. JPEG/PNG).
    exif_correction:
        Whether to apply EXIF orientation transpose before conversion.

    Returns
    -------
    Tuple[np.ndarray, Tuple[int, int]]
        OpenCV-style BGR image and ``(width, height)`` tuple.

    Raises
    ------
    UnidentifiedImageError
        If the payload cannot be parsed as an image.
    """

    with Image.open(BytesIO(image_bytes)) as img:
        if exif_correction:
            img = ImageOps.exif_transpose(img)
        rgb_image = img.convert("RGB")
        np_rgb = np.asarray(rgb_image)

    bgr_image = cv2.cvtColor(np_rgb, cv2.COLOR_RGB2BGR)
    height, width = bgr_image.shape[:2]
    return bgr_image, (width, height)


def denormalise_landmarks(
    landmarks: np.ndarray, width: int, height: int
) -> np.ndarray:
    """Convert ``[0, 1]`` landmark x/y coordinates into pixel positions.

    Pixel ``(px, py)`` is ``floor(x * width), floor(y * height)``; a point is
    inside the frame when ``0 <= px < width`` and ``0 <= py < height``.
    """

    scale = np.array([width, height], dtype=np.float64)
    return np.floor(np.asarray(landmarks, dtype=np.float64)[:, :2] * scale)


def landmark_coverage(landmarks: np.ndarray) -> float:
    """Fraction of landmarks whose x/y fall inside the image frame."""

    xy = landmarks[:, :2]
    inside = np.all((xy >= 0.0) & (xy < 1.0), axis=1)
    return float(inside.mean()) if inside.size else 0.0


def _default_mesh_factory(
    min_detection_confidence: float, refine_landmarks: bool
) -> MeshFactory:
    def factory():
        import mediapipe as mp

        return mp.solutions.face_mesh.FaceMesh(
            static_image_mode=True,
            max_num_faces=1,
            refine_landmarks=refine_landmarks,
            min_detection_confidence=min_detection_confidence,
        )

    return factory


def _absent(reason: AbsentReason) -> Absent:
    return Absent(reason=reason, message=REASON_MESSAGES[reason])


class FaceMeshDetector:
    """Load-once adapter around the Face Mesh graph.

    The host constructs one detector and passes it into the pipeline. The
    graph is created on the first :meth:`init` (or :meth:`detect`) call and
    reused afterwards; a failed load is remembered until :meth:`close`.
    """

    def __init__(
        self,
        mesh_factory: Optional[MeshFactory] = None,
        *,
        min_detection_confidence: float = 0.5,
        refine_landmarks: bool = False,
    ) -> None:
        self._factory = mesh_factory or _default_mesh_factory(
            min_detection_confidence, refine_landmarks
        )
        self._mesh: Any = None
        self._load_failed = False
        self._lock = threading.Lock()

    def init(self) -> bool:
        with self._lock:
            if self._mesh is not None:
                return True
            if self._load_failed:
                return False
            logger.info("Initialising MediaPipe FaceMesh")
            try:
                self._mesh = self._factory()
            except Exception:  # noqa: BLE001 - any load error means unavailable
                logger.warning("FaceMesh initialisation failed", exc_info=True)
                self._load_failed = True
                return False
            return True

    def is_ready(self) -> bool:
        return self._mesh is not None

    def close(self) -> None:
        with self._lock:
            mesh, self._mesh = self._mesh, None
            self._load_failed = False
        if mesh is not None and hasattr(mesh, "close"):
            mesh.close()

    def detect(self, image_bgr: np.ndarray) -> LandmarkResult:
        """Detect one face and return its 468 normalised ``(x, y, z)`` landmarks."""

        if not self.init():
            return _absent(AbsentReason.MODEL_UNAVAILABLE)

        rgb_image = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
        # FaceMesh 그래프는 스레드 안전하지 않음
        with self._lock:
            mesh = self._mesh
            if mesh is None:
                logger.info("FaceMesh closed before detection")
                return _absent(AbsentReason.MODEL_UNAVAILABLE)
            results = mesh.process(rgb_image)

        if not results.multi_face_landmarks:
            logger.debug("No face landmarks detected by MediaPipe")
            return _absent(AbsentReason.NO_FACE)

        face_landmarks = results.multi_face_landmarks[0].landmark
        coords = np.zeros((len(face_landmarks), 3), dtype=np.float32)
        for idx, landmark in enumerate(face_landmarks):
            coords[idx] = (landmark.x, landmark.y, landmark.z)

        if coords.shape[0] == REFINED_LANDMARK_COUNT:
            coords = coords[:LANDMARK_COUNT]
        if coords.shape[0] != LANDMARK_COUNT or not np.all(np.isfinite(coords)):
            logger.info("Rejected malformed landmark set (%d points)", coords.shape[0])
            return _absent(AbsentReason.INSUFFICIENT_LANDMARKS)

        logger.debug("Detected %d landmarks", coords.shape[0])
        return Present(landmarks=coords, coverage=landmark_coverage(coords))

    def detect_bytes(
        self, image_bytes: bytes, exif_correction: bool = True
    ) -> Tuple[LandmarkResult, Optional[np.ndarray]]:
        """Decode ``image_bytes`` and detect; returns the result and decoded image."""

        try:
            image_bgr, _ = load_image_to_bgr(image_bytes, exif_correction=exif_correction)
        except (UnidentifiedImageError, OSError):
            logger.debug("Failed to decode image payload", exc_info=True)
            return _absent(AbsentReason.INVALID_IMAGE), None
        return self.detect(image_bgr), image_bgr


__all__ = [
    "FaceMeshDetector",
    "LandmarkResult",
    "load_image_to_bgr",
    "denormalise_landmarks",
    "landmark_coverage",
]
