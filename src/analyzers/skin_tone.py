"""Skin tone sampling from face landmarks."""
from __future__ import annotations

import logging
import math
from typing import Mapping, NamedTuple, Optional

import numpy as np

from .config import THRESHOLDS, SkinSampleConfig
from .face_detection import denormalise_landmarks
from .types import SkinTone, decode_hex, encode_hex

logger = logging.getLogger(__name__)

# Face Mesh 기준 샘플 지점 (이마, 양 볼, 코)
SAMPLE_LANDMARK_NAMES: Mapping[int, str] = {
    10: "forehead",
    234: "left_cheek",
    454: "right_cheek",
    1: "nose_bridge",
    4: "nose_tip",
}


class SkinSample(NamedTuple):
    skin_tone: SkinTone
    valid_samples: int
    total_samples: int

    @property
    def used_default(self) -> bool:
        return self.valid_samples == 0


def _in_frame(pixel: np.ndarray, width: int, height: int) -> bool:
    px, py = pixel
    if not (math.isfinite(px) and math.isfinite(py)):
        return False
    return 0 <= px < width and 0 <= py < height


def sample_skin_tone(
    image_bgr: np.ndarray,
    landmarks: np.ndarray,
    config: Optional[SkinSampleConfig] = None,
) -> SkinSample:
    """Average the pixel colour under the sample landmarks.

    Out-of-frame samples are skipped; with no valid sample the configured
    neutral default is returned instead.
    """

    cfg = config or THRESHOLDS.skin_sample
    height, width = image_bgr.shape[:2]
    pixels = denormalise_landmarks(landmarks, width, height)

    totals = np.zeros(3, dtype=np.int64)
    valid = 0
    for index in cfg.indices:
        name = SAMPLE_LANDMARK_NAMES.get(index, str(index))
        if index >= pixels.shape[0]:
            logger.debug("Sample %s missing from landmark set", name)
            continue
        if not _in_frame(pixels[index], width, height):
            logger.debug("Sample %s out of bounds", name)
            continue
        px, py = (int(v) for v in pixels[index])
        blue, green, red = (int(v) for v in image_bgr[py, px, :3])
        totals += (red, green, blue)
        valid += 1

    if valid == 0:
        logger.info("No skin sample inside the image; using default tone")
        return SkinSample(SkinTone.from_rgb(*cfg.default_rgb), 0, len(cfg.indices))

    # 반올림 (.5 는 올림)
    r, g, b = (int(math.floor(total / valid + 0.5)) for total in totals)
    tone = SkinTone.from_rgb(r, g, b)
    logger.debug("Skin tone from %d samples: %s", valid, tone.hex)
    return SkinSample(tone, valid, len(cfg.indices))


__all__ = [
    "SAMPLE_LANDMARK_NAMES",
    "SkinSample",
    "sample_skin_tone",
    "encode_hex",
    "decode_hex",
]
