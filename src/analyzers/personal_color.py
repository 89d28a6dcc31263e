"""Personal color classification from a sampled skin tone."""
from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Union

import numpy as np
from skimage import color as skcolor

from .config import THRESHOLDS, PersonalColorThresholds
from .types import PersonalColor, SkinTone

logger = logging.getLogger(__name__)


DEFAULT_PALETTES: Dict[str, list[str]] = {
    "Spring": ["#f8c2a3", "#f5e6a8", "#f7dad9", "#ffb7b2"],
    "Summer": ["#a8c8e8", "#e9bfd1", "#9ec3b1", "#f5e6a8"],
    "Autumn": ["#b46a55", "#d39f6b", "#f2c572", "#865640"],
    "Winter": ["#5b6dce", "#b6cae3", "#6ed0d4", "#f5f5f5"],
}

# (웜/쿨, 밝음/깊음, 선명/뮤트) -> 카테고리
_CATEGORY_TABLE = {
    (True, True, True): PersonalColor.SPRING_WARM_BRIGHT,
    (True, True, False): PersonalColor.SPRING_WARM_MUTED,
    (True, False, True): PersonalColor.AUTUMN_WARM_BRIGHT,
    (True, False, False): PersonalColor.AUTUMN_WARM_MUTED,
    (False, True, True): PersonalColor.SUMMER_COOL_BRIGHT,
    (False, True, False): PersonalColor.SUMMER_COOL_MUTED,
    (False, False, True): PersonalColor.WINTER_COOL_BRIGHT,
    (False, False, False): PersonalColor.WINTER_COOL_MUTED,
}


def color_metrics(r: int, g: int, b: int) -> Dict[str, float]:
    """Return warmth, brightness and saturation for an RGB triple."""

    high = max(r, g, b)
    low = min(r, g, b)
    return {
        "warmth": (r - b) / 255.0,
        "brightness": (r + g + b) / (3 * 255.0),
        "saturation": 0.0 if high == 0 else (high - low) / high,
    }


def classify_personal_color(
    skin: Union[SkinTone, tuple],
    thresholds: Optional[PersonalColorThresholds] = None,
) -> PersonalColor:
    """Warm/cool, then light/deep, then bright/muted."""

    t = thresholds or THRESHOLDS.personal_color
    r, g, b = skin.as_tuple() if isinstance(skin, SkinTone) else skin
    m = color_metrics(r, g, b)

    warm = m["warmth"] > t.warm
    light = m["brightness"] > t.brightness
    saturation_cut = t.warm_saturation if warm else t.cool_saturation
    vivid = m["saturation"] > saturation_cut

    category = _CATEGORY_TABLE[(warm, light, vivid)]
    logger.debug(
        "Colour metrics warmth=%.2f brightness=%.2f saturation=%.2f -> %s",
        m["warmth"], m["brightness"], m["saturation"], category.value,
    )
    return category


def lab_metrics(skin: SkinTone) -> Dict[str, float]:
    """CIELAB L*, a*, b* and ITA angle of the skin tone (diagnostic only)."""

    rgb = np.array([[skin.as_tuple()]], dtype=np.float32) / 255.0
    avg_L, avg_a, avg_b = skcolor.rgb2lab(rgb).reshape(3)
    ita = math.degrees(math.atan((avg_L - 50.0) / (avg_b + 1e-6)))
    return {
        "L": round(float(avg_L), 2),
        "a": round(float(avg_a), 2),
        "b": round(float(avg_b), 2),
        "ITA": round(float(ita), 2),
    }


def palette_for(category: PersonalColor) -> list[str]:
    return list(DEFAULT_PALETTES[category.season])


__all__ = [
    "DEFAULT_PALETTES",
    "classify_personal_color",
    "color_metrics",
    "lab_metrics",
    "palette_for",
]
