"""
Colour gradients mapping a normalised value t in [0, 1] to RGB.

Rendering never evaluates a gradient per dot: `build_lut` tabulates a scheme
at 256 points once and the renderer indexes the table.
"""

from __future__ import annotations

import math
from enum import Enum
from functools import lru_cache
from typing import Tuple

import matplotlib
import numpy as np

RGB = Tuple[int, int, int]

LUT_SIZE = 256

# Stops for the three-segment theme gradients.
GRADIENT_STOP_1 = 0.33
GRADIENT_STOP_2 = 0.66
GRADIENT_STOP_3_RANGE = 0.34
GRADIENT_MID = 0.5


class ColorScheme(Enum):
    ICE = "ice"
    FIRE = "fire"
    PLASMA = "plasma"
    VIRIDIS = "viridis"
    RAINBOW = "rainbow"
    GRAYSCALE = "grayscale"
    OCEAN = "ocean"
    NEON = "neon"
    LAGOON = "lagoon"
    VIOLET = "violet"
    HARVEST = "harvest"
    MIDNIGHT = "midnight"
    FROST = "frost"
    SUNSET = "sunset"
    MATRIX = "matrix"
    AMBER = "amber"

    @classmethod
    def parse(cls, value) -> "ColorScheme":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown colour scheme: {value!r}")

    def next(self) -> "ColorScheme":
        members = list(ColorScheme)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "ColorScheme":
        members = list(ColorScheme)
        return members[(members.index(self) - 1) % len(members)]


def _u8(v: float) -> int:
    return int(min(max(v, 0.0), 255.0))


def lerp_rgb(c1: RGB, c2: RGB, t: float) -> RGB:
    return (
        _u8(c1[0] + (c2[0] - c1[0]) * t),
        _u8(c1[1] + (c2[1] - c1[1]) * t),
        _u8(c1[2] + (c2[2] - c1[2]) * t),
    )


def _three_stop(t: float, c0: RGB, c1: RGB, c2: RGB, c3: RGB) -> RGB:
    if t < GRADIENT_STOP_1:
        return lerp_rgb(c0, c1, t / GRADIENT_STOP_1)
    if t < GRADIENT_STOP_2:
        return lerp_rgb(c1, c2, (t - GRADIENT_STOP_1) / GRADIENT_STOP_1)
    return lerp_rgb(c2, c3, (t - GRADIENT_STOP_2) / GRADIENT_STOP_3_RANGE)


def hsv_to_rgb(h: float, s: float, v: float) -> RGB:
    c = v * s
    x = c * (1.0 - abs((h / 60.0) % 2.0 - 1.0))
    m = v - c
    if h < 60.0:
        r, g, b = c, x, 0.0
    elif h < 120.0:
        r, g, b = x, c, 0.0
    elif h < 180.0:
        r, g, b = 0.0, c, x
    elif h < 240.0:
        r, g, b = 0.0, x, c
    elif h < 300.0:
        r, g, b = x, 0.0, c
    else:
        r, g, b = c, 0.0, x
    return _u8((r + m) * 255.0), _u8((g + m) * 255.0), _u8((b + m) * 255.0)


# Anchor colours of the theme gradients (dark background first).
_THEME_STOPS = {
    ColorScheme.LAGOON: ((25, 23, 36), (49, 116, 143), (246, 193, 119), (235, 188, 186)),
    ColorScheme.VIOLET: ((40, 42, 54), (189, 147, 249), (255, 121, 198), (139, 233, 253)),
    ColorScheme.HARVEST: ((40, 40, 40), (214, 93, 14), (215, 153, 33), (250, 189, 47)),
    ColorScheme.MIDNIGHT: ((26, 27, 38), (122, 162, 247), (187, 154, 247), (192, 202, 245)),
    ColorScheme.FROST: ((46, 52, 64), (94, 129, 172), (136, 192, 208), (236, 239, 244)),
    ColorScheme.SUNSET: ((26, 20, 35), (255, 107, 107), (255, 160, 122), (255, 230, 109)),
    ColorScheme.MATRIX: ((10, 10, 10), (0, 59, 0), (0, 255, 65), (173, 255, 47)),
    ColorScheme.AMBER: ((26, 26, 10), (139, 64, 0), (255, 176, 0), (255, 204, 0)),
}


def map_rgb(scheme: ColorScheme, t: float) -> RGB:
    """Evaluate `scheme` at `t` (clamped to [0, 1])."""
    t = min(max(float(t), 0.0), 1.0)
    if scheme is ColorScheme.ICE:
        # dark blue -> cyan -> white
        return _u8(t * 200.0 + 55.0 * t * t), _u8(t * 220.0 + 35.0 * t), _u8(180.0 + 75.0 * t)
    if scheme is ColorScheme.FIRE:
        # black -> red -> orange -> yellow -> white
        if t < GRADIENT_STOP_1:
            s = t / GRADIENT_STOP_1
            return _u8(s * 200.0), 0, 0
        if t < GRADIENT_STOP_2:
            s = (t - GRADIENT_STOP_1) / GRADIENT_STOP_1
            return _u8(200.0 + s * 55.0), _u8(s * 150.0), 0
        s = (t - GRADIENT_STOP_2) / GRADIENT_STOP_3_RANGE
        return 255, _u8(150.0 + s * 105.0), _u8(s * 200.0)
    if scheme is ColorScheme.PLASMA:
        r = _u8((0.5 + 0.5 * math.sin(2.0 * math.pi * t)) * 255.0)
        g = _u8((0.5 + 0.5 * math.sin(2.0 * math.pi * (t + 0.33))) * 200.0)
        b = _u8((0.5 + 0.5 * math.sin(2.0 * math.pi * (t + 0.67))) * 255.0)
        return max(r, 50), g, b
    if scheme is ColorScheme.VIRIDIS:
        return (
            _u8(68.0 + t * 185.0 * t),
            _u8(1.0 + t * 220.0),
            _u8(84.0 + 90.0 * (1.0 - t) * (1.0 - t * 0.5)),
        )
    if scheme is ColorScheme.RAINBOW:
        return hsv_to_rgb(t * 360.0 % 360.0, 1.0, 1.0)
    if scheme is ColorScheme.GRAYSCALE:
        v = _u8(t * 255.0)
        return v, v, v
    if scheme is ColorScheme.OCEAN:
        return _u8(t * 100.0), _u8(50.0 + t * 150.0), _u8(100.0 + t * 155.0)
    if scheme is ColorScheme.NEON:
        # magenta -> cyan -> green
        if t < GRADIENT_MID:
            s = t / GRADIENT_MID
            return _u8(255.0 - s * 255.0), _u8(s * 255.0), 255
        s = (t - GRADIENT_MID) / GRADIENT_MID
        return 0, 255, _u8(255.0 - s * 255.0)
    stops = _THEME_STOPS.get(scheme)
    if stops is None:
        raise ValueError(f"Unknown colour scheme: {scheme!r}")
    return _three_stop(t, *stops)


@lru_cache(maxsize=None)
def _cached_lut(scheme: ColorScheme) -> np.ndarray:
    lut = np.array(
        [map_rgb(scheme, i / (LUT_SIZE - 1)) for i in range(LUT_SIZE)], dtype=np.uint8
    )
    lut.setflags(write=False)
    return lut


def build_lut(scheme: ColorScheme) -> np.ndarray:
    """(256, 3) uint8 table of `scheme` sampled evenly over [0, 1]."""
    return _cached_lut(scheme)


@lru_cache(maxsize=32)
def colormap_lut(name: str) -> np.ndarray:
    """(256, 3) uint8 table sampled from a named matplotlib colormap."""
    cmap = matplotlib.colormaps[name]
    rgba = cmap(np.linspace(0.0, 1.0, LUT_SIZE))
    lut = np.clip(np.round(rgba[:, :3] * 255.0), 0, 255).astype(np.uint8)
    lut.setflags(write=False)
    return lut


def lut_lookup(lut: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Vectorised LUT access for an array of t values."""
    idx = (np.clip(t, 0.0, 1.0) * (LUT_SIZE - 1)).astype(np.int64)
    return lut[idx]


__all__ = [
    "ColorScheme",
    "LUT_SIZE",
    "build_lut",
    "colormap_lut",
    "hsv_to_rgb",
    "lerp_rgb",
    "lut_lookup",
    "map_rgb",
]
