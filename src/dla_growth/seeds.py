"""
Initial structure geometry for each seed pattern.

Each builder returns integer cells relative to nothing but the grid; the
engine inserts them in order as pre-attached particles before any walker is
launched. Duplicates and out-of-grid cells are dropped here.
"""

from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np

from .config import SeedPattern

Cell = Tuple[int, int]


def _point(cx, cy, width, height, rng) -> List[Cell]:
    return [(cx, cy)]


def _line(cx, cy, width, height, rng) -> List[Cell]:
    half_len = min(20, width // 4)
    return [(x, cy) for x in range(cx - half_len, cx + half_len)]


def _cross(cx, cy, width, height, rng) -> List[Cell]:
    arm_len = max(1, min(10, width // 8, height // 8))
    cells = []
    for i in range(arm_len):
        cells.extend([(cx - i, cy), (cx + i, cy), (cx, cy - i), (cx, cy + i)])
    return cells


def _outline(cx, cy, radius) -> List[Cell]:
    cells = []
    for deg in range(360):
        theta = math.radians(deg)
        cells.append((int(cx + radius * math.cos(theta)), int(cy + radius * math.sin(theta))))
    return cells


def _circle(cx, cy, width, height, rng) -> List[Cell]:
    radius = float(min(15, width // 8, height // 8))
    return _outline(cx, cy, radius)


def _ring(cx, cy, width, height, rng) -> List[Cell]:
    # Two-cell-thick annulus, larger than the circle seed.
    radius = float(min(30, width // 5, height // 5))
    return _outline(cx, cy, radius) + _outline(cx, cy, radius - 1.0)


def _block(cx, cy, width, height, rng) -> List[Cell]:
    half = max(1, min(4, width // 16, height // 16))
    return [
        (x, y)
        for y in range(cy - half, cy + half + 1)
        for x in range(cx - half, cx + half + 1)
    ]


def _noise(cx, cy, width, height, rng) -> List[Cell]:
    # Sparse random speckle inside a disc, always including the centre.
    radius = max(2, min(20, width // 8, height // 8))
    cells = [(cx, cy)]
    for y in range(cy - radius, cy + radius + 1):
        for x in range(cx - radius, cx + radius + 1):
            if (x - cx) ** 2 + (y - cy) ** 2 <= radius * radius and rng.random() < 0.08:
                cells.append((x, y))
    return cells


def _scatter(cx, cy, width, height, rng) -> List[Cell]:
    # Isolated nuclei spread over the middle of the grid.
    count = 12
    sx = max(1, int(width * 0.35))
    sy = max(1, int(height * 0.35))
    cells = [(cx, cy)]
    for _ in range(count - 1):
        cells.append((cx + int(rng.integers(-sx, sx + 1)), cy + int(rng.integers(-sy, sy + 1))))
    return cells


def _multipoint(cx, cy, width, height, rng) -> List[Cell]:
    dx = width // 4
    dy = height // 4
    return [
        (cx, cy),
        (cx - dx, cy - dy),
        (cx + dx, cy - dy),
        (cx - dx, cy + dy),
        (cx + dx, cy + dy),
    ]


def _starburst(cx, cy, width, height, rng) -> List[Cell]:
    length = max(2, min(12, width // 8, height // 8))
    cells = [(cx, cy)]
    for k in range(8):
        theta = k * math.pi / 4.0
        for step in range(1, length + 1):
            cells.append(
                (int(round(cx + step * math.cos(theta))), int(round(cy + step * math.sin(theta))))
            )
    return cells


_BUILDERS = {
    SeedPattern.POINT: _point,
    SeedPattern.LINE: _line,
    SeedPattern.CROSS: _cross,
    SeedPattern.CIRCLE: _circle,
    SeedPattern.RING: _ring,
    SeedPattern.BLOCK: _block,
    SeedPattern.NOISE: _noise,
    SeedPattern.SCATTER: _scatter,
    SeedPattern.MULTIPOINT: _multipoint,
    SeedPattern.STARBURST: _starburst,
}


def seed_cells(
    pattern: SeedPattern, width: int, height: int, rng: np.random.Generator
) -> np.ndarray:
    """
    Return the (k, 2) integer cells of a seed pattern centred on the grid.

    Order is preserved (first occurrence wins) so ages are reproducible.
    """
    builder = _BUILDERS.get(pattern)
    if builder is None:
        raise ValueError(f"Unknown seed pattern: {pattern!r}")
    cx, cy = width // 2, height // 2
    seen = set()
    cells = []
    for x, y in builder(cx, cy, width, height, rng):
        if 0 <= x < width and 0 <= y < height and (x, y) not in seen:
            seen.add((x, y))
            cells.append((x, y))
    return np.array(cells, dtype=np.int64).reshape(-1, 2)


__all__ = ["seed_cells"]
