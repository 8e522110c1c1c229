"""
Walker launch positions.

All helpers are stateless: they read the growth radius, the spawn settings
and the grid extent, and draw from the engine's shared generator.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from .boundary import EDGE_EPS
from .config import DLAParams, SpawnMode
from .occupancy import EMPTY, OccupancyIndex

MAX_SPAWN_ATTEMPTS = 200
RANDOM_EXTERIOR_ATTEMPTS = 64


def circle_spawn_radius(growth_radius: float, spawn_offset: float, min_radius: float) -> float:
    """Launch circle radius: just outside the structure, never below `min_radius`."""
    return max(growth_radius + spawn_offset, min_radius)


def escape_radius(params: DLAParams, growth_radius: float) -> Optional[float]:
    """
    Distance from the origin beyond which a walker is relaunched.

    Only circle launches are escape-checked; the edge, corner and exterior
    modes start walkers at or near the grid edge, which may already lie past
    any radius derived from the structure.
    """
    if params.spawn_mode is not SpawnMode.CIRCLE:
        return None
    r_spawn = circle_spawn_radius(growth_radius, params.spawn_offset, params.min_radius)
    return r_spawn * params.escape_mult


def _clip(v: float, extent: int) -> float:
    return min(max(v, 0.0), extent - EDGE_EPS)


def _on_edge(side: str, rng: np.random.Generator, width: int, height: int) -> Tuple[float, float]:
    if side == "top":
        return _clip(rng.uniform(0.0, width), width), 0.0
    if side == "bottom":
        return _clip(rng.uniform(0.0, width), width), height - EDGE_EPS
    if side == "left":
        return 0.0, _clip(rng.uniform(0.0, height), height)
    return width - EDGE_EPS, _clip(rng.uniform(0.0, height), height)


_SIDES = ("top", "bottom", "left", "right")


def _sample(
    mode: SpawnMode,
    rng: np.random.Generator,
    growth_radius: float,
    spawn_offset: float,
    min_radius: float,
    extent: Tuple[int, int],
    origin: Tuple[float, float],
) -> Tuple[float, float]:
    width, height = extent
    cx, cy = origin
    if mode is SpawnMode.CIRCLE:
        r = circle_spawn_radius(growth_radius, spawn_offset, min_radius)
        theta = rng.uniform(0.0, 2.0 * math.pi)
        return _clip(cx + r * math.cos(theta), width), _clip(cy + r * math.sin(theta), height)
    if mode is SpawnMode.EDGES:
        return _on_edge(_SIDES[rng.integers(4)], rng, width, height)
    if mode is SpawnMode.CORNERS:
        corner = rng.integers(4)
        jx = rng.uniform(0.0, spawn_offset)
        jy = rng.uniform(0.0, spawn_offset)
        x = jx if corner in (0, 2) else width - jx
        y = jy if corner in (0, 1) else height - jy
        return _clip(x, width), _clip(y, height)
    if mode is SpawnMode.RANDOM:
        r_min = growth_radius + spawn_offset
        for _ in range(RANDOM_EXTERIOR_ATTEMPTS):
            x = rng.uniform(0.0, width)
            y = rng.uniform(0.0, height)
            if math.hypot(x - cx, y - cy) > r_min:
                return x, y
        # Structure covers the whole grid interior; launch from the edges.
        return _on_edge(_SIDES[rng.integers(4)], rng, width, height)
    if mode is SpawnMode.TOP:
        return _on_edge("top", rng, width, height)
    if mode is SpawnMode.BOTTOM:
        return _on_edge("bottom", rng, width, height)
    if mode is SpawnMode.LEFT:
        return _on_edge("left", rng, width, height)
    if mode is SpawnMode.RIGHT:
        return _on_edge("right", rng, width, height)
    raise ValueError(f"Unknown spawn mode: {mode!r}")


def _front_rank(
    mode: SpawnMode,
    growth_radius: float,
    spawn_offset: float,
    min_radius: float,
    extent: Tuple[int, int],
    origin: Tuple[float, float],
) -> np.ndarray:
    """
    Per-cell rank of how far a cell lies from the mode's launch region.

    Rank 0 is the region itself (a side, the border, the corner squares or
    the launch circle). When the structure has filled the region, the free
    cells of lowest rank form the launch front one step further in.
    """
    width, height = extent
    ys, xs = np.mgrid[0:height, 0:width]
    border = np.minimum(np.minimum(xs, width - 1 - xs), np.minimum(ys, height - 1 - ys))
    if mode is SpawnMode.TOP:
        return ys
    if mode is SpawnMode.BOTTOM:
        return height - 1 - ys
    if mode is SpawnMode.LEFT:
        return xs
    if mode is SpawnMode.RIGHT:
        return width - 1 - xs
    if mode is SpawnMode.EDGES:
        return border
    if mode is SpawnMode.CORNERS:
        dx = np.minimum(xs, width - 1 - xs)
        dy = np.minimum(ys, height - 1 - ys)
        reach = max(1, int(math.ceil(spawn_offset)))
        return np.maximum(dx, dy) // reach
    cx, cy = origin
    dist = np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)
    if mode is SpawnMode.CIRCLE:
        r = circle_spawn_radius(growth_radius, spawn_offset, min_radius)
        # A clipped launch circle lands on the border.
        return np.minimum(np.rint(np.abs(dist - r)), np.where(dist < r, border, np.inf))
    if mode is SpawnMode.RANDOM:
        return np.where(dist > growth_radius + spawn_offset, 0, border + 1)
    raise ValueError(f"Unknown spawn mode: {mode!r}")


def _front_cell(
    mode: SpawnMode,
    rng: np.random.Generator,
    occupancy: OccupancyIndex,
    growth_radius: float,
    spawn_offset: float,
    min_radius: float,
    extent: Tuple[int, int],
    origin: Tuple[float, float],
) -> Tuple[float, float]:
    free = occupancy.keys == EMPTY
    if not free.any():
        raise RuntimeError(
            f"No free launch cell for spawn mode {mode.value!r}; the grid is saturated"
        )
    rank = _front_rank(mode, growth_radius, spawn_offset, min_radius, extent, origin)
    lowest = rank[free].min()
    candidates = np.flatnonzero(free & (rank == lowest))
    iy, ix = divmod(int(candidates[rng.integers(candidates.size)]), extent[0])
    return ix + 0.5, iy + 0.5


def spawn_position(
    mode: SpawnMode,
    rng: np.random.Generator,
    occupancy: OccupancyIndex,
    growth_radius: float,
    spawn_offset: float,
    min_radius: float,
    extent: Tuple[int, int],
    origin: Tuple[float, float],
) -> Tuple[float, float]:
    """
    Draw a launch position that does not lie on an occupied cell.

    Rejection sampling covers the usual case. Once the launch region is
    crowded, a free cell on the region's inner front is picked uniformly.
    Raises RuntimeError only when no cell of the grid is free.
    """
    for _ in range(MAX_SPAWN_ATTEMPTS):
        x, y = _sample(mode, rng, growth_radius, spawn_offset, min_radius, extent, origin)
        if not occupancy.is_occupied((x, y)):
            return x, y
    return _front_cell(
        mode, rng, occupancy, growth_radius, spawn_offset, min_radius, extent, origin
    )


__all__ = [
    "MAX_SPAWN_ATTEMPTS",
    "circle_spawn_radius",
    "escape_radius",
    "spawn_position",
]
