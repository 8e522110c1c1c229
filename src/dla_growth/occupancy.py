"""
Dense occupancy index for the attached structure.

Every boundary behaviour keeps walkers on the plane, so the index is a flat
`int32` array of particle keys sized to the grid (`-1` marks an empty cell).
Lookups and inserts are O(1); neighbour counting runs in a Numba kernel.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numba import njit

from .config import Neighborhood

EMPTY = -1

###############################################################################
# Neighbour offset sets
###############################################################################

VON_NEUMANN_OFFSETS = np.array([[1, 0], [-1, 0], [0, 1], [0, -1]], dtype=np.int64)

MOORE_OFFSETS = np.array(
    [[dx, dy] for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)],
    dtype=np.int64,
)

EXTENDED_OFFSETS = np.array(
    [[dx, dy] for dy in range(-2, 3) for dx in range(-2, 3) if (dx, dy) != (0, 0)],
    dtype=np.int64,
)


def neighbor_offsets(shape: Neighborhood) -> np.ndarray:
    """Return the (k, 2) offset table for a neighbourhood shape."""
    if shape is Neighborhood.VON_NEUMANN:
        return VON_NEUMANN_OFFSETS
    if shape is Neighborhood.MOORE:
        return MOORE_OFFSETS
    if shape is Neighborhood.EXTENDED:
        return EXTENDED_OFFSETS
    raise ValueError(f"Unknown neighbourhood: {shape!r}")


class OccupancyError(RuntimeError):
    """Raised when an insert targets a cell that already holds a particle."""


###############################################################################
# Numba kernels
###############################################################################


@njit(cache=True)
def _neighbor_mask(keys, x, y, offsets, edges_occupied, wrap):
    """
    Flags, per offset, whether the neighbouring cell counts as occupied.

    Out-of-grid cells wrap around when `wrap` is set, otherwise they count
    as occupied only when `edges_occupied` is set.
    """
    h, w = keys.shape
    n = offsets.shape[0]
    mask = np.zeros(n, dtype=np.bool_)
    for i in range(n):
        nx = x + offsets[i, 0]
        ny = y + offsets[i, 1]
        if wrap:
            nx = nx % w
            ny = ny % h
        if nx < 0 or ny < 0 or nx >= w or ny >= h:
            mask[i] = edges_occupied
        else:
            mask[i] = keys[ny, nx] != -1
    return mask


@njit(cache=True)
def _count_neighbors(keys, x, y, offsets, edges_occupied, wrap):
    h, w = keys.shape
    count = 0
    for i in range(offsets.shape[0]):
        nx = x + offsets[i, 0]
        ny = y + offsets[i, 1]
        if wrap:
            nx = nx % w
            ny = ny % h
        if nx < 0 or ny < 0 or nx >= w or ny >= h:
            if edges_occupied:
                count += 1
        elif keys[ny, nx] != -1:
            count += 1
    return count


###############################################################################
# Index
###############################################################################


class OccupancyIndex:
    """Maps integer lattice cells to particle keys."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid extent must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.keys = np.full((self.height, self.width), EMPTY, dtype=np.int32)
        self._count = 0

    @property
    def extent(self) -> Tuple[int, int]:
        return self.width, self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_occupied(self, pos) -> bool:
        x, y = int(pos[0]), int(pos[1])
        if not self.in_bounds(x, y):
            return False
        return bool(self.keys[y, x] != EMPTY)

    def key_at(self, pos) -> int:
        """Particle key stored at `pos`, or -1."""
        x, y = int(pos[0]), int(pos[1])
        if not self.in_bounds(x, y):
            return EMPTY
        return int(self.keys[y, x])

    def insert(self, pos, particle_key: int) -> None:
        x, y = int(pos[0]), int(pos[1])
        if not self.in_bounds(x, y):
            raise OccupancyError(f"Cell ({x}, {y}) is outside the {self.width}x{self.height} grid")
        current = self.keys[y, x]
        if current != EMPTY:
            raise OccupancyError(
                f"Cell ({x}, {y}) already holds particle {int(current)}; "
                f"refusing to insert particle {particle_key}"
            )
        self.keys[y, x] = particle_key
        self._count += 1

    def neighbor_count(
        self,
        pos,
        shape: Neighborhood,
        *,
        edges_occupied: bool = False,
        wrap: bool = False,
    ) -> int:
        return int(
            _count_neighbors(
                self.keys,
                int(pos[0]),
                int(pos[1]),
                neighbor_offsets(shape),
                edges_occupied,
                wrap,
            )
        )

    def occupied_offsets(
        self,
        pos,
        shape: Neighborhood,
        *,
        edges_occupied: bool = False,
        wrap: bool = False,
    ) -> np.ndarray:
        """Return the subset of the shape's offsets that count as occupied."""
        offsets = neighbor_offsets(shape)
        mask = _neighbor_mask(
            self.keys, int(pos[0]), int(pos[1]), offsets, edges_occupied, wrap
        )
        return offsets[mask]

    def occupied_count(self) -> int:
        return self._count

    def clear(self) -> None:
        self.keys.fill(EMPTY)
        self._count = 0

    def copy_keys(self) -> np.ndarray:
        return self.keys.copy()


__all__ = [
    "EMPTY",
    "EXTENDED_OFFSETS",
    "MOORE_OFFSETS",
    "OccupancyError",
    "OccupancyIndex",
    "VON_NEUMANN_OFFSETS",
    "neighbor_offsets",
]
