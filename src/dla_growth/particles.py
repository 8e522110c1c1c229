from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Particle:
    """Read-only view of one attached particle."""

    key: int
    x: int
    y: int
    age: int
    neighbors: int
    angle: float
    distance: float


class ParticleTable:
    """
    Column arena of attached particles, indexed by integer key.

    Rows are only ever appended, so slices handed out by `columns()` stay
    valid after later growth (a reallocation leaves old views on the old
    buffer, which is never written again).
    """

    def __init__(self, capacity: int = 1024) -> None:
        capacity = max(16, int(capacity))
        self.x = np.zeros(capacity, dtype=np.int32)
        self.y = np.zeros(capacity, dtype=np.int32)
        self.age = np.zeros(capacity, dtype=np.int64)
        self.neighbors = np.zeros(capacity, dtype=np.int16)
        self.angle = np.zeros(capacity, dtype=np.float64)
        self.distance = np.zeros(capacity, dtype=np.float64)
        self.count = 0

    def __len__(self) -> int:
        return self.count

    @property
    def capacity(self) -> int:
        return self.x.shape[0]

    def _grow(self) -> None:
        new_cap = self.capacity * 2
        for name in ("x", "y", "age", "neighbors", "angle", "distance"):
            old = getattr(self, name)
            new = np.zeros(new_cap, dtype=old.dtype)
            new[: self.count] = old[: self.count]
            setattr(self, name, new)

    def append(self, x: int, y: int, neighbors: int, angle: float, distance: float) -> int:
        """Store a particle and return its key; its age is key + 1."""
        if self.count == self.capacity:
            self._grow()
        key = self.count
        self.x[key] = x
        self.y[key] = y
        self.age[key] = key + 1
        self.neighbors[key] = neighbors
        self.angle[key] = angle
        self.distance[key] = distance
        self.count += 1
        return key

    def get(self, key: int) -> Particle:
        if not 0 <= key < self.count:
            raise RuntimeError(
                f"Particle key {key} is not in the table (count={self.count})"
            )
        return Particle(
            key=key,
            x=int(self.x[key]),
            y=int(self.y[key]),
            age=int(self.age[key]),
            neighbors=int(self.neighbors[key]),
            angle=float(self.angle[key]),
            distance=float(self.distance[key]),
        )

    def columns(self):
        """Return views of the live rows: (x, y, age, neighbors, angle, distance)."""
        n = self.count
        return (
            self.x[:n],
            self.y[:n],
            self.age[:n],
            self.neighbors[:n],
            self.angle[:n],
            self.distance[:n],
        )

    def positions(self) -> np.ndarray:
        """(N, 2) integer array of attached cells."""
        return np.column_stack((self.x[: self.count], self.y[: self.count]))


__all__ = ["Particle", "ParticleTable"]
