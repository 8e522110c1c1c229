"""
Probabilistic attachment of walkers that touch the structure.

    tip_weight = 1 - n / max_n
    p = stickiness * (tip * tip_weight + side * (1 - tip_weight))
    p = clamp(p + gradient * distance / 100, 0, 1)

A walker with few occupied neighbours sits at a branch tip; one surrounded
by structure sits on a side. A uniform draw `u < p` decides the stick.
"""

from __future__ import annotations

from typing import NamedTuple, Tuple

import numpy as np

from .config import DLAParams, Neighborhood
from .occupancy import OccupancyIndex


class StickDecision(NamedTuple):
    stuck: bool
    neighbors: int
    probability: float


def stick_probability(
    neighbors: int, shape: Neighborhood, distance: float, params: DLAParams
) -> float:
    max_n = shape.slots
    tip_weight = 1.0 - min(neighbors, max_n) / max_n
    p = params.tip_stickiness * tip_weight + params.side_stickiness * (1.0 - tip_weight)
    p *= params.stickiness
    p += params.stickiness_gradient * (distance / 100.0)
    return min(max(p, 0.0), 1.0)


def evaluate_contact(
    occupancy: OccupancyIndex,
    cell: Tuple[int, int],
    distance: float,
    params: DLAParams,
    rng: np.random.Generator,
    *,
    edges_occupied: bool = False,
    wrap: bool = False,
    edge_contact: bool = False,
) -> StickDecision:
    """
    Decide whether a walker at `cell` attaches.

    `edge_contact` marks a walker whose last move ran into a sticky grid
    edge; the edge then counts as one occupied neighbour even when it lies
    beyond the neighbourhood. No random number is consumed unless the walker
    has at least `multi_contact` occupied neighbours.
    """
    shape = params.neighborhood
    n = occupancy.neighbor_count(cell, shape, edges_occupied=edges_occupied, wrap=wrap)
    if edge_contact:
        n = max(n, 1)
    if n == 0 or n < params.multi_contact:
        return StickDecision(False, n, 0.0)
    p = stick_probability(n, shape, distance, params)
    return StickDecision(bool(rng.random() < p), n, p)


__all__ = ["StickDecision", "evaluate_contact", "stick_probability"]
