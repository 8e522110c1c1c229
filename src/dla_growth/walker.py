"""
In-flight walkers: slot arena and the per-tick transition.

A walker is `WALKING` until one tick resolves it as `STUCK` (decided by the
sticking evaluator in the engine) or as one of the removal outcomes
(`ABSORBED`, `ESCAPED`, `TIMEOUT`), after which the engine relaunches the
slot.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import NamedTuple, Tuple

import numpy as np

from .boundary import BoundaryOutcome, apply_boundary
from .config import DLAParams
from .occupancy import OccupancyIndex
from .spawn import escape_radius

TWO_PI = 2.0 * math.pi

# Iterations between refreshes of a walker's cached adaptive multiplier.
ADAPTIVE_REFRESH = 8

CARDINAL_ANGLES = (0.0, 0.5 * math.pi, math.pi, 1.5 * math.pi)
CARDINAL_VECTORS = ((1.0, 0.0), (0.0, 1.0), (-1.0, 0.0), (0.0, -1.0))


class WalkerOutcome(Enum):
    WALKING = "walking"
    STUCK = "stuck"
    ABSORBED = "absorbed"
    ESCAPED = "escaped"
    TIMEOUT = "timeout"


class StepResult(NamedTuple):
    outcome: WalkerOutcome
    edge_contact: bool = False


###############################################################################
# Walker arena
###############################################################################


class WalkerPool:
    """Fixed-capacity slots holding walker state in parallel arrays."""

    def __init__(self, capacity: int = 128) -> None:
        self._allocate(max(1, int(capacity)))

    def _allocate(self, capacity: int) -> None:
        self.x = np.zeros(capacity, dtype=np.float64)
        self.y = np.zeros(capacity, dtype=np.float64)
        self.iterations = np.zeros(capacity, dtype=np.int64)
        self.bias_sx = np.ones(capacity, dtype=np.float64)
        self.bias_sy = np.ones(capacity, dtype=np.float64)
        self.step_mult = np.ones(capacity, dtype=np.float64)
        self.mult_age = np.zeros(capacity, dtype=np.int64)
        self.last_dx = np.zeros(capacity, dtype=np.float64)
        self.last_dy = np.zeros(capacity, dtype=np.float64)
        self.active = np.zeros(capacity, dtype=bool)

    @property
    def capacity(self) -> int:
        return self.x.shape[0]

    def ensure_capacity(self, capacity: int) -> None:
        if capacity <= self.capacity:
            return
        old = {name: getattr(self, name) for name in vars(self)}
        self._allocate(capacity)
        n = old["x"].shape[0]
        for name, arr in old.items():
            getattr(self, name)[:n] = arr

    def launch(self, slot: int, x: float, y: float) -> None:
        """(Re)start a walker in `slot`; every per-walker field is reset."""
        self.x[slot] = x
        self.y[slot] = y
        self.iterations[slot] = 0
        self.bias_sx[slot] = 1.0
        self.bias_sy[slot] = 1.0
        self.step_mult[slot] = 1.0
        self.mult_age[slot] = ADAPTIVE_REFRESH
        self.last_dx[slot] = 0.0
        self.last_dy[slot] = 0.0
        self.active[slot] = True

    def retire(self, slot: int) -> None:
        self.active[slot] = False

    def active_slots(self) -> np.ndarray:
        return np.flatnonzero(self.active)

    def free_slots(self) -> np.ndarray:
        return np.flatnonzero(~self.active)

    def count(self) -> int:
        return int(np.count_nonzero(self.active))

    def positions(self) -> np.ndarray:
        slots = self.active_slots()
        return np.column_stack((self.x[slots], self.y[slots]))


###############################################################################
# Displacement sampling
###############################################################################


def bias_weight(theta: float, bias_angle: float, force: float) -> float:
    """Relative probability of heading `theta`; integrates to 1 over the circle."""
    return 1.0 + 2.0 * force * math.cos(theta - bias_angle)


def sample_direction(
    rng: np.random.Generator, bias_angle: float, force: float, lattice: bool
) -> Tuple[float, float]:
    """
    Draw a unit heading, tilted toward `bias_angle` by `force`.

    The bias shifts probabilities only. Lattice walks pick one of the four
    cardinal vectors; continuous walks rejection-sample an angle against the
    flat envelope `1 + 2 * force`.
    """
    if lattice:
        weights = [bias_weight(a, bias_angle, force) for a in CARDINAL_ANGLES]
        u = rng.random() * sum(weights)
        acc = 0.0
        for vec, w in zip(CARDINAL_VECTORS, weights):
            acc += w
            if u < acc:
                return vec
        return CARDINAL_VECTORS[-1]

    if force <= 0.0:
        theta = rng.uniform(0.0, TWO_PI)
        return math.cos(theta), math.sin(theta)

    ceiling = 1.0 + 2.0 * force
    while True:
        theta = rng.uniform(0.0, TWO_PI)
        if rng.random() * ceiling < bias_weight(theta, bias_angle, force):
            return math.cos(theta), math.sin(theta)


def adaptive_multiplier(distance: float, growth_radius: float, factor: float) -> float:
    """Step multiplier growing from 1 at the structure to `factor` far away."""
    if factor <= 1.0:
        return 1.0
    gap = max(0.0, distance - growth_radius)
    ratio = min(max(gap / max(growth_radius, 1.0), 0.0), 1.0)
    return min(1.0 + (factor - 1.0) * ratio, factor)


def effective_bias_angle(walk_angle_deg: float, sx: float, sy: float) -> float:
    """Walk direction with the per-axis bounce flips applied."""
    theta = math.radians(walk_angle_deg)
    return math.atan2(sy * math.sin(theta), sx * math.cos(theta))


###############################################################################
# Transition
###############################################################################


def step_walker(
    pool: WalkerPool,
    slot: int,
    params: DLAParams,
    occupancy: OccupancyIndex,
    growth_radius: float,
    origin: Tuple[float, float],
    rng: np.random.Generator,
) -> StepResult:
    """
    Advance the walker in `slot` by one step.

    Returns `WALKING` when the walker survived the move and should be offered
    to the sticking evaluator; any other outcome means the slot must be
    relaunched. A move onto an occupied cell is refused and the walker stays
    where it was.
    """
    x = float(pool.x[slot])
    y = float(pool.y[slot])
    cx, cy = origin

    bias_angle = effective_bias_angle(params.walk_angle, pool.bias_sx[slot], pool.bias_sy[slot])
    ux, uy = sample_direction(rng, bias_angle, params.walk_force, params.lattice_walk)
    scale = 1.0 if params.lattice_walk else params.walk_step
    dx = ux * scale
    dy = uy * scale

    if params.radial_bias != 0.0:
        rx = cx - x
        ry = cy - y
        r = math.hypot(rx, ry)
        if r > 0.0:
            pull = params.radial_bias * params.walk_step / r
            dx += rx * pull
            dy += ry * pull

    if params.adaptive_step:
        if pool.mult_age[slot] >= ADAPTIVE_REFRESH:
            pool.step_mult[slot] = adaptive_multiplier(
                math.hypot(x - cx, y - cy), growth_radius, params.adaptive_factor
            )
            pool.mult_age[slot] = 0
        pool.mult_age[slot] += 1
        mult = float(pool.step_mult[slot])
        if params.lattice_walk:
            mult = float(max(1, round(mult)))
        dx *= mult
        dy *= mult

    result = apply_boundary(params.boundary, (x, y), (x + dx, y + dy), occupancy.extent)
    if result.outcome is BoundaryOutcome.REMOVED:
        return StepResult(WalkerOutcome.ABSORBED)
    if result.flip_x:
        pool.bias_sx[slot] = -pool.bias_sx[slot]
    if result.flip_y:
        pool.bias_sy[slot] = -pool.bias_sy[slot]

    nx, ny = result.x, result.y
    if occupancy.is_occupied((nx, ny)):
        nx, ny = x, y
    pool.x[slot] = nx
    pool.y[slot] = ny
    pool.last_dx[slot] = dx
    pool.last_dy[slot] = dy

    pool.iterations[slot] += 1
    if pool.iterations[slot] > params.max_iterations:
        return StepResult(WalkerOutcome.TIMEOUT)

    r_escape = escape_radius(params, growth_radius)
    if r_escape is not None and math.hypot(nx - cx, ny - cy) > r_escape:
        return StepResult(WalkerOutcome.ESCAPED)

    return StepResult(
        WalkerOutcome.WALKING,
        edge_contact=result.outcome is BoundaryOutcome.EDGE_CONTACT,
    )


__all__ = [
    "ADAPTIVE_REFRESH",
    "StepResult",
    "WalkerOutcome",
    "WalkerPool",
    "adaptive_multiplier",
    "bias_weight",
    "effective_bias_angle",
    "sample_direction",
    "step_walker",
]
