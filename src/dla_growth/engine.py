"""
Real-time DLA growth engine.

The engine owns every piece of mutable simulation state (occupancy index,
particle table, walker pool, growth radius and the random generator) inside
one `EngineState`. `reset()` builds a complete replacement and swaps it in
with a single assignment, so a frame snapshot never sees half-reset state.

Typical control loop::

    engine = DLAEngine(width, height, params)
    while running:
        engine.tick()
        frame = renderer.render(engine.snapshot_for_render(), visual, cols, rows)
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np

from . import analysis, utils
from .config import BoundaryBehavior, DLAParams, SeedPattern
from .occupancy import OccupancyIndex
from .particles import ParticleTable
from .seeds import seed_cells
from .spawn import spawn_position
from .sticking import evaluate_contact
from .walker import WalkerOutcome, WalkerPool, step_walker

logger = logging.getLogger(__name__)


@dataclass
class EngineStats:
    ticks: int = 0
    stuck: int = 0
    absorbed: int = 0
    escaped: int = 0
    timeouts: int = 0


@dataclass
class EngineState:
    occupancy: OccupancyIndex
    particles: ParticleTable
    walkers: WalkerPool
    rng: np.random.Generator
    growth_radius: float
    initial_count: int
    initial_radius: float
    generation: int
    stats: EngineStats = field(default_factory=EngineStats)


@dataclass(frozen=True)
class FrameState:
    """
    Read-only snapshot handed to the renderer (and to any frame recorder).

    `keys` is a private copy of the occupancy grid; the particle columns are
    views of append-only storage and never change after the snapshot.
    """

    keys: np.ndarray
    x: np.ndarray
    y: np.ndarray
    age: np.ndarray
    neighbors: np.ndarray
    angle: np.ndarray
    distance: np.ndarray
    count: int
    budget: int
    growth_radius: float
    neighbor_slots: int
    generation: int
    walkers: np.ndarray

    @property
    def width(self) -> int:
        return self.keys.shape[1]

    @property
    def height(self) -> int:
        return self.keys.shape[0]


class DLAEngine:
    """
    Grows a DLA structure one tick at a time.

    The engine keeps a reference to `params` and re-reads it every tick.
    Randomness comes from one `numpy.random.Generator`: pass `rng` to
    substitute it, otherwise it is seeded from `params.rng_seed` on every
    reset.
    """

    def __init__(
        self,
        width: int,
        height: int,
        params: Optional[DLAParams] = None,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.params = params if params is not None else DLAParams()
        self.width = int(width)
        self.height = int(height)
        self.paused = False
        self._generation = 0
        self._state: Optional[EngineState] = None
        self.reset(rng=rng)

    # ------------------------------------------------------------------ geometry
    @property
    def origin(self) -> Tuple[float, float]:
        return self.width / 2.0, self.height / 2.0

    @property
    def extent(self) -> Tuple[int, int]:
        return self.width, self.height

    # ------------------------------------------------------------------ lifecycle
    def reset(
        self,
        seed_pattern: Optional[SeedPattern | str] = None,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Discard all state, lay down the seed pattern and relaunch walkers."""
        params = self.params
        if seed_pattern is not None:
            params.seed_pattern = SeedPattern.parse(seed_pattern)
        if rng is None:
            rng = np.random.default_rng(params.rng_seed)

        occupancy = OccupancyIndex(self.width, self.height)
        particles = ParticleTable(capacity=params.num_particles + 64)
        ox, oy = self.origin
        radius = 0.0
        for x, y in seed_cells(params.seed_pattern, self.width, self.height, rng):
            x, y = int(x), int(y)
            n = occupancy.neighbor_count((x, y), params.neighborhood)
            dist = math.hypot(x - ox, y - oy)
            occupancy.insert((x, y), particles.count)
            particles.append(x, y, n, math.atan2(y - oy, x - ox), dist)
            radius = max(radius, dist)
        radius = max(radius, 1.0)

        state = EngineState(
            occupancy=occupancy,
            particles=particles,
            walkers=WalkerPool(capacity=max(params.speed, 1)),
            rng=rng,
            growth_radius=radius,
            initial_count=particles.count,
            initial_radius=radius,
            generation=self._generation + 1,
        )
        self._sync_pool(state)

        self._generation = state.generation
        self._state = state
        logger.info(
            "Reset DLA engine: grid=%dx%d seed=%s particles=%d radius=%.1f",
            self.width,
            self.height,
            params.seed_pattern.value,
            state.initial_count,
            radius,
        )

    def resize(self, width: int, height: int) -> None:
        """Change the grid extent; the structure restarts when it changes."""
        if int(width) == self.width and int(height) == self.height:
            return
        self.width = int(width)
        self.height = int(height)
        self.reset()

    def toggle_pause(self) -> None:
        self.paused = not self.paused

    # ------------------------------------------------------------------ stepping
    def tick(self) -> int:
        """
        Advance every active walker by one step.

        Returns the number of particles attached during this tick. Does
        nothing while paused or once the particle budget is reached.
        """
        if self.paused or self.is_complete():
            return 0
        state = self._state
        params = self.params
        pool = state.walkers
        occupancy = state.occupancy
        origin = self.origin
        ox, oy = origin
        edges_occupied = params.boundary is BoundaryBehavior.STICK
        wrap = params.boundary is BoundaryBehavior.WRAP

        self._sync_pool(state)
        attached = 0
        for slot in pool.active_slots():
            if state.particles.count >= params.num_particles:
                break
            result = step_walker(
                pool, slot, params, occupancy, state.growth_radius, origin, state.rng
            )
            outcome = result.outcome
            if outcome is WalkerOutcome.WALKING:
                cell = (int(pool.x[slot]), int(pool.y[slot]))
                # Another walker may have attached on this very cell.
                if occupancy.is_occupied(cell):
                    continue
                dist = math.hypot(cell[0] - ox, cell[1] - oy)
                decision = evaluate_contact(
                    occupancy,
                    cell,
                    dist,
                    params,
                    state.rng,
                    edges_occupied=edges_occupied,
                    wrap=wrap,
                    edge_contact=result.edge_contact,
                )
                if not decision.stuck:
                    continue
                angle = math.atan2(pool.last_dy[slot], pool.last_dx[slot])
                self._attach(state, cell, decision.neighbors, angle, dist)
                attached += 1
                outcome = WalkerOutcome.STUCK
            self._count_outcome(state.stats, outcome)
            self._relaunch(state, slot)

        state.stats.ticks += 1
        if self.is_complete():
            for slot in pool.active_slots():
                pool.retire(slot)
            logger.info(
                "DLA structure complete: %d particles, radius %.1f after %d ticks",
                state.particles.count,
                state.growth_radius,
                state.stats.ticks,
            )
            logger.debug("Walker outcomes: %s", asdict(state.stats))
        return attached

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Tick until complete (or `max_ticks`); returns the attached count."""
        ticks = 0
        while not self.is_complete() and not self.paused:
            if max_ticks is not None and ticks >= max_ticks:
                break
            self.tick()
            ticks += 1
        return self.particle_count()

    def _attach(
        self, state: EngineState, cell: Tuple[int, int], neighbors: int, angle: float, dist: float
    ) -> int:
        key = state.particles.count
        state.occupancy.insert(cell, key)
        state.particles.append(cell[0], cell[1], neighbors, angle, dist)
        state.growth_radius = max(state.growth_radius, dist)
        return key

    def _relaunch(self, state: EngineState, slot: int) -> None:
        if state.particles.count >= self.params.num_particles:
            state.walkers.retire(slot)
            return
        state.walkers.launch(slot, *self._spawn(state))

    def _spawn(self, state: EngineState) -> Tuple[float, float]:
        params = self.params
        return spawn_position(
            params.spawn_mode,
            state.rng,
            state.occupancy,
            state.growth_radius,
            params.spawn_offset,
            params.min_radius,
            self.extent,
            self.origin,
        )

    def _sync_pool(self, state: EngineState) -> None:
        """Launch or retire walkers so that `speed` of them are in flight."""
        pool = state.walkers
        if state.particles.count >= self.params.num_particles:
            return
        target = max(1, int(self.params.speed))
        active = pool.active_slots()
        if active.size > target:
            for slot in active[target:]:
                pool.retire(slot)
            return
        pool.ensure_capacity(target)
        for slot in pool.free_slots()[: target - active.size]:
            pool.launch(slot, *self._spawn(state))

    @staticmethod
    def _count_outcome(stats: EngineStats, outcome: WalkerOutcome) -> None:
        if outcome is WalkerOutcome.STUCK:
            stats.stuck += 1
        elif outcome is WalkerOutcome.ABSORBED:
            stats.absorbed += 1
        elif outcome is WalkerOutcome.ESCAPED:
            stats.escaped += 1
        elif outcome is WalkerOutcome.TIMEOUT:
            stats.timeouts += 1

    # ------------------------------------------------------------------ queries
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def occupancy(self) -> OccupancyIndex:
        return self._state.occupancy

    @property
    def particles(self) -> ParticleTable:
        return self._state.particles

    @property
    def walkers(self) -> WalkerPool:
        return self._state.walkers

    @property
    def stats(self) -> EngineStats:
        return self._state.stats

    @property
    def generation(self) -> int:
        return self._state.generation

    def is_complete(self) -> bool:
        return self._state.particles.count >= self.params.num_particles

    def particle_count(self) -> int:
        return self._state.particles.count

    def growth_radius(self) -> float:
        return self._state.growth_radius

    def walker_count(self) -> int:
        return self._state.walkers.count()

    def progress(self) -> float:
        return min(1.0, self._state.particles.count / max(1, self.params.num_particles))

    def fractal_dimension(self) -> Tuple[float, float]:
        """Box-counting dimension and its fit R^2, or (0.0, 0.0) while too small."""
        state = self._state
        if state.particles.count < analysis.MIN_PARTICLES:
            return 0.0, 0.0
        try:
            fit = analysis.box_counting_dimension(state.occupancy.keys >= 0)
        except ValueError as exc:
            logger.debug("No dimension estimate: %s", exc)
            return 0.0, 0.0
        return fit.dimension, fit.r_squared

    def snapshot_for_render(self) -> FrameState:
        state = self._state
        x, y, age, neighbors, angle, distance = state.particles.columns()
        return FrameState(
            keys=state.occupancy.copy_keys(),
            x=x,
            y=y,
            age=age,
            neighbors=neighbors,
            angle=angle,
            distance=distance,
            count=state.particles.count,
            budget=self.params.num_particles,
            growth_radius=state.growth_radius,
            neighbor_slots=self.params.neighborhood.slots,
            generation=state.generation,
            walkers=state.walkers.positions(),
        )

    def get_centered_coords(self) -> np.ndarray:
        """(N, 2) float coordinates of attached particles relative to the origin."""
        ox, oy = self.origin
        pos = self._state.particles.positions().astype(np.float64)
        pos[:, 0] -= ox
        pos[:, 1] -= oy
        return pos

    def export_state(self, include_particles: bool = False) -> Dict[str, Any]:
        """Serializable parameter + structure summary (config export)."""
        state = self._state
        pos = state.particles.positions()
        if pos.shape[0]:
            bounds = {
                "xmin": int(pos[:, 0].min()),
                "xmax": int(pos[:, 0].max()),
                "ymin": int(pos[:, 1].min()),
                "ymax": int(pos[:, 1].max()),
            }
        else:
            bounds = None
        out: Dict[str, Any] = {
            "params": self.params.to_dict(),
            "grid": {"width": self.width, "height": self.height},
            "structure": {
                "particles": state.particles.count,
                "seed_particles": state.initial_count,
                "growth_radius": float(state.growth_radius),
                "bounds": bounds,
                "complete": self.is_complete(),
                "generation": state.generation,
                "fractal_dimension": self.fractal_dimension()[0],
            },
            "stats": asdict(state.stats),
        }
        if include_particles:
            x, y, age, neighbors, angle, distance = state.particles.columns()
            out["particles"] = [
                {
                    "x": int(x[i]),
                    "y": int(y[i]),
                    "age": int(age[i]),
                    "neighbors": int(neighbors[i]),
                    "angle": float(angle[i]),
                    "distance": float(distance[i]),
                }
                for i in range(state.particles.count)
            ]
        return out

    def to_record(self) -> utils.StructureRecord:
        """Package the structure for `utils.save_structure`."""
        state = self._state
        n = state.particles.count
        return utils.StructureRecord(
            occupied=state.occupancy.keys >= 0,
            positions=self.get_centered_coords(),
            ages=state.particles.age[:n].copy(),
            meta={
                "num": n,
                "width": self.width,
                "height": self.height,
                "seed_pattern": self.params.seed_pattern.value,
                "rng_seed": self.params.rng_seed,
                "growth_radius": float(state.growth_radius),
            },
        )


__all__ = ["DLAEngine", "EngineState", "EngineStats", "FrameState"]
