import math
from collections import Counter

import numpy as np
import pytest

from dla_growth.config import BoundaryBehavior, DLAParams
from dla_growth.occupancy import OccupancyIndex
from dla_growth.walker import (
    ADAPTIVE_REFRESH,
    CARDINAL_VECTORS,
    WalkerOutcome,
    WalkerPool,
    adaptive_multiplier,
    effective_bias_angle,
    sample_direction,
    step_walker,
)


def test_lattice_directions_are_cardinal_unit_vectors():
    rng = np.random.default_rng(0)
    for _ in range(200):
        vec = sample_direction(rng, 0.0, 0.0, lattice=True)
        assert vec in CARDINAL_VECTORS


def test_lattice_bias_shifts_selection_probability():
    """Force 0.5 toward +x gives weights 2:1:0:1 for +x, +y, -x, -y."""
    rng = np.random.default_rng(1)
    counts = Counter(sample_direction(rng, 0.0, 0.5, lattice=True) for _ in range(2000))
    assert counts[(-1.0, 0.0)] == 0
    assert counts[(1.0, 0.0)] > counts[(0.0, 1.0)]
    assert counts[(1.0, 0.0)] > counts[(0.0, -1.0)]


def test_continuous_directions_have_unit_length():
    rng = np.random.default_rng(2)
    for force in (0.0, 0.3):
        for _ in range(100):
            ux, uy = sample_direction(rng, 1.0, force, lattice=False)
            assert math.hypot(ux, uy) == pytest.approx(1.0)


def test_continuous_bias_tilts_mean_heading():
    rng = np.random.default_rng(3)
    samples = np.array([sample_direction(rng, math.pi / 2, 0.5, lattice=False) for _ in range(3000)])
    mean_x, mean_y = samples.mean(axis=0)
    # E[sin] = force for the density 1 + 2 f cos(theta - pi/2)
    assert mean_y == pytest.approx(0.5, abs=0.08)
    assert abs(mean_x) < 0.08


def test_adaptive_multiplier():
    assert adaptive_multiplier(10.0, 10.0, 3.0) == 1.0
    assert adaptive_multiplier(5.0, 10.0, 3.0) == 1.0
    assert adaptive_multiplier(15.0, 10.0, 3.0) == pytest.approx(2.0)
    assert adaptive_multiplier(100.0, 10.0, 3.0) == pytest.approx(3.0)
    assert adaptive_multiplier(100.0, 10.0, 1.0) == 1.0


def test_bounce_flips_bias_angle():
    assert effective_bias_angle(0.0, -1.0, 1.0) == pytest.approx(math.pi)
    assert effective_bias_angle(90.0, 1.0, -1.0) == pytest.approx(-math.pi / 2)
    assert effective_bias_angle(45.0, 1.0, 1.0) == pytest.approx(math.pi / 4)


def test_pool_launch_resets_walker():
    pool = WalkerPool(capacity=2)
    pool.launch(0, 3.0, 4.0)
    pool.iterations[0] = 77
    pool.bias_sx[0] = -1.0
    pool.step_mult[0] = 2.5
    pool.launch(0, 1.0, 2.0)
    assert (pool.x[0], pool.y[0]) == (1.0, 2.0)
    assert pool.iterations[0] == 0
    assert pool.bias_sx[0] == 1.0
    assert pool.step_mult[0] == 1.0
    assert pool.mult_age[0] == ADAPTIVE_REFRESH
    assert pool.count() == 1
    assert pool.free_slots().tolist() == [1]


def test_pool_grows_without_losing_walkers():
    pool = WalkerPool(capacity=1)
    pool.launch(0, 5.0, 6.0)
    pool.ensure_capacity(4)
    assert pool.capacity == 4
    assert pool.active_slots().tolist() == [0]
    assert (pool.x[0], pool.y[0]) == (5.0, 6.0)
    assert pool.positions().shape == (1, 2)


def _walker(params, occ, x, y, growth_radius=1.0, seed=0):
    pool = WalkerPool(capacity=1)
    pool.launch(0, x, y)
    rng = np.random.default_rng(seed)
    origin = (occ.width / 2.0, occ.height / 2.0)

    def step():
        return step_walker(pool, 0, params, occ, growth_radius, origin, rng)

    return pool, step


def test_timeout_after_max_iterations():
    params = DLAParams(max_iterations=3, min_radius=50.0)
    occ = OccupancyIndex(64, 64)
    pool, step = _walker(params, occ, 32.0, 32.0)
    for _ in range(3):
        assert step().outcome is WalkerOutcome.WALKING
    assert step().outcome is WalkerOutcome.TIMEOUT


def test_absorb_outcome_when_leaving_the_grid():
    params = DLAParams(lattice_walk=True, boundary=BoundaryBehavior.ABSORB)
    occ = OccupancyIndex(1, 1)
    pool, step = _walker(params, occ, 0.5, 0.5)
    assert step().outcome is WalkerOutcome.ABSORBED


def test_bounce_negates_one_bias_axis():
    params = DLAParams(lattice_walk=True, boundary=BoundaryBehavior.BOUNCE)
    occ = OccupancyIndex(1, 1)
    pool, step = _walker(params, occ, 0.5, 0.5)
    assert step().outcome is WalkerOutcome.WALKING
    assert (pool.x[0], pool.y[0]) == pytest.approx((0.5, 0.5))
    signs = sorted([pool.bias_sx[0], pool.bias_sy[0]])
    assert signs == [-1.0, 1.0]


def test_stick_boundary_reports_edge_contact():
    params = DLAParams(lattice_walk=True, boundary=BoundaryBehavior.STICK)
    occ = OccupancyIndex(1, 1)
    pool, step = _walker(params, occ, 0.5, 0.5)
    result = step()
    assert result.outcome is WalkerOutcome.WALKING
    assert result.edge_contact
    assert (pool.x[0], pool.y[0]) == (0.5, 0.5)


def test_escape_beyond_circle_radius():
    params = DLAParams(min_radius=2.0, spawn_offset=1.0, escape_mult=2.0)
    occ = OccupancyIndex(64, 64)
    # escape radius is max(1 + 1, 2) * 2 = 4; start well past it
    pool, step = _walker(params, occ, 60.0, 60.0)
    assert step().outcome is WalkerOutcome.ESCAPED


def test_moves_onto_structure_are_refused():
    params = DLAParams(lattice_walk=True, walk_force=0.5, walk_angle=0.0)
    occ = OccupancyIndex(8, 8)
    for y in range(8):
        occ.insert((4, y), y)
    pool, step = _walker(params, occ, 3.5, 3.5, seed=5)
    for _ in range(100):
        step()
        assert not occ.is_occupied((pool.x[0], pool.y[0]))
        assert pool.x[0] < 4.0


def test_adaptive_lattice_step_is_whole_cells():
    params = DLAParams(lattice_walk=True, adaptive_step=True, adaptive_factor=10.0)
    occ = OccupancyIndex(200, 200)
    pool, step = _walker(params, occ, 100.0, 150.0, growth_radius=5.0)
    x0, y0 = pool.x[0], pool.y[0]
    step()
    moved = abs(pool.x[0] - x0) + abs(pool.y[0] - y0)
    assert moved == float(round(moved))
    assert moved > 1.0, "walkers far from the structure take longer steps"
