import math

import numpy as np
import pytest

from dla_growth.config import DLAParams, SpawnMode
from dla_growth.occupancy import OccupancyIndex
from dla_growth.spawn import circle_spawn_radius, escape_radius, spawn_position


def _spawn(mode, occ, rng, growth_radius=5.0, spawn_offset=10.0, min_radius=20.0):
    extent = occ.extent
    origin = (extent[0] / 2.0, extent[1] / 2.0)
    return spawn_position(mode, rng, occ, growth_radius, spawn_offset, min_radius, extent, origin)


def test_circle_radius_has_a_floor():
    assert circle_spawn_radius(5.0, 10.0, 50.0) == 50.0
    assert circle_spawn_radius(60.0, 10.0, 50.0) == 70.0


def test_circle_spawn_lies_on_the_launch_circle():
    occ = OccupancyIndex(200, 200)
    rng = np.random.default_rng(0)
    for _ in range(100):
        x, y = _spawn(SpawnMode.CIRCLE, occ, rng)
        assert math.hypot(x - 100.0, y - 100.0) == pytest.approx(20.0)


def test_random_spawn_stays_outside_the_structure():
    occ = OccupancyIndex(100, 100)
    rng = np.random.default_rng(1)
    for _ in range(200):
        x, y = _spawn(SpawnMode.RANDOM, occ, rng, growth_radius=10.0, spawn_offset=5.0)
        assert math.hypot(x - 50.0, y - 50.0) > 15.0
        assert 0.0 <= x < 100.0 and 0.0 <= y < 100.0


@pytest.mark.parametrize(
    "mode, check",
    [
        (SpawnMode.TOP, lambda x, y: y == 0.0),
        (SpawnMode.BOTTOM, lambda x, y: int(y) == 39),
        (SpawnMode.LEFT, lambda x, y: x == 0.0),
        (SpawnMode.RIGHT, lambda x, y: int(x) == 59),
        (SpawnMode.EDGES, lambda x, y: x == 0.0 or y == 0.0 or int(x) == 59 or int(y) == 39),
    ],
)
def test_edge_modes(mode, check):
    occ = OccupancyIndex(60, 40)
    rng = np.random.default_rng(2)
    for _ in range(100):
        x, y = _spawn(mode, occ, rng)
        assert occ.in_bounds(int(x), int(y))
        assert check(x, y), f"{mode.value} spawned at ({x}, {y})"


def test_corner_spawn_is_near_a_corner():
    occ = OccupancyIndex(80, 80)
    rng = np.random.default_rng(3)
    for _ in range(100):
        x, y = _spawn(SpawnMode.CORNERS, occ, rng, spawn_offset=6.0)
        assert min(x, 80.0 - x) <= 6.0
        assert min(y, 80.0 - y) <= 6.0


def test_never_spawns_on_occupied_cells():
    occ = OccupancyIndex(20, 20)
    for x in range(0, 20, 2):
        occ.insert((x, 0), x)
    rng = np.random.default_rng(4)
    for _ in range(300):
        x, y = _spawn(SpawnMode.TOP, occ, rng)
        assert not occ.is_occupied((x, y))


def test_saturated_grid_raises():
    occ = OccupancyIndex(4, 4)
    key = 0
    for y in range(4):
        for x in range(4):
            occ.insert((x, y), key)
            key += 1
    with pytest.raises(RuntimeError):
        _spawn(SpawnMode.EDGES, occ, np.random.default_rng(5))


def _fill_border(occ):
    width, height = occ.extent
    key = 0
    for y in range(height):
        for x in range(width):
            if x in (0, width - 1) or y in (0, height - 1):
                occ.insert((x, y), key)
                key += 1


@pytest.mark.parametrize(
    "mode, ring",
    [
        (SpawnMode.TOP, lambda x, y: y == 1),
        (SpawnMode.LEFT, lambda x, y: x == 1),
        (SpawnMode.EDGES, lambda x, y: min(x, y, 29 - x, 19 - y) == 1),
    ],
)
def test_full_launch_edge_moves_the_front_inward(mode, ring):
    """With its edge filled, a side mode launches from the next free row in."""
    occ = OccupancyIndex(30, 20)
    _fill_border(occ)
    rng = np.random.default_rng(6)
    for _ in range(50):
        x, y = _spawn(mode, occ, rng)
        assert not occ.is_occupied((x, y))
        assert ring(int(x), int(y)), f"{mode.value} spawned at ({x}, {y})"


def test_clipped_circle_with_full_border_still_launches():
    occ = OccupancyIndex(64, 64)
    _fill_border(occ)
    rng = np.random.default_rng(7)
    for _ in range(50):
        x, y = _spawn(SpawnMode.CIRCLE, occ, rng, min_radius=50.0)
        assert not occ.is_occupied((x, y))
        assert min(int(x), int(y), 63 - int(x), 63 - int(y)) == 1


def test_single_free_cell_is_found():
    occ = OccupancyIndex(8, 8)
    key = 0
    for y in range(8):
        for x in range(8):
            if (x, y) != (4, 5):
                occ.insert((x, y), key)
                key += 1
    x, y = _spawn(SpawnMode.TOP, occ, np.random.default_rng(8))
    assert (int(x), int(y)) == (4, 5)


def test_escape_radius_only_applies_to_circle_launches():
    params = DLAParams(spawn_offset=10.0, min_radius=50.0, escape_mult=2.0)
    assert escape_radius(params, 1.0) == 100.0
    assert escape_radius(params, 70.0) == 160.0
    for mode in SpawnMode:
        if mode is SpawnMode.CIRCLE:
            continue
        params.spawn_mode = mode
        assert escape_radius(params, 1.0) is None
