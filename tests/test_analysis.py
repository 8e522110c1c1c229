import numpy as np
import pytest

from dla_growth import DLAEngine, DLAParams, analysis


def test_box_counting_line_and_plane():
    grid = np.zeros((64, 64), dtype=bool)
    grid[32, :] = True
    line = analysis.box_counting_dimension(grid)
    assert line.dimension == pytest.approx(1.0)
    assert line.r_squared == pytest.approx(1.0)

    plane = analysis.box_counting_dimension(np.ones((64, 64), dtype=bool))
    assert plane.dimension == pytest.approx(2.0)


def test_box_sizes_stop_at_a_quarter_of_the_grid():
    assert analysis.box_sizes(64, 100).tolist() == [1, 2, 4, 8, 16]
    with pytest.raises(ValueError):
        analysis.box_counting_dimension(np.ones((8, 8), dtype=bool))
    with pytest.raises(ValueError):
        analysis.box_counting_dimension(np.zeros((64, 64), dtype=bool))


def test_sandbox_on_a_filled_disc():
    ys, xs = np.mgrid[-40:41, -40:41]
    inside = xs ** 2 + ys ** 2 <= 40 ** 2
    positions = np.column_stack((xs[inside], ys[inside])).astype(np.float64)
    fit = analysis.sandbox_dimension(positions)
    assert fit.dimension == pytest.approx(2.0, abs=0.1)


def test_scaling_on_a_growing_line():
    positions = np.column_stack((np.arange(500, dtype=np.float64), np.zeros(500)))
    fit = analysis.scaling_dimension(positions)
    assert fit.dimension == pytest.approx(1.0, abs=0.05)


def test_engine_readout_waits_for_enough_particles():
    engine = DLAEngine(64, 64, DLAParams(num_particles=200))
    assert engine.fractal_dimension() == (0.0, 0.0)

    params = DLAParams(num_particles=120, min_radius=10.0, spawn_offset=3.0, speed=30, rng_seed=9)
    engine = DLAEngine(64, 64, params)
    engine.run(max_ticks=8000)
    assert engine.particle_count() >= analysis.MIN_PARTICLES
    dim, r2 = engine.fractal_dimension()
    assert 0.5 < dim < 2.1
    assert 0.0 < r2 <= 1.0


def test_scaling_rejects_a_shrinking_radius():
    """Two far particles followed by a dense core: R_g falls, so no dimension."""
    positions = np.vstack(([[-100.0, 0.0], [100.0, 0.0]], np.zeros((200, 2))))
    with pytest.raises(ValueError):
        analysis.scaling_dimension(positions)
