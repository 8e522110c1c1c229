"""
Fractal dimension estimates for a grown structure.

Three log-log fits, all via `scipy.stats.linregress`:

- box counting on the occupancy grid, N(s) ~ s^-Df (the live readout),
- sandbox mass-radius, M(<R) ~ R^Df, from centred positions,
- growth scaling, R_g(n) ~ n^(1/Df), from positions in attachment order.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from scipy.stats import linregress

# Below this many particles the readout is not shown.
MIN_PARTICLES = 50


class FractalFit(NamedTuple):
    dimension: float
    r_squared: float
    intercept: float
    log_x: np.ndarray
    log_y: np.ndarray


def box_sizes(height: int, width: int) -> np.ndarray:
    """Power-of-two box edges up to a quarter of the shorter grid side."""
    limit = min(height, width) // 4
    sizes = [1]
    while sizes[-1] * 2 <= limit:
        sizes.append(sizes[-1] * 2)
    return np.array(sizes, dtype=np.int64)


def box_counts(occupied: np.ndarray, sizes: np.ndarray) -> np.ndarray:
    """Number of s-by-s boxes holding at least one occupied cell, per size."""
    h, w = occupied.shape
    counts = np.zeros(len(sizes), dtype=np.int64)
    for i, s in enumerate(sizes.tolist()):
        ph = -(-h // s) * s
        pw = -(-w // s) * s
        padded = np.zeros((ph, pw), dtype=bool)
        padded[:h, :w] = occupied
        boxes = padded.reshape(ph // s, s, pw // s, s).any(axis=(1, 3))
        counts[i] = np.count_nonzero(boxes)
    return counts


def box_counting_dimension(occupied: np.ndarray) -> FractalFit:
    occupied = np.asarray(occupied, dtype=bool)
    if not occupied.any():
        raise ValueError("Empty grid has no fractal dimension")
    sizes = box_sizes(*occupied.shape)
    if len(sizes) < 3:
        raise ValueError(
            f"Grid {occupied.shape[1]}x{occupied.shape[0]} is too small for box counting"
        )
    counts = box_counts(occupied, sizes)
    log_inv_s = np.log(1.0 / sizes.astype(np.float64))
    log_n = np.log(counts.astype(np.float64))
    fit = linregress(log_inv_s, log_n)
    return FractalFit(float(fit.slope), float(fit.rvalue ** 2), float(fit.intercept), log_inv_s, log_n)


def sandbox_dimension(positions: np.ndarray, r_min: float = 2.0) -> FractalFit:
    """
    Mass-radius fit around the origin.

    `positions` are (N, 2) coordinates already centred on the seed.
    """
    distances = np.hypot(positions[:, 0], positions[:, 1])
    max_distance = float(distances.max()) if len(distances) else 0.0
    if max_distance <= r_min:
        raise ValueError(
            f"Maximum particle distance ({max_distance:.2f}) is too small; "
            f"need more than {r_min} for sandbox analysis"
        )
    n_radii = min(100, max(20, len(positions) // 10))
    radii = np.logspace(np.log10(r_min), np.log10(max_distance), n_radii)
    masses = np.searchsorted(np.sort(distances), radii, side="right")
    valid = masses > 0
    log_r = np.log(radii[valid])
    log_m = np.log(masses[valid].astype(np.float64))
    if len(log_r) < 10:
        raise ValueError("Too few radii with mass for sandbox analysis")
    fit = linregress(log_r, log_m)
    return FractalFit(float(fit.slope), float(fit.rvalue ** 2), float(fit.intercept), log_r, log_m)


def scaling_dimension(positions: np.ndarray) -> FractalFit:
    """
    Radius of gyration against particle count over the growth history.

    Rows must be in attachment order. Fits the last 99% of the history.
    """
    n_particles = len(positions)
    x = positions[:, 0].astype(np.float64)
    y = positions[:, 1].astype(np.float64)
    ns = np.arange(1, n_particles + 1, dtype=np.float64)

    cm_x = np.cumsum(x) / ns
    cm_y = np.cumsum(y) / ns
    rg_sq = (np.cumsum(x ** 2) + np.cumsum(y ** 2)) / ns - (cm_x ** 2 + cm_y ** 2)
    rg = np.sqrt(np.maximum(0.0, rg_sq))

    start = max(1, int(n_particles * 0.01))
    fit_rg = rg[start:]
    fit_ns = ns[start:]
    valid = fit_rg > 0
    if np.count_nonzero(valid) < 10:
        raise ValueError("Too few growth steps for scaling analysis")

    log_n = np.log(fit_ns[valid])
    log_rg = np.log(fit_rg[valid])
    fit = linregress(log_n, log_rg)
    if not fit.slope > 0.0:
        raise ValueError("Radius of gyration does not grow with particle count")
    # R_g ~ N^(1/Df)
    return FractalFit(float(1.0 / fit.slope), float(fit.rvalue ** 2), float(fit.intercept), log_n, log_rg)


__all__ = [
    "FractalFit",
    "MIN_PARTICLES",
    "box_counting_dimension",
    "box_counts",
    "box_sizes",
    "sandbox_dimension",
    "scaling_dimension",
]
