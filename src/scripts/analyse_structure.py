#!/usr/bin/env python3
"""
Fractal analysis of a saved DLA structure.

Loads a .npz written by `run_canvas.py --out` and fits three log-log
relations: box counting on the grid, sandbox mass-radius around the seed and
radius-of-gyration growth scaling. Prints the estimates and saves a
three-panel figure.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
from matplotlib import pyplot as plt

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dla_growth import analysis, utils  # noqa: E402


def validate_positions(positions: np.ndarray | None) -> np.ndarray:
    if positions is None:
        raise ValueError("No 'positions' array in file")
    pos = np.asarray(positions, dtype=np.float64)
    if pos.ndim != 2 or pos.shape[1] != 2:
        raise ValueError(f"Expected (N, 2) positions, got shape {pos.shape}")
    pos = pos[np.isfinite(pos).all(axis=1)]
    if len(pos) < analysis.MIN_PARTICLES:
        raise ValueError(
            f"Too few particles ({len(pos)}) for fractal analysis; "
            f"need at least {analysis.MIN_PARTICLES}"
        )
    return pos


def _panel(ax, fit: analysis.FractalFit, slope: float, xlabel: str, ylabel: str, title: str, color: str):
    ax.scatter(fit.log_x, fit.log_y, color=color, alpha=0.4, s=4, label="Structure")
    ax.plot(
        fit.log_x,
        slope * fit.log_x + fit.intercept,
        color="red",
        linestyle="--",
        linewidth=2,
        label=f"Fit: $D_f = {fit.dimension:.3f}$",
    )
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.set_title(f"{title}\n$D_f = {fit.dimension:.3f}$ (R² = {fit.r_squared:.4f})")
    ax.legend()
    ax.grid(True, which="both", linestyle="--", alpha=0.4)


def analyze_structure(npz_path, output_path=None, show_plot: bool = False) -> dict:
    npz_path = Path(npz_path)
    print(f"Loading {npz_path}...")
    result = utils.load_structure(npz_path)
    positions = validate_positions(result.positions)
    print(f"Particles found: {len(positions):,}")

    box = analysis.box_counting_dimension(result.occupied)
    sandbox = analysis.sandbox_dimension(positions)
    scaling = analysis.scaling_dimension(positions)

    print("\n" + "=" * 60)
    print(f"Box counting:  Df = {box.dimension:.5f} (R² = {box.r_squared:.6f})")
    print(f"Sandbox:       Df = {sandbox.dimension:.5f} (R² = {sandbox.r_squared:.6f})")
    print(f"Scaling:       Df = {scaling.dimension:.5f} (R² = {scaling.r_squared:.6f})")
    print("=" * 60)

    fig, (ax1, ax2, ax3) = plt.subplots(1, 3, figsize=(18, 6))
    _panel(ax1, box, box.dimension, r"$\log(1/s)$", r"$\log N(s)$", "Box counting", "black")
    _panel(ax2, sandbox, sandbox.dimension, r"$\log R$", r"$\log M(<R)$", "Sandbox", "blue")
    _panel(ax3, scaling, 1.0 / scaling.dimension, r"$\log N$", r"$\log R_g$", "Growth scaling", "green")
    plt.tight_layout()

    if output_path is None:
        output_path = npz_path.with_name(npz_path.stem + "_analysis.png")
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    print(f"\nFigure saved to: {output_path}")

    if show_plot:
        plt.show()
    else:
        plt.close(fig)

    return {"box": box.dimension, "sandbox": sandbox.dimension, "scaling": scaling.dimension}


def main() -> None:
    parser = argparse.ArgumentParser(description="Fractal dimension of a saved DLA structure")
    parser.add_argument("path", help="Structure .npz written by run_canvas.py --out")
    parser.add_argument("--out", default=None, help="Figure path (default: <input>_analysis.png)")
    parser.add_argument("--show", action="store_true", help="Display the figure")
    args = parser.parse_args()
    analyze_structure(args.path, args.out, args.show)


if __name__ == "__main__":
    main()
