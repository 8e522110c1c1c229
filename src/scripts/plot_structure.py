# src/scripts/plot_structure.py
import argparse
import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dla_growth import utils  # noqa: E402


def age_image(result):
    """
    Build an image of attachment order from a saved structure.

    Returns a float grid in [0, 1] (NaN where empty) the same shape as the
    occupancy grid.
    """
    height, width = result.occupied.shape
    ox, oy = width / 2.0, height / 2.0
    pos = np.asarray(result.positions, dtype=np.float64)
    xs = np.rint(pos[:, 0] + ox).astype(np.int64)
    ys = np.rint(pos[:, 1] + oy).astype(np.int64)
    ages = np.asarray(result.ages, dtype=np.float64)

    grid = np.full((height, width), np.nan, dtype=np.float32)
    if len(ages):
        grid[ys, xs] = ages / ages.max()
    return grid


def format_title(meta):
    if not meta:
        return None
    parts = [
        f"N={meta.get('num', '?')}",
        f"seed={meta.get('seed_pattern', '?')}",
        f"rng={meta.get('rng_seed', '?')}",
    ]
    radius = meta.get("growth_radius")
    if radius is not None:
        parts.append(f"R={float(radius):.1f}")
    return " | ".join(parts)


def render(result, output=None, cmap="magma", dpi=200):
    grid = age_image(result)

    fig, ax = plt.subplots(figsize=(6, 6))
    bg_color = "black"
    fig.patch.set_facecolor(bg_color)
    ax.set_facecolor(bg_color)
    ax.imshow(grid, interpolation="nearest", cmap=cmap, vmin=0.0, vmax=1.0)
    ax.set_aspect("equal")
    ax.axis("off")

    title = format_title(result.meta)
    if title:
        ax.set_title(title, pad=10, color="white")

    if output:
        os.makedirs(os.path.dirname(output) if os.path.dirname(output) else ".", exist_ok=True)
        plt.savefig(output, dpi=dpi, bbox_inches="tight", pad_inches=0.1, facecolor=bg_color)
        print(f"Saved figure to {output}")
    else:
        plt.show()
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(description="Plot a saved DLA structure coloured by age")
    parser.add_argument("path", help="Structure .npz written by run_canvas.py --out")
    parser.add_argument("--out", default=None, help="Image path (shows a window if omitted)")
    parser.add_argument("--cmap", default="magma", help="matplotlib colormap")
    parser.add_argument("--dpi", type=int, default=200)
    args = parser.parse_args()

    result = utils.load_structure(args.path)
    render(result, output=args.out, cmap=args.cmap, dpi=args.dpi)


if __name__ == "__main__":
    main()
