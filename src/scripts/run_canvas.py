#!/usr/bin/env python3
"""
DLA Canvas Runner

Grows a structure and draws it to the terminal as coloured Braille. Runs
live (redrawing every frame) or headless, and can save the structure as
.npz and the parameter/structure summary as JSON.
"""

import argparse
import logging
import shutil
import sys
import time
from pathlib import Path

# Add src/ to path for running from a checkout
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dla_growth import (  # noqa: E402
    BoundaryBehavior,
    CanvasRenderer,
    ColorMode,
    DLAEngine,
    DLAParams,
    Neighborhood,
    SeedPattern,
    SpawnMode,
    VisualParams,
    calculate_simulation_size,
    parse_theme,
    utils,
)

FRAME_SECONDS = 1.0 / 30.0


def build_params(args) -> DLAParams:
    params = utils.load_dla_params(args.preset) if args.preset else DLAParams()
    if args.particles is not None:
        params.num_particles = args.particles
    if args.seed_pattern is not None:
        params.seed_pattern = SeedPattern.parse(args.seed_pattern)
    if args.spawn is not None:
        params.spawn_mode = SpawnMode.parse(args.spawn)
    if args.boundary is not None:
        params.boundary = BoundaryBehavior.parse(args.boundary)
    if args.neighbors is not None:
        params.neighborhood = Neighborhood.parse(args.neighbors)
    if args.speed is not None:
        params.speed = args.speed
    if args.rng_seed is not None:
        params.rng_seed = args.rng_seed
    return params.clamped()


def main():
    parser = argparse.ArgumentParser(
        description="Grow a DLA structure on a Braille terminal canvas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--preset", type=str, default=None, help="JSON/TOML parameter file")
    parser.add_argument("--particles", type=int, default=None, help="Particle budget")
    parser.add_argument("--seed-pattern", type=str, default=None, help="Initial structure")
    parser.add_argument("--spawn", type=str, default=None, help="Walker spawn mode")
    parser.add_argument("--boundary", type=str, default=None, help="Edge behaviour")
    parser.add_argument("--neighbors", type=str, default=None, help="Neighbourhood shape")
    parser.add_argument("--speed", type=int, default=None, help="Walkers in flight")
    parser.add_argument("--rng-seed", type=int, default=None, help="Random seed")
    parser.add_argument("--theme", type=str, default="default", help="Colour theme")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in ColorMode],
        default=ColorMode.AGE.value,
        help="Colour mode",
    )
    parser.add_argument("--cmap", type=str, default=None, help="matplotlib colormap override")
    parser.add_argument("--highlight", type=int, default=0, help="Highlight newest N particles")
    parser.add_argument("--cols", type=int, default=None, help="Canvas width in characters")
    parser.add_argument("--rows", type=int, default=None, help="Canvas height in characters")
    parser.add_argument("--ticks-per-frame", type=int, default=20, help="Ticks between redraws")
    parser.add_argument("--live", action="store_true", help="Redraw the canvas while growing")
    parser.add_argument("--out", type=str, default=None, help="Save the structure as .npz")
    parser.add_argument("--export", type=str, default=None, help="Save the summary as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine events")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    term = shutil.get_terminal_size((100, 40))
    cols = args.cols or term.columns
    rows = args.rows or max(1, term.lines - 2)

    params = build_params(args)
    width, height = calculate_simulation_size(cols, rows)
    engine = DLAEngine(width, height, params)
    renderer = CanvasRenderer()
    visual = VisualParams(
        color_mode=ColorMode.parse(args.mode),
        theme=parse_theme(args.theme),
        colormap=args.cmap,
        highlight=args.highlight,
    )

    print(f"Growing {params.num_particles} particles on a {width}x{height} grid "
          f"(seed={params.seed_pattern.value}, spawn={params.spawn_mode.value}, "
          f"boundary={params.boundary.value})")
    start_time = time.time()

    try:
        while not engine.is_complete():
            frame_start = time.time()
            for _ in range(args.ticks_per_frame):
                engine.tick()
            if args.live:
                canvas = renderer.render(engine.snapshot_for_render(), visual, cols, rows)
                sys.stdout.write("\x1b[H" + canvas.to_ansi() + "\n")
                sys.stdout.write(
                    f"{engine.particle_count()}/{params.num_particles} "
                    f"r={engine.growth_radius():.1f}\x1b[K"
                )
                sys.stdout.flush()
                time.sleep(max(0.0, FRAME_SECONDS - (time.time() - frame_start)))
    except KeyboardInterrupt:
        print("\nInterrupted")

    elapsed_time = time.time() - start_time
    canvas = renderer.render(engine.snapshot_for_render(), visual, cols, rows)
    print(canvas.to_ansi())

    if args.out:
        utils.save_structure(args.out, engine.to_record())
        print(f"   Structure saved to: {args.out}")
    if args.export:
        utils.save_export(args.export, engine.export_state())
        print(f"   Summary saved to: {args.export}")

    stats = engine.stats
    print(f"\nDone: {engine.particle_count()} particles in {elapsed_time:.2f} seconds")
    print(f"   Growth radius: {engine.growth_radius():.1f}")
    dim, r2 = engine.fractal_dimension()
    if dim > 0.0:
        print(f"   D_f: {dim:.2f} (R²={r2:.2f})")
    print(f"   Walkers: stuck={stats.stuck} escaped={stats.escaped} "
          f"absorbed={stats.absorbed} timeouts={stats.timeouts}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
