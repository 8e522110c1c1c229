"""
Braille canvas renderer.

Each terminal character covers a 2x4 dot matrix; a lit dot is a Unicode
Braille bit (U+2800 + pattern):

    (0,0)=0x01  (1,0)=0x08
    (0,1)=0x02  (1,1)=0x10
    (0,2)=0x04  (1,2)=0x20
    (0,3)=0x40  (1,3)=0x80

Dot (dx, dy) of character (cx, cy) samples simulation cell
(int((2*cx + dx) * sx), int((4*cy + dy) * sy)), so any grid size maps onto
any canvas. A character's colour is the gradient at the mean colour value of
its lit dots.

The renderer output is a pure function of the frame snapshot and the visual
parameters. The only state it keeps is a raster cache: when a new snapshot
only adds particles to the previous one, just the characters sampling those
particles (and the particles leaving the highlight window) are re-rasterised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from numba import njit

from .color import RGB, ColorScheme, build_lut, colormap_lut, lut_lookup
from .config import ColorMode
from .engine import FrameState
from .theme import ThemeId

BRAILLE_BASE = 0x2800
SUB_W = 2
SUB_H = 4

BRAILLE_DOTS = np.array(
    [
        [0x01, 0x02, 0x04, 0x40],  # left column, rows 0..3
        [0x08, 0x10, 0x20, 0x80],  # right column, rows 0..3
    ],
    dtype=np.int64,
)

MIN_SIM_SIZE = 64


@dataclass(frozen=True)
class VisualParams:
    """Per-frame visual settings; the theme is passed here, never held globally."""

    color_mode: ColorMode = ColorMode.AGE
    theme: ThemeId = ThemeId.DEFAULT
    color_scheme: Optional[ColorScheme] = None  # overrides the theme gradient
    colormap: Optional[str] = None  # matplotlib colormap name, overrides both
    use_gradient: bool = True
    invert: bool = False
    highlight: int = 0
    min_brightness: float = 0.0

    def lut(self) -> np.ndarray:
        if self.colormap is not None:
            return colormap_lut(self.colormap)
        scheme = self.color_scheme or self.theme.theme.color_scheme
        return build_lut(scheme)


@dataclass(frozen=True)
class BrailleCell:
    x: int
    y: int
    char: str
    color: RGB


@dataclass(frozen=True)
class CanvasFrame:
    """Rendered canvas: Braille patterns plus one RGB colour per character."""

    patterns: np.ndarray  # (rows, cols) uint8
    colors: np.ndarray  # (rows, cols, 3) uint8
    background: Optional[RGB] = None

    @property
    def rows(self) -> int:
        return self.patterns.shape[0]

    @property
    def cols(self) -> int:
        return self.patterns.shape[1]

    def cells(self) -> List[BrailleCell]:
        """Lit characters only, in row-major order."""
        out = []
        ys, xs = np.nonzero(self.patterns)
        for y, x in zip(ys.tolist(), xs.tolist()):
            r, g, b = self.colors[y, x].tolist()
            out.append(BrailleCell(x, y, chr(BRAILLE_BASE + int(self.patterns[y, x])), (r, g, b)))
        return out

    def lines(self) -> List[str]:
        return [
            "".join(chr(BRAILLE_BASE + p) if p else " " for p in row.tolist())
            for row in self.patterns
        ]

    def to_ansi(self) -> str:
        """24-bit ANSI escape rendering for a terminal."""
        bg = ""
        if self.background is not None:
            bg = "\x1b[48;2;{};{};{}m".format(*self.background)
        out = []
        for y in range(self.rows):
            parts = [bg]
            for x, p in enumerate(self.patterns[y].tolist()):
                if p:
                    r, g, b = self.colors[y, x].tolist()
                    parts.append(f"\x1b[38;2;{r};{g};{b}m{chr(BRAILLE_BASE + p)}")
                else:
                    parts.append(" ")
            parts.append("\x1b[0m")
            out.append("".join(parts))
        return "\n".join(out)

    def tobytes(self) -> bytes:
        return self.patterns.tobytes() + self.colors.tobytes()


def calculate_simulation_size(cols: int, rows: int) -> Tuple[int, int]:
    """Simulation grid matching the canvas dot resolution (at least 64x64)."""
    return max(cols * SUB_W, MIN_SIM_SIZE), max(rows * SUB_H, MIN_SIM_SIZE)


###############################################################################
# Colour values
###############################################################################


def particle_values(frame: FrameState, visual: VisualParams) -> Tuple[np.ndarray, float]:
    """
    Normalised colour value per particle, plus the normaliser used.

    The normaliser is part of the raster cache key: when it changes every
    particle's value changes.
    """
    mode = visual.color_mode
    if mode is ColorMode.AGE:
        norm = float(max(frame.budget, frame.count, 1))
        t = frame.age / norm
    elif mode is ColorMode.DISTANCE:
        norm = float(max(frame.growth_radius, 1e-9))
        t = frame.distance / norm
    elif mode is ColorMode.DENSITY:
        norm = float(frame.neighbor_slots)
        t = frame.neighbors / norm
    elif mode is ColorMode.DIRECTION:
        norm = 2.0 * math.pi
        t = (frame.angle + math.pi) / norm
    else:
        raise ValueError(f"Unknown colour mode: {mode!r}")
    t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0)
    if visual.invert:
        t = 1.0 - t
    return t, norm


###############################################################################
# Rasterisation kernel
###############################################################################


@njit(cache=True)
def _rasterize(
    keys, tvals, highlight_from, cell_rows, cell_cols, scale_x, scale_y,
    patterns, tsum, counts, highlighted,
):
    """Recompute the listed character cells in place."""
    h, w = keys.shape
    for i in range(cell_rows.shape[0]):
        cy = cell_rows[i]
        cx = cell_cols[i]
        pattern = 0
        total = 0.0
        count = 0
        hl = False
        for dx in range(2):
            for dy in range(4):
                sx = int((cx * 2 + dx) * scale_x)
                sy = int((cy * 4 + dy) * scale_y)
                if sx >= w or sy >= h:
                    continue
                key = keys[sy, sx]
                if key < 0:
                    continue
                pattern |= BRAILLE_DOTS[dx, dy]
                total += tvals[key]
                count += 1
                if key >= highlight_from:
                    hl = True
        patterns[cy, cx] = pattern
        tsum[cy, cx] = total
        counts[cy, cx] = count
        highlighted[cy, cx] = hl


@dataclass
class _RasterCache:
    key: tuple
    count: int
    highlight_from: int
    patterns: np.ndarray
    tsum: np.ndarray
    counts: np.ndarray
    highlighted: np.ndarray


class CanvasRenderer:
    """Turns engine snapshots into coloured Braille canvases."""

    def __init__(self) -> None:
        self._cache: Optional[_RasterCache] = None

    def invalidate(self) -> None:
        self._cache = None

    def render(
        self, frame: FrameState, visual: VisualParams, cols: int, rows: int
    ) -> CanvasFrame:
        cols = max(1, int(cols))
        rows = max(1, int(rows))
        tvals, norm = particle_values(frame, visual)
        highlight_from = frame.count - visual.highlight if visual.highlight > 0 else frame.count
        highlight_from = max(0, highlight_from)
        scale_x = frame.width / float(cols * SUB_W)
        scale_y = frame.height / float(rows * SUB_H)
        key = (
            frame.generation,
            cols,
            rows,
            frame.width,
            frame.height,
            visual.color_mode,
            visual.invert,
            visual.highlight,
            norm,
        )

        cache = self._cache
        if cache is not None and cache.key == key and frame.count >= cache.count:
            cell_rows, cell_cols = self._dirty_cells(
                frame, cache.highlight_from, cols, rows, scale_x, scale_y
            )
        else:
            cache = _RasterCache(
                key=key,
                count=0,
                highlight_from=0,
                patterns=np.zeros((rows, cols), dtype=np.uint8),
                tsum=np.zeros((rows, cols), dtype=np.float64),
                counts=np.zeros((rows, cols), dtype=np.int64),
                highlighted=np.zeros((rows, cols), dtype=np.bool_),
            )
            cell_rows, cell_cols = np.divmod(np.arange(rows * cols, dtype=np.int64), cols)

        if cell_rows.size:
            _rasterize(
                frame.keys,
                tvals,
                highlight_from,
                cell_rows,
                cell_cols,
                scale_x,
                scale_y,
                cache.patterns,
                cache.tsum,
                cache.counts,
                cache.highlighted,
            )
        cache.count = frame.count
        cache.highlight_from = highlight_from
        self._cache = cache

        colors = self._colorize(cache, visual)
        return CanvasFrame(
            patterns=cache.patterns.copy(),
            colors=colors,
            background=visual.theme.theme.background,
        )

    @staticmethod
    def _dirty_cells(
        frame: FrameState,
        first_key: int,
        cols: int,
        rows: int,
        scale_x: float,
        scale_y: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Character cells that may sample any particle with key >= first_key."""
        mask = np.zeros((rows, cols), dtype=bool)
        px = frame.x[first_key : frame.count].astype(np.float64)
        py = frame.y[first_key : frame.count].astype(np.float64)
        c0 = np.clip(np.floor(px / scale_x / SUB_W) - 1, 0, cols - 1).astype(np.int64)
        c1 = np.clip(np.floor((px + 1.0) / scale_x / SUB_W) + 1, 0, cols - 1).astype(np.int64)
        r0 = np.clip(np.floor(py / scale_y / SUB_H) - 1, 0, rows - 1).astype(np.int64)
        r1 = np.clip(np.floor((py + 1.0) / scale_y / SUB_H) + 1, 0, rows - 1).astype(np.int64)
        for a, b, c, d in zip(r0.tolist(), r1.tolist(), c0.tolist(), c1.tolist()):
            mask[a : b + 1, c : d + 1] = True
        cell_rows, cell_cols = np.nonzero(mask)
        return cell_rows.astype(np.int64), cell_cols.astype(np.int64)

    @staticmethod
    def _colorize(cache: _RasterCache, visual: VisualParams) -> np.ndarray:
        theme = visual.theme.theme
        lit = cache.counts > 0
        avg = np.where(lit, cache.tsum / np.maximum(cache.counts, 1), 0.0)
        if visual.use_gradient:
            colors = lut_lookup(visual.lut(), avg).astype(np.float64)
        else:
            colors = np.empty(avg.shape + (3,), dtype=np.float64)
            colors[...] = theme.particle_color
        colors[cache.highlighted] = theme.highlight_color

        if visual.min_brightness > 0.0:
            floor = min(visual.min_brightness, 1.0) * 255.0
            peak = colors.max(axis=2)
            dark = peak < floor
            gain = np.where(peak > 0, floor / np.maximum(peak, 1e-9), 0.0)
            colors[dark] *= gain[dark][:, None]
            colors[dark & (peak == 0)] = floor

        colors[~lit] = 0.0
        return np.clip(np.round(colors), 0, 255).astype(np.uint8)


__all__ = [
    "BRAILLE_BASE",
    "BRAILLE_DOTS",
    "BrailleCell",
    "CanvasFrame",
    "CanvasRenderer",
    "VisualParams",
    "calculate_simulation_size",
    "particle_values",
]
