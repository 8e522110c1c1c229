"""
DLA Growth - real-time diffusion-limited aggregation with a Braille canvas.

This package provides:
- DLAEngine: walker stepping, sticking and structure bookkeeping per tick
- CanvasRenderer: sub-cell (2x4 Braille) rendering of engine snapshots
- DLAParams / VisualParams: the live simulation and visual parameter sets
"""

from .braille import CanvasFrame, CanvasRenderer, VisualParams, calculate_simulation_size
from .config import (
    BoundaryBehavior,
    ColorMode,
    DLAParams,
    Neighborhood,
    SeedPattern,
    SpawnMode,
)
from .color import ColorScheme
from .engine import DLAEngine, FrameState
from .occupancy import OccupancyError, OccupancyIndex
from .theme import ThemeId, parse_theme
from . import analysis, utils

__all__ = [
    # Engine and renderer
    "DLAEngine",
    "FrameState",
    "CanvasRenderer",
    "CanvasFrame",
    "calculate_simulation_size",
    # Configuration
    "DLAParams",
    "VisualParams",
    "BoundaryBehavior",
    "ColorMode",
    "Neighborhood",
    "SeedPattern",
    "SpawnMode",
    "ColorScheme",
    "ThemeId",
    "parse_theme",
    # Structure
    "OccupancyIndex",
    "OccupancyError",
    # Utilities
    "analysis",
    "utils",
]
