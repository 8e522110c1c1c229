"""
Parameter set for the DLA growth engine.

The engine never copies a `DLAParams`; it keeps the caller's instance and
reads it every tick, so live edits take effect on the next step.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np

###############################################################################
# Policy enums
###############################################################################


class _NamedEnum(Enum):
    """Enum whose members parse from loose, case-insensitive names."""

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        raise ValueError(f"Unknown {cls.__name__}: {value!r}")

    def next(self):
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]

    def prev(self):
        members = list(type(self))
        return members[(members.index(self) - 1) % len(members)]


class Neighborhood(_NamedEnum):
    VON_NEUMANN = "von_neumann"
    MOORE = "moore"
    EXTENDED = "extended"

    @property
    def slots(self) -> int:
        """Number of cells in the neighbour-offset set."""
        if self is Neighborhood.VON_NEUMANN:
            return 4
        if self is Neighborhood.MOORE:
            return 8
        return 24


class BoundaryBehavior(_NamedEnum):
    CLAMP = "clamp"
    WRAP = "wrap"
    BOUNCE = "bounce"
    STICK = "stick"
    ABSORB = "absorb"


class SpawnMode(_NamedEnum):
    CIRCLE = "circle"
    EDGES = "edges"
    CORNERS = "corners"
    RANDOM = "random"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class SeedPattern(_NamedEnum):
    POINT = "point"
    LINE = "line"
    CROSS = "cross"
    CIRCLE = "circle"
    RING = "ring"
    BLOCK = "block"
    NOISE = "noise"
    SCATTER = "scatter"
    MULTIPOINT = "multipoint"
    STARBURST = "starburst"


class ColorMode(_NamedEnum):
    AGE = "age"
    DISTANCE = "distance"
    DENSITY = "density"
    DIRECTION = "direction"


###############################################################################
# Parameter set
###############################################################################

# (low, high) for every numeric field; walk_angle is taken modulo 360.
PARAM_RANGES: Dict[str, Tuple[float, float]] = {
    "num_particles": (100, 10_000),
    "stickiness": (0.1, 1.0),
    "multi_contact": (1, 4),
    "tip_stickiness": (0.1, 1.0),
    "side_stickiness": (0.1, 1.0),
    "stickiness_gradient": (-0.5, 0.5),
    "walk_step": (0.5, 5.0),
    "walk_force": (0.0, 0.5),
    "radial_bias": (-0.3, 0.3),
    "adaptive_factor": (1.0, 10.0),
    "spawn_offset": (5.0, 50.0),
    "escape_mult": (2.0, 6.0),
    "min_radius": (20.0, 100.0),
    "max_iterations": (1_000, 50_000),
    "speed": (1, 100),
}

_ENUM_FIELDS = {
    "neighborhood": Neighborhood,
    "spawn_mode": SpawnMode,
    "boundary": BoundaryBehavior,
    "seed_pattern": SeedPattern,
}

# Aliases accepted in preset files.
_KEY_ALIASES = {
    "particles": "num_particles",
    "neighbors": "neighborhood",
    "contacts": "multi_contact",
    "tip_sticky": "tip_stickiness",
    "side_sticky": "side_stickiness",
    "gradient": "stickiness_gradient",
    "walk": "walk_step",
    "direction": "walk_angle",
    "force": "walk_force",
    "radial": "radial_bias",
    "adaptive": "adaptive_step",
    "lattice": "lattice_walk",
    "spawn": "spawn_mode",
    "bound": "boundary",
    "max_steps": "max_iterations",
}


@dataclass
class DLAParams:
    """Live parameter set read by the engine every tick."""

    num_particles: int = 5000
    stickiness: float = 1.0
    neighborhood: Neighborhood = Neighborhood.MOORE
    multi_contact: int = 1
    tip_stickiness: float = 1.0
    side_stickiness: float = 1.0
    stickiness_gradient: float = 0.0
    walk_step: float = 2.0
    walk_angle: float = 0.0
    walk_force: float = 0.0
    radial_bias: float = 0.0
    adaptive_step: bool = False
    adaptive_factor: float = 3.0
    lattice_walk: bool = False
    spawn_mode: SpawnMode = SpawnMode.CIRCLE
    boundary: BoundaryBehavior = BoundaryBehavior.CLAMP
    spawn_offset: float = 10.0
    escape_mult: float = 2.0
    min_radius: float = 50.0
    max_iterations: int = 10_000
    seed_pattern: SeedPattern = SeedPattern.POINT
    speed: int = 5
    rng_seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DLAParams":
        """
        Build a parameter set from a loose mapping (JSON/TOML presets).

        Keys may use hyphens or underscores, or the short option names
        (``contacts``, ``bound``, ...). Enum values are parsed by name.
        Unknown keys raise ValueError.
        """
        names = {f.name for f in dataclasses.fields(cls)}
        kwargs: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = str(raw_key).strip().lower().replace("-", "_").replace(" ", "_")
            key = _KEY_ALIASES.get(key, key)
            if key not in names:
                raise ValueError(f"Unknown parameter: {raw_key!r}")
            if key in _ENUM_FIELDS:
                value = _ENUM_FIELDS[key].parse(value)
            elif key in ("adaptive_step", "lattice_walk"):
                value = _parse_switch(value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable mapping; enums are written by value."""
        out: Dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.value if isinstance(value, Enum) else value
        return out

    def clamped(self) -> "DLAParams":
        """Return a copy with every numeric field clipped into its range."""
        values = {}
        for name, (lo, hi) in PARAM_RANGES.items():
            current = getattr(self, name)
            clipped = float(np.clip(current, lo, hi))
            values[name] = int(round(clipped)) if isinstance(lo, int) else clipped
        values["walk_angle"] = float(self.walk_angle) % 360.0
        return dataclasses.replace(self, **values)


def _parse_switch(value) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("on", "true", "yes", "1"):
            return True
        if lowered in ("off", "false", "no", "0"):
            return False
        raise ValueError(f"Expected on/off, got {value!r}")
    return bool(value)


__all__ = [
    "BoundaryBehavior",
    "ColorMode",
    "DLAParams",
    "Neighborhood",
    "PARAM_RANGES",
    "SeedPattern",
    "SpawnMode",
]
