# src/dla_growth/utils.py
"""Preset loading and structure/summary export."""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import numpy as np

from .config import DLAParams

PathLike = str | os.PathLike[str]

_PARAM_LOADERS = {
    ".json": json.loads,
    ".toml": tomllib.loads,
    ".tml": tomllib.loads,
}


@dataclass
class StructureRecord:
    """
    A grown structure as written to disk.

    `positions` are centred on the grid origin and stored in attachment
    order, so `ages[i]` belongs to `positions[i]`. `meta` holds JSON scalars.
    """

    occupied: np.ndarray
    positions: np.ndarray
    ages: np.ndarray
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return int(self.positions.shape[0])


def save_structure(path: PathLike, record: StructureRecord, *, overwrite: bool = True) -> Path:
    """Write a StructureRecord to a compressed .npz (no pickled objects)."""
    path = Path(path)
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(
        path,
        occupied=np.asarray(record.occupied, dtype=np.uint8),
        positions=np.asarray(record.positions, dtype=np.float64).reshape(-1, 2),
        ages=np.asarray(record.ages, dtype=np.int64),
        meta=np.array(json.dumps(record.meta)),
    )
    return path


def load_structure(path: PathLike) -> StructureRecord:
    with np.load(path) as data:
        meta = json.loads(data["meta"].item()) if "meta" in data.files else {}
        positions = data["positions"]
        ages = data["ages"] if "ages" in data.files else np.arange(1, len(positions) + 1)
        return StructureRecord(
            occupied=data["occupied"].astype(bool),
            positions=positions,
            ages=ages,
            meta=meta,
        )


def save_export(path: PathLike, summary: Dict[str, Any]) -> Path:
    """Write an `export_state()` summary as pretty JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    return path


def load_params(path: PathLike) -> Dict[str, Any]:
    """
    Raw parameter mapping from a JSON or TOML preset.

    An exported summary works too: its "params" table is returned.
    """
    path = Path(path)
    loader = _PARAM_LOADERS.get(path.suffix.lower())
    if loader is None:
        raise ValueError(f"Unsupported parameter file format: {path.suffix or path.name}")
    raw = loader(path.read_text(encoding="utf-8"))
    nested = raw.get("params")
    return nested if isinstance(nested, dict) else raw


def load_dla_params(path: PathLike, *, clamp: bool = True) -> DLAParams:
    """Load a preset or exported summary into a (clamped) DLAParams."""
    params = DLAParams.from_dict(load_params(path))
    return params.clamped() if clamp else params


__all__ = [
    "StructureRecord",
    "load_dla_params",
    "load_params",
    "load_structure",
    "save_export",
    "save_structure",
]
