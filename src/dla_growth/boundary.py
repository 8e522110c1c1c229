"""Edge handling for walkers whose proposed move leaves the plane."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Tuple

from .config import BoundaryBehavior

# Positions are continuous; the last representable in-bounds coordinate sits
# this far inside the far edge so that int(coord) stays < extent.
EDGE_EPS = 1e-6


class BoundaryOutcome(Enum):
    CONTINUE = "continue"
    REMOVED = "removed"
    EDGE_CONTACT = "edge_contact"


class BoundaryResult(NamedTuple):
    x: float
    y: float
    outcome: BoundaryOutcome
    flip_x: bool = False
    flip_y: bool = False


def _inside(v: float, extent: int) -> bool:
    return 0.0 <= v < extent


def _clamp(v: float, extent: int) -> float:
    return min(max(v, 0.0), extent - EDGE_EPS)


def _wrap(v: float, extent: int) -> float:
    out = v % extent
    # -tiny % extent rounds to extent in floating point
    if out >= extent:
        out = 0.0
    return out


def _reflect(v: float, extent: int) -> Tuple[float, bool]:
    if v < 0.0:
        return _clamp(-v, extent), True
    if v >= extent:
        return _clamp(2.0 * extent - v, extent), True
    return v, False


def apply_boundary(
    behavior: BoundaryBehavior,
    old_pos: Tuple[float, float],
    proposed_pos: Tuple[float, float],
    extent: Tuple[int, int],
) -> BoundaryResult:
    """
    Map a proposed walker position back onto the plane.

    Pure function: the walker keeps moving (`CONTINUE`), is discarded
    (`REMOVED`, Absorb), or stays at its last in-bounds position to be tested
    against the edge (`EDGE_CONTACT`, Stick). Bounce reports the reflected
    axes so the caller can negate that axis of its walk bias.
    """
    px, py = float(proposed_pos[0]), float(proposed_pos[1])
    width, height = extent
    if _inside(px, width) and _inside(py, height):
        return BoundaryResult(px, py, BoundaryOutcome.CONTINUE)

    if behavior is BoundaryBehavior.CLAMP:
        return BoundaryResult(_clamp(px, width), _clamp(py, height), BoundaryOutcome.CONTINUE)
    if behavior is BoundaryBehavior.WRAP:
        return BoundaryResult(_wrap(px, width), _wrap(py, height), BoundaryOutcome.CONTINUE)
    if behavior is BoundaryBehavior.BOUNCE:
        nx, flip_x = _reflect(px, width)
        ny, flip_y = _reflect(py, height)
        return BoundaryResult(nx, ny, BoundaryOutcome.CONTINUE, flip_x, flip_y)
    if behavior is BoundaryBehavior.STICK:
        return BoundaryResult(
            float(old_pos[0]), float(old_pos[1]), BoundaryOutcome.EDGE_CONTACT
        )
    if behavior is BoundaryBehavior.ABSORB:
        return BoundaryResult(px, py, BoundaryOutcome.REMOVED)
    raise ValueError(f"Unknown boundary behaviour: {behavior!r}")


__all__ = ["BoundaryOutcome", "BoundaryResult", "EDGE_EPS", "apply_boundary"]
