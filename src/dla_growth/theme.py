"""Visual themes: a gradient plus the fixed colours the renderer needs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .color import RGB, ColorScheme


@dataclass(frozen=True)
class Theme:
    name: str
    color_scheme: ColorScheme
    highlight_color: RGB
    particle_color: RGB
    # None means the terminal's own background.
    background: Optional[RGB] = None


class ThemeId(Enum):
    DEFAULT = "default"
    LAGOON = "lagoon"
    BLUEMONO = "bluemono"
    VIOLET = "violet"
    HARVEST = "harvest"
    MIDNIGHT = "midnight"
    RAINBOW = "rainbow"
    FROST = "frost"
    DEEP_SPACE = "deep_space"
    SUNSET = "sunset"
    MATRIX = "matrix"
    AMBER = "amber"

    def next(self) -> "ThemeId":
        members = list(ThemeId)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> "ThemeId":
        members = list(ThemeId)
        return members[(members.index(self) - 1) % len(members)]

    @property
    def theme(self) -> Theme:
        return THEMES[self]


THEMES = {
    ThemeId.DEFAULT: Theme("Default", ColorScheme.NEON, (255, 255, 0), (0, 255, 255), (8, 8, 12)),
    ThemeId.LAGOON: Theme("Lagoon", ColorScheme.LAGOON, (246, 193, 119), (156, 207, 216), (25, 23, 36)),
    ThemeId.BLUEMONO: Theme("Bluemono", ColorScheme.OCEAN, (0, 0, 0), (30, 85, 130), (252, 246, 248)),
    ThemeId.VIOLET: Theme("Violet", ColorScheme.VIOLET, (241, 250, 140), (139, 233, 253), (40, 42, 54)),
    ThemeId.HARVEST: Theme("Harvest", ColorScheme.HARVEST, (250, 189, 47), (254, 128, 25), (40, 40, 40)),
    ThemeId.MIDNIGHT: Theme("Midnight", ColorScheme.MIDNIGHT, (224, 175, 104), (122, 162, 247), (26, 27, 38)),
    ThemeId.RAINBOW: Theme("Rainbow", ColorScheme.PLASMA, (249, 226, 175), (203, 166, 247), (30, 30, 46)),
    ThemeId.FROST: Theme("Frost", ColorScheme.FROST, (235, 203, 139), (136, 192, 208), (46, 52, 64)),
    ThemeId.DEEP_SPACE: Theme("Deep Space", ColorScheme.NEON, (255, 166, 87), (88, 166, 255), (13, 17, 23)),
    ThemeId.SUNSET: Theme("Sunset", ColorScheme.SUNSET, (255, 230, 109), (255, 160, 122), (26, 20, 35)),
    ThemeId.MATRIX: Theme("Matrix", ColorScheme.MATRIX, (173, 255, 47), (0, 255, 65), (10, 10, 10)),
    ThemeId.AMBER: Theme("Amber", ColorScheme.AMBER, (255, 204, 0), (255, 176, 0), (26, 26, 10)),
}


def parse_theme(name) -> ThemeId:
    """Loose theme lookup; unknown names fall back to the default theme."""
    if isinstance(name, ThemeId):
        return name
    key = str(name).lower()
    for ch in "-_ ":
        key = key.replace(ch, "")
    if key == "space":
        return ThemeId.DEEP_SPACE
    for member in ThemeId:
        if member.value.replace("_", "") == key:
            return member
    return ThemeId.DEFAULT


__all__ = ["THEMES", "Theme", "ThemeId", "parse_theme"]
