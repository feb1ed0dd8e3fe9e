"""
Direction vocabulary shared by the assigner, the navigation resolver and the
legacy exit-map adapter.

Bearings follow screen coordinates: 0 is east, pi/2 is south (y grows
downwards), pi is west and 3*pi/2 is north.
"""
from __future__ import annotations

import math
import re
from enum import Enum
from typing import Dict, List, Optional, Tuple

TWO_PI = 2 * math.pi

SYNTHETIC_PREFIX = "passage-"
SYNTHETIC_BACK_PREFIX = "passage-back-"
_SYNTHETIC_RE = re.compile(r"^passage-(back-)?(\d+)$")


class Direction(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    NORTHEAST = "northeast"
    NORTHWEST = "northwest"
    SOUTHEAST = "southeast"
    SOUTHWEST = "southwest"
    UP = "up"
    DOWN = "down"

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def bearing(self) -> Optional[float]:
        """Expected bearing in radians, or None for vertical directions."""
        return _BEARINGS.get(self)

    @property
    def is_compass(self) -> bool:
        return self in _BEARINGS

    @classmethod
    def from_string(cls, text: str) -> Optional["Direction"]:
        """Parse a label or a short alias (``n``, ``sw``, ``u``) case-insensitively."""
        key = text.strip().lower()
        if not key:
            return None
        alias = ALIASES.get(key)
        if alias is not None:
            return alias
        try:
            return cls(key)
        except ValueError:
            return None


_OPPOSITES: Dict[Direction, Direction] = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
    Direction.NORTHEAST: Direction.SOUTHWEST,
    Direction.SOUTHWEST: Direction.NORTHEAST,
    Direction.NORTHWEST: Direction.SOUTHEAST,
    Direction.SOUTHEAST: Direction.NORTHWEST,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}

_BEARINGS: Dict[Direction, float] = {
    Direction.EAST: 0.0,
    Direction.SOUTHEAST: math.pi / 4,
    Direction.SOUTH: math.pi / 2,
    Direction.SOUTHWEST: 3 * math.pi / 4,
    Direction.WEST: math.pi,
    Direction.NORTHWEST: 5 * math.pi / 4,
    Direction.NORTH: 3 * math.pi / 2,
    Direction.NORTHEAST: 7 * math.pi / 4,
}

ALIASES: Dict[str, Direction] = {
    "n": Direction.NORTH,
    "s": Direction.SOUTH,
    "e": Direction.EAST,
    "w": Direction.WEST,
    "ne": Direction.NORTHEAST,
    "nw": Direction.NORTHWEST,
    "se": Direction.SOUTHEAST,
    "sw": Direction.SOUTHWEST,
    "u": Direction.UP,
    "d": Direction.DOWN,
}

# Snapping order; ties resolve to the earlier entry.
COMPASS: Tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
    Direction.NORTHEAST,
    Direction.SOUTHEAST,
    Direction.SOUTHWEST,
    Direction.NORTHWEST,
)

# Secondary pool used when geometry is missing or the snapped slot is taken.
SECONDARY: Tuple[Direction, ...] = (Direction.UP, Direction.DOWN)

# Every label and alias a player can type that names a direction outright.
VOCABULARY = frozenset([d.value for d in Direction] + list(ALIASES))


def normalize_angle(angle: float) -> float:
    """Map any angle onto [0, 2*pi)."""
    result = math.fmod(angle, TWO_PI)
    if result < 0:
        result += TWO_PI
    # fmod of a tiny negative can round up to exactly 2*pi
    if result >= TWO_PI:
        result = 0.0
    return result


def angular_distance(a: float, b: float) -> float:
    """Smallest difference between two bearings, aware of wrap-around."""
    diff = abs(normalize_angle(a) - normalize_angle(b))
    return TWO_PI - diff if diff > math.pi else diff


def bearing_between(source: Tuple[int, int], target: Tuple[int, int]) -> float:
    dx = target[0] - source[0]
    dy = target[1] - source[1]
    return normalize_angle(math.atan2(dy, dx))


def snap_bearing(angle: float) -> Direction:
    """Nearest of the eight compass directions to ``angle``."""
    return min(COMPASS, key=lambda d: angular_distance(angle, _BEARINGS[d]))


def synthetic_pair(index: int) -> Tuple[str, str]:
    return f"{SYNTHETIC_PREFIX}{index}", f"{SYNTHETIC_BACK_PREFIX}{index}"


def synthetic_index(label: str) -> Optional[int]:
    match = _SYNTHETIC_RE.match(label.strip().lower())
    return int(match.group(2)) if match else None


def is_synthetic(label: str) -> bool:
    return synthetic_index(label) is not None


def opposite_label(label: str) -> Optional[str]:
    """Canonical opposite for vocabulary and synthetic labels, else None."""
    direction = Direction.from_string(label)
    if direction is not None:
        return direction.opposite.value
    match = _SYNTHETIC_RE.match(label.strip().lower())
    if match is None:
        return None
    forward, back = synthetic_pair(int(match.group(2)))
    return forward if match.group(1) else back


_FREE_TEXT_SWAPS: List[Tuple[str, str]] = [
    ("climb", "descend"),
    ("ascend", "descend"),
    ("descend", "ascend"),
    ("enter", "exit"),
    ("exit", "enter"),
    ("into", "out of"),
    ("out of", "into"),
]


def reciprocal_label(label: str) -> str:
    """Best-effort way back for any label, including free text like "climb ladder".

    Labels with no recognisable keyword are treated as symmetric ("through the arch").
    """
    opposite = opposite_label(label)
    if opposite is not None:
        return opposite
    normalized = label.strip().lower()
    for word, replacement in _FREE_TEXT_SWAPS:
        if word in normalized:
            return normalized.replace(word, replacement, 1)
    return normalized
