"""
Node layout strategies: regular grid, recursive space partition (BSP) and
organic flood-fill.

Each layout is a small validated value object; :func:`build_nodes` turns one
into the initial, edge-less node list for a region. All randomness comes from
the ``random.Random`` passed in so a region is reproducible from its seed.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple, Union

from ..exceptions import LayoutError
from .model import Node, NodeRole, Position

logger = logging.getLogger(__name__)

MAX_NODES = 100
BSP_AREA = 50


def _check_loop_frequency(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} loop_frequency must be 0.0-1.0, got {value}")


@dataclass(frozen=True)
class GridLayout:
    """Rectangular W x H arrangement. Predictable, good for built dungeons."""

    width: int
    height: int
    loop_frequency: float = 0.5

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError(f"Grid width must be positive, got {self.width}")
        if self.height <= 0:
            raise ValueError(f"Grid height must be positive, got {self.height}")
        if self.width * self.height > MAX_NODES:
            raise ValueError(
                f"Grid too large: {self.width}x{self.height} = {self.width * self.height} nodes (max {MAX_NODES})"
            )
        _check_loop_frequency("Grid", self.loop_frequency)

    def node_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class BSPLayout:
    """Recursive partition of a fixed 50x50 area; one node per leaf room."""

    min_room_size: int = 3
    max_depth: int = 4
    loop_frequency: float = 0.5

    def __post_init__(self) -> None:
        if self.min_room_size < 2:
            raise ValueError(f"BSP min_room_size must be >= 2, got {self.min_room_size}")
        if not 1 <= self.max_depth <= 6:
            raise ValueError(f"BSP max_depth must be 1-6, got {self.max_depth}")
        _check_loop_frequency("BSP", self.loop_frequency)

    def estimate_node_count(self) -> int:
        return 2 ** self.max_depth


@dataclass(frozen=True)
class FloodFillLayout:
    """Organic growth from the origin, for caves and other natural spaces.

    With ``positioned=False`` the grown cells only decide how many nodes exist;
    the nodes themselves carry no geometry.
    """

    node_count: int
    density: float = 0.4
    loop_frequency: float = 0.5
    positioned: bool = True

    def __post_init__(self) -> None:
        if not 5 <= self.node_count <= MAX_NODES:
            raise ValueError(f"FloodFill node_count must be 5-{MAX_NODES}, got {self.node_count}")
        if not 0.1 <= self.density <= 1.0:
            raise ValueError(f"FloodFill density must be 0.1-1.0, got {self.density}")
        _check_loop_frequency("FloodFill", self.loop_frequency)


Layout = Union[GridLayout, BSPLayout, FloodFillLayout]


def layout_for_node_count(target: int, loop_frequency: float = 0.5) -> Layout:
    """Pick the most suitable strategy for roughly ``target`` nodes."""
    if target <= 10:
        return GridLayout(3, 3, loop_frequency)
    if target <= 25:
        return GridLayout(5, 5, loop_frequency)
    if target <= 50:
        return BSPLayout(min_room_size=4, max_depth=4, loop_frequency=loop_frequency)
    return FloodFillLayout(node_count=max(5, min(MAX_NODES, target)), density=0.4, loop_frequency=loop_frequency)


def layout_for_theme(theme: str, themes: Sequence[Tuple[str, Layout]], fallback: Layout) -> Layout:
    """First layout whose keyword appears in ``theme`` (case-insensitive), else ``fallback``."""
    lowered = theme.lower()
    for keyword, layout in themes:
        if keyword.lower() in lowered:
            return layout
    return fallback


def build_nodes(layout: Layout, region_id: str, rng: random.Random) -> List[Node]:
    """Create the initial nodes for ``layout``. Raises LayoutError if none result."""
    if isinstance(layout, GridLayout):
        nodes = _grid_nodes(layout, region_id)
    elif isinstance(layout, BSPLayout):
        nodes = _bsp_nodes(layout, region_id, rng)
    elif isinstance(layout, FloodFillLayout):
        nodes = _flood_fill_nodes(layout, region_id, rng)
    else:
        raise TypeError(f"Unsupported layout: {layout!r}")

    if not nodes:
        raise LayoutError(f"Layout {layout} generated no nodes for region {region_id}")
    logger.debug("Layout %s produced %d nodes for region %s", layout, len(nodes), region_id)
    return nodes


# Grid

def _grid_nodes(layout: GridLayout, region_id: str) -> List[Node]:
    return [
        Node(id=f"{region_id}:grid_{x}_{y}", region_id=region_id, role=NodeRole.LINEAR, position=Position(x, y))
        for y in range(layout.height)
        for x in range(layout.width)
    ]


# BSP

@dataclass(frozen=True)
class _Area:
    x: int
    y: int
    w: int
    h: int

    def center(self) -> Position:
        return Position(self.x + self.w // 2, self.y + self.h // 2)


def _bsp_nodes(layout: BSPLayout, region_id: str, rng: random.Random) -> List[Node]:
    leaves: List[_Area] = []
    _subdivide(_Area(0, 0, BSP_AREA, BSP_AREA), layout.min_room_size, layout.max_depth, 0, rng, leaves)
    return [
        Node(id=f"{region_id}:bsp_{i}", region_id=region_id, role=NodeRole.LINEAR, position=leaf.center())
        for i, leaf in enumerate(leaves)
    ]


def _subdivide(area: _Area, min_size: int, max_depth: int, depth: int, rng: random.Random, out: List[_Area]) -> None:
    can_split_w = area.w >= min_size * 2
    can_split_h = area.h >= min_size * 2
    if depth >= max_depth or not (can_split_w or can_split_h):
        out.append(area)
        return

    # Split across the longer side to keep rooms close to square
    if area.w > area.h:
        split_width = True
    elif area.h > area.w:
        split_width = False
    else:
        split_width = rng.random() < 0.5
    if split_width and not can_split_w:
        split_width = False
    elif not split_width and not can_split_h:
        split_width = True

    if split_width:
        cut = area.x + min_size + rng.randint(0, area.w - min_size * 2)
        first = _Area(area.x, area.y, cut - area.x, area.h)
        second = _Area(cut, area.y, area.x + area.w - cut, area.h)
    else:
        cut = area.y + min_size + rng.randint(0, area.h - min_size * 2)
        first = _Area(area.x, area.y, area.w, cut - area.y)
        second = _Area(area.x, cut, area.w, area.y + area.h - cut)

    _subdivide(first, min_size, max_depth, depth + 1, rng, out)
    _subdivide(second, min_size, max_depth, depth + 1, rng, out)


# Flood fill

def _flood_fill_nodes(layout: FloodFillLayout, region_id: str, rng: random.Random) -> List[Node]:
    origin = (0, 0)
    cells: List[Tuple[int, int]] = [origin]
    occupied: Set[Tuple[int, int]] = {origin}
    frontier: List[Tuple[int, int]] = [origin]

    while len(cells) < layout.node_count and frontier:
        cx, cy = frontier.pop(rng.randrange(len(frontier)))
        free = [c for c in ((cx + 1, cy), (cx - 1, cy), (cx, cy + 1), (cx, cy - 1)) if c not in occupied]
        rng.shuffle(free)
        take = max(1, int(len(free) * layout.density))
        for cell in free[:take]:
            if len(cells) >= layout.node_count:
                break
            occupied.add(cell)
            cells.append(cell)
            frontier.append(cell)

    nodes: List[Node] = []
    for i, (x, y) in enumerate(cells):
        position: Optional[Position] = Position(x, y) if layout.positioned else None
        nodes.append(Node(id=f"{region_id}:flood_{i}", region_id=region_id, role=NodeRole.LINEAR, position=position))
    return nodes
