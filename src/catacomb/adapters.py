"""
Adapters between region graphs and their collaborators.

- ``to_exit_map`` feeds legacy, direction-keyed room code.
- ``build_generation_context`` packages what a content generator (usually a
  language model writing room text) needs about one node. The graph never
  reads anything back from the generated text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .config import GenerationSettings
from .graph.directions import Direction
from .graph.model import Node, NodeRole, RegionGraph

logger = logging.getLogger(__name__)

ROOM_NAMES: Dict[NodeRole, str] = {
    NodeRole.HUB: "Central Hub",
    NodeRole.LINEAR: "Passage",
    NodeRole.BRANCHING: "Junction",
    NodeRole.DEAD_END: "Dead End",
    NodeRole.BOSS: "Boss Chamber",
    NodeRole.FRONTIER: "Frontier",
    NodeRole.QUESTABLE: "Quest Location",
}

ROLE_TRAITS: Dict[NodeRole, str] = {
    NodeRole.HUB: "Central hub area",
    NodeRole.BOSS: "Boss chamber",
    NodeRole.FRONTIER: "Frontier boundary",
    NodeRole.QUESTABLE: "Quest location",
}


def default_room_name(role: Optional[NodeRole]) -> str:
    if role is None:
        return "Unexplored Space"
    return ROOM_NAMES[role]


def to_exit_map(node: Node) -> Dict[Direction, str]:
    """Direction-keyed exits. Labels outside the direction vocabulary are left out."""
    exits: Dict[Direction, str] = {}
    for edge in node.edges:
        direction = Direction.from_string(edge.label)
        if direction is not None:
            exits[direction] = edge.target_id
    return exits


def custom_exits(node: Node) -> List[str]:
    """``label:target`` for each exit that ``to_exit_map`` cannot express."""
    return [f"{e.label}:{e.target_id}" for e in node.edges if Direction.from_string(e.label) is None]


@dataclass(frozen=True)
class GenerationContext:
    region_id: str
    node_id: str
    role: NodeRole
    theme: str
    difficulty: int
    lore: str = ""
    direction_hint: Optional[str] = None
    spawn_mobs: bool = True
    traits: List[str] = field(default_factory=list)
    exits: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_id": self.region_id,
            "node_id": self.node_id,
            "role": self.role.value,
            "theme": self.theme,
            "difficulty": self.difficulty,
            "lore": self.lore,
            "direction_hint": self.direction_hint,
            "spawn_mobs": self.spawn_mobs,
            "traits": list(self.traits),
            "exits": list(self.exits),
        }


class ContentGenerator(Protocol):
    def describe(self, context: GenerationContext) -> str:
        ...


def build_generation_context(
    graph: RegionGraph,
    node_id: str,
    theme: str,
    settings: GenerationSettings,
    lore: str = "",
    direction_hint: Optional[str] = None,
) -> GenerationContext:
    node = graph.node(node_id)
    if node is None:
        raise KeyError(f"Node {node_id} is not part of region {graph.region_id}")
    traits = [ROLE_TRAITS[node.role]] if node.role in ROLE_TRAITS else []
    return GenerationContext(
        region_id=graph.region_id,
        node_id=node.id,
        role=node.role,
        theme=theme,
        difficulty=settings.difficulty,
        lore=lore,
        direction_hint=direction_hint,
        spawn_mobs=settings.spawn_mobs,
        traits=traits,
        # Hidden exits stay out of generated descriptions
        exits=[e.label for e in node.visible_edges()],
    )


def describe_node(generator: ContentGenerator, context: GenerationContext) -> str:
    """Generated text, or the role's default room name when the generator returns nothing."""
    text = generator.describe(context).strip()
    if not text:
        logger.debug("Empty description for %s; using role name", context.node_id)
        return default_room_name(context.role)
    return text
