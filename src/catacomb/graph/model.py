"""
Immutable topology model: positions, roles, access conditions, edges and nodes.

Regions are produced once as a batch and never mutated afterwards; helpers
that "change" a node return a new instance. Player-side navigation state
(current node, revealed hidden edges) lives in :mod:`catacomb.navigation.player`.
"""
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple, Union

PERCEPTION = "Perception"


class NodeRole(str, Enum):
    HUB = "hub"
    LINEAR = "linear"
    BRANCHING = "branching"
    DEAD_END = "dead_end"
    BOSS = "boss"
    FRONTIER = "frontier"
    QUESTABLE = "questable"


@dataclass(frozen=True, order=True)
class Position:
    """Integer grid coordinate. Nodes without geometry carry ``None`` instead."""

    x: int
    y: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def distance_to(self, other: "Position") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return (dx * dx + dy * dy) ** 0.5

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional["Position"]:
        if data is None:
            return None
        return Position(int(data["x"]), int(data["y"]))


@dataclass(frozen=True)
class SkillCheck:
    skill: str
    difficulty: int

    @property
    def is_discovery(self) -> bool:
        """Perception checks gate visibility rather than passage."""
        return self.skill.lower() == PERCEPTION.lower()

    def describe(self) -> str:
        return f"requires {self.skill} {self.difficulty}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "skill_check", "skill": self.skill, "difficulty": self.difficulty}


@dataclass(frozen=True)
class ItemRequired:
    tag: str

    @property
    def is_discovery(self) -> bool:
        return False

    def describe(self) -> str:
        return f"requires {self.tag}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "item_required", "tag": self.tag}


Condition = Union[SkillCheck, ItemRequired]


def condition_from_dict(data: Dict[str, Any]) -> Condition:
    kind = data.get("kind")
    if kind == "skill_check":
        return SkillCheck(skill=str(data["skill"]), difficulty=int(data["difficulty"]))
    if kind == "item_required":
        return ItemRequired(tag=str(data["tag"]))
    raise ValueError(f"Unknown condition kind: {kind!r}")


def edge_id(source_id: str, target_id: str) -> str:
    """Identifier used to track revealed hidden edges on the player."""
    return f"{source_id}->{target_id}"


@dataclass(frozen=True)
class Edge:
    """One-way labeled connection from the owning node to ``target_id``.

    ``bearing`` and the endpoint positions are only present when both nodes
    have geometry; they allow geometric matching even when the label had to
    fall back to a vertical or synthetic direction. ``target_region_id`` is set
    on edges that cross into another region (frontier links).
    """

    target_id: str
    label: str
    hidden: bool = False
    conditions: Tuple[Condition, ...] = ()
    bearing: Optional[float] = None
    source_position: Optional[Position] = None
    target_position: Optional[Position] = None
    target_region_id: Optional[str] = None

    def id_from(self, source_id: str) -> str:
        return edge_id(source_id, self.target_id)

    @property
    def crosses_region(self) -> bool:
        return self.target_region_id is not None

    def with_hidden(self, condition: Condition) -> "Edge":
        return replace(self, hidden=True, conditions=self.conditions + (condition,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_id": self.target_id,
            "label": self.label,
            "hidden": self.hidden,
            "conditions": [c.to_dict() for c in self.conditions],
            "bearing": self.bearing,
            "source_position": self.source_position.to_dict() if self.source_position else None,
            "target_position": self.target_position.to_dict() if self.target_position else None,
            "target_region_id": self.target_region_id,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Edge":
        bearing = data.get("bearing")
        return Edge(
            target_id=str(data["target_id"]),
            label=str(data["label"]),
            hidden=bool(data.get("hidden", False)),
            conditions=tuple(condition_from_dict(c) for c in data.get("conditions", [])),
            bearing=float(bearing) if bearing is not None else None,
            source_position=Position.from_dict(data.get("source_position")),
            target_position=Position.from_dict(data.get("target_position")),
            target_region_id=data.get("target_region_id"),
        )


@dataclass(frozen=True)
class Node:
    id: str
    region_id: str
    role: NodeRole = NodeRole.LINEAR
    position: Optional[Position] = None
    edges: Tuple[Edge, ...] = ()

    @property
    def degree(self) -> int:
        return len(self.edges)

    def labels(self) -> List[str]:
        return [e.label for e in self.edges]

    def edge(self, label: str) -> Optional[Edge]:
        """Outgoing edge with this label (case-insensitive), if any."""
        wanted = label.strip().lower()
        for e in self.edges:
            if e.label.lower() == wanted:
                return e
        return None

    def edge_to(self, target_id: str) -> Optional[Edge]:
        for e in self.edges:
            if e.target_id == target_id:
                return e
        return None

    def add_edge(self, new_edge: Edge) -> "Node":
        if self.edge(new_edge.label) is not None:
            raise ValueError(f"Node {self.id} already has an exit labeled {new_edge.label!r}")
        return replace(self, edges=self.edges + (new_edge,))

    def with_edges(self, edges: Iterable[Edge]) -> "Node":
        return replace(self, edges=tuple(edges))

    def with_role(self, role: NodeRole) -> "Node":
        return replace(self, role=role)

    def visible_edges(self, revealed: FrozenSet[str] = frozenset()) -> List[Edge]:
        return [e for e in self.edges if not e.hidden or e.id_from(self.id) in revealed]

    def hidden_edges(self, revealed: FrozenSet[str] = frozenset()) -> List[Edge]:
        return [e for e in self.edges if e.hidden and e.id_from(self.id) not in revealed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "region_id": self.region_id,
            "role": self.role.value,
            "position": self.position.to_dict() if self.position else None,
            "edges": [e.to_dict() for e in self.edges],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Node":
        return Node(
            id=str(data["id"]),
            region_id=str(data["region_id"]),
            role=NodeRole(data.get("role", NodeRole.LINEAR.value)),
            position=Position.from_dict(data.get("position")),
            edges=tuple(Edge.from_dict(e) for e in data.get("edges", [])),
        )


@dataclass(frozen=True)
class RegionGraph:
    """The generated batch for one region. The first node is the entry."""

    region_id: str
    nodes: Tuple[Node, ...]
    _index: Dict[str, Node] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "_index", {n.id: n for n in self.nodes})

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    @property
    def entry(self) -> Optional[Node]:
        return self.nodes[0] if self.nodes else None

    def node(self, node_id: str) -> Optional[Node]:
        return self._index.get(node_id)

    def nodes_with_role(self, role: NodeRole) -> List[Node]:
        return [n for n in self.nodes if n.role == role]

    def directed_edge_count(self) -> int:
        return sum(n.degree for n in self.nodes)

    def average_degree(self) -> float:
        if not self.nodes:
            return 0.0
        return self.directed_edge_count() / len(self.nodes)

    def hidden_edge_count(self) -> int:
        return sum(1 for n in self.nodes for e in n.edges if e.hidden)

    def visible_edges(self, node_id: str, revealed: FrozenSet[str] = frozenset()) -> List[Edge]:
        node = self.node(node_id)
        return node.visible_edges(revealed) if node else []

    def hidden_edges(self, node_id: str, revealed: FrozenSet[str] = frozenset()) -> List[Edge]:
        node = self.node(node_id)
        return node.hidden_edges(revealed) if node else []

    def adjacency(self) -> Dict[str, List[str]]:
        """Directed adjacency restricted to targets inside this region."""
        return {n.id: [e.target_id for e in n.edges if e.target_id in self._index] for n in self.nodes}

    def to_dict(self) -> Dict[str, Any]:
        return {"region_id": self.region_id, "nodes": [n.to_dict() for n in self.nodes]}

    def signature(self) -> str:
        """Stable digest of ids, positions, labels, roles and hidden flags."""
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
