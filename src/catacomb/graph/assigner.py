"""
Turns undirected edges into pairs of directed, labeled edges.

Each undirected pair is labeled exactly once, jointly for both endpoints, so
the forward label and the way back are always canonical opposites:

1. With geometry on both nodes, snap the bearing to the nearest compass
   direction and take it if that slot and its opposite are free.
2. Otherwise try the vertical pool (up/down) the same way.
3. Otherwise emit a numbered synthetic pair, ``passage-k`` / ``passage-back-k``.

A consistency pass runs afterwards and raises instead of logging.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..exceptions import GraphValidationError
from .directions import SECONDARY, bearing_between, opposite_label, snap_bearing, synthetic_pair
from .model import Edge, Node

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


class DirectionAssigner:
    """Labels edges for one region. Synthetic numbering is per instance."""

    def __init__(self) -> None:
        self._synthetic_count = 0

    @property
    def synthetic_count(self) -> int:
        return self._synthetic_count

    def assign(self, nodes: Sequence[Node], pairs: Iterable[Pair]) -> List[Node]:
        by_id: Dict[str, Node] = {n.id: n for n in nodes}
        used: Dict[str, Set[str]] = {n.id: set() for n in nodes}
        outgoing: Dict[str, List[Edge]] = {n.id: [] for n in nodes}

        for a_id, b_id in pairs:
            if a_id == b_id:
                raise ValueError(f"Self-loop on {a_id} cannot be labeled")
            a, b = by_id[a_id], by_id[b_id]
            forward, back = self._choose_pair(a, b, used[a_id], used[b_id])
            used[a_id].add(forward)
            used[b_id].add(back)
            outgoing[a_id].append(_directed(a, b, forward))
            outgoing[b_id].append(_directed(b, a, back))

        labeled = [n.with_edges(outgoing[n.id]) for n in nodes]
        issues = direction_issues(labeled)
        if issues:
            raise GraphValidationError(issues)
        logger.debug("Labeled %d nodes; %d synthetic passages", len(labeled), self._synthetic_count)
        return labeled

    def _choose_pair(self, a: Node, b: Node, used_a: Set[str], used_b: Set[str]) -> Tuple[str, str]:
        candidates: List[str] = []
        if a.position is not None and b.position is not None:
            bearing = bearing_between(a.position.as_tuple(), b.position.as_tuple())
            candidates.append(snap_bearing(bearing).value)
        candidates.extend(d.value for d in SECONDARY)

        for label in candidates:
            back = opposite_label(label)
            if back is not None and label not in used_a and back not in used_b:
                return label, back

        while True:
            self._synthetic_count += 1
            forward, back = synthetic_pair(self._synthetic_count)
            if forward not in used_a and back not in used_b:
                return forward, back


def _directed(source: Node, target: Node, label: str) -> Edge:
    bearing: Optional[float] = None
    if source.position is not None and target.position is not None:
        bearing = bearing_between(source.position.as_tuple(), target.position.as_tuple())
    return Edge(
        target_id=target.id,
        label=label,
        bearing=bearing,
        source_position=source.position,
        target_position=target.position,
    )


def direction_issues(nodes: Sequence[Node]) -> List[str]:
    """Duplicate labels, missing reverse edges and non-opposite label pairs.

    Edges that cross into another region are skipped; their reverse lives in
    the other region's batch.
    """
    by_id = {n.id: n for n in nodes}
    issues: List[str] = []
    for node in nodes:
        seen: Set[str] = set()
        for edge in node.edges:
            key = edge.label.lower()
            if key in seen:
                issues.append(f"{node.id}: duplicate exit label {edge.label!r}")
            seen.add(key)

            if edge.crosses_region:
                continue
            target = by_id.get(edge.target_id)
            if target is None:
                issues.append(f"{node.id}: exit {edge.label!r} leads to unknown node {edge.target_id}")
                continue
            reverse = target.edge_to(node.id)
            if reverse is None:
                issues.append(f"{node.id}->{target.id}: missing reverse edge")
                continue
            expected = opposite_label(edge.label)
            if expected is None or reverse.label.lower() != expected:
                issues.append(
                    f"{node.id}->{target.id}: label {edge.label!r} is paired with {reverse.label!r}, expected {expected!r}"
                )
    return issues
