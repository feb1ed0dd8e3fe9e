"""
Links two stored regions through their Frontier nodes.

Runs after both regions are generated and saved. The new edges carry the
other region's id, so per-region validation skips them. Missing regions or
frontiers come back as a failed :class:`LinkResult`; nothing is raised.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from .exceptions import LinkError, PersistenceError
from .graph.directions import COMPASS, SECONDARY, reciprocal_label, synthetic_index, synthetic_pair
from .graph.model import Edge, Node, NodeRole
from .persistence.store import NodeStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkResult:
    ok: bool
    source_node_id: Optional[str] = None
    target_node_id: Optional[str] = None
    label: Optional[str] = None
    back_label: Optional[str] = None
    error: Optional[LinkError] = None

    @classmethod
    def failure(cls, message: str) -> "LinkResult":
        logger.warning("Region link failed: %s", message)
        return cls(ok=False, error=LinkError(message))


def _open_frontiers(nodes: List[Node], other_region_id: str) -> List[Node]:
    """Frontier nodes not yet linked to ``other_region_id``."""
    return [
        n
        for n in nodes
        if n.role == NodeRole.FRONTIER and not any(e.target_region_id == other_region_id for e in n.edges)
    ]


def _labels(node: Node) -> Set[str]:
    return {label.lower() for label in node.labels()}


def choose_link_labels(source: Node, target: Node, label: Optional[str] = None) -> Optional[Tuple[str, str]]:
    """Forward and return label for a new link, or None if ``label`` is taken."""
    used_source, used_target = _labels(source), _labels(target)
    if label is not None:
        forward, back = label.strip().lower(), reciprocal_label(label)
        if forward in used_source or back in used_target:
            return None
        return forward, back

    for direction in COMPASS + SECONDARY:
        if direction.value not in used_source and direction.opposite.value not in used_target:
            return direction.value, direction.opposite.value

    indices = [synthetic_index(lbl) for lbl in used_source | used_target]
    return synthetic_pair(max([i for i in indices if i is not None], default=0) + 1)


def link_frontiers(
    store: NodeStore,
    source_region_id: str,
    target_region_id: str,
    rng: random.Random,
    label: Optional[str] = None,
) -> LinkResult:
    if source_region_id == target_region_id:
        return LinkResult.failure(f"Cannot link region {source_region_id} to itself")
    try:
        source_nodes = store.load_region(source_region_id)
        target_nodes = store.load_region(target_region_id)
    except PersistenceError as e:
        return LinkResult.failure(f"Could not load regions: {e}")
    if not source_nodes:
        return LinkResult.failure(f"Region {source_region_id} not found")
    if not target_nodes:
        return LinkResult.failure(f"Region {target_region_id} not found")

    source_frontiers = _open_frontiers(source_nodes, target_region_id)
    target_frontiers = _open_frontiers(target_nodes, source_region_id)
    if not source_frontiers:
        return LinkResult.failure(f"Region {source_region_id} has no open frontier")
    if not target_frontiers:
        return LinkResult.failure(f"Region {target_region_id} has no open frontier")

    source = rng.choice(source_frontiers)
    target = rng.choice(target_frontiers)
    labels = choose_link_labels(source, target, label)
    if labels is None:
        return LinkResult.failure(f"Exit label {label!r} is already used on {source.id} or its partner")
    forward, back = labels

    try:
        store.save_node(source.add_edge(Edge(target_id=target.id, label=forward, target_region_id=target_region_id)))
    except PersistenceError as e:
        return LinkResult.failure(f"Could not save linked nodes: {e}")
    try:
        store.save_node(target.add_edge(Edge(target_id=source.id, label=back, target_region_id=source_region_id)))
    except PersistenceError as e:
        # Undo the forward half so no one-way link is left behind
        try:
            store.save_node(source)
        except PersistenceError as rollback_error:
            logger.error("Could not restore %s after failed link: %s", source.id, rollback_error)
        return LinkResult.failure(f"Could not save linked nodes: {e}")

    logger.info("Linked %s -[%s/%s]- %s", source.id, forward, back, target.id)
    return LinkResult(ok=True, source_node_id=source.id, target_node_id=target.id, label=forward, back_label=back)
