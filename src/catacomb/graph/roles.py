from __future__ import annotations

import logging
import random
from typing import Dict, List, Sequence

from .loops import bfs_distances
from .model import Node, NodeRole

logger = logging.getLogger(__name__)

BOUNDARY_MAX_DEGREE = 2


def classify_roles(
    nodes: Sequence[Node],
    rng: random.Random,
    min_frontiers: int = 2,
    dead_end_ratio: float = 0.2,
) -> List[Node]:
    """Assign one structural role per node.

    Rules, applied in order:
    - the entry (first generated node) is the Hub
    - the node farthest from the entry by BFS over directed edges is the Boss,
      unless the entry itself is farthest (ties go to the earliest node)
    - low-degree boundary nodes, shuffled, fill a Frontier quota of
      ``max(min_frontiers, N // 10)``; any unassigned node tops up a shortfall
    - ``dead_end_ratio`` of the still-unassigned degree-1 nodes become DeadEnd
    - the rest are Linear (degree <= 2) or Branching (degree >= 3)
    """
    if not nodes:
        return []

    roles: Dict[str, NodeRole] = {}
    entry = nodes[0]
    roles[entry.id] = NodeRole.HUB

    adjacency = {n.id: [e.target_id for e in n.edges] for n in nodes}
    distances = bfs_distances(entry.id, adjacency)
    farthest = entry.id
    for node in nodes:
        if distances.get(node.id, -1) > distances[farthest]:
            farthest = node.id
    if farthest != entry.id:
        roles[farthest] = NodeRole.BOSS

    quota = max(min_frontiers, len(nodes) // 10)
    boundary = [n for n in nodes if n.degree <= BOUNDARY_MAX_DEGREE and n.id not in roles]
    rng.shuffle(boundary)
    frontiers = boundary[:quota]
    if len(frontiers) < min_frontiers:
        picked = {n.id for n in frontiers}
        rest = [n for n in nodes if n.id not in roles and n.id not in picked]
        rng.shuffle(rest)
        frontiers.extend(rest[: min_frontiers - len(frontiers)])
    for node in frontiers:
        roles[node.id] = NodeRole.FRONTIER

    eligible = [n for n in nodes if n.degree == 1 and n.id not in roles]
    if eligible:
        rng.shuffle(eligible)
        count = min(len(eligible), max(1, int(len(eligible) * dead_end_ratio)))
        for node in eligible[:count]:
            roles[node.id] = NodeRole.DEAD_END

    typed: List[Node] = []
    for node in nodes:
        role = roles.get(node.id)
        if role is None:
            role = NodeRole.BRANCHING if node.degree >= 3 else NodeRole.LINEAR
        typed.append(node.with_role(role))

    logger.debug(
        "Roles: boss=%s frontiers=%d dead_ends=%d",
        farthest if farthest != entry.id else None,
        len(frontiers),
        sum(1 for r in roles.values() if r == NodeRole.DEAD_END),
    )
    return typed
