from __future__ import annotations

import logging
import math
import random
from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .model import Node

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]

# Pairs closer than this in the tree would only add short, uninteresting loops.
MIN_LOOP_TREE_DISTANCE = 3


def minimum_extra_edges(node_count: int) -> int:
    """Extra edges needed on top of a spanning tree for an average degree >= 3.

    A tree gives total degree 2(N-1); reaching 3N needs N+2 more, i.e.
    ceil((N+2)/2) edges.
    """
    return max(1, math.ceil((node_count + 2) / 2))


def adjacency_from_pairs(pairs: Iterable[Pair]) -> Dict[str, List[str]]:
    adj: Dict[str, List[str]] = {}
    for a, b in pairs:
        adj.setdefault(a, []).append(b)
        adj.setdefault(b, []).append(a)
    return adj


def bfs_distances(start: str, adjacency: Dict[str, List[str]]) -> Dict[str, int]:
    """Hop counts from ``start`` to every reachable node."""
    distances = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbor in adjacency.get(current, ()):
            if neighbor not in distances:
                distances[neighbor] = distances[current] + 1
                queue.append(neighbor)
    return distances


def add_loop_edges(
    nodes: Sequence[Node],
    tree: Sequence[Pair],
    rng: random.Random,
    loop_frequency: float = 0.5,
) -> List[Pair]:
    """Pick extra undirected edges that turn the spanning tree into a looped graph.

    The target is the minimum for average degree 3 plus a 10-20% buffer whose
    weight grows with ``loop_frequency`` (0 adds no buffer, 0.5 adds it once,
    1 adds it twice). Pairs that are far apart in the tree are preferred; if
    there are not enough of them any remaining unconnected pair is used to
    reach the minimum.
    """
    n = len(nodes)
    if n < 3:
        return []

    min_extra = minimum_extra_edges(n)
    buffer = max(1, int(min_extra * rng.uniform(0.10, 0.20)))
    target = min_extra + int(round(2 * loop_frequency * buffer))

    existing: Set[frozenset] = {frozenset(p) for p in tree}
    adjacency = adjacency_from_pairs(tree)
    tree_distance = {node.id: bfs_distances(node.id, adjacency) for node in nodes}

    far: List[Pair] = []
    near: List[Pair] = []
    for i in range(n):
        for j in range(i + 1, n):
            a, b = nodes[i].id, nodes[j].id
            if frozenset((a, b)) in existing:
                continue
            distance: Optional[int] = tree_distance[a].get(b)
            if distance is None or distance >= MIN_LOOP_TREE_DISTANCE:
                far.append((a, b))
            else:
                near.append((a, b))

    rng.shuffle(far)
    chosen = far[:target]

    if len(chosen) < min_extra:
        rng.shuffle(near)
        needed = min_extra - len(chosen)
        logger.debug(
            "Only %d distant loop candidates for %d nodes; adding %d nearby pairs",
            len(chosen), n, min(needed, len(near)),
        )
        chosen.extend(near[:needed])

    logger.debug(
        "Loop edges: %d added (minimum %d, target %d, frequency %.2f)",
        len(chosen), min_extra, target, loop_frequency,
    )
    return chosen
