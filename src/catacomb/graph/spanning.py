from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from .model import Node

logger = logging.getLogger(__name__)

Pair = Tuple[str, str]


class UnionFind:
    """Disjoint sets over node ids with path compression and union by size."""

    def __init__(self, items: Iterable[str]) -> None:
        self._parent: Dict[str, str] = {i: i for i in items}
        self._size: Dict[str, int] = {i: 1 for i in self._parent}

    def find(self, item: str) -> str:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: str, b: str) -> bool:
        """Merge the sets holding ``a`` and ``b``. False if already joined."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        if self._size[ra] < self._size[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        self._size[ra] += self._size[rb]
        return True


def edge_weight(a: Node, b: Node) -> float:
    """Euclidean distance when both nodes have geometry, else a constant 1.0."""
    if a.position is None or b.position is None:
        return 1.0
    return a.position.distance_to(b.position)


def kruskal_mst(nodes: Sequence[Node]) -> List[Pair]:
    """Minimum-weight spanning tree over all node pairs.

    Returns exactly ``len(nodes) - 1`` undirected pairs (none for a single
    node). Equal weights keep generation order, which keeps the tree
    deterministic.
    """
    if len(nodes) < 2:
        return []

    candidates: List[Tuple[float, int, int]] = []
    for i in range(len(nodes)):
        for j in range(i + 1, len(nodes)):
            candidates.append((edge_weight(nodes[i], nodes[j]), i, j))
    candidates.sort()

    sets = UnionFind(n.id for n in nodes)
    tree: List[Pair] = []
    for _weight, i, j in candidates:
        if sets.union(nodes[i].id, nodes[j].id):
            tree.append((nodes[i].id, nodes[j].id))
            if len(tree) == len(nodes) - 1:
                break

    logger.debug("Spanning tree: %d nodes -> %d edges", len(nodes), len(tree))
    return tree
