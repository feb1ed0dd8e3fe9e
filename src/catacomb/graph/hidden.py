from __future__ import annotations

import logging
import math
import random
from typing import List, Sequence, Tuple

from .model import PERCEPTION, Node, SkillCheck

logger = logging.getLogger(__name__)

MIN_DIFFICULTY = 10
MAX_DIFFICULTY = 30


def hidden_edge_target(total: int, fraction: float, low: float, high: float) -> int:
    """How many of ``total`` directed edges to hide for the drawn ``fraction``.

    Rounded, then kept inside [low, high] of the total whenever that band
    contains a whole number, so larger graphs always land in the band.
    """
    if total <= 0:
        return 0
    count = int(round(total * fraction))
    lo, hi = math.ceil(total * low), math.floor(total * high)
    if lo <= hi:
        count = min(max(count, lo), hi)
    return max(1, min(count, total))


def perception_difficulty(
    rng: random.Random,
    region_difficulty: int,
    base: int = 10,
    per_level: int = 5,
    jitter: int = 10,
) -> int:
    value = base + region_difficulty * per_level + (rng.randrange(jitter) if jitter > 0 else 0)
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, value))


def mark_hidden_edges(
    nodes: Sequence[Node],
    rng: random.Random,
    region_difficulty: int = 1,
    fraction_range: Tuple[float, float] = (0.15, 0.25),
    base: int = 10,
    per_level: int = 5,
    jitter: int = 10,
) -> List[Node]:
    """Hide a random share of directed edge references behind Perception checks.

    Each direction of a corridor is considered on its own, so a passage can be
    obvious one way and hidden the other.
    """
    low, high = fraction_range
    fraction = rng.uniform(low, high)
    refs = [(ni, ei) for ni, node in enumerate(nodes) for ei in range(node.degree)]
    target = hidden_edge_target(len(refs), fraction, low, high)
    chosen = set(rng.sample(refs, target)) if target else set()

    marked: List[Node] = []
    for ni, node in enumerate(nodes):
        edges = []
        for ei, edge in enumerate(node.edges):
            if (ni, ei) in chosen:
                difficulty = perception_difficulty(rng, region_difficulty, base, per_level, jitter)
                edge = edge.with_hidden(SkillCheck(PERCEPTION, difficulty))
            edges.append(edge)
        marked.append(node.with_edges(edges))

    logger.debug("Hidden edges: %d of %d (drawn fraction %.3f)", len(chosen), len(refs), fraction)
    return marked
