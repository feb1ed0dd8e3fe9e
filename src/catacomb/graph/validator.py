"""
Post-generation quality checks for a region graph.

Hard errors break the topology guarantees navigation relies on and make
:class:`~catacomb.graph.generator.GraphGenerator` raise. Warnings describe a
graph that is valid but plays poorly (no loops, low branching).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .assigner import direction_issues
from .loops import bfs_distances
from .model import NodeRole, RegionGraph

logger = logging.getLogger(__name__)

# Below this size a region cannot hold a Hub, a Boss and two Frontiers at once.
MIN_NODES_FOR_FRONTIER_QUOTA = 4


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_graph(graph: RegionGraph, min_frontiers: int = 2, min_average_degree: float = 3.0) -> ValidationReport:
    report = ValidationReport()
    n = len(graph)
    if n == 0:
        report.errors.append(f"Region {graph.region_id} has no nodes")
        return report

    report.errors.extend(direction_issues(graph.nodes))

    if n >= 2:
        for node in graph:
            if node.degree == 0:
                report.errors.append(f"{node.id}: node has no exits")

    adjacency = graph.adjacency()
    reached = bfs_distances(graph.nodes[0].id, adjacency)
    if len(reached) != n:
        missing = sorted(node.id for node in graph if node.id not in reached)
        report.errors.append(f"Region {graph.region_id} is not connected; unreachable: {', '.join(missing[:5])}")

    hubs = graph.nodes_with_role(NodeRole.HUB)
    if len(hubs) != 1:
        report.errors.append(f"Expected exactly one hub, found {len(hubs)}")
    bosses = graph.nodes_with_role(NodeRole.BOSS)
    if len(bosses) > 1:
        report.errors.append(f"Expected at most one boss, found {len(bosses)}")
    frontiers = graph.nodes_with_role(NodeRole.FRONTIER)
    if n >= MIN_NODES_FOR_FRONTIER_QUOTA and len(frontiers) < min_frontiers:
        report.errors.append(f"Expected at least {min_frontiers} frontier nodes, found {len(frontiers)}")

    if n >= 3:
        undirected = sum(1 for node in graph for e in node.edges if not e.crosses_region) // 2
        if undirected < n:
            report.warnings.append(f"Region {graph.region_id} has no loops ({undirected} edges for {n} nodes)")
        average = graph.average_degree()
        if average < min_average_degree:
            report.warnings.append(f"Average degree {average:.2f} is below {min_average_degree:.1f}")

    if report.errors:
        logger.debug("Validation of %s: %d errors, %d warnings", graph.region_id, len(report.errors), len(report.warnings))
    return report
