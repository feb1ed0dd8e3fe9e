"""
Region generation pipeline.

    layout -> spanning tree -> loop edges -> direction labels -> roles -> hidden edges

Every step draws from one ``random.Random`` owned by the call, so the same
seed, region id and layout always produce the same graph, and regions can be
generated concurrently without sharing state.
"""
from __future__ import annotations

import logging
import random
from typing import Optional

from ..config import GenerationSettings
from ..exceptions import GraphValidationError
from ..rng import region_rng
from .assigner import DirectionAssigner
from .hidden import mark_hidden_edges
from .layout import Layout, build_nodes
from .loops import add_loop_edges
from .model import RegionGraph
from .roles import classify_roles
from .spanning import kruskal_mst
from .validator import ValidationReport, validate_graph

logger = logging.getLogger(__name__)


class GraphGenerator:
    def __init__(self, settings: Optional[GenerationSettings] = None) -> None:
        self.settings = settings or GenerationSettings()

    def generate(self, region_id: str, layout: Layout, rng: Optional[random.Random] = None) -> RegionGraph:
        """Build, label, classify and validate one region.

        Raises LayoutError when the layout yields no nodes and
        GraphValidationError when a hard invariant does not hold.
        """
        s = self.settings
        if rng is None:
            rng = region_rng(s.seed, region_id)

        nodes = build_nodes(layout, region_id, rng)
        tree = kruskal_mst(nodes)
        loops = add_loop_edges(nodes, tree, rng, layout.loop_frequency)
        nodes = DirectionAssigner().assign(nodes, list(tree) + loops)
        nodes = classify_roles(nodes, rng, min_frontiers=s.min_frontiers, dead_end_ratio=s.dead_end_ratio)
        nodes = mark_hidden_edges(
            nodes,
            rng,
            region_difficulty=s.difficulty,
            fraction_range=(s.hidden_fraction_min, s.hidden_fraction_max),
            base=s.perception_base,
            per_level=s.perception_per_difficulty,
            jitter=s.perception_jitter,
        )
        graph = RegionGraph(region_id=region_id, nodes=tuple(nodes))

        report = self.validate(graph)
        if not report.ok:
            raise GraphValidationError(report.errors)
        for warning in report.warnings:
            logger.warning("Region %s: %s", region_id, warning)

        logger.info(
            "Generated region %s: %d nodes, %d tree + %d loop edges, %d hidden, avg degree %.2f",
            region_id,
            len(graph),
            len(tree),
            len(loops),
            graph.hidden_edge_count(),
            graph.average_degree(),
        )
        return graph

    def generate_for_theme(self, region_id: str, theme: str, rng: Optional[random.Random] = None) -> RegionGraph:
        layout = self.settings.layout_for_theme(theme)
        logger.debug("Theme %r -> %s", theme, layout)
        return self.generate(region_id, layout, rng)

    def validate(self, graph: RegionGraph) -> ValidationReport:
        return validate_graph(graph, min_frontiers=self.settings.min_frontiers)
