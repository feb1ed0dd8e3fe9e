"""Region topology: layouts, edge construction and the immutable graph model.

The pipeline entry point is :class:`catacomb.graph.generator.GraphGenerator`;
it is not re-exported here because it depends on :mod:`catacomb.config`.
"""
from .directions import Direction, opposite_label, reciprocal_label
from .layout import BSPLayout, FloodFillLayout, GridLayout, Layout, build_nodes
from .model import Edge, ItemRequired, Node, NodeRole, Position, RegionGraph, SkillCheck

__all__ = [
    "Direction",
    "opposite_label",
    "reciprocal_label",
    "BSPLayout",
    "FloodFillLayout",
    "GridLayout",
    "Layout",
    "build_nodes",
    "Edge",
    "ItemRequired",
    "Node",
    "NodeRole",
    "Position",
    "RegionGraph",
    "SkillCheck",
]
