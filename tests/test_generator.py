import random

import pytest

from catacomb.config import GenerationSettings
from catacomb.exceptions import GraphValidationError, LayoutError
from catacomb.graph.directions import opposite_label
from catacomb.graph.generator import GraphGenerator
from catacomb.graph.layout import BSPLayout, FloodFillLayout, GridLayout
from catacomb.graph.loops import bfs_distances
from catacomb.graph.model import NodeRole

LAYOUTS = [
    GridLayout(3, 3),
    GridLayout(6, 6),
    GridLayout(3, 8, loop_frequency=0.0),
    BSPLayout(min_room_size=4, max_depth=3),
    BSPLayout(min_room_size=3, max_depth=5, loop_frequency=1.0),
    FloodFillLayout(node_count=25, density=0.35),
    FloodFillLayout(node_count=20, density=1.0, positioned=False),
]


def _generator(seed=1234, **kwargs):
    return GraphGenerator(GenerationSettings(seed=seed, **kwargs))


def _assert_invariants(graph):
    ids = [n.id for n in graph]
    adjacency = graph.adjacency()
    for node in graph:
        assert set(bfs_distances(node.id, adjacency)) == set(ids), f"{node.id} cannot reach every node"
        labels = [lbl.lower() for lbl in node.labels()]
        assert len(labels) == len(set(labels))
        if len(graph) > 1:
            assert node.degree > 0
        for edge in node.edges:
            back = graph.node(edge.target_id).edge_to(node.id)
            assert back is not None
            assert back.label == opposite_label(edge.label)
    assert len(graph.nodes_with_role(NodeRole.HUB)) == 1
    assert graph.nodes[0].role == NodeRole.HUB
    assert len(graph.nodes_with_role(NodeRole.BOSS)) <= 1


@pytest.mark.parametrize("layout", LAYOUTS)
@pytest.mark.parametrize("seed", [1, 7, 2024])
def test_invariants_hold_for_every_layout(layout, seed):
    graph = _generator(seed).generate("region", layout)
    _assert_invariants(graph)
    if len(graph) >= 4:
        assert len(graph.nodes_with_role(NodeRole.FRONTIER)) >= 2


def test_grid_3x3_scenario():
    graph = _generator(42).generate("crypt", GridLayout(3, 3, loop_frequency=0.5))
    assert len(graph) == 9
    undirected = graph.directed_edge_count() // 2
    # 8 tree edges plus at least 5 loop edges
    assert undirected >= 8 + 5
    assert graph.entry.id == "crypt:grid_0_0"
    assert graph.entry.role == NodeRole.HUB
    assert len(graph.nodes_with_role(NodeRole.HUB)) == 1
    _assert_invariants(graph)


def test_same_seed_same_graph():
    layout = BSPLayout(min_room_size=4, max_depth=4)
    a = _generator("seed-A").generate("r1", layout)
    b = _generator("seed-A").generate("r1", layout)
    assert a.to_dict() == b.to_dict()
    assert a.signature() == b.signature()


def test_different_seed_or_region_changes_graph():
    layout = FloodFillLayout(node_count=30, density=0.5)
    base = _generator("seed-A").generate("r1", layout)
    assert _generator("seed-B").generate("r1", layout).signature() != base.signature()
    assert _generator("seed-A").generate("r2", layout).signature() != base.signature()


def test_average_degree_at_least_three_and_grows_with_loop_frequency():
    low = _generator(5).generate("r", GridLayout(5, 5, loop_frequency=0.0))
    high = _generator(5).generate("r", GridLayout(5, 5, loop_frequency=1.0))
    assert low.average_degree() >= 3.0
    assert high.average_degree() > low.average_degree()


def test_hidden_fraction_on_large_graph():
    for seed in range(5):
        graph = _generator(seed).generate("r", GridLayout(6, 6))
        fraction = graph.hidden_edge_count() / graph.directed_edge_count()
        assert 0.15 <= fraction <= 0.25


def test_hidden_edges_are_one_way_flags():
    graph = _generator(8).generate("r", GridLayout(6, 6))
    for node in graph:
        for edge in node.edges:
            if edge.hidden:
                assert any(c.is_discovery for c in edge.conditions)


def test_theme_selects_layout():
    graph = _generator(3).generate_for_theme("t", "Ancient Tower")
    assert len(graph) == 24
    assert graph.entry.id == "t:grid_0_0"


def test_explicit_rng_overrides_seed():
    layout = GridLayout(4, 4)
    a = _generator(1).generate("r", layout, rng=random.Random(77))
    b = _generator(2).generate("r", layout, rng=random.Random(77))
    assert a.signature() == b.signature()


def test_empty_layout_is_fatal(monkeypatch):
    import catacomb.graph.layout as layout_mod

    monkeypatch.setattr(layout_mod, "_grid_nodes", lambda layout, region_id: [])
    with pytest.raises(LayoutError):
        _generator().generate("r", GridLayout(2, 2))


def test_hard_validation_failure_raises(monkeypatch):
    import catacomb.graph.generator as generator_mod

    monkeypatch.setattr(generator_mod, "classify_roles", lambda nodes, rng, **kw: list(nodes))
    with pytest.raises(GraphValidationError) as excinfo:
        _generator().generate("r", GridLayout(3, 3))
    assert any("hub" in issue for issue in excinfo.value.issues)


def test_single_node_region():
    graph = _generator().generate("r", GridLayout(1, 1))
    assert len(graph) == 1
    assert graph.entry.role == NodeRole.HUB
    assert graph.directed_edge_count() == 0
