import random

from catacomb.graph.layout import FloodFillLayout, GridLayout, build_nodes
from catacomb.graph.loops import (
    MIN_LOOP_TREE_DISTANCE,
    add_loop_edges,
    adjacency_from_pairs,
    bfs_distances,
    minimum_extra_edges,
)
from catacomb.graph.model import Node
from catacomb.graph.spanning import UnionFind, kruskal_mst


def _grid(w, h):
    return build_nodes(GridLayout(w, h), "t", random.Random(0))


def test_union_find_merges_once():
    uf = UnionFind(["a", "b", "c"])
    assert uf.union("a", "b")
    assert not uf.union("b", "a")
    assert uf.find("a") == uf.find("b")
    assert uf.find("c") != uf.find("a")


def test_single_node_has_no_tree_edges():
    assert kruskal_mst([Node(id="solo", region_id="t")]) == []


def test_grid_3x3_tree_uses_unit_edges_in_generation_order():
    nodes = _grid(3, 3)
    tree = kruskal_mst(nodes)
    ids = {n.id: i for i, n in enumerate(nodes)}
    assert sorted((ids[a], ids[b]) for a, b in tree) == [
        (0, 1),
        (0, 3),
        (1, 2),
        (1, 4),
        (2, 5),
        (3, 6),
        (4, 7),
        (5, 8),
    ]


def test_tree_spans_all_nodes_without_positions():
    nodes = build_nodes(FloodFillLayout(node_count=15, density=1.0, positioned=False), "t", random.Random(3))
    tree = kruskal_mst(nodes)
    assert len(tree) == len(nodes) - 1
    assert len(bfs_distances(nodes[0].id, adjacency_from_pairs(tree))) == len(nodes)


def test_minimum_extra_edges():
    assert minimum_extra_edges(9) == 6
    assert minimum_extra_edges(25) == 14
    assert minimum_extra_edges(1) == 2


def test_loop_edges_are_new_and_distant():
    nodes = _grid(5, 5)
    tree = kruskal_mst(nodes)
    extra = add_loop_edges(nodes, tree, random.Random(7), loop_frequency=0.5)
    assert len(extra) >= minimum_extra_edges(len(nodes))

    existing = {frozenset(p) for p in tree}
    distances = {n.id: bfs_distances(n.id, adjacency_from_pairs(tree)) for n in nodes}
    for a, b in extra:
        assert frozenset((a, b)) not in existing
        assert distances[a][b] >= MIN_LOOP_TREE_DISTANCE
    assert len({frozenset(p) for p in extra}) == len(extra)


def test_loop_count_grows_with_frequency():
    nodes = _grid(5, 5)
    tree = kruskal_mst(nodes)
    low = add_loop_edges(nodes, tree, random.Random(11), loop_frequency=0.0)
    high = add_loop_edges(nodes, tree, random.Random(11), loop_frequency=1.0)
    assert len(low) == minimum_extra_edges(25)
    assert len(high) > len(low)


def test_tiny_graphs_get_no_loops():
    nodes = _grid(2, 1)
    assert add_loop_edges(nodes, kruskal_mst(nodes), random.Random(0)) == []


def test_small_graph_falls_back_to_nearby_pairs():
    nodes = _grid(2, 2)
    tree = kruskal_mst(nodes)
    extra = add_loop_edges(nodes, tree, random.Random(0), loop_frequency=0.0)
    # Only 6 pairs exist in total; the 3 non-tree pairs are all that is left
    assert len(extra) == 3
