import math
import random

from catacomb.graph.hidden import (
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    hidden_edge_target,
    mark_hidden_edges,
    perception_difficulty,
)
from catacomb.graph.model import PERCEPTION, Edge, Node, NodeRole, SkillCheck
from catacomb.graph.roles import classify_roles


def _chain(n):
    """Path graph n0 - n1 - ... with up/down labels."""
    nodes = []
    for i in range(n):
        edges = []
        if i > 0:
            edges.append(Edge(target_id=f"n{i-1}", label="down"))
        if i < n - 1:
            edges.append(Edge(target_id=f"n{i+1}", label="up"))
        nodes.append(Node(id=f"n{i}", region_id="r", edges=tuple(edges)))
    return nodes


def _roles(nodes):
    return {n.id: n.role for n in nodes}


def test_chain_roles():
    roles = _roles(classify_roles(_chain(6), random.Random(1)))
    assert roles["n0"] == NodeRole.HUB
    assert roles["n5"] == NodeRole.BOSS
    assert sum(1 for r in roles.values() if r == NodeRole.FRONTIER) == 2
    assert list(roles.values()).count(NodeRole.HUB) == 1


def test_boss_ties_go_to_earliest_node():
    # Star: every leaf is one hop from the hub
    hub = Node(
        id="h",
        region_id="r",
        edges=tuple(Edge(target_id=f"l{i}", label=f"passage-{i}") for i in range(4)),
    )
    leaves = [Node(id=f"l{i}", region_id="r", edges=(Edge(target_id="h", label=f"passage-back-{i}"),)) for i in range(4)]
    roles = _roles(classify_roles([hub] + leaves, random.Random(3)))
    assert roles["l0"] == NodeRole.BOSS


def test_no_boss_when_entry_is_farthest():
    roles = _roles(classify_roles([Node(id="only", region_id="r")], random.Random(0)))
    assert roles == {"only": NodeRole.HUB}


def test_frontier_quota_scales_with_size():
    nodes = _chain(40)
    roles = _roles(classify_roles(nodes, random.Random(2), min_frontiers=2))
    assert sum(1 for r in roles.values() if r == NodeRole.FRONTIER) == 4


def test_dead_end_quota_and_branching():
    # Hub with 10 leaves and a long arm; leaves are degree-1
    hub_edges = [Edge(target_id=f"leaf{i}", label=f"passage-{i}") for i in range(10)]
    hub_edges.append(Edge(target_id="arm0", label="up"))
    nodes = [Node(id="hub", region_id="r", edges=tuple(hub_edges))]
    nodes += [Node(id=f"leaf{i}", region_id="r", edges=(Edge(target_id="hub", label=f"passage-back-{i}"),)) for i in range(10)]
    nodes += [
        Node(id="arm0", region_id="r", edges=(Edge(target_id="hub", label="down"), Edge(target_id="arm1", label="up"))),
        Node(id="arm1", region_id="r", edges=(Edge(target_id="arm0", label="down"),)),
    ]
    typed = classify_roles(nodes, random.Random(9), min_frontiers=2, dead_end_ratio=0.2)
    roles = _roles(typed)
    assert roles["arm1"] == NodeRole.BOSS
    frontiers = [i for i, r in roles.items() if r == NodeRole.FRONTIER]
    assert len(frontiers) == 2
    eligible = 10 - sum(1 for f in frontiers if f.startswith("leaf"))
    dead_ends = sum(1 for r in roles.values() if r == NodeRole.DEAD_END)
    assert dead_ends == max(1, int(eligible * 0.2))
    for node_id, role in roles.items():
        if role == NodeRole.LINEAR:
            assert len([n for n in typed if n.id == node_id][0].edges) <= 2


def test_hidden_target_respects_band():
    for total in range(20, 200, 7):
        for fraction in (0.15, 0.2, 0.25):
            count = hidden_edge_target(total, fraction, 0.15, 0.25)
            assert 0.15 <= count / total <= 0.25
    assert hidden_edge_target(0, 0.2, 0.15, 0.25) == 0
    assert hidden_edge_target(2, 0.2, 0.15, 0.25) == 1


def test_perception_difficulty_in_design_range():
    rng = random.Random(0)
    for level in range(0, 6):
        for _ in range(20):
            assert MIN_DIFFICULTY <= perception_difficulty(rng, level) <= MAX_DIFFICULTY
    assert perception_difficulty(random.Random(0), 1, jitter=0) == 15


def test_mark_hidden_edges_attaches_perception_checks():
    nodes = _chain(30)
    marked = mark_hidden_edges(nodes, random.Random(4), region_difficulty=2)
    total = sum(n.degree for n in marked)
    hidden = [e for n in marked for e in n.edges if e.hidden]
    assert 0.15 <= len(hidden) / total <= 0.25
    for edge in hidden:
        checks = [c for c in edge.conditions if isinstance(c, SkillCheck)]
        assert checks and checks[0].skill == PERCEPTION
        assert MIN_DIFFICULTY <= checks[0].difficulty <= MAX_DIFFICULTY
    # Hiding never changes topology
    assert [n.labels() for n in marked] == [n.labels() for n in nodes]


def test_hidden_fraction_band_is_reachable_for_odd_totals():
    # 58 directed edges: 0.15 * 58 = 8.7, 0.25 * 58 = 14.5
    assert hidden_edge_target(58, 0.15, 0.15, 0.25) == math.ceil(58 * 0.15)
