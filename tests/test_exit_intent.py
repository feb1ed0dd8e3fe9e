import threading

import pytest

from catacomb.graph.model import Edge, ItemRequired, Node, NodeRole, RegionGraph, SkillCheck
from catacomb.navigation.intent import ExitIntentResolver, IntentStatus, levenshtein
from catacomb.navigation.llm import ParsedExit, ParseKind
from catacomb.navigation.player import PlayerState


def _graph(*labels, hidden=(), conditions=None):
    conditions = conditions or {}
    edges = tuple(
        Edge(target_id=f"t{i}", label=label, hidden=label in hidden, conditions=conditions.get(label, ()))
        for i, label in enumerate(labels)
    )
    return RegionGraph("r", (Node(id="here", region_id="r", role=NodeRole.HUB, edges=edges),))


PLAYER = PlayerState(player_id="p", current_node_id="here")


class FakeParser:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def parse(self, text, labels):
        self.calls.append((text, tuple(labels)))
        if self.error is not None:
            raise self.error
        return self.result


def test_levenshtein():
    assert levenshtein("nort", "north") == 1
    assert levenshtein("", "up") == 2
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("same", "same") == 0


def test_exact_match_is_phase_one_case_insensitive():
    result = ExitIntentResolver().resolve("  NORTH ", _graph("north", "south"), PLAYER)
    assert result.status == IntentStatus.MATCHED
    assert result.phase == 1
    assert result.edge.label == "north"


def test_typo_resolves_in_phase_two():
    result = ExitIntentResolver().resolve("nort", _graph("north", "south", "east"), PLAYER)
    assert result.status == IntentStatus.MATCHED
    assert result.phase == 2
    assert result.edge.label == "north"


def test_single_letter_is_not_resolved_locally():
    parser = FakeParser(ParsedExit(ParseKind.UNCLEAR))
    result = ExitIntentResolver(parser=parser).resolve("n", _graph("north", "northeast"), PLAYER)
    assert result.phase != 1
    assert result.status == IntentStatus.AMBIGUOUS
    assert result.phase == 3
    assert set(result.suggestions) == {"north", "northeast"}
    assert parser.calls == [("n", ("north", "northeast"))]


def test_two_fuzzy_candidates_are_ambiguous_without_parser():
    result = ExitIntentResolver().resolve("est", _graph("east", "west", "up"), PLAYER)
    assert result.status == IntentStatus.AMBIGUOUS
    assert set(result.suggestions) == {"east", "west"}


def test_parser_match_is_phase_three():
    parser = FakeParser(ParsedExit(ParseKind.EXIT, "passage-1"))
    result = ExitIntentResolver(parser=parser).resolve("through the crack", _graph("north", "passage-1"), PLAYER)
    assert result.status == IntentStatus.MATCHED
    assert result.phase == 3
    assert result.edge.target_id == "t1"


def test_parser_failure_degrades_to_no_match():
    parser = FakeParser(error=RuntimeError("boom"))
    result = ExitIntentResolver(parser=parser).resolve("go somewhere nice", _graph("north", "south"), PLAYER)
    assert result.status == IntentStatus.NO_MATCH
    assert result.suggestions == ("north", "south")
    assert "north, south" in result.message


def test_parser_timeout_degrades_to_no_match():
    release = threading.Event()

    class SlowParser:
        def parse(self, text, labels):
            release.wait(5)
            return ParsedExit(ParseKind.EXIT, "north")

    resolver = ExitIntentResolver(parser=SlowParser(), timeout=0.05)
    try:
        result = resolver.resolve("the far door", _graph("north"), PLAYER)
        assert result.status == IntentStatus.NO_MATCH
    finally:
        release.set()
        resolver.close()


def test_invalid_parser_reply_is_no_match():
    parser = FakeParser(ParsedExit(ParseKind.INVALID))
    result = ExitIntentResolver(parser=parser).resolve("fly away", _graph("north"), PLAYER)
    assert result.status == IntentStatus.NO_MATCH


def test_hidden_exits_are_not_candidates():
    graph = _graph("north", "down", hidden=("down",), conditions={"down": (SkillCheck("Perception", 40),)})
    result = ExitIntentResolver().resolve("down", graph, PLAYER)
    assert result.status == IntentStatus.NO_MATCH
    assert result.suggestions == ("north",)


def test_hidden_exit_within_passive_perception_is_a_candidate():
    graph = _graph("north", "down", hidden=("north",), conditions={"north": (SkillCheck("Perception", 40),)})
    sharp = PlayerState("p", "here", stats={"wisdom": 10}, skills={"Perception": 35})
    dull = PlayerState("p", "here", stats={"wisdom": 10}, skills={"Perception": 25})

    found = ExitIntentResolver().resolve("north", graph, sharp)
    assert found.status == IntentStatus.MATCHED
    assert found.edge.target_id == "t0"

    missed = ExitIntentResolver().resolve("north", graph, dull)
    assert missed.status == IntentStatus.NO_MATCH
    assert missed.suggestions == ("down",)


def test_revealed_hidden_exit_is_a_candidate():
    graph = _graph("north", hidden=("north",), conditions={"north": (SkillCheck("Perception", 40),)})
    player = PLAYER.reveal(graph.node("here").edges[0].id_from("here"))
    assert ExitIntentResolver().resolve("north", graph, player).matched


def test_unmet_gating_condition_is_blocked():
    graph = _graph("west", conditions={"west": (ItemRequired("rope"),)})
    result = ExitIntentResolver().resolve("west", graph, PLAYER)
    assert result.status == IntentStatus.BLOCKED
    assert "requires rope" in result.message


@pytest.mark.parametrize("text", ["", "   "])
def test_blank_input(text):
    assert ExitIntentResolver().resolve(text, _graph("north"), PLAYER).status == IntentStatus.NO_MATCH


def test_non_direction_label_resolves_in_phase_two():
    result = ExitIntentResolver().resolve("Passage-1", _graph("north", "passage-1", "passage-2"), PLAYER)
    assert result.status == IntentStatus.MATCHED
    assert result.phase == 2
    assert result.edge.label == "passage-1"


def test_room_without_exits_skips_parser():
    parser = FakeParser(ParsedExit(ParseKind.EXIT, "north"))
    result = ExitIntentResolver(parser=parser).resolve("north", _graph(), PLAYER)
    assert result.status == IntentStatus.NO_MATCH
    assert result.message == "You don't see any obvious exits from here."
    assert parser.calls == []


def test_context_manager_shares_and_closes_one_pool():
    parser = FakeParser(ParsedExit(ParseKind.EXIT, "north"))
    with ExitIntentResolver(parser=parser) as resolver:
        barrier = threading.Barrier(4)
        results = []

        def worker():
            barrier.wait()
            results.append(resolver.resolve("the far door", _graph("north"), PLAYER))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        pool = resolver._executor
        assert pool is not None
        assert all(r.status == IntentStatus.MATCHED for r in results)
    assert resolver._executor is None
