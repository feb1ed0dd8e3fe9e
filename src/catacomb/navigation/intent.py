"""
Maps free text typed by a player to one of the visible exits.

Phase 1 is an exact, case-insensitive match of a direction word (compass or
vertical) against the exits. Phase 2 accepts a single label within edit
distance 2, an exact label always winning; two or more candidates count as
undecided, never as a guess. Hidden exits take part once revealed, or when the
player passes their discovery checks. Phase 3 asks the optional language-model parser, bounded by
a timeout, and any failure there ends in NO_MATCH with the visible exits.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..graph.directions import VOCABULARY
from ..graph.model import Edge, Node, RegionGraph
from .conditions import ConditionEvaluator, DefaultConditionEvaluator, describe_conditions, partition_conditions, unmet
from .llm import ExitParser, ParseKind
from .player import PlayerState

logger = logging.getLogger(__name__)

MAX_EDIT_DISTANCE = 2

NO_EXITS_MESSAGE = "You don't see any obvious exits from here."


class IntentStatus(str, Enum):
    MATCHED = "matched"
    BLOCKED = "blocked"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class IntentResult:
    status: IntentStatus
    edge: Optional[Edge] = None
    phase: Optional[int] = None
    message: str = ""
    suggestions: Tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.status == IntentStatus.MATCHED


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (ca != cb)))
        previous = current
    return previous[-1]


def fuzzy_candidates(text: str, edges: Sequence[Edge]) -> List[Edge]:
    """Edges within the edit-distance bound of ``text``.

    The distance must also stay below the input length, otherwise a one or
    two letter input would match every short label.
    """
    limit = min(MAX_EDIT_DISTANCE, len(text) - 1)
    if limit < 1:
        return []
    return [e for e in edges if levenshtein(text, e.label.lower()) <= limit]


class ExitIntentResolver:
    """Resolves typed exits for any number of players; usable as a context manager."""

    def __init__(
        self,
        parser: Optional[ExitParser] = None,
        timeout: float = 3.0,
        evaluator: Optional[ConditionEvaluator] = None,
    ) -> None:
        self.parser = parser
        self.timeout = timeout
        self.evaluator: ConditionEvaluator = evaluator or DefaultConditionEvaluator()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def __enter__(self) -> "ExitIntentResolver":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def candidate_edges(self, node: Node, player: PlayerState) -> List[Edge]:
        """Exits the player can see: open, already revealed, or passing their discovery checks."""
        candidates = []
        for edge in node.edges:
            if edge.hidden and not player.has_revealed(edge.id_from(node.id)):
                discovery, _gating = partition_conditions(edge.conditions)
                if unmet(self.evaluator, player, discovery):
                    continue
            candidates.append(edge)
        return candidates

    def resolve(self, text: str, graph: RegionGraph, player: PlayerState) -> IntentResult:
        node = graph.node(player.current_node_id)
        if node is None:
            return IntentResult(IntentStatus.NO_MATCH, message="You are nowhere on this map.")
        visible = self.candidate_edges(node, player)
        if not visible:
            return IntentResult(IntentStatus.NO_MATCH, message=NO_EXITS_MESSAGE)
        labels = tuple(e.label for e in visible)
        normalized = " ".join(text.strip().lower().split())
        if not normalized:
            return self._no_match(labels)

        exact = next((e for e in visible if e.label.lower() == normalized), None)
        if exact is not None:
            return self._matched(exact, 1 if normalized in VOCABULARY else 2, player)

        candidates = fuzzy_candidates(normalized, visible)
        if len(candidates) == 1:
            logger.debug("Fuzzy exit match %r -> %r", normalized, candidates[0].label)
            return self._matched(candidates[0], 2, player)

        if self.parser is None:
            if candidates:
                return IntentResult(
                    IntentStatus.AMBIGUOUS,
                    phase=2,
                    message="Which way do you mean?",
                    suggestions=tuple(e.label for e in candidates),
                )
            return self._no_match(labels)
        return self._ask_parser(normalized, visible, player)

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="exit-intent")
            return self._executor

    def _ask_parser(self, text: str, visible: Sequence[Edge], player: PlayerState) -> IntentResult:
        labels = tuple(e.label for e in visible)
        future = self._pool().submit(self.parser.parse, text, labels)
        try:
            parsed = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning("Exit parser timed out after %.1fs for %r", self.timeout, text)
            return self._no_match(labels)
        except Exception as e:  # noqa: BLE001
            logger.warning("Exit parser failed for %r: %s", text, e)
            return self._no_match(labels)

        if parsed.kind == ParseKind.EXIT:
            for edge in visible:
                if edge.label == parsed.label:
                    return self._matched(edge, 3, player)
        if parsed.kind == ParseKind.UNCLEAR:
            return IntentResult(
                IntentStatus.AMBIGUOUS,
                phase=3,
                message="Which way do you mean?",
                suggestions=labels,
            )
        return self._no_match(labels)

    def _matched(self, edge: Edge, phase: int, player: PlayerState) -> IntentResult:
        _discovery, gating = partition_conditions(edge.conditions)
        failed = unmet(self.evaluator, player, gating)
        if failed:
            return IntentResult(
                IntentStatus.BLOCKED,
                edge=edge,
                phase=phase,
                message=f"The way {edge.label} {describe_conditions(failed)}.",
            )
        return IntentResult(IntentStatus.MATCHED, edge=edge, phase=phase, message=edge.label)

    @staticmethod
    def _no_match(labels: Tuple[str, ...]) -> IntentResult:
        message = "You can't go that way."
        if labels:
            message += f" Exits: {', '.join(labels)}."
        return IntentResult(IntentStatus.NO_MATCH, message=message, suggestions=labels)

    def close(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
