"""
Runtime movement against an immutable region graph.

A move attempt goes through these steps:

1. find the edge: exact label (or alias) first, then the closest geometric
   bearing within 45 degrees when the node has a position
2. refuse if any gating (non-Perception) condition fails
3. hidden and not yet revealed: the Perception conditions decide; success
   reveals the edge on the player
4. refuse if the target's content has not been generated yet
5. reveal the hidden way back, if any, and move

Refusals are values, never exceptions, and leave the player untouched.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Collection, List, Optional, Tuple, Union

from ..graph.directions import Direction, angular_distance
from ..graph.model import Edge, Node, RegionGraph
from .conditions import ConditionEvaluator, DefaultConditionEvaluator, describe_conditions, partition_conditions, unmet
from .player import PlayerState

logger = logging.getLogger(__name__)

GEOMETRIC_TOLERANCE = math.pi / 4


class MoveRefusal(str, Enum):
    UNKNOWN_LOCATION = "unknown_location"
    NO_EXIT = "no_exit"
    BLOCKED = "blocked"
    HIDDEN = "hidden"
    CONTENT_NOT_GENERATED = "content_not_generated"


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a move attempt.

    Attributes:
        allowed: Whether the player moved
        player: The new player state when allowed, the unchanged one otherwise
        edge: The edge that was matched, if any
        reason: Refusal code when not allowed
        message: A user-facing description of the outcome
        revealed: Edge ids newly revealed by this move
    """

    allowed: bool
    player: PlayerState
    edge: Optional[Edge] = None
    reason: Optional[MoveRefusal] = None
    message: str = ""
    revealed: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SearchResult:
    found: bool
    player: PlayerState
    edge: Optional[Edge] = None
    message: str = ""


class NavigationResolver:
    """Resolves movement for any number of players against one graph snapshot.

    ``materialized`` lists node ids whose content exists; ``None`` treats every
    node of ``graph`` as materialized. Targets in other regions count only when
    listed explicitly.
    """

    def __init__(
        self,
        graph: RegionGraph,
        evaluator: Optional[ConditionEvaluator] = None,
        materialized: Optional[Collection[str]] = None,
    ) -> None:
        self.graph = graph
        self.evaluator: ConditionEvaluator = evaluator or DefaultConditionEvaluator()
        self.materialized = materialized

    def is_materialized(self, node_id: str) -> bool:
        if self.materialized is None:
            return node_id in self.graph
        return node_id in self.materialized

    def find_edge(self, node: Node, direction: Union[Direction, str]) -> Optional[Edge]:
        text = direction.value if isinstance(direction, Direction) else str(direction)
        edge = node.edge(text)
        if edge is not None:
            return edge

        parsed = direction if isinstance(direction, Direction) else Direction.from_string(text)
        if parsed is None:
            return None
        edge = node.edge(parsed.value)
        if edge is not None:
            return edge

        wanted = parsed.bearing
        if wanted is None or node.position is None:
            return None
        best: Optional[Edge] = None
        best_distance = GEOMETRIC_TOLERANCE
        for candidate in node.edges:
            if candidate.bearing is None:
                continue
            distance = angular_distance(candidate.bearing, wanted)
            if distance < best_distance:
                best, best_distance = candidate, distance
        if best is not None:
            logger.debug("Geometric match at %s: %s -> %r", node.id, parsed.value, best.label)
        return best

    def move(self, player: PlayerState, direction: Union[Direction, str]) -> MoveResult:
        node = self.graph.node(player.current_node_id)
        if node is None:
            return MoveResult(
                allowed=False,
                player=player,
                reason=MoveRefusal.UNKNOWN_LOCATION,
                message="You are nowhere on this map.",
            )

        edge = self.find_edge(node, direction)
        if edge is None:
            return MoveResult(allowed=False, player=player, reason=MoveRefusal.NO_EXIT, message="You can't go that way.")

        discovery, gating = partition_conditions(edge.conditions)
        failed = unmet(self.evaluator, player, gating)
        if failed:
            logger.debug("Move %s -> %s blocked: %s", node.id, edge.target_id, describe_conditions(failed))
            return MoveResult(
                allowed=False,
                player=player,
                edge=edge,
                reason=MoveRefusal.BLOCKED,
                message=f"The way {edge.label} is blocked ({describe_conditions(failed)}).",
            )

        revealed: List[str] = []
        edge_key = edge.id_from(node.id)
        if edge.hidden and not player.has_revealed(edge_key):
            if unmet(self.evaluator, player, discovery):
                return MoveResult(
                    allowed=False,
                    player=player,
                    edge=edge,
                    reason=MoveRefusal.HIDDEN,
                    message="You can't go that way.",
                )
            revealed.append(edge_key)

        if not self.is_materialized(edge.target_id):
            return MoveResult(
                allowed=False,
                player=player,
                edge=edge,
                reason=MoveRefusal.CONTENT_NOT_GENERATED,
                message=f"The way {edge.label} leads somewhere not yet formed.",
            )

        target = self.graph.node(edge.target_id)
        back = target.edge_to(node.id) if target is not None else None
        if back is not None and back.hidden:
            back_key = back.id_from(target.id)
            if not player.has_revealed(back_key):
                revealed.append(back_key)

        moved = player.reveal(*revealed).move_to(edge.target_id)
        logger.debug("Player %s moved %s: %s -> %s", player.player_id, edge.label, node.id, edge.target_id)
        message = f"You go {edge.label}."
        if edge_key in revealed:
            message = f"You notice a hidden way {edge.label} and take it."
        return MoveResult(allowed=True, player=moved, edge=edge, message=message, revealed=tuple(revealed))

    def search(self, player: PlayerState) -> SearchResult:
        """Look for hidden exits at the current node; reveals the first one found."""
        node = self.graph.node(player.current_node_id)
        if node is None:
            return SearchResult(found=False, player=player, message="There is nothing here to search.")

        for edge in node.hidden_edges(player.revealed_edges):
            discovery, _gating = partition_conditions(edge.conditions)
            if not unmet(self.evaluator, player, discovery):
                return SearchResult(
                    found=True,
                    player=player.reveal(edge.id_from(node.id)),
                    edge=edge,
                    message=f"You discover a hidden exit leading {edge.label}.",
                )
        return SearchResult(found=False, player=player, message="You search carefully but find nothing.")

    def visible_exits(self, player: PlayerState) -> List[Edge]:
        return self.graph.visible_edges(player.current_node_id, player.revealed_edges)

    def describe_exit(self, edge: Edge, player: PlayerState) -> str:
        """Exit label, followed by hints for any condition the player does not meet.

        Perception hints are dropped once the player has revealed the exit.
        """
        conditions = list(edge.conditions)
        if player.has_revealed(edge.id_from(player.current_node_id)):
            conditions = partition_conditions(conditions)[1]
        missing = unmet(self.evaluator, player, conditions)
        if not missing:
            return edge.label
        return f"{edge.label} ({describe_conditions(missing)})"
