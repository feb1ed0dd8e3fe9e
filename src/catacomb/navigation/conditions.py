"""
Access-condition evaluation.

The graph only stores conditions; deciding whether a player meets one is the
evaluator's job. Perception checks are "discovery" conditions that gate
whether a hidden exit can be seen, everything else gates passage itself.
"""
from __future__ import annotations

from typing import Iterable, List, Protocol, Sequence, Tuple

from ..graph.model import Condition, ItemRequired, SkillCheck
from .player import PlayerState


class ConditionEvaluator(Protocol):
    def check(self, player: PlayerState, condition: Condition) -> bool:
        ...


class DefaultConditionEvaluator:
    """Skill checks against the player's passive value; items against their tags."""

    def check(self, player: PlayerState, condition: Condition) -> bool:
        if isinstance(condition, SkillCheck):
            return player.passive_value(condition.skill) >= condition.difficulty
        if isinstance(condition, ItemRequired):
            return condition.tag in player.item_tags
        raise TypeError(f"Unsupported condition: {condition!r}")


def partition_conditions(conditions: Iterable[Condition]) -> Tuple[List[Condition], List[Condition]]:
    """Split into (discovery, gating) conditions."""
    discovery: List[Condition] = []
    gating: List[Condition] = []
    for condition in conditions:
        (discovery if condition.is_discovery else gating).append(condition)
    return discovery, gating


def unmet(evaluator: ConditionEvaluator, player: PlayerState, conditions: Sequence[Condition]) -> List[Condition]:
    return [c for c in conditions if not evaluator.check(player, c)]


def describe_conditions(conditions: Iterable[Condition]) -> str:
    return ", ".join(c.describe() for c in conditions)
