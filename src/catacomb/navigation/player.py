from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, Mapping

from ..graph.model import PERCEPTION

logger = logging.getLogger(__name__)

DEFAULT_ABILITY_SCORE = 10

# Ability each skill keys off when computing a passive value.
SKILL_ABILITIES: Dict[str, str] = {
    "perception": "wisdom",
    "investigation": "intelligence",
    "survival": "wisdom",
    "athletics": "strength",
    "acrobatics": "dexterity",
    "stealth": "dexterity",
    "arcana": "intelligence",
}


@dataclass(frozen=True)
class PlayerState:
    """Navigation-relevant snapshot of a player.

    Immutable: moving or revealing an exit returns a new state. Revealed hidden
    edges are tracked here as ``source->target`` ids and only ever grow.
    """

    player_id: str
    current_node_id: str
    revealed_edges: FrozenSet[str] = frozenset()
    stats: Mapping[str, int] = field(default_factory=dict)
    skills: Mapping[str, int] = field(default_factory=dict)
    item_tags: FrozenSet[str] = frozenset()

    def has_revealed(self, edge_id: str) -> bool:
        return edge_id in self.revealed_edges

    def reveal(self, *edge_ids: str) -> "PlayerState":
        new = frozenset(edge_ids) - self.revealed_edges
        if not new:
            return self
        logger.debug("Player %s revealed %s", self.player_id, sorted(new))
        return replace(self, revealed_edges=self.revealed_edges | new)

    def reveal_all(self, edge_ids: Iterable[str]) -> "PlayerState":
        return self.reveal(*edge_ids)

    def move_to(self, node_id: str) -> "PlayerState":
        return replace(self, current_node_id=node_id)

    def skill_level(self, skill: str) -> int:
        wanted = skill.lower()
        for name, level in self.skills.items():
            if name.lower() == wanted:
                return int(level)
        return 0

    def ability_modifier(self, ability: str) -> int:
        score = int(self.stats.get(ability.lower(), DEFAULT_ABILITY_SCORE))
        return score // 2 - 5

    def passive_value(self, skill: str) -> int:
        """10 + governing ability modifier + trained skill level."""
        ability = SKILL_ABILITIES.get(skill.lower())
        modifier = self.ability_modifier(ability) if ability else 0
        return 10 + modifier + self.skill_level(skill)

    @property
    def passive_perception(self) -> int:
        return self.passive_value(PERCEPTION)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "current_node_id": self.current_node_id,
            "revealed_edges": sorted(self.revealed_edges),
            "stats": dict(self.stats),
            "skills": dict(self.skills),
            "item_tags": sorted(self.item_tags),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PlayerState":
        return PlayerState(
            player_id=str(data["player_id"]),
            current_node_id=str(data["current_node_id"]),
            revealed_edges=frozenset(data.get("revealed_edges", [])),
            stats={str(k).lower(): int(v) for k, v in data.get("stats", {}).items()},
            skills={str(k): int(v) for k, v in data.get("skills", {}).items()},
            item_tags=frozenset(data.get("item_tags", [])),
        )
