"""Runtime movement and exit resolution against generated region graphs."""
from .conditions import ConditionEvaluator, DefaultConditionEvaluator
from .intent import ExitIntentResolver, IntentResult, IntentStatus
from .player import PlayerState
from .resolver import MoveRefusal, MoveResult, NavigationResolver, SearchResult

__all__ = [
    "ConditionEvaluator",
    "DefaultConditionEvaluator",
    "ExitIntentResolver",
    "IntentResult",
    "IntentStatus",
    "PlayerState",
    "MoveRefusal",
    "MoveResult",
    "NavigationResolver",
    "SearchResult",
]
