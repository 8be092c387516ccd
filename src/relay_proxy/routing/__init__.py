"""
Routing des requêtes par complexité.
"""

from .complexity import (
    classify_complexity,
    score_complexity,
    score_signals,
    find_current_turn_text,
    tier_for_score,
)
from .tiers import RoutingDecision, select_model, wants_auto_routing

__all__ = [
    "classify_complexity",
    "score_complexity",
    "score_signals",
    "find_current_turn_text",
    "tier_for_score",
    "RoutingDecision",
    "select_model",
    "wants_auto_routing",
]
