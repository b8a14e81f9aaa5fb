"""Feature module - per-request scoring context.

Public API:
    ContextBuilder - Build a ScoringContext from request + feature bundle
    ScoringContext - Resolved statistics, scenarios and opponent slots
    normalize_gender - Map free-form gender labels to male/female

Usage:
    from lineuplab.features import ContextBuilder

    context = ContextBuilder().build(request, bundle)
"""

from lineuplab.features.definitions import normalize_gender, pair_match_type
from lineuplab.features.builder import (
    ContextBuilder,
    OpponentPair,
    PairSignal,
    PreparedScenario,
    ScoringContext,
)

__all__ = [
    "ContextBuilder",
    "ScoringContext",
    "OpponentPair",
    "PairSignal",
    "PreparedScenario",
    "normalize_gender",
    "pair_match_type",
]
