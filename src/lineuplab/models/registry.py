"""Scorer registry.

Provides get_scorer(mode, context) to build the scorer for each request
mode. One scorer class per mode, no auto-selection.
"""

from __future__ import annotations

from typing import Dict, Literal, Type

from lineuplab.features.builder import ScoringContext
from lineuplab.models.base import PairSetScorer
from lineuplab.models.scenario import ScenarioScorer
from lineuplab.models.schedule import KnownOpponentScheduler

Mode = Literal["blind", "known_opponent"]

SCORER_CLASSES: Dict[str, Type[PairSetScorer]] = {
    "blind": ScenarioScorer,
    "known_opponent": KnownOpponentScheduler,
}


def get_scorer(mode: Mode, context: ScoringContext) -> PairSetScorer:
    """Get the scorer for a request mode.

    Args:
        mode: One of "blind", "known_opponent"
        context: Per-request scoring context

    Returns:
        Mode-specific scorer instance

    Raises:
        ValueError: If mode is unknown
    """
    if mode not in SCORER_CLASSES:
        raise ValueError(
            f"Unknown mode: {mode}. "
            f"Must be one of: {list(SCORER_CLASSES.keys())}"
        )
    return SCORER_CLASSES[mode](context)


__all__ = ["get_scorer", "SCORER_CLASSES", "Mode"]
