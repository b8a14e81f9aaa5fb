"""Ranking and confidence classification.

Objectives:
    MAX_EXPECTED_WINS - expected wins desc, floor desc, volatility asc
    MINIMIZE_DOWNSIDE - floor desc, expected wins desc, volatility asc

Equal scores fall back to pair_set_id so the order is deterministic.

Confidence tiers bucket a coverage value in [0, 1]:
    >= 0.66 HIGH, >= 0.33 MEDIUM, else LOW
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from lineuplab.config import (
    HIGH_CONFIDENCE_COVERAGE,
    MEDIUM_CONFIDENCE_COVERAGE,
    OBJECTIVES,
    SCENARIO_DIVERSITY_TARGET,
)
from lineuplab.models.base import PairSetScore

MAX_EXPECTED_WINS = "MAX_EXPECTED_WINS"
MINIMIZE_DOWNSIDE = "MINIMIZE_DOWNSIDE"


def confidence_tier(coverage: float) -> str:
    if coverage is None or not math.isfinite(coverage):
        return "LOW"
    if coverage >= HIGH_CONFIDENCE_COVERAGE:
        return "HIGH"
    if coverage >= MEDIUM_CONFIDENCE_COVERAGE:
        return "MEDIUM"
    return "LOW"


def matchup_coverage(
    coverage: float,
    matchup_win_probability: float,
    scenario_weights: Sequence[float],
) -> float:
    """Confidence input for the overall match result.

    Blends data coverage with how decisive the predicted result is and how
    spread the opponent scenarios are.
    """
    coverage = min(1.0, max(0.0, coverage)) if math.isfinite(coverage) else 0.0
    decisiveness = min(1.0, abs(matchup_win_probability - 0.5) * 2.0)
    concentration = sum(w * w for w in scenario_weights)
    effective_count = 1.0 / concentration if concentration > 0 else float(max(1, len(scenario_weights)))
    diversity = min(1.0, effective_count / SCENARIO_DIVERSITY_TARGET)
    return 0.55 * coverage + 0.3 * decisiveness + 0.15 * diversity


def ranking_key(score: PairSetScore, objective: str) -> Tuple[float, float, float, str]:
    """Sort key: smaller is better."""
    if objective == MINIMIZE_DOWNSIDE:
        return (-score.floor_wins_q20, -score.expected_wins, score.volatility, score.pair_set_id)
    return (-score.expected_wins, -score.floor_wins_q20, score.volatility, score.pair_set_id)


def rank_scores(scores: Iterable[PairSetScore], objective: str) -> List[PairSetScore]:
    """Order scores best-first for the objective.

    Raises:
        ValueError: If objective is unknown
    """
    if objective not in OBJECTIVES:
        raise ValueError(
            f"Unknown objective: {objective}. "
            f"Must be one of: {list(OBJECTIVES)}"
        )
    return sorted(scores, key=lambda s: ranking_key(s, objective))


__all__ = [
    "MAX_EXPECTED_WINS",
    "MINIMIZE_DOWNSIDE",
    "confidence_tier",
    "matchup_coverage",
    "ranking_key",
    "rank_scores",
]
