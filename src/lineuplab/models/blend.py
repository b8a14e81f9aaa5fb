"""Signal blending: turn historical statistics into one win probability.

The primary signal is a shrunk historical win rate. A secondary signal, the
win probability implied by point differential, is blended in with a small
weight that grows with sample reliability and shrinks when the two signals
do not agree historically. The weight never exceeds PD_BLEND_MAX_WEIGHT, so
the secondary signal never dominates.

Optional adjustments live here too:
    apply_team_strength() - logit shift by the team strength gap
    dupr_probability() - rating-gap probability, blended via blend_logit()

All functions are pure and usable offline (see analysis.calibration).
"""

from __future__ import annotations

import math
import numbers
from typing import Optional, Sequence

from lineuplab.config import (
    NEUTRAL_WIN_PROBABILITY,
    PD_BLEND_MAX_WEIGHT,
    PD_BLEND_MIN_WEIGHT,
    PD_NEGATIVE_CORRELATION_FACTOR,
    PD_REDUNDANCY_GUARDRAIL,
    PD_REDUNDANCY_MAX_WEIGHT,
    PD_REDUNDANCY_SATURATION,
    PD_REDUNDANCY_SHRINK,
    PD_UNKNOWN_CORRELATION_FACTOR,
    PROBABILITY_CEILING,
    PROBABILITY_FLOOR,
    ScoringConfig,
)


def _is_finite(value: Optional[float]) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def clamp_probability(
    value: Optional[float],
    floor: float = PROBABILITY_FLOOR,
    ceiling: float = PROBABILITY_CEILING,
) -> float:
    """Clamp into [floor, ceiling]; non-finite or missing values become 0.5."""
    if not _is_finite(value):
        return NEUTRAL_WIN_PROBABILITY
    return min(ceiling, max(floor, float(value)))


def logit(p: float) -> float:
    p = clamp_probability(p)
    return math.log(p / (1.0 - p))


def sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def blend_logit(p_a: float, p_b: float, weight_a: float, weight_b: float) -> float:
    """Weighted average of two probabilities in logit space."""
    total = weight_a + weight_b
    if total <= 0:
        return clamp_probability((p_a + p_b) / 2.0)
    z = (weight_a * logit(p_a) + weight_b * logit(p_b)) / total
    return clamp_probability(sigmoid(z))


def resolve_pd_blend_weight(reliability: Optional[float], signal_correlation: Optional[float]) -> float:
    """Weight given to the point-differential signal.

    Args:
        reliability: Sample reliability in [0, 1] (clamped, NaN -> 0)
        signal_correlation: Historical Pearson r between the two signals

    Returns:
        Weight in [0, PD_BLEND_MAX_WEIGHT]
    """
    rel = min(1.0, max(0.0, float(reliability))) if _is_finite(reliability) else 0.0
    weight = PD_BLEND_MIN_WEIGHT + (PD_BLEND_MAX_WEIGHT - PD_BLEND_MIN_WEIGHT) * rel

    if not _is_finite(signal_correlation):
        return weight * PD_UNKNOWN_CORRELATION_FACTOR

    r = max(-1.0, min(1.0, float(signal_correlation)))
    if r <= 0:
        return weight * PD_NEGATIVE_CORRELATION_FACTOR * (1.0 + r)

    if r >= PD_REDUNDANCY_GUARDRAIL:
        # Near-duplicate signals add little information.
        span = PD_REDUNDANCY_SATURATION - PD_REDUNDANCY_GUARDRAIL
        normalized = min(1.0, max(0.0, (r - PD_REDUNDANCY_GUARDRAIL) / span))
        weight = min(weight, PD_REDUNDANCY_MAX_WEIGHT * (1.0 - PD_REDUNDANCY_SHRINK * normalized))

    return max(0.0, min(PD_BLEND_MAX_WEIGHT, weight))


def blend_win_probability(
    base_win_rate: Optional[float],
    pd_win_probability: Optional[float],
    reliability: Optional[float],
    signal_correlation: Optional[float],
    floor: float = PROBABILITY_FLOOR,
    ceiling: float = PROBABILITY_CEILING,
) -> float:
    """Blend the base win rate with the point-differential probability.

    Without a usable point-differential value the base rate is returned
    as-is (only clamped into the safe range). The result is always within
    [floor, ceiling], whatever the inputs.
    """
    base = clamp_probability(base_win_rate, floor, ceiling)
    if not _is_finite(pd_win_probability):
        return base
    pd = clamp_probability(pd_win_probability, floor, ceiling)
    weight = resolve_pd_blend_weight(reliability, signal_correlation)
    return clamp_probability(base * (1.0 - weight) + pd * weight, floor, ceiling)


def apply_team_strength(
    probability: float,
    strength_delta: Optional[float],
    config: ScoringConfig,
) -> Optional[float]:
    """Shift a probability by the team strength gap in logit space.

    Returns None when the adjustment is disabled or there is no gap.
    """
    if not config.enable_team_strength or not _is_finite(strength_delta):
        return None
    shift = config.team_strength_factor * float(strength_delta)
    shift = max(-config.team_strength_cap, min(config.team_strength_cap, shift))
    return clamp_probability(sigmoid(logit(probability) + shift))


def dupr_probability(
    our_ratings: Sequence[Optional[float]],
    opp_ratings: Sequence[Optional[float]],
    config: ScoringConfig,
) -> Optional[float]:
    """Win probability implied by the DUPR gap between the two pairs.

    Only defined when the blend is enabled and all four ratings are known.
    """
    ratings = list(our_ratings) + list(opp_ratings)
    if not config.enable_dupr_blend or len(ratings) != 4:
        return None
    if not all(_is_finite(r) for r in ratings):
        return None
    delta = (ratings[0] + ratings[1]) / 2.0 - (ratings[2] + ratings[3]) / 2.0
    return clamp_probability(sigmoid(config.dupr_slope * delta))


__all__ = [
    "clamp_probability",
    "logit",
    "sigmoid",
    "blend_logit",
    "resolve_pd_blend_weight",
    "blend_win_probability",
    "apply_team_strength",
    "dupr_probability",
]
