"""Models module - pairing enumeration, signal blending and scoring.

This module contains:
- pairing: Pair type, enumeration of all pairings, pair_set_id
- stats: Quantiles, weighted moments, win distributions
- blend: Win-rate / point-differential blending and adjustments
- scoring: Single-game win probability (MatchupScorer)
- scenario: Blind-mode scorer (ScenarioScorer)
- schedule: Known-opponent scheduler (KnownOpponentScheduler)
- ranking: Objective ordering and confidence tiers
- search: Approximate search for large rosters

For scoring, use lineuplab.models.registry.get_scorer().
"""

from lineuplab.models.pairing import (
    Pair,
    count_pairings,
    enumerate_pairings,
    pair_key,
    pair_set_id,
)
from lineuplab.models.blend import blend_win_probability, clamp_probability
from lineuplab.models.stats import nearest_rank_quantile, weighted_std

__all__ = [
    # Pairing
    "Pair",
    "count_pairings",
    "enumerate_pairings",
    "pair_key",
    "pair_set_id",
    # Blending
    "blend_win_probability",
    "clamp_probability",
    # Stats
    "nearest_rank_quantile",
    "weighted_std",
]
