"""Single-game win probability for one of our pairs.

MatchupScorer answers "how likely is this pair of ours to win this game?"
for both modes:

1. Statistic: head-to-head vs the opponent pair if known, else the pair's
   candidate statistic for the match type, else neutral (0.5, reliability 0).
2. Blend the win rate with the point-differential probability.
3. Team strength shift (if enabled and a gap is known).
4. DUPR blend (if enabled and all four players are rated).

Results are memoized on the instance. A scorer belongs to one request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from lineuplab.features.builder import NEUTRAL_SIGNAL, OpponentPair, PairSignal, ScoringContext
from lineuplab.models.blend import (
    apply_team_strength,
    blend_logit,
    blend_win_probability,
    dupr_probability,
)
from lineuplab.models.pairing import Pair


@dataclass(frozen=True)
class SlotOutcome:
    probability: float
    reliability: float
    dupr_applied: bool = False
    team_strength_applied: bool = False


class MatchupScorer:
    """Memoized win probabilities for (pair, opponent pair, match type)."""

    def __init__(self, context: ScoringContext) -> None:
        self.context = context
        self._cache: Dict[Tuple[str, Optional[str], Optional[str]], SlotOutcome] = {}

    def resolve_signal(
        self, pair: Pair, opponent: Optional[OpponentPair], match_type: Optional[str]
    ) -> PairSignal:
        """Most specific statistic available for the game."""
        if opponent is not None:
            signal = self.context.matchup_signal(match_type, pair, opponent)
            if signal is not None:
                return signal
        signal = self.context.candidate_signal(match_type, pair)
        return signal if signal is not None else NEUTRAL_SIGNAL

    def score(
        self, pair: Pair, opponent: Optional[OpponentPair], match_type: Optional[str]
    ) -> SlotOutcome:
        cache_key = (pair.key, opponent.key if opponent else None, match_type)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        signal = self.resolve_signal(pair, opponent, match_type)
        probability = blend_win_probability(
            signal.win_rate,
            signal.pd_win_probability,
            signal.reliability,
            signal.signal_correlation,
        )

        config = self.context.scoring_config
        adjusted = apply_team_strength(probability, self.context.team_strength_delta, config)
        team_strength_applied = adjusted is not None
        if adjusted is not None:
            probability = adjusted

        dupr_applied = False
        if opponent is not None:
            ratings = self.context.dupr_ratings
            p_dupr = dupr_probability(
                [ratings.get(pair.low_id), ratings.get(pair.high_id)],
                [ratings.get(opponent.low_id), ratings.get(opponent.high_id)],
                config,
            )
            if p_dupr is not None:
                probability = blend_logit(
                    p_dupr, probability, config.dupr_major_weight, 1.0 - config.dupr_major_weight
                )
                dupr_applied = True

        outcome = SlotOutcome(probability, signal.reliability, dupr_applied, team_strength_applied)
        self._cache[cache_key] = outcome
        return outcome


__all__ = ["SlotOutcome", "MatchupScorer"]
