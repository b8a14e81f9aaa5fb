"""Blind-mode scoring against weighted opponent scenarios.

Each scenario is one hypothesis of the opponent's lineup. For each scenario
every pair of ours is matched with the opponent pair it fares best against
(greedy best response, same match type when possible), and the per-pair
win probabilities are summed into the scenario's expected wins.

Across scenarios:
    expected_wins - scenario-weighted mean
    floor_wins_q20 - nearest-rank quantile of the per-scenario totals
    volatility - scenario-weighted standard deviation
    coverage - mean reliability of the lookups used
"""

from __future__ import annotations

from typing import Dict, List

from lineuplab.config import NEUTRAL_WIN_PROBABILITY
from lineuplab.models.base import PairSetScore, PairSetScorer
from lineuplab.models.pairing import Pairing, canonical_pairing, pair_set_id
from lineuplab.models.ranking import confidence_tier, matchup_coverage
from lineuplab.models.stats import (
    matchup_win_probability,
    nearest_rank_quantile,
    weighted_std,
)


class ScenarioScorer(PairSetScorer):
    """Scores a pairing in blind mode."""

    mode = "blind"

    def score(self, pairing: Pairing) -> PairSetScore:
        pairs = canonical_pairing(pairing)
        scenarios = self.context.scenarios
        if not pairs or not scenarios or not any(s.pairs for s in scenarios):
            return self._neutral_score(pairs)

        weights = self.context.scenario_weights
        totals: List[float] = []
        match_probabilities: List[float] = []
        lookups: List[float] = []
        pair_reliability: Dict[str, float] = {p.key: 0.0 for p in pairs}
        dupr_applied = False
        team_strength_applied = False

        for scenario, weight in zip(scenarios, weights):
            game_probabilities = []
            for pair in pairs:
                match_type = self.context.pair_type(pair)
                candidates = scenario.pairs_for(match_type)
                if not candidates:
                    game_probabilities.append(NEUTRAL_WIN_PROBABILITY)
                    continue

                best = None
                for opponent in candidates:
                    outcome = self.matchups.score(pair, opponent, match_type or opponent.match_type)
                    if best is None or outcome.probability > best.probability:
                        best = outcome
                game_probabilities.append(best.probability)
                lookups.append(best.reliability)
                pair_reliability[pair.key] += weight * best.reliability
                dupr_applied = dupr_applied or best.dupr_applied
                team_strength_applied = team_strength_applied or best.team_strength_applied

            totals.append(sum(game_probabilities))
            match_probabilities.append(matchup_win_probability(game_probabilities))

        expected = sum(w * t for w, t in zip(weights, totals))
        coverage = sum(lookups) / len(lookups) if lookups else 0.0
        match_probability = sum(w * p for w, p in zip(weights, match_probabilities))

        return PairSetScore(
            pair_set_id=pair_set_id(pairs),
            pairs=pairs,
            expected_wins=expected,
            floor_wins_q20=nearest_rank_quantile(totals, self.context.downside_quantile),
            volatility=weighted_std(totals, weights),
            coverage=coverage,
            confidence=confidence_tier(coverage),
            matchup_win_probability=match_probability,
            game_coverage=sum(pair_reliability.values()) / len(pairs),
            matchup_coverage=matchup_coverage(coverage, match_probability, weights),
            dupr_applied=dupr_applied,
            team_strength_applied=team_strength_applied,
        )

    def _neutral_score(self, pairs: Pairing) -> PairSetScore:
        """No opponent information: every game is a coin flip."""
        expected = NEUTRAL_WIN_PROBABILITY * len(pairs)
        return PairSetScore(
            pair_set_id=pair_set_id(pairs),
            pairs=pairs,
            expected_wins=expected,
            floor_wins_q20=expected,
            volatility=0.0,
            coverage=0.0,
            confidence=confidence_tier(0.0),
            matchup_win_probability=matchup_win_probability(
                [NEUTRAL_WIN_PROBABILITY] * len(pairs)
            ),
            matchup_coverage=matchup_coverage(0.0, 0.5, self.context.scenario_weights),
        )


__all__ = ["ScenarioScorer"]
