"""Known-opponent scheduling and scoring.

The opponent's full 8x4 schedule is known. For each round our pairs are
assigned to the round's four slots so that the round's summed win
probability is as high as possible (scipy linear_sum_assignment), with:

- each pair used at most once per round
- a pair only eligible for slots of its own match type; pairs whose
  gender is unknown can take any slot
- a slot no eligible pair can take is a forfeit (win probability 0)

Floor and volatility are produced by a swappable aggregator:
    "round"    - per-round totals (default)
    "slot"     - the 32 individual slot probabilities
    "schedule" - Poisson-binomial distribution over all games

Key Classes:
    KnownOpponentScheduler - PairSetScorer for known_opponent mode

Usage:
    scheduler = KnownOpponentScheduler(context)
    score = scheduler.score(pairing)
    for round_ in score.rounds:
        print(round_.round_number, round_.expected_wins)
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment

from lineuplab.config import KNOWN_OPPONENT_AGGREGATION, ROUND_SLOT_TEMPLATE
from lineuplab.features.builder import ScoringContext
from lineuplab.models.base import (
    PairSetScore,
    PairSetScorer,
    PairUsage,
    ScheduledGame,
    ScheduledRound,
)
from lineuplab.models.pairing import Pair, Pairing, canonical_pairing, pair_set_id
from lineuplab.models.ranking import confidence_tier, matchup_coverage
from lineuplab.models.scoring import MatchupScorer, SlotOutcome
from lineuplab.models.stats import (
    matchup_win_probability,
    nearest_rank_quantile,
    quantile_from_distribution,
    win_distribution,
)

# Ineligible cells score as a forfeit
INELIGIBLE = 0.0

# (floor, volatility) from per-round lists of slot probabilities
Aggregator = Callable[[Sequence[Sequence[float]], float], Tuple[float, float]]


def aggregate_by_round(rounds: Sequence[Sequence[float]], q: float) -> Tuple[float, float]:
    totals = [sum(r) for r in rounds]
    if not totals:
        return 0.0, 0.0
    floor = nearest_rank_quantile(totals, q) * len(totals)
    volatility = float(np.std(totals)) * math.sqrt(len(totals))
    return floor, volatility


def aggregate_by_slot(rounds: Sequence[Sequence[float]], q: float) -> Tuple[float, float]:
    slots = [p for r in rounds for p in r]
    if not slots:
        return 0.0, 0.0
    floor = nearest_rank_quantile(slots, q) * len(slots)
    volatility = float(np.std(slots)) * math.sqrt(len(slots))
    return floor, volatility


def aggregate_by_schedule(rounds: Sequence[Sequence[float]], q: float) -> Tuple[float, float]:
    slots = [p for r in rounds for p in r]
    floor = quantile_from_distribution(win_distribution(slots), q)
    volatility = math.sqrt(sum(p * (1.0 - p) for p in slots))
    return floor, volatility


AGGREGATORS: Dict[str, Aggregator] = {
    "round": aggregate_by_round,
    "slot": aggregate_by_slot,
    "schedule": aggregate_by_schedule,
}


def get_aggregator(name: str) -> Aggregator:
    if name not in AGGREGATORS:
        raise ValueError(
            f"Unknown aggregation: {name}. "
            f"Must be one of: {list(AGGREGATORS.keys())}"
        )
    return AGGREGATORS[name]


def assign_round(
    pairs: Sequence[Pair],
    slot_types: Sequence[str],
    outcome_for: Callable[[Pair, int, str], Optional[SlotOutcome]],
) -> List[Optional[Tuple[Pair, SlotOutcome]]]:
    """Best assignment of pairs to one round's slots.

    Args:
        pairs: Our pairs, in a stable order
        slot_types: Match type of each slot
        outcome_for: (pair, slot index, slot type) -> outcome, or None when
            the pair cannot play that slot

    Returns:
        One entry per slot: (pair, outcome), or None for a forfeit
    """
    if not pairs or not slot_types:
        return [None] * len(slot_types)

    values = np.full((len(pairs), len(slot_types)), INELIGIBLE)
    outcomes: Dict[Tuple[int, int], SlotOutcome] = {}
    for i, pair in enumerate(pairs):
        for j, slot_type in enumerate(slot_types):
            outcome = outcome_for(pair, j, slot_type)
            if outcome is not None:
                values[i, j] = outcome.probability
                outcomes[(i, j)] = outcome

    rows, cols = linear_sum_assignment(values, maximize=True)
    assignment: List[Optional[Tuple[Pair, SlotOutcome]]] = [None] * len(slot_types)
    for i, j in zip(rows, cols):
        if (i, j) in outcomes:
            assignment[j] = (pairs[i], outcomes[(i, j)])
    return assignment


class KnownOpponentScheduler(PairSetScorer):
    """Scores a pairing against the opponent's known schedule."""

    mode = "known_opponent"

    def __init__(
        self,
        context: ScoringContext,
        matchup_scorer: Optional[MatchupScorer] = None,
        aggregation: Optional[str] = None,
    ):
        super().__init__(context, matchup_scorer)
        self.aggregate = get_aggregator(aggregation or KNOWN_OPPONENT_AGGREGATION)

    def _eligible(self, pair: Pair, slot_type: str) -> bool:
        pair_type = self.context.pair_type(pair)
        return pair_type is None or pair_type == slot_type

    def build_rounds(self, pairs: Pairing) -> Tuple[ScheduledRound, ...]:
        rounds = []
        for round_index, slot_types in enumerate(ROUND_SLOT_TEMPLATE):
            round_number = round_index + 1

            def outcome_for(pair: Pair, slot_index: int, slot_type: str) -> Optional[SlotOutcome]:
                if not self._eligible(pair, slot_type):
                    return None
                opponent = self.context.opponent_slots.get((round_number, slot_index + 1))
                return self.matchups.score(pair, opponent, slot_type)

            assignment = assign_round(pairs, slot_types, outcome_for)
            games = []
            for slot_index, (slot_type, assigned) in enumerate(zip(slot_types, assignment)):
                opponent = self.context.opponent_slots.get((round_number, slot_index + 1))
                opponent_ids = opponent.players if opponent else None
                if assigned is None:
                    games.append(ScheduledGame(
                        round_number, slot_index + 1, slot_type, None, opponent_ids,
                        0.0, 0.0, confidence_tier(0.0),
                    ))
                    continue
                pair, outcome = assigned
                games.append(ScheduledGame(
                    round_number, slot_index + 1, slot_type, pair, opponent_ids,
                    outcome.probability, outcome.reliability,
                    confidence_tier(outcome.reliability),
                    outcome.dupr_applied, outcome.team_strength_applied,
                ))
            rounds.append(ScheduledRound(round_number, tuple(games)))
        return tuple(rounds)

    def score(self, pairing: Pairing) -> PairSetScore:
        pairs = canonical_pairing(pairing)
        rounds = self.build_rounds(pairs)
        games = [g for r in rounds for g in r.games]
        round_probabilities = [[g.win_probability for g in r.games] for r in rounds]
        slot_probabilities = [g.win_probability for g in games]

        played = [g for g in games if not g.forfeit]
        coverage = sum(g.reliability for g in played) / len(played) if played else 0.0
        game_coverage = sum(g.reliability for g in games) / len(games) if games else 0.0
        floor, volatility = self.aggregate(round_probabilities, self.context.downside_quantile)
        match_probability = matchup_win_probability(slot_probabilities)

        usage = Counter(g.pair for g in played)
        pair_usage = tuple(
            PairUsage(pair, count)
            for pair, count in sorted(usage.items(), key=lambda item: (-item[1], item[0].key))
        )

        return PairSetScore(
            pair_set_id=pair_set_id(pairs),
            pairs=pairs,
            expected_wins=sum(slot_probabilities),
            floor_wins_q20=floor,
            volatility=volatility,
            coverage=coverage,
            confidence=confidence_tier(coverage),
            matchup_win_probability=match_probability,
            game_coverage=game_coverage,
            matchup_coverage=matchup_coverage(coverage, match_probability, [1.0]),
            rounds=rounds,
            pair_usage=pair_usage,
            dupr_applied=any(g.dupr_applied for g in played),
            team_strength_applied=any(g.team_strength_applied for g in played),
        )


__all__ = [
    "AGGREGATORS",
    "aggregate_by_round",
    "aggregate_by_slot",
    "aggregate_by_schedule",
    "get_aggregator",
    "assign_round",
    "KnownOpponentScheduler",
]
