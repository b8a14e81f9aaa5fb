"""Scoring context: everything a scorer needs, resolved once per request.

Turns a validated request and its feature bundle into lookup tables keyed
the way the scorers ask for them:

- candidate statistics by (match type, pair key)
- head-to-head statistics by (match type, our pair key, opponent pair key)
- normalized opponent scenarios
- historical correlation between the win-rate and point-differential
  signals, per match type
- player genders and DUPR ratings
- the known opponent assignment of every (round, slot)

Key Classes:
    PairSignal - Win rate, point-differential probability, reliability
    OpponentPair - An opponent pair with its match type
    PreparedScenario - Scenario with normalized weight
    ScoringContext - Immutable per-request lookups
    ContextBuilder - Builds a ScoringContext

Usage:
    from lineuplab.features import ContextBuilder

    context = ContextBuilder().build(request, bundle)
    signal = context.candidate_signal("mixed", pair)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from lineuplab.config import MATCH_TYPES, NEUTRAL_WIN_PROBABILITY, ScoringConfig
from lineuplab.data.schemas import FeatureBundle, RecommendRequest
from lineuplab.features.definitions import (
    PD_COLUMNS,
    WIN_RATE_COLUMNS,
    normalize_gender,
    pair_match_type,
)
from lineuplab.models.pairing import Pair
from lineuplab.models.stats import normalize_weights, pearson_correlation


@dataclass(frozen=True)
class PairSignal:
    """Historical statistics behind one win probability lookup."""

    win_rate: float
    pd_win_probability: Optional[float]
    reliability: float
    signal_correlation: Optional[float] = None


NEUTRAL_SIGNAL = PairSignal(NEUTRAL_WIN_PROBABILITY, None, 0.0, None)


@dataclass(frozen=True)
class OpponentPair:
    low_id: str
    high_id: str
    match_type: Optional[str]

    @classmethod
    def of(cls, player_a: str, player_b: str, match_type: Optional[str]) -> "OpponentPair":
        low, high = sorted((player_a, player_b))
        return cls(low, high, match_type)

    @property
    def key(self) -> str:
        return f"{self.low_id}:{self.high_id}"

    @property
    def players(self) -> Tuple[str, str]:
        return (self.low_id, self.high_id)


@dataclass(frozen=True)
class PreparedScenario:
    scenario_id: str
    weight: float
    pairs: Tuple[OpponentPair, ...]

    def pairs_for(self, match_type: Optional[str]) -> Tuple[OpponentPair, ...]:
        """Opponent pairs our pair could face; all pairs when type is unknown."""
        if match_type is None:
            return self.pairs
        same_type = tuple(p for p in self.pairs if p.match_type == match_type)
        return same_type or self.pairs


@dataclass(frozen=True)
class ScoringContext:
    """Per-request lookups. Never mutated after ContextBuilder.build()."""

    player_ids: Tuple[str, ...]
    mode: str
    objective: str
    downside_quantile: float
    scoring_config: ScoringConfig
    genders: Dict[str, str] = field(default_factory=dict)
    dupr_ratings: Dict[str, float] = field(default_factory=dict)
    candidate_signals: Dict[Tuple[str, str], PairSignal] = field(default_factory=dict)
    matchup_signals: Dict[Tuple[str, str, str], PairSignal] = field(default_factory=dict)
    scenarios: Tuple[PreparedScenario, ...] = ()
    opponent_slots: Dict[Tuple[int, int], OpponentPair] = field(default_factory=dict)
    team_strength_delta: Optional[float] = None

    def pair_type(self, pair: Pair) -> Optional[str]:
        return pair_match_type(self.genders.get(pair.low_id), self.genders.get(pair.high_id))

    def candidate_signal(self, match_type: Optional[str], pair: Pair) -> Optional[PairSignal]:
        if match_type is None:
            for candidate_type in MATCH_TYPES:
                signal = self.candidate_signals.get((candidate_type, pair.key))
                if signal is not None:
                    return signal
            return None
        return self.candidate_signals.get((match_type, pair.key))

    def matchup_signal(
        self, match_type: Optional[str], pair: Pair, opponent: OpponentPair
    ) -> Optional[PairSignal]:
        types = (match_type,) if match_type else MATCH_TYPES
        for candidate_type in types:
            signal = self.matchup_signals.get((candidate_type, pair.key, opponent.key))
            if signal is not None:
                return signal
        return None

    @property
    def scenario_weights(self) -> List[float]:
        return [s.weight for s in self.scenarios]


def _first_finite(row: object, columns: List[str]) -> Optional[float]:
    for column in columns:
        value = getattr(row, column, None)
        if value is not None and math.isfinite(value):
            return float(value)
    return None


def _reliability(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, float(value)))


class ContextBuilder:
    """Builds a ScoringContext from a request and its feature bundle."""

    def __init__(self, scoring_config: Optional[ScoringConfig] = None) -> None:
        self.scoring_config = scoring_config or ScoringConfig()

    def build(self, request: RecommendRequest, bundle: FeatureBundle) -> ScoringContext:
        genders, dupr = self._player_attributes(request, bundle)
        candidate_signals = self._candidate_signals(bundle, genders)
        matchup_signals = self._matchup_signals(bundle)
        strength = bundle.team_strength.strength_delta if bundle.team_strength else None

        return ScoringContext(
            player_ids=tuple(request.available_player_ids),
            mode=request.mode,
            objective=request.objective,
            downside_quantile=request.downside_quantile,
            scoring_config=self.scoring_config,
            genders=genders,
            dupr_ratings=dupr,
            candidate_signals=candidate_signals,
            matchup_signals=matchup_signals,
            scenarios=self._scenarios(bundle, request.scenario_limit),
            opponent_slots=self._opponent_slots(request),
            team_strength_delta=strength if strength is not None and math.isfinite(strength) else None,
        )

    def _player_attributes(
        self, request: RecommendRequest, bundle: FeatureBundle
    ) -> Tuple[Dict[str, str], Dict[str, float]]:
        genders: Dict[str, str] = {}
        dupr: Dict[str, float] = {}
        for player in bundle.players_catalog:
            gender = normalize_gender(player.gender)
            if gender:
                genders[player.player_id] = gender
            if player.dupr_rating is not None and math.isfinite(player.dupr_rating):
                dupr[player.player_id] = float(player.dupr_rating)
        for entry in request.opponent_roster or []:
            gender = normalize_gender(entry.gender)
            if gender:
                genders.setdefault(entry.player_id, gender)
        return genders, dupr

    def _candidate_signals(
        self, bundle: FeatureBundle, genders: Dict[str, str]
    ) -> Dict[Tuple[str, str], PairSignal]:
        raw: Dict[Tuple[str, str], Tuple[float, Optional[float], float]] = {}
        samples: Dict[str, List[Tuple[float, float]]] = {t: [] for t in MATCH_TYPES}

        for row in bundle.candidate_pairs:
            pair = Pair.of(row.pair_player_low_id, row.pair_player_high_id)
            natural_type = pair_match_type(genders.get(pair.low_id), genders.get(pair.high_id))
            reliability = _reliability(row.sample_reliability)
            for match_type in MATCH_TYPES:
                win_rate = _first_finite(row, WIN_RATE_COLUMNS[match_type])
                if win_rate is None:
                    continue
                pd = _first_finite(row, PD_COLUMNS[match_type])
                raw[(match_type, pair.key)] = (win_rate, pd, reliability)
                if pd is not None and match_type == natural_type:
                    samples[match_type].append((win_rate, pd))

        correlations = {t: pearson_correlation(samples[t]) for t in MATCH_TYPES}
        return {
            key: PairSignal(win_rate, pd, reliability, correlations[key[0]])
            for key, (win_rate, pd, reliability) in raw.items()
        }

    def _matchup_signals(self, bundle: FeatureBundle) -> Dict[Tuple[str, str, str], PairSignal]:
        raw: Dict[Tuple[str, str, str], Tuple[float, Optional[float], float]] = {}
        samples: Dict[str, List[Tuple[float, float]]] = {t: [] for t in MATCH_TYPES}

        for row in bundle.pair_matchups:
            if row.match_type not in MATCH_TYPES:
                continue
            if row.win_rate_shrunk is None or not math.isfinite(row.win_rate_shrunk):
                continue
            ours = Pair.of(row.our_pair_low_id, row.our_pair_high_id)
            theirs = Pair.of(row.opp_pair_low_id, row.opp_pair_high_id)
            pd = row.pd_win_probability
            pd = float(pd) if pd is not None and math.isfinite(pd) else None
            raw[(row.match_type, ours.key, theirs.key)] = (
                float(row.win_rate_shrunk), pd, _reliability(row.sample_reliability)
            )
            if pd is not None:
                samples[row.match_type].append((float(row.win_rate_shrunk), pd))

        correlations = {t: pearson_correlation(samples[t]) for t in MATCH_TYPES}
        return {
            key: PairSignal(win_rate, pd, reliability, correlations[key[0]])
            for key, (win_rate, pd, reliability) in raw.items()
        }

    def _scenarios(self, bundle: FeatureBundle, limit: int) -> Tuple[PreparedScenario, ...]:
        # Most likely scenarios first; ties keep bundle order.
        ranked = sorted(
            enumerate(bundle.opponent_scenarios),
            key=lambda item: (-_finite_or_zero(item[1].scenario_probability), item[0]),
        )
        selected = [scenario for _, scenario in ranked[:max(limit, 0)]]
        weights = normalize_weights([s.scenario_probability for s in selected])

        prepared = []
        for scenario, weight in zip(selected, weights):
            pairs = {}
            for row in scenario.scenario_pairs:
                if row.pair_player_low_id == row.pair_player_high_id:
                    continue
                match_type = row.match_type if row.match_type in MATCH_TYPES else None
                opponent = OpponentPair.of(row.pair_player_low_id, row.pair_player_high_id, match_type)
                pairs.setdefault((opponent.key, match_type), opponent)
            ordered = tuple(sorted(pairs.values(), key=lambda p: (p.key, p.match_type or "")))
            prepared.append(PreparedScenario(scenario.scenario_id, weight, ordered))
        return tuple(prepared)

    def _opponent_slots(self, request: RecommendRequest) -> Dict[Tuple[int, int], OpponentPair]:
        slots = {}
        for round_ in request.opponent_rounds or []:
            for game in round_.games:
                slots[(game.round_number, game.slot_number)] = OpponentPair.of(
                    game.opponent_player_a_id, game.opponent_player_b_id, game.match_type
                )
        return slots


def _finite_or_zero(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)


__all__ = [
    "PairSignal",
    "NEUTRAL_SIGNAL",
    "OpponentPair",
    "PreparedScenario",
    "ScoringContext",
    "ContextBuilder",
]
