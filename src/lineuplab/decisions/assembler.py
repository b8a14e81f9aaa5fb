"""Recommendation assembly and display.

Turns the ranked pair-set scores into the recommendations a caller sees:
1-based rank, pairs, headline numbers and confidence tiers, plus the round
schedule and pair usage in known-opponent mode.

Key Classes:
    Recommendation - One recommended pairing
    RecommendationFormatter - Text table for the CLI

Usage:
    recommendations = to_recommendations(ranked_scores, max_recommendations=3)
    RecommendationFormatter(recommendations).print()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from lineuplab.models.base import PairSetScore, PairUsage, ScheduledRound
from lineuplab.models.pairing import Pair
from lineuplab.models.ranking import confidence_tier


@dataclass(frozen=True)
class Recommendation:
    rank: int
    pair_set_id: str
    pairs: Tuple[Pair, ...]
    expected_wins: float
    floor_wins_q20: float
    matchup_win_probability: float
    volatility: float
    confidence: str
    game_confidence: str
    matchup_confidence: str
    rounds: Optional[Tuple[ScheduledRound, ...]] = None
    pair_usage: Tuple[PairUsage, ...] = ()
    dupr_applied: bool = False
    team_strength_applied: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "pairSetId": self.pair_set_id,
            "pairs": [{"playerAId": p.low_id, "playerBId": p.high_id} for p in self.pairs],
            "expectedWins": round(self.expected_wins, 3),
            "floorWinsQ20": round(self.floor_wins_q20, 3),
            "matchupWinProbability": round(self.matchup_win_probability, 3),
            "volatility": round(self.volatility, 3),
            "confidence": self.confidence,
            "gameConfidence": self.game_confidence,
            "matchupConfidence": self.matchup_confidence,
            "rounds": [r.to_dict() for r in self.rounds] if self.rounds is not None else None,
            "pairUsage": [u.to_dict() for u in self.pair_usage],
            "duprApplied": self.dupr_applied,
            "teamStrengthApplied": self.team_strength_applied,
        }


def to_recommendations(
    scores: Sequence[PairSetScore], max_recommendations: int
) -> List[Recommendation]:
    """Map the top `max_recommendations` ranked scores to recommendations."""
    return [
        Recommendation(
            rank=index + 1,
            pair_set_id=score.pair_set_id,
            pairs=score.pairs,
            expected_wins=score.expected_wins,
            floor_wins_q20=score.floor_wins_q20,
            matchup_win_probability=score.matchup_win_probability,
            volatility=score.volatility,
            confidence=score.confidence,
            game_confidence=confidence_tier(score.game_coverage),
            matchup_confidence=confidence_tier(score.matchup_coverage),
            rounds=score.rounds,
            pair_usage=score.pair_usage,
            dupr_applied=score.dupr_applied,
            team_strength_applied=score.team_strength_applied,
        )
        for index, score in enumerate(scores[:max(0, max_recommendations)])
    ]


def recommendations_to_frame(
    recommendations: Sequence[Recommendation],
    player_directory: Optional[Dict[str, str]] = None,
) -> pd.DataFrame:
    """One row per (recommendation, pair), for CSV export."""
    names = player_directory or {}
    rows = []
    for rec in recommendations:
        for pair in rec.pairs:
            rows.append({
                "rank": rec.rank,
                "pair_set_id": rec.pair_set_id,
                "player_a": names.get(pair.low_id, pair.low_id),
                "player_b": names.get(pair.high_id, pair.high_id),
                "expected_wins": round(rec.expected_wins, 3),
                "floor_wins_q20": round(rec.floor_wins_q20, 3),
                "matchup_win_probability": round(rec.matchup_win_probability, 3),
                "volatility": round(rec.volatility, 3),
                "confidence": rec.confidence,
            })
    return pd.DataFrame(rows)


class RecommendationFormatter:
    """Handles display formatting for recommendations."""

    HEADER_LABEL = "LINEUP LAB"

    def __init__(
        self,
        recommendations: Sequence[Recommendation],
        player_directory: Optional[Dict[str, str]] = None,
        warning: Optional[str] = None,
    ):
        self.recommendations = list(recommendations)
        self.names = player_directory or {}
        self.warning = warning

    def _name(self, player_id: Optional[str]) -> str:
        if player_id is None:
            return "-"
        return self.names.get(player_id, player_id[:8])

    def print(self) -> None:
        """Print all recommendations."""
        print("\n" + "=" * 70)
        print(f"🎯 {self.HEADER_LABEL}")
        print("=" * 70)
        if self.warning:
            print(f"\n⚠️  {self.warning}")
        if not self.recommendations:
            print("\nNo recommendations.")
        for rec in self.recommendations:
            self._print_recommendation(rec)
        print("=" * 70)

    def _print_recommendation(self, rec: Recommendation) -> None:
        print("\n" + "-" * 70)
        print(
            f"#{rec.rank}  [{rec.pair_set_id}]  "
            f"E[W]={rec.expected_wins:.2f}  Floor={rec.floor_wins_q20:.2f}  "
            f"Vol={rec.volatility:.2f}  P(match)={rec.matchup_win_probability:.2f}"
        )
        print(
            f"Confidence: {rec.confidence} | Games: {rec.game_confidence} | "
            f"Match: {rec.matchup_confidence}"
        )
        print("-" * 70)
        for pair in rec.pairs:
            print(f"  {self._name(pair.low_id):<24} + {self._name(pair.high_id):<24}")
        if rec.rounds:
            self._print_rounds(rec.rounds)

    def _print_rounds(self, rounds: Sequence[ScheduledRound]) -> None:
        print(f"\n  {'Rd':<3} {'Slot':<5} {'Type':<7} {'Pair':<34} {'P(win)':>7}")
        for round_ in rounds:
            for game in round_.games:
                if game.pair is None:
                    label = "(forfeit)"
                else:
                    label = f"{self._name(game.pair.low_id)} / {self._name(game.pair.high_id)}"
                print(
                    f"  {game.round_number:<3} {game.slot_number:<5} {game.match_type:<7} "
                    f"{label[:34]:<34} {game.win_probability:>7.2f}"
                )


__all__ = [
    "Recommendation",
    "to_recommendations",
    "recommendations_to_frame",
    "RecommendationFormatter",
]
