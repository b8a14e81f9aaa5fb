"""Base scorer interface and result types.

Provides shared interfaces only. No scoring logic here.
Each mode (blind, known_opponent) has its own scorer class that inherits
from PairSetScorer and implements score().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from lineuplab.features.builder import ScoringContext
from lineuplab.models.pairing import Pair, Pairing


@dataclass(frozen=True)
class ScheduledGame:
    """One game of the 8x4 schedule from our side."""

    round_number: int
    slot_number: int
    match_type: str
    pair: Optional[Pair]
    opponent: Optional[Tuple[str, str]]
    win_probability: float
    reliability: float
    confidence: str
    dupr_applied: bool = False
    team_strength_applied: bool = False

    @property
    def forfeit(self) -> bool:
        return self.pair is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "slotNumber": self.slot_number,
            "matchType": self.match_type,
            "playerAId": self.pair.low_id if self.pair else None,
            "playerBId": self.pair.high_id if self.pair else None,
            "opponentPlayerAId": self.opponent[0] if self.opponent else None,
            "opponentPlayerBId": self.opponent[1] if self.opponent else None,
            "winProbability": round(self.win_probability, 3),
            "confidence": self.confidence,
            "forfeit": self.forfeit,
            "duprApplied": self.dupr_applied,
            "teamStrengthApplied": self.team_strength_applied,
        }


@dataclass(frozen=True)
class ScheduledRound:
    round_number: int
    games: Tuple[ScheduledGame, ...]

    @property
    def expected_wins(self) -> float:
        return sum(g.win_probability for g in self.games)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "expectedWins": round(self.expected_wins, 3),
            "games": [g.to_dict() for g in self.games],
        }


@dataclass(frozen=True)
class PairUsage:
    pair: Pair
    games: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerAId": self.pair.low_id,
            "playerBId": self.pair.high_id,
            "games": self.games,
        }


@dataclass(frozen=True)
class PairSetScore:
    """Aggregate outcome statistics for one pairing.

    coverage is the mean sample reliability of the lookups behind the
    score; confidence is its tier.
    """

    pair_set_id: str
    pairs: Pairing
    expected_wins: float
    floor_wins_q20: float
    volatility: float
    coverage: float
    confidence: str = "LOW"
    matchup_win_probability: float = 0.5
    game_coverage: float = 0.0
    matchup_coverage: float = 0.0
    rounds: Optional[Tuple[ScheduledRound, ...]] = None
    pair_usage: Tuple[PairUsage, ...] = ()
    dupr_applied: bool = False
    team_strength_applied: bool = False


class PairSetScorer(ABC):
    """Abstract base class for mode-specific pairing scorers."""

    mode: str = ""

    def __init__(self, context: ScoringContext, matchup_scorer: Optional[Any] = None):
        """Initialize with the per-request context.

        Args:
            context: Lookups built by ContextBuilder
            matchup_scorer: Shared MatchupScorer (default: a fresh one)
        """
        from lineuplab.models.scoring import MatchupScorer

        self.context = context
        self.matchups = matchup_scorer or MatchupScorer(context)

    @abstractmethod
    def score(self, pairing: Pairing) -> PairSetScore:
        """Score one pairing.

        Args:
            pairing: Disjoint pairs covering the roster

        Returns:
            PairSetScore for the pairing
        """
        pass


__all__ = [
    "ScheduledGame",
    "ScheduledRound",
    "PairUsage",
    "PairSetScore",
    "PairSetScorer",
]
