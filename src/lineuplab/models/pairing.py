"""Pairing enumeration.

A pairing splits an even roster into disjoint doubles pairs that together
use every player exactly once. For n players there are (n-1)!! of them:
3 for 4 players, 105 for 8, 10395 for 12, 654729075 for 20.

Key Functions:
    pair_key() - Canonical "low:high" key for two players
    enumerate_pairings() - Every pairing of a roster, in stable order
    count_pairings() - (n-1)!! without enumerating
    pair_set_id() - Short stable id for a pairing

Usage:
    from lineuplab.models.pairing import enumerate_pairings

    for pairing in enumerate_pairings(player_ids):
        print([p.key for p in pairing])
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple


@dataclass(frozen=True, order=True)
class Pair:
    """Two distinct players, stored in canonical (sorted) order."""

    low_id: str
    high_id: str

    @classmethod
    def of(cls, player_a: str, player_b: str) -> "Pair":
        low, high = sorted((player_a, player_b))
        return cls(low, high)

    @property
    def key(self) -> str:
        return f"{self.low_id}:{self.high_id}"

    @property
    def players(self) -> Tuple[str, str]:
        return (self.low_id, self.high_id)


Pairing = Tuple[Pair, ...]


def pair_key(player_a: str, player_b: str) -> str:
    """Canonical key for an unordered pair of players."""
    return Pair.of(player_a, player_b).key


def enumerate_pairings(players: Sequence[str]) -> List[Pairing]:
    """List every perfect matching of `players`.

    Takes the first remaining player, pairs them with each other remaining
    player in turn and recurses on what is left, so the output order is
    stable for a given input order.

    Args:
        players: Player ids (must be distinct)

    Returns:
        List of pairings; empty when the count is odd or below 2
    """
    players = list(players)
    if len(players) < 2 or len(players) % 2 != 0:
        return []
    return [tuple(pairs) for pairs in _pairings(players)]


def _pairings(remaining: List[str]) -> Iterable[List[Pair]]:
    if not remaining:
        yield []
        return
    first, rest = remaining[0], remaining[1:]
    for i, partner in enumerate(rest):
        others = rest[:i] + rest[i + 1:]
        for tail in _pairings(others):
            yield [Pair.of(first, partner)] + tail


def count_pairings(n_players: int) -> int:
    """(n-1)!! for even n >= 2, else 0."""
    if n_players < 2 or n_players % 2 != 0:
        return 0
    total = 1
    for k in range(n_players - 1, 0, -2):
        total *= k
    return total


def pair_set_id(pairs: Iterable[Pair]) -> str:
    """SHA-1 of the sorted pair keys, first 12 hex chars."""
    joined = "|".join(sorted(p.key for p in pairs))
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()[:12]


def canonical_pairing(pairs: Iterable[Pair]) -> Pairing:
    """Pairs sorted by key, so equal pairings compare equal."""
    return tuple(sorted(pairs, key=lambda p: p.key))


__all__ = [
    "Pair",
    "Pairing",
    "pair_key",
    "enumerate_pairings",
    "count_pairings",
    "pair_set_id",
    "canonical_pairing",
]
