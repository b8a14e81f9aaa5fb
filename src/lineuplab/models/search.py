"""Approximate pairing search for rosters too large to enumerate.

(n-1)!! grows past ten thousand pairings at 12 players and past 650
million at 20, so larger rosters are searched instead:

1. Seeded random restart: shuffle the roster, pair neighbours.
2. Local improvement: for two pairs (a, b), (c, d) try the partner swaps
   (a, c), (b, d) and (a, d), (b, c); take the first swap that ranks
   better under the objective and rescan, until no swap helps or the pass
   limit is hit.

Every pairing evaluated along the way is kept as a candidate, so callers
get more than one distinct answer. The seed is fixed, so the same input
gives the same output.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from lineuplab.config import SEARCH_MAX_PASSES, SEARCH_RESTARTS, SEARCH_SEED
from lineuplab.models.base import PairSetScore, PairSetScorer
from lineuplab.models.pairing import Pair, Pairing, canonical_pairing, pair_set_id
from lineuplab.models.ranking import ranking_key

logger = logging.getLogger(__name__)


class PairingSearch:
    """Random-restart local search over pairings."""

    def __init__(
        self,
        scorer: PairSetScorer,
        objective: str,
        restarts: Optional[int] = None,
        max_passes: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.scorer = scorer
        self.objective = objective
        self.restarts = restarts if restarts is not None else SEARCH_RESTARTS
        self.max_passes = max_passes if max_passes is not None else SEARCH_MAX_PASSES
        self.seed = seed if seed is not None else SEARCH_SEED
        self._seen: Dict[str, PairSetScore] = {}

    def run(self, players: Sequence[str]) -> List[PairSetScore]:
        """Search pairings of `players`; returns every distinct pairing scored."""
        players = sorted(players)
        if len(players) < 2 or len(players) % 2 != 0:
            return []

        self._seen = {}
        rng = np.random.default_rng(self.seed)
        for _ in range(max(1, self.restarts)):
            order = [players[i] for i in rng.permutation(len(players))]
            start = tuple(Pair.of(order[k], order[k + 1]) for k in range(0, len(order), 2))
            self._improve(start)

        logger.info(
            f"Pairing search: {len(players)} players, {self.restarts} restarts, "
            f"{len(self._seen)} distinct pairings scored"
        )
        return list(self._seen.values())

    def _evaluate(self, pairing: Pairing) -> PairSetScore:
        pairs = canonical_pairing(pairing)
        key = pair_set_id(pairs)
        if key not in self._seen:
            self._seen[key] = self.scorer.score(pairs)
        return self._seen[key]

    def _improve(self, pairing: Pairing) -> PairSetScore:
        current = self._evaluate(pairing)
        for _ in range(self.max_passes):
            improved = self._first_improvement(current)
            if improved is None:
                break
            current = improved
        return current

    def _first_improvement(self, current: PairSetScore) -> Optional[PairSetScore]:
        best_key = ranking_key(current, self.objective)
        pairs = list(current.pairs)
        for i in range(len(pairs)):
            for j in range(i + 1, len(pairs)):
                a, b = pairs[i].players
                c, d = pairs[j].players
                for first, second in ((Pair.of(a, c), Pair.of(b, d)), (Pair.of(a, d), Pair.of(b, c))):
                    candidate = pairs[:i] + [first] + pairs[i + 1:j] + [second] + pairs[j + 1:]
                    scored = self._evaluate(tuple(candidate))
                    if ranking_key(scored, self.objective) < best_key:
                        return scored
        return None


__all__ = ["PairingSearch"]
