"""Lineup recommendation decision.

Decision rule: rank every pairing of the available players by the request
objective and keep the best.

- Rosters up to FULL_ENUMERATION_MAX_PLAYERS are enumerated exhaustively.
- Larger rosters are searched (models.search.PairingSearch).

The function is pure: same request and bundle in, same ranked list out.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from lineuplab.config import FULL_ENUMERATION_MAX_PLAYERS, ScoringConfig
from lineuplab.data.schemas import FeatureBundle, RecommendRequest
from lineuplab.features.builder import ContextBuilder
from lineuplab.models.base import PairSetScore
from lineuplab.models.pairing import count_pairings, enumerate_pairings
from lineuplab.models.ranking import rank_scores
from lineuplab.models.registry import get_scorer
from lineuplab.models.search import PairingSearch

logger = logging.getLogger(__name__)


def recommend_pair_sets(
    request: RecommendRequest,
    bundle: FeatureBundle,
    scoring_config: Optional[ScoringConfig] = None,
    enumeration_limit: Optional[int] = None,
) -> List[PairSetScore]:
    """Score and rank pairings for a request.

    Args:
        request: Validated recommend request
        bundle: Feature bundle for the request
        scoring_config: Adjustment settings (default: ScoringConfig())
        enumeration_limit: Largest roster enumerated exhaustively

    Returns:
        Distinct pair sets, best first
    """
    limit = FULL_ENUMERATION_MAX_PLAYERS if enumeration_limit is None else enumeration_limit
    context = ContextBuilder(scoring_config).build(request, bundle)
    scorer = get_scorer(request.mode, context)
    players = list(request.available_player_ids)

    if len(players) <= limit:
        logger.info(f"Enumerating {count_pairings(len(players))} pairings of {len(players)} players")
        scores = [scorer.score(pairing) for pairing in enumerate_pairings(players)]
    else:
        scores = PairingSearch(scorer, request.objective).run(players)

    unique: Dict[str, PairSetScore] = {}
    for score in scores:
        unique.setdefault(score.pair_set_id, score)
    return rank_scores(unique.values(), request.objective)


__all__ = ["recommend_pair_sets"]
