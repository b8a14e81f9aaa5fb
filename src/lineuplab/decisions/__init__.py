"""Lineup decision functions.

Both the CLI and any service wrapper call these functions.

Decision Contract:
- Enumerate (or search) every pairing of the available players
- Score each pairing for the request mode
- Rank by objective, return the top maxRecommendations
"""

from .recommend import recommend_pair_sets
from .assembler import Recommendation, RecommendationFormatter, to_recommendations
from .service import RecommendResponse, run_recommendation

__all__ = [
    "recommend_pair_sets",
    "Recommendation",
    "RecommendationFormatter",
    "to_recommendations",
    "RecommendResponse",
    "run_recommendation",
]
