"""Recommend service: provider -> optimizer -> assembler -> response.

The only place that touches a data provider. The optimizer itself stays
pure; this module fetches the bundle (unless one is passed in), runs the
decision and fills response metadata: request id, timestamps, scenario
count, data freshness with a warning when the statistics are stale, and a
player id -> display name directory.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from lineuplab.config import STALE_BUNDLE_HOURS, ScoringConfig
from lineuplab.data.reader import BundleReader
from lineuplab.data.schemas import FeatureBundle, RecommendRequest
from lineuplab.decisions.assembler import Recommendation, to_recommendations
from lineuplab.decisions.recommend import recommend_pair_sets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundleMetadata:
    generated_at: Optional[str]
    max_last_seen_at: Optional[str]
    data_staleness_hours: Optional[float]
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "generatedAt": self.generated_at,
            "maxLastSeenAt": self.max_last_seen_at,
            "dataStalenessHours": self.data_staleness_hours,
        }
        if self.warning:
            result["warning"] = self.warning
        return result


@dataclass(frozen=True)
class RecommendResponse:
    request_id: str
    generated_at: str
    objective: str
    mode: str
    recommendations: List[Recommendation]
    scenario_count: int
    bundle_metadata: BundleMetadata
    player_directory: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestId": self.request_id,
            "generatedAt": self.generated_at,
            "objective": self.objective,
            "mode": self.mode,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "scenarioSummary": {"scenarioCount": self.scenario_count},
            "bundleMetadata": self.bundle_metadata.to_dict(),
            "playerDirectory": dict(self.player_directory),
        }


def bundle_metadata(bundle: FeatureBundle, stale_after_hours: float = STALE_BUNDLE_HOURS) -> BundleMetadata:
    staleness = bundle.data_staleness_hours
    warning = None
    if staleness is not None and staleness > stale_after_hours:
        warning = (
            f"Feature data is {staleness:.1f} hours old; "
            f"recommendations may not reflect recent results."
        )
        logger.warning(warning)
    return BundleMetadata(bundle.generated_at, bundle.max_last_seen_at, staleness, warning)


def player_directory(bundle: FeatureBundle) -> Dict[str, str]:
    return {
        player.player_id: player.name
        for player in bundle.players_catalog
        if player.name
    }


def run_recommendation(
    request: RecommendRequest,
    bundle: Optional[FeatureBundle] = None,
    reader: Optional[BundleReader] = None,
    scoring_config: Optional[ScoringConfig] = None,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RecommendResponse:
    """Produce the recommend response for a validated request.

    Args:
        request: Validated recommend request
        bundle: Pre-fetched feature bundle (skips the reader)
        reader: Bundle provider (default: BundleReader on DEFAULT_DB_PATH)
        scoring_config: Adjustment settings (default: from environment)
        request_id: Id to echo back (default: a new UUID4)
        now: Response timestamp (default: current UTC time)

    Returns:
        RecommendResponse
    """
    now = now or datetime.now(timezone.utc)
    if bundle is None:
        reader = reader or BundleReader()
        with reader:
            bundle = reader.fetch_feature_bundle(request, now=now)

    config = scoring_config or ScoringConfig.from_env()
    ranked = recommend_pair_sets(request, bundle, config)
    recommendations = to_recommendations(ranked, request.max_recommendations)
    logger.info(
        f"{request.mode} {request.objective}: {len(ranked)} pair sets ranked, "
        f"{len(recommendations)} returned"
    )

    return RecommendResponse(
        request_id=request_id or str(uuid.uuid4()),
        generated_at=now.isoformat(),
        objective=request.objective,
        mode=request.mode,
        recommendations=recommendations,
        scenario_count=min(len(bundle.opponent_scenarios), request.scenario_limit),
        bundle_metadata=bundle_metadata(bundle),
        player_directory=player_directory(bundle),
    )


__all__ = [
    "BundleMetadata",
    "RecommendResponse",
    "bundle_metadata",
    "player_directory",
    "run_recommendation",
]
