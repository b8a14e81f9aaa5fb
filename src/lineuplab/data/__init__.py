"""Data module - feature bundles, request schemas and validation.

Public API:
    BundleReader - SQLite feature bundle provider
    load_bundle_json - Feature bundle from a JSON file
    FeatureBundle, RecommendRequest - Pydantic models
    parse_recommend_request - Request validation
"""

from lineuplab.data.schemas import (
    CandidatePairSchema,
    FeatureBundle,
    OpponentScenarioSchema,
    PairMatchupSchema,
    PlayerCatalogSchema,
    RecommendRequest,
    ScenarioPairSchema,
)
from lineuplab.data.reader import BundleReader, load_bundle_json
from lineuplab.data.validation import ValidationResult, parse_recommend_request

__all__ = [
    "BundleReader",
    "load_bundle_json",
    "FeatureBundle",
    "RecommendRequest",
    "CandidatePairSchema",
    "OpponentScenarioSchema",
    "PairMatchupSchema",
    "PlayerCatalogSchema",
    "ScenarioPairSchema",
    "ValidationResult",
    "parse_recommend_request",
]
