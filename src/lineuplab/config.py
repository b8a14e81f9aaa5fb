"""Centralized configuration for Lineup Lab.

All paths, request bounds, scoring constants and settings in one place.
Environment variables can override defaults.

Path Constants:
    PROJECT_ROOT - Root directory of the project
    STORAGE_DIR - Storage for the feature database and reports
    REPORTS_DIR - CSV exports written by the CLIs
    DEFAULT_DB_PATH - SQLite feature database (overridable via LINEUPLAB_DB_PATH)

Match Constants:
    MATCH_TYPES - Doubles match types ("mixed", "female", "male")
    ROUND_SLOT_TEMPLATE - Match type of every slot, 8 rounds x 4 slots

Environment Variables:
    LINEUPLAB_DB_PATH - Override default database path
    LINEUPLAB_STALE_BUNDLE_HOURS - Age after which feature data is flagged stale
    LINEUPLAB_FULL_ENUMERATION_MAX_PLAYERS - Largest roster scored exhaustively
    LINEUPLAB_SEARCH_RESTARTS / LINEUPLAB_SEARCH_MAX_PASSES / LINEUPLAB_SEARCH_SEED
    LINEUPLAB_KNOWN_OPPONENT_AGGREGATION - "round", "slot" or "schedule"
    LINEUPLAB_ENABLE_DUPR_BLEND, LINEUPLAB_DUPR_MAJOR_WEIGHT, LINEUPLAB_DUPR_SLOPE,
    LINEUPLAB_ENABLE_TEAM_STRENGTH, LINEUPLAB_TEAM_STRENGTH_FACTOR,
    LINEUPLAB_TEAM_STRENGTH_CAP - Scoring adjustments (see ScoringConfig)
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

# Project root (src/lineuplab/config.py -> lineuplab -> src -> project_root)
PROJECT_ROOT = Path(__file__).parent.parent.parent
STORAGE_DIR = PROJECT_ROOT / "storage"
REPORTS_DIR = STORAGE_DIR / "reports"

DEFAULT_DB_PATH = os.environ.get(
    "LINEUPLAB_DB_PATH",
    str(STORAGE_DIR / "lineup_lab.sqlite")
)

# Match structure
MATCH_TYPES = ("mixed", "female", "male")
ROUND_SLOT_TEMPLATE = (
    ("mixed", "mixed", "mixed", "mixed"),
    ("female", "female", "male", "male"),
    ("mixed", "mixed", "mixed", "mixed"),
    ("female", "female", "male", "male"),
    ("mixed", "mixed", "mixed", "mixed"),
    ("female", "female", "male", "male"),
    ("mixed", "mixed", "mixed", "mixed"),
    ("female", "female", "male", "male"),
)
TOTAL_ROUNDS = len(ROUND_SLOT_TEMPLATE)
SLOTS_PER_ROUND = len(ROUND_SLOT_TEMPLATE[0])

# Request bounds
MODES = ("blind", "known_opponent")
OBJECTIVES = ("MAX_EXPECTED_WINS", "MINIMIZE_DOWNSIDE")
MIN_PLAYERS = 8
MAX_PLAYERS = 20
MAX_RECOMMENDATIONS = 10
DEFAULT_MAX_RECOMMENDATIONS = 3
DEFAULT_DOWNSIDE_QUANTILE = 0.2
MIN_SCENARIOS = 1
MAX_SCENARIOS = 30
DEFAULT_SCENARIO_LIMIT = 12
MIN_SEASON_YEAR = 2020
MAX_SEASON_YEAR = 2100

# Probability clamps: optimizer scoring vs offline calibration
PROBABILITY_FLOOR = 0.05
PROBABILITY_CEILING = 0.95
CALIBRATION_FLOOR = 0.01
CALIBRATION_CEILING = 0.99
NEUTRAL_WIN_PROBABILITY = 0.5

# Point-differential blend
PD_BLEND_MIN_WEIGHT = 0.08
PD_BLEND_MAX_WEIGHT = 0.35
PD_UNKNOWN_CORRELATION_FACTOR = 0.5
PD_NEGATIVE_CORRELATION_FACTOR = 0.25
PD_REDUNDANCY_GUARDRAIL = 0.85
PD_REDUNDANCY_SATURATION = 0.97
PD_REDUNDANCY_MAX_WEIGHT = 0.12
PD_REDUNDANCY_SHRINK = 0.4
MIN_CORRELATION_SAMPLES = 4

# Confidence tiers
HIGH_CONFIDENCE_COVERAGE = 0.66
MEDIUM_CONFIDENCE_COVERAGE = 0.33
SCENARIO_DIVERSITY_TARGET = 6.0

STALE_BUNDLE_HOURS = float(os.environ.get("LINEUPLAB_STALE_BUNDLE_HOURS", "24"))

# Pairing search
FULL_ENUMERATION_MAX_PLAYERS = int(
    os.environ.get("LINEUPLAB_FULL_ENUMERATION_MAX_PLAYERS", "12")
)
SEARCH_RESTARTS = int(os.environ.get("LINEUPLAB_SEARCH_RESTARTS", "16"))
SEARCH_MAX_PASSES = int(os.environ.get("LINEUPLAB_SEARCH_MAX_PASSES", "25"))
SEARCH_SEED = int(os.environ.get("LINEUPLAB_SEARCH_SEED", "20240601"))

KNOWN_OPPONENT_AGGREGATION = os.environ.get(
    "LINEUPLAB_KNOWN_OPPONENT_AGGREGATION", "round"
)


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class ScoringConfig:
    """Optional adjustments applied on top of the blended win probability.

    DUPR blend: when all four players of a game have a DUPR rating, the
    rating gap is turned into a probability and blended in logit space with
    `dupr_major_weight` on the rating side.

    Team strength: shifts every probability in logit space by
    `team_strength_factor * strength_delta`, capped at +/- `team_strength_cap`.
    """

    enable_dupr_blend: bool = True
    dupr_major_weight: float = 0.65
    dupr_slope: float = 1.6
    enable_team_strength: bool = True
    team_strength_factor: float = 0.45
    team_strength_cap: float = 0.35

    def __post_init__(self) -> None:
        if not math.isfinite(self.dupr_major_weight) or not 0 <= self.dupr_major_weight <= 1:
            raise ValueError("LINEUPLAB_DUPR_MAJOR_WEIGHT must be between 0 and 1.")
        if not math.isfinite(self.dupr_slope) or self.dupr_slope <= 0:
            raise ValueError("LINEUPLAB_DUPR_SLOPE must be positive.")
        if not math.isfinite(self.team_strength_factor) or self.team_strength_factor < 0:
            raise ValueError("LINEUPLAB_TEAM_STRENGTH_FACTOR must be non-negative.")
        if not math.isfinite(self.team_strength_cap) or self.team_strength_cap <= 0:
            raise ValueError("LINEUPLAB_TEAM_STRENGTH_CAP must be positive.")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ScoringConfig":
        """Build a config from LINEUPLAB_* environment variables.

        Raises:
            ValueError: If a variable is not numeric or out of range
        """
        env = os.environ if env is None else env
        return cls(
            enable_dupr_blend=_env_flag(env, "LINEUPLAB_ENABLE_DUPR_BLEND", True),
            dupr_major_weight=_env_float(env, "LINEUPLAB_DUPR_MAJOR_WEIGHT", 0.65),
            dupr_slope=_env_float(env, "LINEUPLAB_DUPR_SLOPE", 1.6),
            enable_team_strength=_env_flag(env, "LINEUPLAB_ENABLE_TEAM_STRENGTH", True),
            team_strength_factor=_env_float(env, "LINEUPLAB_TEAM_STRENGTH_FACTOR", 0.45),
            team_strength_cap=_env_float(env, "LINEUPLAB_TEAM_STRENGTH_CAP", 0.35),
        )
