"""Centralized SQL for the feature database.

All SQL statements used by BundleReader and scripts live here.
Named constants for clarity and single source of truth. Row tables are
generated from the bundle row schemas plus the scope columns each table is
filtered by.
"""

from lineuplab.data.schemas import (
    CandidatePairSchema,
    PairMatchupSchema,
    PlayerCatalogSchema,
    ScenarioPairSchema,
    schema_to_create_table,
)

SEASON_SCOPE = ["division_id TEXT", "season_year INTEGER", "season_number INTEGER"]

# -----------------------------------------------------------------------------
# Schema
# -----------------------------------------------------------------------------

OPPONENT_SCENARIOS_TABLE = """CREATE TABLE IF NOT EXISTS opponent_scenarios (
    scenario_id TEXT PRIMARY KEY,
    division_id TEXT,
    season_year INTEGER,
    season_number INTEGER,
    team_id TEXT,
    scenario_probability REAL
);
"""

TEAM_RATINGS_TABLE = """CREATE TABLE IF NOT EXISTS team_ratings (
    division_id TEXT,
    season_year INTEGER,
    season_number INTEGER,
    team_id TEXT,
    strength REAL
);
"""

SCHEMA_SQL = "\n".join([
    schema_to_create_table("players", PlayerCatalogSchema, ["team_id TEXT"]),
    schema_to_create_table(
        "candidate_pairs",
        CandidatePairSchema,
        SEASON_SCOPE + ["team_id TEXT", "last_seen_at TEXT"],
    ),
    OPPONENT_SCENARIOS_TABLE,
    schema_to_create_table("scenario_pairs", ScenarioPairSchema, ["scenario_id TEXT"]),
    schema_to_create_table(
        "pair_matchups",
        PairMatchupSchema,
        SEASON_SCOPE + ["team_id TEXT", "opp_team_id TEXT", "last_seen_at TEXT"],
    ),
    TEAM_RATINGS_TABLE,
])

# -----------------------------------------------------------------------------
# Player queries
# -----------------------------------------------------------------------------

# Formatted with one "?" per id
PLAYERS_BY_IDS = "SELECT * FROM players WHERE player_id IN ({placeholders})"

PLAYERS_BY_TEAM = "SELECT * FROM players WHERE team_id = ?"

# -----------------------------------------------------------------------------
# Pair statistics
# -----------------------------------------------------------------------------

CANDIDATE_PAIRS = """
SELECT * FROM candidate_pairs
WHERE division_id = ? AND season_year = ? AND season_number = ? AND team_id = ?
ORDER BY pair_player_low_id, pair_player_high_id
"""

PAIR_MATCHUPS = """
SELECT * FROM pair_matchups
WHERE division_id = ? AND season_year = ? AND season_number = ?
  AND team_id = ? AND opp_team_id = ?
ORDER BY match_type, our_pair_low_id, our_pair_high_id, opp_pair_low_id, opp_pair_high_id
"""

# -----------------------------------------------------------------------------
# Opponent scenarios
# -----------------------------------------------------------------------------

TOP_SCENARIOS = """
SELECT scenario_id, scenario_probability FROM opponent_scenarios
WHERE division_id = ? AND season_year = ? AND season_number = ? AND team_id = ?
ORDER BY scenario_probability DESC, scenario_id
LIMIT ?
"""

# Formatted with one "?" per scenario id
SCENARIO_PAIRS_BY_IDS = """
SELECT * FROM scenario_pairs
WHERE scenario_id IN ({placeholders})
ORDER BY scenario_id, match_type, pair_player_low_id, pair_player_high_id
"""

# -----------------------------------------------------------------------------
# Team strength / freshness
# -----------------------------------------------------------------------------

TEAM_STRENGTH = """
SELECT strength FROM team_ratings
WHERE division_id = ? AND season_year = ? AND season_number = ? AND team_id = ?
"""

MAX_LAST_SEEN = """
SELECT MAX(last_seen_at) AS max_last_seen_at FROM (
    SELECT last_seen_at FROM candidate_pairs
    WHERE division_id = ? AND season_year = ? AND season_number = ? AND team_id = ?
    UNION ALL
    SELECT last_seen_at FROM pair_matchups
    WHERE division_id = ? AND season_year = ? AND season_number = ? AND team_id = ?
)
"""
