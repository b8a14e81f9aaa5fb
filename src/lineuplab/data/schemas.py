"""Pydantic schemas for feature bundles and recommend requests.

Defines Pydantic models for the pre-fetched feature bundle (the historical
statistics the optimizer scores against) and for the validated recommend
request. The bundle row schemas double as the SQLite table definitions used
by BundleReader.

Models:
    PlayerCatalogSchema - Player name, gender and DUPR rating
    CandidatePairSchema - Our-pair historical statistics per match type
    ScenarioPairSchema / OpponentScenarioSchema - Opponent lineup scenarios
    PairMatchupSchema - Our-pair vs opponent-pair statistics
    FeatureBundle - Everything above plus freshness metadata
    RecommendRequest - Validated request; constraints raise ValidationError

Usage:
    from lineuplab.data.schemas import FeatureBundle

    bundle = FeatureBundle.from_payload(json.load(f))
    print(len(bundle.candidate_pairs), bundle.data_staleness_hours)
"""

from __future__ import annotations

import logging
import uuid
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, get_args, get_origin

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from lineuplab.config import (
    DEFAULT_DOWNSIDE_QUANTILE,
    DEFAULT_MAX_RECOMMENDATIONS,
    DEFAULT_SCENARIO_LIMIT,
    MAX_PLAYERS,
    MAX_RECOMMENDATIONS,
    MAX_SCENARIOS,
    MAX_SEASON_YEAR,
    MIN_PLAYERS,
    MIN_SCENARIOS,
    MIN_SEASON_YEAR,
    ROUND_SLOT_TEMPLATE,
    SLOTS_PER_ROUND,
    TOTAL_ROUNDS,
)

logger = logging.getLogger(__name__)


# Type mapping from Python types to SQLite types
PYTHON_TO_SQLITE: Dict[Type, str] = {
    int: "INTEGER",
    float: "REAL",
    str: "TEXT",
    bool: "INTEGER",
}


def pydantic_to_sqlite_column(field_name: str, field_info: Any) -> Optional[str]:
    """Convert a Pydantic field to SQLite column definition.

    Args:
        field_name: Name of the field
        field_info: Pydantic FieldInfo object

    Returns:
        SQLite column definition string, or None for list/nested fields
    """
    annotation = field_info.annotation

    # Optional is Union[X, None]
    if get_origin(annotation) is not None:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if get_origin(annotation) in (list, List) or len(args) != 1:
            return None
        annotation = args[0]

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return None

    sqlite_type = PYTHON_TO_SQLITE.get(annotation, "TEXT")
    return f"{field_name} {sqlite_type}"


def schema_to_create_table(
    table_name: str,
    schema: Type[BaseModel],
    extra_columns: Optional[List[str]] = None,
) -> str:
    """Generate CREATE TABLE SQL from Pydantic schema.

    Args:
        table_name: Name of the SQL table
        schema: Pydantic model class
        extra_columns: Additional column definitions not in schema
            (scope columns such as team_id, last_seen_at)

    Returns:
        CREATE TABLE IF NOT EXISTS SQL statement
    """
    columns = []

    for field_name, field_info in schema.model_fields.items():
        column = pydantic_to_sqlite_column(field_name, field_info)
        if column:
            columns.append(column)

    if extra_columns:
        columns.extend(extra_columns)

    columns_sql = ",\n    ".join(columns)
    return f"CREATE TABLE IF NOT EXISTS {table_name} (\n    {columns_sql}\n);\n"


# -----------------------------------------------------------------------------
# Feature bundle rows
# -----------------------------------------------------------------------------


class PlayerCatalogSchema(BaseModel):
    """Player directory row."""

    player_id: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[str] = None
    dupr_rating: Optional[float] = None

    @property
    def name(self) -> Optional[str]:
        """Get best available display name."""
        if self.display_name:
            return self.display_name
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None


class CandidatePairSchema(BaseModel):
    """Historical statistics for one of our potential pairs."""

    pair_player_low_id: str
    pair_player_high_id: str
    pair_key: Optional[str] = None
    win_rate_shrunk: Optional[float] = None
    mixed_win_rate_shrunk: Optional[float] = None
    female_win_rate_shrunk: Optional[float] = None
    male_win_rate_shrunk: Optional[float] = None
    mixed_win_rate: Optional[float] = None
    female_win_rate: Optional[float] = None
    male_win_rate: Optional[float] = None
    pd_win_probability: Optional[float] = None
    mixed_pd_win_probability: Optional[float] = None
    female_pd_win_probability: Optional[float] = None
    male_pd_win_probability: Optional[float] = None
    sample_reliability: Optional[float] = None


class ScenarioPairSchema(BaseModel):
    """An opponent pair the scenario expects to see."""

    match_type: Optional[str] = None
    pair_key: Optional[str] = None
    pair_player_low_id: str
    pair_player_high_id: str
    games_with_pair: Optional[int] = None


class OpponentScenarioSchema(BaseModel):
    """A weighted hypothesis of the opponent's lineup."""

    scenario_id: str
    scenario_probability: Optional[float] = None
    scenario_pairs: List[ScenarioPairSchema] = Field(default_factory=list)


class PairMatchupSchema(BaseModel):
    """Head-to-head statistics for our pair against an opponent pair."""

    match_type: str
    our_pair_low_id: str
    our_pair_high_id: str
    opp_pair_low_id: str
    opp_pair_high_id: str
    win_rate_shrunk: Optional[float] = None
    pd_win_probability: Optional[float] = None
    sample_reliability: Optional[float] = None


class TeamStrengthSchema(BaseModel):
    """Team-level strength gap, ours minus the opponent's."""

    strength_delta: Optional[float] = None


def _validate_rows(rows: Any, schema: Type[BaseModel], label: str) -> List[Any]:
    """Validate a list of raw rows, skipping malformed ones.

    Missing or non-list input is treated as no data.
    """
    if not isinstance(rows, list):
        return []
    valid = []
    skipped = 0
    for row in rows:
        if isinstance(row, BaseModel):
            row = row.model_dump()
        if not isinstance(row, dict):
            skipped += 1
            continue
        try:
            valid.append(schema.model_validate(row))
        except ValidationError:
            skipped += 1
    if skipped:
        logger.warning(f"Skipped {skipped} {label} rows with invalid schema")
    return valid


class FeatureBundle(BaseModel):
    """Pre-fetched statistics for one request.

    Built once per request by a provider (BundleReader or a JSON file) and
    never mutated by the optimizer.
    """

    candidate_pairs: List[CandidatePairSchema] = Field(default_factory=list)
    opponent_scenarios: List[OpponentScenarioSchema] = Field(default_factory=list)
    pair_matchups: List[PairMatchupSchema] = Field(default_factory=list)
    players_catalog: List[PlayerCatalogSchema] = Field(default_factory=list)
    team_strength: Optional[TeamStrengthSchema] = None
    generated_at: Optional[str] = None
    max_last_seen_at: Optional[str] = None
    data_staleness_hours: Optional[float] = None
    counts: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "FeatureBundle":
        """Build a bundle from an untrusted dict, tolerating missing pieces."""
        if not isinstance(payload, dict):
            return cls()

        scenarios = []
        raw_scenarios = payload.get("opponent_scenarios")
        for raw in raw_scenarios if isinstance(raw_scenarios, list) else []:
            if not isinstance(raw, dict) or raw.get("scenario_id") is None:
                continue
            scenarios.append(OpponentScenarioSchema(
                scenario_id=str(raw["scenario_id"]),
                scenario_probability=_optional_float(raw.get("scenario_probability")),
                scenario_pairs=_validate_rows(
                    raw.get("scenario_pairs"), ScenarioPairSchema, "scenario pair"
                ),
            ))

        team_strength = None
        raw_strength = payload.get("team_strength")
        if isinstance(raw_strength, dict):
            team_strength = TeamStrengthSchema(
                strength_delta=_optional_float(raw_strength.get("strength_delta"))
            )

        counts = payload.get("counts")
        return cls(
            candidate_pairs=_validate_rows(
                payload.get("candidate_pairs"), CandidatePairSchema, "candidate pair"
            ),
            opponent_scenarios=scenarios,
            pair_matchups=_validate_rows(
                payload.get("pair_matchups"), PairMatchupSchema, "pair matchup"
            ),
            players_catalog=_validate_rows(
                payload.get("players_catalog"), PlayerCatalogSchema, "player"
            ),
            team_strength=team_strength,
            generated_at=_optional_str(payload.get("generated_at")),
            max_last_seen_at=_optional_str(payload.get("max_last_seen_at")),
            data_staleness_hours=_optional_float(payload.get("data_staleness_hours")),
            counts={
                str(k): int(v) for k, v in counts.items()
                if isinstance(v, (int, float))
            } if isinstance(counts, dict) else {},
        )


def _optional_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


# -----------------------------------------------------------------------------
# Recommend request
# -----------------------------------------------------------------------------

# Error type for request rules; its message is reported verbatim by
# parse_recommend_request.
REQUEST_ERROR = "invalid_request"


def uuid_string(value: str) -> str:
    """Accept canonical RFC 4122 UUID strings (versions 1-5) unchanged."""
    parsed = uuid.UUID(value)
    if (
        str(parsed) != value.lower()
        or parsed.variant != uuid.RFC_4122
        or not 1 <= (parsed.version or 0) <= 5
    ):
        raise ValueError(f"not a canonical UUID: {value}")
    return value


UuidStr = Annotated[str, AfterValidator(uuid_string)]


class OpponentGameSchema(BaseModel):
    """One known opponent assignment: who they field in a round/slot."""

    model_config = ConfigDict(populate_by_name=True)

    round_number: int = Field(alias="roundNumber")
    slot_number: int = Field(alias="slotNumber", ge=1, le=SLOTS_PER_ROUND)
    match_type: Literal["mixed", "female", "male"] = Field(alias="matchType")
    opponent_player_a_id: UuidStr = Field(alias="opponentPlayerAId")
    opponent_player_b_id: UuidStr = Field(alias="opponentPlayerBId")

    @model_validator(mode="after")
    def _distinct_players(self) -> "OpponentGameSchema":
        if self.opponent_player_a_id == self.opponent_player_b_id:
            raise PydanticCustomError(
                REQUEST_ERROR, "Opponent slot players must be different within a game."
            )
        return self


class OpponentRoundSchema(BaseModel):
    """Four opponent games of one round, sorted by slot."""

    model_config = ConfigDict(populate_by_name=True)

    round_number: int = Field(alias="roundNumber", ge=1, le=TOTAL_ROUNDS)
    games: List[OpponentGameSchema]

    @model_validator(mode="after")
    def _check_games(self) -> "OpponentRoundSchema":
        if len(self.games) != SLOTS_PER_ROUND:
            raise PydanticCustomError(
                REQUEST_ERROR, f"Each opponent round must include exactly {SLOTS_PER_ROUND} games."
            )
        if len({g.slot_number for g in self.games}) != len(self.games):
            raise PydanticCustomError(
                REQUEST_ERROR, "Opponent game slotNumber values must be unique per round."
            )
        if any(g.round_number != self.round_number for g in self.games):
            raise PydanticCustomError(
                REQUEST_ERROR, "Each opponent game roundNumber must match its parent roundNumber."
            )

        self.games.sort(key=lambda g: g.slot_number)
        template = ROUND_SLOT_TEMPLATE[self.round_number - 1]
        for game in self.games:
            if game.match_type != template[game.slot_number - 1]:
                raise PydanticCustomError(
                    REQUEST_ERROR,
                    f"opponentRounds slot pattern mismatch at round {self.round_number}, "
                    f"slot {game.slot_number}.",
                )
        return self


class OpponentRosterEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: UuidStr = Field(alias="playerId")
    gender: Optional[str] = None


class RecommendRequest(BaseModel):
    """Validated recommend request.

    Accepts both the camelCase wire names and snake_case field names. Opponent
    rounds and roster are only read in known_opponent mode; a blind request
    drops them.

    Raises:
        ValidationError: From model_validate, one entry per violated rule
            (see data.validation for the messages)
    """

    model_config = ConfigDict(populate_by_name=True)

    division_id: UuidStr = Field(alias="divisionId")
    season_year: int = Field(alias="seasonYear", ge=MIN_SEASON_YEAR, le=MAX_SEASON_YEAR)
    season_number: int = Field(alias="seasonNumber", gt=0)
    team_id: UuidStr = Field(alias="teamId")
    opp_team_id: UuidStr = Field(alias="oppTeamId")
    matchup_id: UuidStr = Field(alias="matchupId")
    available_player_ids: List[UuidStr] = Field(alias="availablePlayerIds")
    mode: Literal["blind", "known_opponent"]
    objective: Literal["MAX_EXPECTED_WINS", "MINIMIZE_DOWNSIDE"]
    max_recommendations: int = Field(
        DEFAULT_MAX_RECOMMENDATIONS, alias="maxRecommendations", ge=1, le=MAX_RECOMMENDATIONS
    )
    downside_quantile: float = Field(DEFAULT_DOWNSIDE_QUANTILE, alias="downsideQuantile", gt=0, lt=1)
    scenario_limit: int = Field(
        DEFAULT_SCENARIO_LIMIT, alias="scenarioLimit", ge=MIN_SCENARIOS, le=MAX_SCENARIOS
    )
    opponent_rounds: Optional[List[OpponentRoundSchema]] = Field(
        None, alias="opponentRounds", validate_default=True
    )
    opponent_roster: Optional[List[OpponentRosterEntry]] = Field(
        None, alias="opponentRoster", validate_default=True
    )

    @field_validator("opp_team_id")
    @classmethod
    def _distinct_teams(cls, value: str, info: ValidationInfo) -> str:
        if value == info.data.get("team_id"):
            raise PydanticCustomError(REQUEST_ERROR, "teamId and oppTeamId must be different.")
        return value

    @field_validator("available_player_ids")
    @classmethod
    def _check_players(cls, players: List[str]) -> List[str]:
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS or len(players) % 2 != 0:
            raise PydanticCustomError(
                REQUEST_ERROR,
                f"availablePlayerIds must include an even number of players between "
                f"{MIN_PLAYERS} and {MAX_PLAYERS}.",
            )
        if len(set(players)) != len(players):
            raise PydanticCustomError(REQUEST_ERROR, "availablePlayerIds must not contain duplicates.")
        return players

    @field_validator("opponent_rounds", "opponent_roster", mode="before")
    @classmethod
    def _known_opponent_only(cls, value: Any, info: ValidationInfo) -> Any:
        if info.data.get("mode") != "known_opponent":
            return None
        if not isinstance(value, list):
            wire_name = cls.model_fields[info.field_name].alias
            raise PydanticCustomError(
                REQUEST_ERROR, f"{wire_name} must be an array when mode is known_opponent."
            )
        return value

    @field_validator("opponent_rounds")
    @classmethod
    def _check_rounds(cls, rounds: Optional[List[OpponentRoundSchema]]):
        if rounds is None:
            return None
        if len(rounds) != TOTAL_ROUNDS:
            raise PydanticCustomError(
                REQUEST_ERROR, f"opponentRounds must include exactly {TOTAL_ROUNDS} rounds."
            )
        if len({r.round_number for r in rounds}) != len(rounds):
            raise PydanticCustomError(
                REQUEST_ERROR, "opponentRounds must not include duplicate roundNumber values."
            )
        return sorted(rounds, key=lambda r: r.round_number)

    @model_validator(mode="after")
    def _check_opponent_genders(self) -> "RecommendRequest":
        """Every scheduled opponent has a gender that fits the slot type."""
        if self.mode != "known_opponent":
            return self

        # features imports this module
        from lineuplab.features.definitions import normalize_gender

        genders = {}
        for entry in self.opponent_roster or []:
            gender = normalize_gender(entry.gender)
            if gender:
                genders[entry.player_id] = gender

        for round_ in self.opponent_rounds or []:
            for game in round_.games:
                pair = (
                    genders.get(game.opponent_player_a_id),
                    genders.get(game.opponent_player_b_id),
                )
                if None in pair:
                    message = "Opponent roster must include gender for all players in opponent assignments."
                elif game.match_type == "mixed" and set(pair) != {"male", "female"}:
                    message = "Mixed slots must have one male and one female opponent."
                elif game.match_type == "female" and pair != ("female", "female"):
                    message = "Female slots must have two female opponents."
                elif game.match_type == "male" and pair != ("male", "male"):
                    message = "Male slots must have two male opponents."
                else:
                    continue
                raise PydanticCustomError(REQUEST_ERROR, message)
        return self
