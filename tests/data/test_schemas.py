"""Tests for bundle schemas and SQLite DDL generation."""

import logging

import pytest
from pydantic import ValidationError

from lineuplab.data.schemas import (
    CandidatePairSchema,
    FeatureBundle,
    OpponentScenarioSchema,
    PlayerCatalogSchema,
    RecommendRequest,
    schema_to_create_table,
)


class TestFeatureBundle:
    """FeatureBundle.from_payload()"""

    def test_full_payload(self, bundle):
        assert len(bundle.candidate_pairs) == 28
        assert [s.scenario_id for s in bundle.opponent_scenarios] == ["s1", "s2", "s3"]
        assert len(bundle.opponent_scenarios[2].scenario_pairs) == 8
        assert len(bundle.players_catalog) == 16
        assert bundle.data_staleness_hours == 6.0

    @pytest.mark.parametrize("payload", [None, [], "bundle", 3])
    def test_non_dict_is_empty(self, payload):
        bundle = FeatureBundle.from_payload(payload)
        assert bundle.candidate_pairs == []
        assert bundle.opponent_scenarios == []
        assert bundle.team_strength is None

    def test_non_list_sections_are_empty(self):
        bundle = FeatureBundle.from_payload({
            "candidate_pairs": {"oops": 1},
            "opponent_scenarios": "none",
            "players_catalog": None,
        })
        assert bundle.candidate_pairs == []
        assert bundle.opponent_scenarios == []
        assert bundle.players_catalog == []

    def test_malformed_rows_skipped(self, bundle_payload, caplog):
        bundle_payload["candidate_pairs"].append({"win_rate_shrunk": 0.5})
        bundle_payload["candidate_pairs"].append("not a row")
        bundle_payload["opponent_scenarios"].append({"scenario_probability": 0.1})

        with caplog.at_level(logging.WARNING):
            bundle = FeatureBundle.from_payload(bundle_payload)

        assert len(bundle.candidate_pairs) == 28
        assert len(bundle.opponent_scenarios) == 3
        assert "Skipped 2 candidate pair rows" in caplog.text

    def test_string_numbers_coerced(self):
        bundle = FeatureBundle.from_payload({
            "data_staleness_hours": "12.5",
            "team_strength": {"strength_delta": "0.3"},
            "counts": {"candidate_pairs": 4, "bad": "x"},
        })
        assert bundle.data_staleness_hours == 12.5
        assert bundle.team_strength.strength_delta == pytest.approx(0.3)
        assert bundle.counts == {"candidate_pairs": 4}


class TestRowSchemas:
    def test_player_name_fallbacks(self):
        assert PlayerCatalogSchema(player_id="p", display_name="Ana").name == "Ana"
        assert PlayerCatalogSchema(player_id="p", first_name="Ana", last_name="Lee").name == "Ana Lee"
        assert PlayerCatalogSchema(player_id="p").name is None

    def test_create_table_from_schema(self):
        sql = schema_to_create_table("candidate_pairs", CandidatePairSchema, ["team_id TEXT"])
        assert sql.startswith("CREATE TABLE IF NOT EXISTS candidate_pairs (")
        assert "pair_player_low_id TEXT" in sql
        assert "win_rate_shrunk REAL" in sql
        assert "team_id TEXT" in sql

    def test_nested_fields_skipped(self):
        sql = schema_to_create_table("opponent_scenarios", OpponentScenarioSchema)
        assert "scenario_probability REAL" in sql
        assert "scenario_pairs" not in sql


class TestRecommendRequest:
    def test_accepts_wire_and_field_names(self, request_payload):
        wire = RecommendRequest.model_validate(request_payload("blind"))
        fields = RecommendRequest(
            **wire.model_dump(exclude={"max_recommendations", "scenario_limit"}),
            max_recommendations=5,
        )
        assert wire.opp_team_id is not None
        assert fields.team_id == wire.team_id
        assert fields.max_recommendations == 5
        assert fields.scenario_limit == 12
        assert fields.objective == "MAX_EXPECTED_WINS"

    def test_rejects_out_of_range_fields(self, request_payload):
        payload = request_payload(
            "chaos",
            availablePlayerIds=["a", "b", "c"],
            objective="WIN",
            downsideQuantile=5.0,
            scenarioLimit=0,
        )
        with pytest.raises(ValidationError) as exc_info:
            RecommendRequest.model_validate(payload)

        failed = {error["loc"][0] for error in exc_info.value.errors()}
        assert {"availablePlayerIds", "mode", "objective", "downsideQuantile", "scenarioLimit"} <= failed

    def test_required_identifiers(self):
        with pytest.raises(ValidationError) as exc_info:
            RecommendRequest.model_validate({"mode": "blind", "objective": "MAX_EXPECTED_WINS"})

        missing = {error["loc"][0] for error in exc_info.value.errors() if error["type"] == "missing"}
        assert {"divisionId", "teamId", "oppTeamId", "matchupId", "availablePlayerIds"} <= missing

    def test_known_opponent_needs_schedule(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][0]["games"][0]["matchType"] = "male"
        with pytest.raises(ValidationError):
            RecommendRequest.model_validate(payload)
