"""Tests for recommend request validation.

CONTRACT:
    - Every violated constraint is reported, not just the first
    - Optional fields get their defaults
    - known_opponent requests need a full, gender-consistent schedule
"""

import pytest

from lineuplab.data.validation import is_uuid, parse_recommend_request


def _errors(payload):
    result = parse_recommend_request(payload)
    assert not result.ok
    assert result.request is None
    return result.errors


class TestValidRequests:
    """Requests that pass."""

    def test_blind_request(self, request_payload):
        result = parse_recommend_request(request_payload("blind"))
        assert result.ok
        assert result.errors == []
        assert result.request.mode == "blind"
        assert len(result.request.available_player_ids) == 8

    def test_defaults_filled(self, request_payload):
        payload = request_payload("blind")
        for key in ("maxRecommendations", "downsideQuantile", "scenarioLimit"):
            payload.pop(key)
        request = parse_recommend_request(payload).request

        assert request.max_recommendations == 3
        assert request.downside_quantile == 0.2
        assert request.scenario_limit == 12

    def test_known_opponent_request(self, request_payload, roster):
        result = parse_recommend_request(request_payload("known_opponent"))
        assert result.ok, result.errors

        rounds = result.request.opponent_rounds
        assert [r.round_number for r in rounds] == list(range(1, 9))
        first = rounds[0].games[0]
        assert first.match_type == "mixed"
        assert first.opponent_player_a_id == roster["opp_mixed"][0][0]
        assert len(result.request.opponent_roster) == 8

    def test_rounds_sorted(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"].reverse()
        for round_ in payload["opponentRounds"]:
            round_["games"].reverse()
        request = parse_recommend_request(payload).request

        assert [r.round_number for r in request.opponent_rounds] == list(range(1, 9))
        assert [g.slot_number for g in request.opponent_rounds[0].games] == [1, 2, 3, 4]

    def test_blind_ignores_opponent_fields(self, request_payload):
        payload = request_payload("blind", opponentRounds="not checked")
        assert parse_recommend_request(payload).ok


class TestInvalidRequests:
    """Error messages."""

    def test_body_must_be_object(self):
        assert _errors([1, 2]) == ["Request body must be an object."]

    def test_collects_every_error(self, request_payload):
        errors = _errors(request_payload(
            "chaos", divisionId="nope", seasonYear=1999, objective="WIN"
        ))
        assert "divisionId must be a valid UUID." in errors
        assert "seasonYear must be a valid integer year." in errors
        assert "mode must be blind or known_opponent." in errors
        assert "objective must be MAX_EXPECTED_WINS or MINIMIZE_DOWNSIDE." in errors

    def test_same_team(self, request_payload):
        payload = request_payload("blind")
        payload["oppTeamId"] = payload["teamId"]
        assert "teamId and oppTeamId must be different." in _errors(payload)

    def test_season_number(self, request_payload):
        assert "seasonNumber must be a positive integer." in _errors(
            request_payload("blind", seasonNumber=0)
        )

    @pytest.mark.parametrize("count", [6, 7, 9, 22])
    def test_player_count(self, request_payload, roster, count):
        players = [roster["uid"](i) for i in range(1, count + 1)]
        errors = _errors(request_payload("blind", availablePlayerIds=players))
        assert (
            "availablePlayerIds must include an even number of players between 8 and 20."
            in errors
        )

    def test_players_must_be_uuids(self, request_payload, roster):
        players = [roster["uid"](i) for i in range(1, 8)] + ["bob"]
        assert "availablePlayerIds must include only valid UUIDs." in _errors(
            request_payload("blind", availablePlayerIds=players)
        )

    def test_players_not_array(self, request_payload):
        assert _errors(request_payload("blind", availablePlayerIds="all")) == [
            "availablePlayerIds must be an array of UUIDs."
        ]

    def test_duplicate_players(self, request_payload, roster):
        players = [roster["uid"](i) for i in range(1, 8)] + [roster["uid"](1)]
        assert "availablePlayerIds must not contain duplicates." in _errors(
            request_payload("blind", availablePlayerIds=players)
        )

    @pytest.mark.parametrize("field, value, message", [
        ("maxRecommendations", 11, "maxRecommendations must be between 1 and 10."),
        ("maxRecommendations", 0, "maxRecommendations must be between 1 and 10."),
        ("downsideQuantile", 1.0, "downsideQuantile must be between 0 and 1."),
        ("downsideQuantile", 0, "downsideQuantile must be between 0 and 1."),
        ("scenarioLimit", 31, "scenarioLimit must be between 1 and 30."),
        ("scenarioLimit", 2.5, "scenarioLimit must be between 1 and 30."),
    ])
    def test_numeric_bounds(self, request_payload, field, value, message):
        assert message in _errors(request_payload("blind", **{field: value}))


class TestKnownOpponentValidation:
    """Opponent schedule and roster checks."""

    def test_missing_schedule_and_roster(self, request_payload):
        payload = request_payload("known_opponent")
        del payload["opponentRounds"], payload["opponentRoster"]
        errors = _errors(payload)
        assert "opponentRounds must be an array when mode is known_opponent." in errors
        assert "opponentRoster must be an array when mode is known_opponent." in errors

    def test_round_count(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"] = payload["opponentRounds"][:7]
        assert "opponentRounds must include exactly 8 rounds." in _errors(payload)

    def test_duplicate_round(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][1] = payload["opponentRounds"][0]
        assert "opponentRounds must not include duplicate roundNumber values." in _errors(payload)

    def test_game_count(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][0]["games"].pop()
        assert "Each opponent round must include exactly 4 games." in _errors(payload)

    def test_slot_pattern(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][0]["games"][0]["matchType"] = "female"
        assert "opponentRounds slot pattern mismatch at round 1, slot 1." in _errors(payload)

    def test_duplicate_slot(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][0]["games"][1]["slotNumber"] = 1
        assert "Opponent game slotNumber values must be unique per round." in _errors(payload)

    def test_game_round_number_must_match(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][0]["games"][0]["roundNumber"] = 2
        assert "Each opponent game roundNumber must match its parent roundNumber." in _errors(payload)

    def test_same_opponent_twice_in_game(self, request_payload):
        payload = request_payload("known_opponent")
        game = payload["opponentRounds"][0]["games"][0]
        game["opponentPlayerBId"] = game["opponentPlayerAId"]
        assert "Opponent slot players must be different within a game." in _errors(payload)

    def test_roster_must_cover_assigned_players(self, request_payload, roster):
        payload = request_payload("known_opponent")
        payload["opponentRoster"] = [
            e for e in payload["opponentRoster"] if e["playerId"] != roster["opp_males"][0]
        ]
        assert (
            "Opponent roster must include gender for all players in opponent assignments."
            in _errors(payload)
        )

    def test_gender_must_fit_slot(self, request_payload, roster):
        payload = request_payload("known_opponent")
        for entry in payload["opponentRoster"]:
            if entry["playerId"] == roster["opp_males"][0]:
                entry["gender"] = "female"
        assert _errors(payload) == ["Mixed slots must have one male and one female opponent."]

    def test_female_slot_needs_two_women(self, request_payload, roster):
        payload = request_payload("known_opponent")
        payload["opponentRounds"][1]["games"][0]["opponentPlayerBId"] = roster["opp_males"][0]
        assert _errors(payload) == ["Female slots must have two female opponents."]

    def test_roster_gender_labels_normalized(self, request_payload):
        payload = request_payload("known_opponent")
        for entry in payload["opponentRoster"]:
            entry["gender"] = entry["gender"][0].upper()
        assert parse_recommend_request(payload).ok

    def test_schedule_ignored_for_blind(self, request_payload):
        payload = request_payload("known_opponent")
        payload["mode"] = "blind"
        request = parse_recommend_request(payload).request
        assert request.opponent_rounds is None
        assert request.opponent_roster is None

    def test_null_schedule(self, request_payload):
        payload = request_payload("known_opponent", opponentRounds=None)
        assert _errors(payload) == ["opponentRounds must be an array when mode is known_opponent."]

    def test_invalid_roster_entry(self, request_payload):
        payload = request_payload("known_opponent")
        payload["opponentRoster"].append({"playerId": "nobody", "gender": "male"})
        assert "Each opponentRoster entry must have a valid playerId (UUID)." in _errors(payload)


class TestIsUuid:
    def test_is_uuid(self, roster):
        assert is_uuid(roster["uid"](1))
        assert not is_uuid("00000000-0000-0000-0000-000000000001")
        assert not is_uuid(None)
        assert not is_uuid("{" + roster["uid"](1) + "}")
