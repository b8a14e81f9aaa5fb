"""Pytest fixtures/config for Lineup Lab tests."""

import os
import sys
from itertools import combinations

import pytest


def pytest_sessionstart(session) -> None:  # type: ignore[unused-argument]
    repo_root = os.path.dirname(os.path.dirname(__file__))
    src_path = os.path.join(repo_root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


def uid(n: int) -> str:
    return f"00000000-0000-4000-8000-{n:012d}"


DIVISION_ID = "11111111-1111-4111-8111-111111111111"
TEAM_ID = "22222222-2222-4222-8222-222222222222"
OPP_TEAM_ID = "33333333-3333-4333-8333-333333333333"
MATCHUP_ID = "44444444-4444-4444-8444-444444444444"

# Ours: 1-4 male, 5-8 female. Theirs: 101-104 male, 105-108 female.
OUR_MALES = [uid(i) for i in range(1, 5)]
OUR_FEMALES = [uid(i) for i in range(5, 9)]
OPP_MALES = [uid(i) for i in range(101, 105)]
OPP_FEMALES = [uid(i) for i in range(105, 109)]

OPP_MIXED = [(OPP_MALES[i], OPP_FEMALES[i]) for i in range(4)]
OPP_FEMALE_PAIRS = [(OPP_FEMALES[0], OPP_FEMALES[1]), (OPP_FEMALES[2], OPP_FEMALES[3])]
OPP_MALE_PAIRS = [(OPP_MALES[0], OPP_MALES[1]), (OPP_MALES[2], OPP_MALES[3])]


def _win_rate(a: str, b: str) -> float:
    """Deterministic spread of win rates in [0.35, 0.71]."""
    seed = int(a[-3:]) * 7 + int(b[-3:]) * 3
    return round(0.35 + 0.04 * (seed % 10), 3)


def build_players_catalog():
    catalog = []
    for i, pid in enumerate(OUR_MALES + OPP_MALES):
        catalog.append({"player_id": pid, "display_name": f"Male {i}", "gender": "M"})
    for i, pid in enumerate(OUR_FEMALES + OPP_FEMALES):
        catalog.append({"player_id": pid, "display_name": f"Female {i}", "gender": "female"})
    return catalog


def build_bundle_payload():
    players = OUR_MALES + OUR_FEMALES
    candidates = []
    for a, b in combinations(sorted(players), 2):
        rate = _win_rate(a, b)
        candidates.append({
            "pair_player_low_id": a,
            "pair_player_high_id": b,
            "pair_key": f"{a}:{b}",
            "win_rate_shrunk": rate,
            "pd_win_probability": min(0.95, rate + 0.05),
            "sample_reliability": 0.8,
        })

    def scenario(sid, probability, mixed, female, male):
        pairs = [{"match_type": "mixed", "pair_player_low_id": x, "pair_player_high_id": y} for x, y in mixed]
        pairs += [{"match_type": "female", "pair_player_low_id": x, "pair_player_high_id": y} for x, y in female]
        pairs += [{"match_type": "male", "pair_player_low_id": x, "pair_player_high_id": y} for x, y in male]
        return {"scenario_id": sid, "scenario_probability": probability, "scenario_pairs": pairs}

    return {
        "candidate_pairs": candidates,
        "opponent_scenarios": [
            scenario("s1", 0.5, OPP_MIXED[:2], OPP_FEMALE_PAIRS[:1], OPP_MALE_PAIRS[:1]),
            scenario("s2", 0.3, OPP_MIXED[2:], OPP_FEMALE_PAIRS[1:], OPP_MALE_PAIRS[1:]),
            scenario("s3", 0.2, OPP_MIXED, OPP_FEMALE_PAIRS, OPP_MALE_PAIRS),
        ],
        "pair_matchups": [],
        "players_catalog": build_players_catalog(),
        "generated_at": "2026-03-01T12:00:00+00:00",
        "max_last_seen_at": "2026-03-01T06:00:00+00:00",
        "data_staleness_hours": 6.0,
    }


def build_opponent_rounds():
    rounds = []
    for round_number in range(1, 9):
        if round_number % 2 == 1:
            slots = [("mixed", pair) for pair in OPP_MIXED]
        else:
            slots = [("female", OPP_FEMALE_PAIRS[0]), ("female", OPP_FEMALE_PAIRS[1]),
                     ("male", OPP_MALE_PAIRS[0]), ("male", OPP_MALE_PAIRS[1])]
        rounds.append({
            "roundNumber": round_number,
            "games": [
                {
                    "roundNumber": round_number,
                    "slotNumber": slot + 1,
                    "matchType": match_type,
                    "opponentPlayerAId": pair[0],
                    "opponentPlayerBId": pair[1],
                }
                for slot, (match_type, pair) in enumerate(slots)
            ],
        })
    return rounds


def build_opponent_roster():
    return (
        [{"playerId": pid, "gender": "male"} for pid in OPP_MALES]
        + [{"playerId": pid, "gender": "female"} for pid in OPP_FEMALES]
    )


def build_request_payload(mode: str = "blind", **overrides):
    payload = {
        "divisionId": DIVISION_ID,
        "seasonYear": 2026,
        "seasonNumber": 1,
        "teamId": TEAM_ID,
        "oppTeamId": OPP_TEAM_ID,
        "matchupId": MATCHUP_ID,
        "availablePlayerIds": OUR_MALES + OUR_FEMALES,
        "mode": mode,
        "objective": "MAX_EXPECTED_WINS",
        "maxRecommendations": 3,
        "downsideQuantile": 0.2,
        "scenarioLimit": 12,
    }
    if mode == "known_opponent":
        payload["opponentRounds"] = build_opponent_rounds()
        payload["opponentRoster"] = build_opponent_roster()
    payload.update(overrides)
    return payload


@pytest.fixture
def bundle_payload():
    return build_bundle_payload()


@pytest.fixture
def bundle(bundle_payload):
    from lineuplab.data.schemas import FeatureBundle

    return FeatureBundle.from_payload(bundle_payload)


@pytest.fixture
def request_payload():
    """Factory: request_payload(mode="blind", **overrides) -> dict."""
    return build_request_payload


@pytest.fixture
def blind_request():
    from lineuplab.data.schemas import RecommendRequest

    return RecommendRequest.model_validate(build_request_payload("blind"))


@pytest.fixture
def known_request():
    from lineuplab.data.schemas import RecommendRequest

    return RecommendRequest.model_validate(build_request_payload("known_opponent"))


@pytest.fixture
def no_adjustments():
    from lineuplab.config import ScoringConfig

    return ScoringConfig(enable_dupr_blend=False, enable_team_strength=False)


@pytest.fixture
def roster():
    """Player ids used by the shared fixtures."""
    return {
        "our_males": list(OUR_MALES),
        "our_females": list(OUR_FEMALES),
        "opp_males": list(OPP_MALES),
        "opp_females": list(OPP_FEMALES),
        "opp_mixed": list(OPP_MIXED),
        "opp_female_pairs": list(OPP_FEMALE_PAIRS),
        "opp_male_pairs": list(OPP_MALE_PAIRS),
        "uid": uid,
    }
