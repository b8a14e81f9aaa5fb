"""Recommend request validation.

Runs an untrusted request body through the RecommendRequest model and turns
every pydantic error into one readable message, so a caller can fix
everything in one round trip. Defaults are filled in for optional fields
(maxRecommendations 3, downsideQuantile 0.2, scenarioLimit 12).

Usage:
    from lineuplab.data.validation import parse_recommend_request

    result = parse_recommend_request(payload)
    if not result.ok:
        print(result.errors)
    request = result.request
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from lineuplab.config import (
    MAX_RECOMMENDATIONS,
    MAX_SCENARIOS,
    MIN_SCENARIOS,
    SLOTS_PER_ROUND,
    TOTAL_ROUNDS,
)
from lineuplab.data.schemas import REQUEST_ERROR, RecommendRequest, uuid_string

# Error location (list indexes as "*") -> message
ERROR_MESSAGES: Dict[Tuple[str, ...], str] = {
    (): "Request body must be an object.",
    ("divisionId",): "divisionId must be a valid UUID.",
    ("teamId",): "teamId must be a valid UUID.",
    ("oppTeamId",): "oppTeamId must be a valid UUID.",
    ("matchupId",): "matchupId must be a valid UUID.",
    ("seasonYear",): "seasonYear must be a valid integer year.",
    ("seasonNumber",): "seasonNumber must be a positive integer.",
    ("mode",): "mode must be blind or known_opponent.",
    ("objective",): "objective must be MAX_EXPECTED_WINS or MINIMIZE_DOWNSIDE.",
    ("availablePlayerIds",): "availablePlayerIds must be an array of UUIDs.",
    ("availablePlayerIds", "*"): "availablePlayerIds must include only valid UUIDs.",
    ("maxRecommendations",): f"maxRecommendations must be between 1 and {MAX_RECOMMENDATIONS}.",
    ("downsideQuantile",): "downsideQuantile must be between 0 and 1.",
    ("scenarioLimit",): f"scenarioLimit must be between {MIN_SCENARIOS} and {MAX_SCENARIOS}.",
    ("opponentRounds", "*"): "Each opponent round must be an object.",
    ("opponentRounds", "*", "roundNumber"):
        f"Each opponent round must include a valid roundNumber (1-{TOTAL_ROUNDS}).",
    ("opponentRounds", "*", "games"): "Each opponent round must include a games array.",
    ("opponentRounds", "*", "games", "*"): "Each opponent game assignment must be an object.",
    ("opponentRounds", "*", "games", "*", "roundNumber"):
        "Each opponent game roundNumber must match its parent roundNumber.",
    ("opponentRounds", "*", "games", "*", "slotNumber"):
        f"Each opponent game must include slotNumber between 1 and {SLOTS_PER_ROUND}.",
    ("opponentRounds", "*", "games", "*", "matchType"):
        "Each opponent game matchType must be mixed, female, or male.",
    ("opponentRounds", "*", "games", "*", "opponentPlayerAId"):
        "Opponent slot players must be valid UUIDs.",
    ("opponentRounds", "*", "games", "*", "opponentPlayerBId"):
        "Opponent slot players must be valid UUIDs.",
    ("opponentRoster", "*"): "Each opponentRoster entry must be an object with playerId and gender.",
    ("opponentRoster", "*", "playerId"): "Each opponentRoster entry must have a valid playerId (UUID).",
    ("opponentRoster", "*", "gender"): "Each opponentRoster entry gender must be a string.",
}


def is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid_string(value)
    except ValueError:
        return False
    return True


@dataclass
class ValidationResult:
    request: Optional[RecommendRequest] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and self.request is not None


def error_message(error: Dict[str, Any]) -> str:
    """Readable message for one pydantic error entry."""
    if error["type"] == REQUEST_ERROR:
        return error["msg"]
    path = tuple("*" if isinstance(part, int) else str(part) for part in error["loc"])
    if path in ERROR_MESSAGES:
        return ERROR_MESSAGES[path]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}"


def parse_recommend_request(payload: Any) -> ValidationResult:
    """Validate a recommend request body.

    Args:
        payload: Decoded JSON body

    Returns:
        ValidationResult with the parsed request, or every error found
    """
    try:
        request = RecommendRequest.model_validate(payload)
    except ValidationError as e:
        errors: List[str] = []
        for error in e.errors():
            message = error_message(error)
            if message not in errors:
                errors.append(message)
        return ValidationResult(errors=errors)
    return ValidationResult(request=request)


__all__ = ["ValidationResult", "parse_recommend_request", "error_message", "is_uuid"]
