"""Statistic column definitions and gender normalization.

Candidate-pair rows carry one win rate per match type plus an overall one.
Which column feeds a given match type is fixed here so every scorer resolves
statistics the same way:

- win rate: "<type>_win_rate_shrunk" -> "win_rate_shrunk" -> "<type>_win_rate"
- point-differential probability: "<type>_pd_win_probability" -> "pd_win_probability"

Shrunk estimates come first because raw rates from a handful of games swing
wildly.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from lineuplab.config import MATCH_TYPES

MALE = "male"
FEMALE = "female"

GENDER_ALIASES: Dict[str, str] = {
    "m": MALE,
    "male": MALE,
    "man": MALE,
    "f": FEMALE,
    "female": FEMALE,
    "woman": FEMALE,
    "women": FEMALE,
}

WIN_RATE_COLUMNS: Dict[str, List[str]] = {
    match_type: [
        f"{match_type}_win_rate_shrunk",
        "win_rate_shrunk",
        f"{match_type}_win_rate",
    ]
    for match_type in MATCH_TYPES
}

PD_COLUMNS: Dict[str, List[str]] = {
    match_type: [f"{match_type}_pd_win_probability", "pd_win_probability"]
    for match_type in MATCH_TYPES
}


def normalize_gender(value: object) -> Optional[str]:
    """Map free-form gender labels to "male"/"female", else None."""
    if not isinstance(value, str):
        return None
    return GENDER_ALIASES.get(value.strip().lower())


def pair_match_type(gender_a: Optional[str], gender_b: Optional[str]) -> Optional[str]:
    """Match type a pair can play, or None when either gender is unknown."""
    if gender_a is None or gender_b is None:
        return None
    if gender_a == gender_b:
        return gender_a
    return "mixed"


__all__ = [
    "MALE",
    "FEMALE",
    "GENDER_ALIASES",
    "WIN_RATE_COLUMNS",
    "PD_COLUMNS",
    "normalize_gender",
    "pair_match_type",
]
