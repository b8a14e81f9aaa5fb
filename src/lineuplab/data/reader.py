"""Feature bundle providers.

BundleReader reads a request's feature bundle from the local SQLite feature
database. The connection is an explicit resource: open() before use and
close() after, or use the reader as a context manager. load_bundle_json()
reads a bundle exported as JSON.

Key Methods:
    query() - Execute raw SQL and return list of dicts
    fetch_feature_bundle() - Everything the optimizer needs for one request

Usage:
    from lineuplab.data import BundleReader

    with BundleReader() as reader:
        bundle = reader.fetch_feature_bundle(request)
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from lineuplab.config import DEFAULT_DB_PATH
from lineuplab.data import queries as Q
from lineuplab.data.schemas import FeatureBundle, RecommendRequest

logger = logging.getLogger(__name__)


def _dict_factory(cursor, row):
    mapping = {}
    for idx, col in enumerate(cursor.description):
        mapping[col[0]] = row[idx]
    return mapping


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def staleness_hours(max_last_seen_at: Optional[str], now: datetime) -> Optional[float]:
    last_seen = parse_timestamp(max_last_seen_at)
    if last_seen is None:
        return None
    return max(0.0, (now - last_seen).total_seconds() / 3600.0)


class BundleReader:
    """SQLite client for feature bundles."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        self.db_path = str(db_path or DEFAULT_DB_PATH)
        if not os.path.exists(self.db_path):
            raise FileNotFoundError(f"Database not found: {self.db_path}")
        self._connection: Optional[sqlite3.Connection] = None

    def open(self) -> "BundleReader":
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = _dict_factory
        return self

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def __enter__(self) -> "BundleReader":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Execute raw SQL and return list of dicts."""
        if self._connection is None:
            raise RuntimeError("BundleReader is closed; call open() first")
        cur = self._connection.execute(sql, tuple(params))
        return cur.fetchall()

    # -------------------------------------------------------------------------
    # Bundle
    # -------------------------------------------------------------------------

    def fetch_feature_bundle(
        self,
        request: RecommendRequest,
        now: Optional[datetime] = None,
    ) -> FeatureBundle:
        """Fetch the statistics for one request.

        Candidate pairs and head-to-head rows are restricted to pairs of
        available players; scenarios are the `scenario_limit` most likely.

        Args:
            request: Validated recommend request
            now: Reference time for staleness (default: current UTC time)

        Returns:
            FeatureBundle
        """
        now = now or datetime.now(timezone.utc)
        season = (request.division_id, request.season_year, request.season_number)
        available = set(request.available_player_ids)

        candidates = [
            row for row in self.query(Q.CANDIDATE_PAIRS, season + (request.team_id,))
            if row["pair_player_low_id"] in available and row["pair_player_high_id"] in available
        ]
        matchups = [
            row for row in self.query(Q.PAIR_MATCHUPS, season + (request.team_id, request.opp_team_id))
            if row["our_pair_low_id"] in available and row["our_pair_high_id"] in available
        ]
        scenarios = self._scenarios(season, request.opp_team_id, request.scenario_limit)
        players = self._players(request)
        strength_delta = self._strength_delta(season, request.team_id, request.opp_team_id)

        last_seen_rows = self.query(Q.MAX_LAST_SEEN, season + (request.team_id,) + season + (request.team_id,))
        max_last_seen_at = last_seen_rows[0]["max_last_seen_at"] if last_seen_rows else None

        logger.info(
            f"Fetched bundle: {len(candidates)} candidate pairs, {len(scenarios)} scenarios, "
            f"{len(matchups)} matchups, {len(players)} players"
        )
        return FeatureBundle.from_payload({
            "candidate_pairs": candidates,
            "opponent_scenarios": scenarios,
            "pair_matchups": matchups,
            "players_catalog": players,
            "team_strength": {"strength_delta": strength_delta},
            "generated_at": now.isoformat(),
            "max_last_seen_at": max_last_seen_at,
            "data_staleness_hours": staleness_hours(max_last_seen_at, now),
            "counts": {
                "candidate_pairs": len(candidates),
                "opponent_scenarios": len(scenarios),
                "pair_matchups": len(matchups),
                "players": len(players),
            },
        })

    def _scenarios(self, season: tuple, opp_team_id: Optional[str], limit: int) -> List[Dict]:
        top = self.query(Q.TOP_SCENARIOS, season + (opp_team_id, limit))
        if not top:
            return []
        ids = [row["scenario_id"] for row in top]
        sql = Q.SCENARIO_PAIRS_BY_IDS.format(placeholders=",".join("?" * len(ids)))
        pairs_by_scenario: Dict[str, List[Dict]] = {sid: [] for sid in ids}
        for row in self.query(sql, ids):
            pairs_by_scenario[row["scenario_id"]].append(row)
        return [
            {
                "scenario_id": row["scenario_id"],
                "scenario_probability": row["scenario_probability"],
                "scenario_pairs": pairs_by_scenario[row["scenario_id"]],
            }
            for row in top
        ]

    def _players(self, request: RecommendRequest) -> List[Dict]:
        ids = set(request.available_player_ids)
        for entry in request.opponent_roster or []:
            ids.add(entry.player_id)
        rows = {}
        if ids:
            ordered = sorted(ids)
            sql = Q.PLAYERS_BY_IDS.format(placeholders=",".join("?" * len(ordered)))
            for row in self.query(sql, ordered):
                rows[row["player_id"]] = row
        for row in self.query(Q.PLAYERS_BY_TEAM, (request.opp_team_id,)):
            rows.setdefault(row["player_id"], row)
        return [rows[k] for k in sorted(rows)]

    def _strength_delta(
        self, season: tuple, team_id: Optional[str], opp_team_id: Optional[str]
    ) -> Optional[float]:
        ours = self.query(Q.TEAM_STRENGTH, season + (team_id,))
        theirs = self.query(Q.TEAM_STRENGTH, season + (opp_team_id,))
        if not ours or not theirs:
            return None
        if ours[0]["strength"] is None or theirs[0]["strength"] is None:
            return None
        return float(ours[0]["strength"]) - float(theirs[0]["strength"])


def load_bundle_json(path: Union[str, Path]) -> FeatureBundle:
    """Read a feature bundle exported as JSON.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bundle file not found: {path}")
    with open(path) as f:
        return FeatureBundle.from_payload(json.load(f))


__all__ = ["BundleReader", "load_bundle_json", "parse_timestamp", "staleness_hours"]
