"""Offline calibration of the win-probability blend.

Compares the baseline signal (shrunk win rate alone) against the blended
signal on held-out game results, overall and per match type. Lower is
better for both metrics.

Key Classes:
    CalibrationMetrics - Brier score and log loss for one slice

Key Functions:
    load_holdout() - Read and clean a holdout JSON dataset
    compute_metrics() - Brier / log loss for probabilities vs outcomes
    summarize_calibration() - Baseline vs blended report

Usage:
    from lineuplab.analysis.calibration import load_holdout, summarize_calibration

    df = load_holdout("holdout.json")
    report = summarize_calibration(df)
    print(report["delta"])
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import brier_score_loss, log_loss

from lineuplab.config import CALIBRATION_CEILING, CALIBRATION_FLOOR, MATCH_TYPES
from lineuplab.models.blend import blend_win_probability

HOLDOUT_COLUMNS = {
    "week": "week",
    "matchType": "match_type",
    "winRateShrunk": "win_rate_shrunk",
    "pdWinProbability": "pd_win_probability",
    "sampleReliability": "sample_reliability",
    "signalCorrelation": "signal_correlation",
    "actualWin": "actual_win",
}


@dataclass
class CalibrationMetrics:
    """Probability calibration for one slice of games."""

    count: int
    brier: float
    log_loss: float

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "brier": round(self.brier, 6),
            "log_loss": round(self.log_loss, 6),
        }


def _clip(probabilities: Sequence[float]) -> np.ndarray:
    p = np.asarray(probabilities, dtype=float)
    p = np.where(np.isfinite(p), p, 0.5)
    return np.clip(p, CALIBRATION_FLOOR, CALIBRATION_CEILING)


def compute_metrics(probabilities: Sequence[float], outcomes: Sequence[int]) -> CalibrationMetrics:
    """Brier score and log loss; zeros for an empty slice."""
    if len(outcomes) == 0:
        return CalibrationMetrics(0, 0.0, 0.0)
    y_true = np.asarray(outcomes, dtype=int)
    y_prob = _clip(probabilities)
    return CalibrationMetrics(
        count=len(y_true),
        brier=float(brier_score_loss(y_true, y_prob, pos_label=1)),
        log_loss=float(log_loss(y_true, y_prob, labels=[0, 1])),
    )


def load_holdout(path: Union[str, Path]) -> pd.DataFrame:
    """Load holdout records, dropping rows that are not usable.

    A usable row has a numeric week, a known match type, numeric win rate
    and point-differential probability, and an actual result of 0 or 1.

    Raises:
        FileNotFoundError: If the dataset does not exist
        ValueError: If the file is not a JSON array
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")
    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Dataset is not an array: {path}")
    return holdout_frame(raw)


def holdout_frame(records: Sequence[Any]) -> pd.DataFrame:
    rows = [r for r in records if isinstance(r, dict)]
    df = pd.DataFrame(rows, columns=list(HOLDOUT_COLUMNS)).rename(columns=HOLDOUT_COLUMNS)
    if df.empty:
        return df

    for col in ("week", "win_rate_shrunk", "pd_win_probability", "sample_reliability", "signal_correlation"):
        df[col] = pd.to_numeric(df[col], errors="coerce")

    valid = (
        df["week"].notna()
        & df["match_type"].isin(MATCH_TYPES)
        & df["win_rate_shrunk"].notna()
        & df["pd_win_probability"].notna()
        & df["actual_win"].isin([0, 1])
    )
    df = df[valid].copy()
    df["actual_win"] = df["actual_win"].astype(int)
    df["sample_reliability"] = df["sample_reliability"].fillna(0.0)
    return df.reset_index(drop=True)


def blended_probabilities(df: pd.DataFrame) -> np.ndarray:
    """Blend each holdout row with the calibration clamp."""
    return np.array([
        blend_win_probability(
            row.win_rate_shrunk,
            row.pd_win_probability,
            row.sample_reliability,
            None if pd.isna(row.signal_correlation) else row.signal_correlation,
            floor=CALIBRATION_FLOOR,
            ceiling=CALIBRATION_CEILING,
        )
        for row in df.itertuples(index=False)
    ], dtype=float)


def _slice_report(df: pd.DataFrame) -> Dict[str, Dict]:
    outcomes = df["actual_win"].to_numpy() if not df.empty else []
    baseline = compute_metrics(df["win_rate_shrunk"].to_numpy() if not df.empty else [], outcomes)
    blended = compute_metrics(blended_probabilities(df) if not df.empty else [], outcomes)
    return {"baseline": baseline.to_dict(), "blended": blended.to_dict()}


def summarize_calibration(df: pd.DataFrame) -> Dict[str, Any]:
    """Baseline vs blended metrics, overall and per match type."""
    overall = _slice_report(df)
    return {
        "sample_size": int(len(df)),
        "baseline": overall["baseline"],
        "blended": overall["blended"],
        "delta": {
            "brier": round(overall["blended"]["brier"] - overall["baseline"]["brier"], 6),
            "log_loss": round(overall["blended"]["log_loss"] - overall["baseline"]["log_loss"], 6),
        },
        "by_match_type": {
            match_type: _slice_report(
                df[df["match_type"] == match_type] if not df.empty else df
            )
            for match_type in MATCH_TYPES
        },
    }


__all__ = [
    "CalibrationMetrics",
    "compute_metrics",
    "load_holdout",
    "holdout_frame",
    "blended_probabilities",
    "summarize_calibration",
]
