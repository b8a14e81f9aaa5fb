"""Tests for offline calibration of the win-probability blend."""

import json
import math

import pytest

from lineuplab.analysis.calibration import (
    blended_probabilities,
    compute_metrics,
    holdout_frame,
    load_holdout,
    summarize_calibration,
)


def _record(match_type, win_rate, pd, actual, week=1, reliability=0.8, correlation=0.5):
    return {
        "week": week,
        "matchType": match_type,
        "winRateShrunk": win_rate,
        "pdWinProbability": pd,
        "sampleReliability": reliability,
        "signalCorrelation": correlation,
        "actualWin": actual,
    }


@pytest.fixture
def records():
    return [
        _record("mixed", 0.7, 0.8, 1),
        _record("mixed", 0.4, 0.3, 0),
        _record("female", 0.6, 0.7, 1, week=2),
        _record("female", 0.55, 0.4, 0, week=2),
        _record("male", 0.3, 0.2, 0, week=3, correlation=None),
        _record("male", 0.65, 0.75, 1, week=3),
    ]


class TestComputeMetrics:
    def test_known_values(self):
        metrics = compute_metrics([0.8, 0.2], [1, 0])
        assert metrics.count == 2
        assert metrics.brier == pytest.approx(0.04)
        assert metrics.log_loss == pytest.approx(-math.log(0.8))

    def test_probabilities_clipped(self):
        metrics = compute_metrics([1.0, 0.0], [0, 1])
        assert math.isfinite(metrics.log_loss)
        assert metrics.log_loss == pytest.approx(-math.log(0.01))

    def test_empty(self):
        metrics = compute_metrics([], [])
        assert metrics.to_dict() == {"count": 0, "brier": 0.0, "log_loss": 0.0}


class TestHoldoutFrame:
    def test_filters_unusable_rows(self, records):
        records += [
            _record("singles", 0.5, 0.5, 1),
            _record("mixed", None, 0.5, 1),
            _record("mixed", 0.5, 0.5, 2),
            _record("mixed", 0.5, 0.5, 1, week=None),
            "not a record",
        ]
        df = holdout_frame(records)
        assert len(df) == 6
        assert set(df["match_type"]) == {"mixed", "female", "male"}

    def test_load_holdout(self, tmp_path, records):
        path = tmp_path / "holdout.json"
        path.write_text(json.dumps(records))
        assert len(load_holdout(path)) == 6

    def test_load_holdout_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_holdout(tmp_path / "missing.json")

        path = tmp_path / "object.json"
        path.write_text(json.dumps({"rows": []}))
        with pytest.raises(ValueError, match="not an array"):
            load_holdout(path)


class TestSummarizeCalibration:
    def test_report_shape(self, records):
        report = summarize_calibration(holdout_frame(records))

        assert report["sample_size"] == 6
        assert set(report["by_match_type"]) == {"mixed", "female", "male"}
        for match_type in ("mixed", "female", "male"):
            assert report["by_match_type"][match_type]["baseline"]["count"] == 2
        assert report["delta"]["brier"] == pytest.approx(
            report["blended"]["brier"] - report["baseline"]["brier"], abs=1e-6
        )

    def test_blend_stays_in_calibration_range(self, records):
        probabilities = blended_probabilities(holdout_frame(records))
        assert len(probabilities) == 6
        assert ((probabilities >= 0.01) & (probabilities <= 0.99)).all()

    def test_informative_pd_signal_helps(self, records):
        report = summarize_calibration(holdout_frame(records))
        assert report["delta"]["brier"] < 0
