"""Analysis module - offline evaluation tools.

Submodules:
    calibration - Baseline vs blended win-probability calibration
"""

from lineuplab.analysis.calibration import (
    CalibrationMetrics,
    compute_metrics,
    load_holdout,
    summarize_calibration,
)

__all__ = [
    "CalibrationMetrics",
    "compute_metrics",
    "load_holdout",
    "summarize_calibration",
]
