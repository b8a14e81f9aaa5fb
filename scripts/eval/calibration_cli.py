#!/usr/bin/env python
"""Win-probability calibration report.

Compares the shrunk win rate alone against the point-differential blend on
a holdout dataset (JSON array of game records with week, matchType,
winRateShrunk, pdWinProbability, sampleReliability, signalCorrelation,
actualWin). Lower Brier / log loss is better.

Usage:
    PYTHONPATH=src python scripts/eval/calibration_cli.py --dataset holdout.json
    LINEUPLAB_HOLDOUT_DATASET=holdout.json PYTHONPATH=src python scripts/eval/calibration_cli.py
"""

import argparse
import json
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from lineuplab.analysis.calibration import load_holdout, summarize_calibration


def main():
    parser = argparse.ArgumentParser(description="Evaluate win-probability calibration")
    parser.add_argument(
        "--dataset",
        type=Path,
        default=os.environ.get("LINEUPLAB_HOLDOUT_DATASET"),
        help="Holdout dataset JSON (default: LINEUPLAB_HOLDOUT_DATASET)",
    )
    args = parser.parse_args()

    if args.dataset is None:
        print("ERROR: no dataset given (--dataset or LINEUPLAB_HOLDOUT_DATASET)")
        return 1

    try:
        df = load_holdout(args.dataset)
    except (ValueError, FileNotFoundError) as e:
        print(f"ERROR: {e}")
        return 1

    if df.empty:
        print("ERROR: dataset has no usable rows")
        return 1

    report = summarize_calibration(df)
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
