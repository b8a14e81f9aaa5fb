#!/usr/bin/env python
"""Lineup recommendations: CLI wrapper for the decision function.

Decision Rule: rank every pairing by the request objective
(MAX_EXPECTED_WINS or MINIMIZE_DOWNSIDE) and print the best.

CONTRACT: This script MUST call run_recommendation()
from lineuplab.decisions. No alternate execution paths allowed.

The request file is a recommend request body (camelCase JSON) and is
validated before anything runs. Statistics come from either a bundle JSON
file (--bundle) or the SQLite feature database (--db, default
LINEUPLAB_DB_PATH).

Usage:
    PYTHONPATH=src python scripts/decisions/lineup_cli.py --request req.json --bundle bundle.json
    PYTHONPATH=src python scripts/decisions/lineup_cli.py --request req.json --db storage/lineup_lab.sqlite
    PYTHONPATH=src python scripts/decisions/lineup_cli.py --request req.json --bundle b.json --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from lineuplab.config import REPORTS_DIR
from lineuplab.data import BundleReader, load_bundle_json, parse_recommend_request
from lineuplab.decisions import RecommendationFormatter, run_recommendation
from lineuplab.decisions.assembler import recommendations_to_frame


def main():
    parser = argparse.ArgumentParser(description="Recommend doubles lineups")
    parser.add_argument("--request", type=Path, required=True, help="Recommend request JSON file")
    parser.add_argument("--bundle", type=Path, default=None, help="Feature bundle JSON file")
    parser.add_argument("--db", type=Path, default=None, help="SQLite feature database (default: LINEUPLAB_DB_PATH)")
    parser.add_argument("--output", type=Path, default=None, help="CSV output path (default: storage/reports/)")
    parser.add_argument("--json", action="store_true", help="Print the full response as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable info logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        with open(args.request) as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"ERROR: could not read request: {e}")
        return 1

    validation = parse_recommend_request(payload)
    if not validation.ok:
        print("ERROR: invalid request")
        for message in validation.errors:
            print(f"  - {message}")
        return 1
    request = validation.request

    try:
        if args.bundle is not None:
            response = run_recommendation(request, bundle=load_bundle_json(args.bundle))
        else:
            response = run_recommendation(request, reader=BundleReader(args.db))
    except (ValueError, FileNotFoundError, RuntimeError) as e:
        print(f"ERROR: {e}")
        return 1

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
    else:
        RecommendationFormatter(
            response.recommendations,
            response.player_directory,
            response.bundle_metadata.warning,
        ).print()

    output_path = args.output or REPORTS_DIR / f"lineup_{response.request_id[:8]}.csv"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    recommendations_to_frame(response.recommendations, response.player_directory).to_csv(
        output_path, index=False
    )
    if not args.json:
        print(f"\nSaved to {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
