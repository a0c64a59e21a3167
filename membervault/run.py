#!/usr/bin/env python3
"""
CLI entry point for batch churn scoring.

Usage:
    # Score a community from CSV table exports
    python -m membervault.run exports/

    # Tuned config, fixed reference time, write predictions
    python -m membervault.run exports/ --config configs/aggressive.yaml \
        --now 2024-06-01T00:00:00Z --output predictions.csv

    # Only show high and critical members
    python -m membervault.run exports/ --min-level high

    # List past runs
    python -m membervault.run --list
"""

import argparse
import sys
import time
from datetime import datetime
from pathlib import Path

import pandas as pd

from .config import ScoringConfig
from .logger import ScoringRunLogger, generate_run_id
from .scorer import ChurnScorer, RISK_LEVEL_ORDER

EXPORT_FILES = {
    "members": "members.csv",
    "activities": "activities.csv",
    "metrics": "engagement_metrics.csv",
    "payments": "payments.csv",
}

DATE_COLUMNS = {
    "members": ["joined_at", "last_seen_at"],
    "activities": ["created_at"],
    "metrics": ["date"],
    "payments": ["processed_at"],
}

ID_COLUMNS = {
    "members": {"id": str},
    "activities": {"member_id": str},
    "metrics": {"member_id": str},
    "payments": {"member_id": str},
}


def load_exports(data_dir: Path) -> dict[str, pd.DataFrame]:
    """
    Read the four table exports from a directory.

    Raises:
        FileNotFoundError: If any export is missing
    """
    frames = {}
    for name, filename in EXPORT_FILES.items():
        path = data_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"Missing export: {path}")
        df = pd.read_csv(path, dtype=ID_COLUMNS[name])
        for col in DATE_COLUMNS[name]:
            if col in df.columns:
                df[col] = pd.to_datetime(df[col], utc=True, format="ISO8601")
        frames[name] = df
    return frames


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Member churn risk scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m membervault.run exports/
  python -m membervault.run exports/ --config configs/aggressive.yaml
  python -m membervault.run exports/ --min-level high --output at_risk.csv
  python -m membervault.run --list
        """,
    )

    parser.add_argument(
        "data_dir",
        nargs="?",
        help="Directory with members.csv, activities.csv, "
        "engagement_metrics.csv and payments.csv",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML scoring config",
    )
    parser.add_argument(
        "--now",
        help="Reference time (ISO 8601, default: current time)",
    )
    parser.add_argument(
        "--output",
        help="Write predictions to this CSV file",
    )
    parser.add_argument(
        "--min-level",
        choices=RISK_LEVEL_ORDER,
        default="low",
        help="Only show members at or above this risk level",
    )
    parser.add_argument(
        "--logs-dir",
        default="logs",
        help="Directory for JSON run logs",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List all past runs",
    )

    args = parser.parse_args(argv)

    run_logger = ScoringRunLogger(Path(args.logs_dir))

    # List runs
    if args.list:
        df = run_logger.get_summary_dataframe()
        if df.empty:
            print("No runs found.")
        else:
            print(df.to_string(index=False))
        return 0

    if not args.data_dir:
        parser.print_help()
        return 1

    run_id = generate_run_id()
    started_at = datetime.now()
    start = time.perf_counter()

    try:
        config = ScoringConfig.from_yaml(args.config) if args.config else ScoringConfig()
        now = pd.Timestamp(args.now) if args.now else None
        exports = load_exports(Path(args.data_dir))

        scorer = ChurnScorer(config)
        result = scorer.score_batch(
            exports["members"],
            exports["activities"],
            exports["metrics"],
            exports["payments"],
            now=now,
        )
    except Exception as e:
        run_logger.log_failure(run_id, str(e), source=args.data_dir)
        print(f"ERROR: {e}")
        return 1

    duration = time.perf_counter() - start
    log_path = run_logger.log_run(
        run_id, result, config, started_at, duration, source=args.data_dir
    )

    print(f"\n{'=' * 60}")
    print(f"Run: {run_id}")
    print("=" * 60)
    print(f"Members scored: {len(result.df)}")
    for level, count in result.risk_level_counts().items():
        print(f"  {level:<9} {count}")
    print(f"Above alert threshold ({config.alert_threshold}): "
          f"{len(result.at_risk(config.alert_threshold))}")

    flagged = result.get_high_risk(args.min_level)
    if not flagged.empty:
        print()
        print(
            flagged[
                ["member_id", "tier", "churn_score", "risk_level", "top_risk_factor"]
            ].to_string(index=False)
        )

    if args.output:
        output = flagged.copy()
        output["recommendations"] = output["recommendations"].str.join("; ")
        output.to_csv(args.output, index=False)
        print(f"\nPredictions written to: {args.output}")

    print(f"Run log: {log_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
