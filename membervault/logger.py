"""
Run logging for batch churn scoring.

Writes one JSON log per scoring run (pass or fail).
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import pandas as pd

if TYPE_CHECKING:
    from .config import ScoringConfig
    from .scorer import ScoringResult


def generate_run_id() -> str:
    """Generate unique run ID: run_YYYYMMDD_XXXX"""
    date_str = datetime.now().strftime("%Y%m%d")
    short_uuid = uuid.uuid4().hex[:4]
    return f"run_{date_str}_{short_uuid}"


class ScoringRunLogger:
    """Structured JSON logging for scoring runs."""

    def __init__(self, logs_dir: Path):
        """
        Initialize logger.

        Args:
            logs_dir: Directory to write log files
        """
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def log_run(
        self,
        run_id: str,
        result: "ScoringResult",
        config: "ScoringConfig",
        started_at: datetime,
        duration_seconds: float,
        source: Optional[str] = None,
    ) -> Path:
        """
        Log a completed scoring run to a JSON file.

        Args:
            run_id: Unique run ID
            result: ScoringResult from ChurnScorer.score_batch
            config: ScoringConfig used
            started_at: When the run started
            duration_seconds: Wall time of the run
            source: Where the input data came from

        Returns:
            Path to log file
        """
        df = result.df
        log_entry = {
            "run_id": run_id,
            "timestamp": started_at.isoformat(),
            "duration_seconds": duration_seconds,
            "source": source,
            "config": {
                "version": config.version,
                "weights": config.weights,
                "alert_threshold": config.alert_threshold,
            },
            "results": {
                "members_scored": len(df),
                "risk_levels": result.risk_level_counts(),
                "at_risk": len(result.at_risk(config.alert_threshold)),
                "avg_score": round(float(df["churn_score"].mean()), 1) if len(df) else None,
                "avg_confidence": (
                    round(float(df["confidence_level"].mean()), 1) if len(df) else None
                ),
            },
            "status": "OK",
        }

        log_path = self.logs_dir / f"{run_id}.json"
        with open(log_path, "w") as f:
            json.dump(log_entry, f, indent=2, default=str)

        return log_path

    def log_failure(
        self,
        run_id: str,
        error: str,
        source: Optional[str] = None,
    ) -> Path:
        """
        Log failed/errored run.

        Args:
            run_id: Unique run ID
            error: Error message
            source: Where the input data came from

        Returns:
            Path to log file
        """
        log_entry = {
            "run_id": run_id,
            "timestamp": datetime.now().isoformat(),
            "source": source,
            "status": "ERROR",
            "error": error,
        }

        log_path = self.logs_dir / f"{run_id}.json"
        with open(log_path, "w") as f:
            json.dump(log_entry, f, indent=2)

        return log_path

    def get_all_logs(self) -> list[dict]:
        """
        Load all run logs.

        Returns:
            List of log dictionaries, sorted by file name
        """
        logs = []
        for log_file in sorted(self.logs_dir.glob("run_*.json")):
            with open(log_file) as f:
                logs.append(json.load(f))
        return logs

    def get_summary_dataframe(self) -> pd.DataFrame:
        """
        Get summary of all runs as DataFrame.

        Returns:
            DataFrame with run summaries, newest first
        """
        logs = self.get_all_logs()
        if not logs:
            return pd.DataFrame()

        summary = []
        for log in logs:
            entry = {
                "run_id": log["run_id"],
                "timestamp": log["timestamp"],
                "source": log.get("source"),
                "status": log["status"],
            }

            if "results" in log:
                results = log["results"]
                entry["members"] = results.get("members_scored")
                entry["at_risk"] = results.get("at_risk")
                entry["avg_score"] = results.get("avg_score")
                for level, count in results.get("risk_levels", {}).items():
                    entry[level] = count

            summary.append(entry)

        df = pd.DataFrame(summary)
        return df.sort_values("timestamp", ascending=False)
