"""Engagement drop scoring component."""

import operator
from typing import Optional

import numpy as np
import pandas as pd

from .base import BaseScorer, clamp, tiered


class EngagementDropScorer(BaseScorer):
    """
    Score based on how far recent engagement fell below the baseline.

    Compares the average content views, messages sent and session
    duration of the recent window against the historical window.
    Each percentage drop earns points from its own threshold table:
    - Content views: >50% -> 35, >30% -> 20, >15% -> 10
    - Messages sent: >60% -> 30, >40% -> 15, >20% -> 8
    - Session duration: >50% -> 35, >30% -> 20, >15% -> 10

    Fewer than 4 baseline rows is not enough history to compare
    against and scores 0. A metric whose baseline average is zero
    has nothing to drop from and contributes 0.
    """

    name = "engagement_drop"

    @property
    def required_columns(self) -> dict[str, list[str]]:
        columns = ["content_views", "messages_sent", "session_duration"]
        return {"recent_metrics": columns, "historical_metrics": columns}

    def score(self, frames, now: pd.Timestamp) -> int:
        """Calculate engagement drop risk."""
        self.validate(frames)
        historical = frames.historical_metrics
        if len(historical) < self.config.min_baseline_rows:
            return 0

        recent = frames.recent_metrics
        tables = [
            ("content_views", self.config.content_drop_thresholds),
            ("messages_sent", self.config.message_drop_thresholds),
            ("session_duration", self.config.session_drop_thresholds),
        ]

        points = 0
        for column, thresholds in tables:
            drop = self.percentage_drop(recent[column], historical[column])
            if drop is None:
                continue
            points += tiered(drop, thresholds, compare=operator.gt)

        return clamp(points)

    def percentage_drop(
        self, recent: pd.Series, historical: pd.Series
    ) -> Optional[float]:
        """
        Percentage drop of the recent mean relative to the historical mean.

        An empty recent window counts as zero engagement.

        Returns:
            Drop in percent (negative when engagement grew), or None when
            the baseline is zero or not measurable
        """
        baseline = float(historical.mean())
        if not np.isfinite(baseline) or abs(baseline) < self.config.baseline_epsilon:
            return None

        current = float(recent.mean()) if len(recent) else 0.0
        return (baseline - current) / baseline * 100
