"""Session duration scoring component."""

import operator

import pandas as pd

from .base import BaseScorer, tiered


class SessionDurationScorer(BaseScorer):
    """
    Score based on average session length in the recent window.

    Points (seconds):
    - <60: 80 (under a minute)
    - <180: 60
    - <300: 40
    - <600: 20
    - 600+: 0
    No recent metrics: 50.
    """

    name = "session_duration"

    @property
    def required_columns(self) -> dict[str, list[str]]:
        return {"recent_metrics": ["session_duration"]}

    def score(self, frames, now: pd.Timestamp) -> int:
        """Calculate session duration risk."""
        self.validate(frames)
        recent = frames.recent_metrics
        if recent.empty:
            return self.config.no_sessions_default

        average = float(recent["session_duration"].mean())
        return tiered(average, self.config.session_thresholds, compare=operator.lt)
