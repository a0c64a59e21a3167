"""Message activity scoring component."""

import operator

import pandas as pd

from .base import BaseScorer, tiered


class MessageActivityScorer(BaseScorer):
    """
    Score based on messages sent in the last 14 days.

    Points:
    - 0 messages: 70
    - 1-2: 40
    - 3-6: 20
    - 7+: 0
    """

    name = "message_activity"

    @property
    def required_columns(self) -> dict[str, list[str]]:
        return {"activities": ["type", "created_at"]}

    def score(self, frames, now: pd.Timestamp) -> int:
        """Calculate message activity risk."""
        self.validate(frames)
        since = now - pd.Timedelta(days=self.config.message_window_days)
        messages = self.count_events(frames.activities, "message", since)
        return tiered(messages, self.config.message_thresholds, compare=operator.lt)
