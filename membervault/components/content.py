"""Content consumption scoring component."""

import operator

import pandas as pd

from .base import BaseScorer, tiered


class ContentConsumptionScorer(BaseScorer):
    """
    Score based on content viewed or downloaded in the last 7 days.

    Points:
    - No views and no downloads: 90
    - <2 views: 60
    - <5 views: 30
    - 5+ views: 0
    """

    name = "content_consumption"

    @property
    def required_columns(self) -> dict[str, list[str]]:
        return {"activities": ["type", "created_at"]}

    def score(self, frames, now: pd.Timestamp) -> int:
        """Calculate content consumption risk."""
        self.validate(frames)
        since = now - pd.Timedelta(days=self.config.content_window_days)

        views = self.count_events(frames.activities, "content_view", since)
        downloads = self.count_events(frames.activities, "download", since)

        if views == 0 and downloads == 0:
            return self.config.no_content_points

        return tiered(views, self.config.content_view_thresholds, compare=operator.lt)
