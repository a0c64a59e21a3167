"""Login frequency scoring component."""

import operator

import pandas as pd

from ..frames import to_utc
from .base import BaseScorer, clamp, tiered


class LoginFrequencyScorer(BaseScorer):
    """
    Score based on how often, and how recently, the member logs in.

    Three additive signals:
    - Logins in the last 7 days: 0 -> 40, 1 -> 20, 2+ -> 0
    - Logins in the last 30 days: <4 -> 30, 4-7 -> 15, 8+ -> 0
    - Days since last seen: >14 -> 30, >7 -> 15, else 0
      (never seen counts as 999 days)
    """

    name = "login_frequency"

    @property
    def required_columns(self) -> dict[str, list[str]]:
        return {"activities": ["type", "created_at"]}

    def score(self, frames, now: pd.Timestamp) -> int:
        """Calculate login frequency risk."""
        self.validate(frames)
        activities = frames.activities

        logins_week = self.count_events(activities, "login", now - pd.Timedelta(days=7))
        logins_month = self.count_events(activities, "login", now - pd.Timedelta(days=30))

        last_seen = to_utc(frames.member.last_seen_at)
        if last_seen is None:
            days_since_seen = self.config.never_seen_days
        else:
            days_since_seen = (now - last_seen).days

        points = (
            tiered(logins_week, self.config.login_week_thresholds)
            + tiered(logins_month, self.config.login_month_thresholds)
            + tiered(
                days_since_seen,
                self.config.last_seen_thresholds,
                compare=operator.gt,
            )
        )
        return clamp(points)
