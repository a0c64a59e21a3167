"""Payment issues scoring component."""

import operator

import pandas as pd

from .base import BaseScorer, clamp, tiered


class PaymentIssuesScorer(BaseScorer):
    """
    Score based on failed payments in recent billing history.

    Failure rate over the last 6 payments:
    - >50%: 80
    - >30%: 60
    - >10%: 30
    - >0%: 15
    - 0%: 0
    Plus 20 when the most recent payment failed (capped at 100).

    No payment history at all is unknown, not safe: 50.
    """

    name = "payment_issues"

    @property
    def required_columns(self) -> dict[str, list[str]]:
        return {"payments": ["status"]}

    def score(self, frames, now: pd.Timestamp) -> int:
        """Calculate payment issues risk."""
        self.validate(frames)
        payments = frames.payments
        if payments.empty:
            return self.config.no_payments_default

        window = payments["status"].head(self.config.payment_window)
        failure_rate = (window == "failed").mean() * 100

        points = tiered(
            failure_rate,
            self.config.failure_rate_thresholds,
            compare=operator.gt,
        )
        if payments["status"].iloc[0] == "failed":
            points += self.config.recent_failure_points

        return clamp(points)
