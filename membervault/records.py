"""
Record types consumed by the churn scorer.

These mirror the rows of the members, activities, engagement_metrics and
payments tables. Fetching and persisting them is the caller's job; the
scorer only reads them.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import pandas as pd


MEMBER_STATUSES = ["active", "churned", "at_risk"]
MEMBER_TIERS = ["free", "starter", "pro"]
ACTIVITY_TYPES = ["login", "content_view", "message", "download"]
METRIC_PERIODS = ["daily", "weekly", "monthly"]
PAYMENT_STATUSES = ["succeeded", "failed", "pending"]


@dataclass
class Member:
    """A member of a creator's community."""

    id: str
    joined_at: datetime
    last_seen_at: Optional[datetime] = None
    status: str = "active"
    tier: Optional[str] = None
    company_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: pd.Series) -> "Member":
        """Build a Member from a members-frame row (NaN/NaT become None)."""
        def _value(key):
            value = row.get(key)
            return None if value is None or pd.isna(value) else value

        return cls(
            id=str(row["id"]),
            joined_at=row["joined_at"],
            last_seen_at=_value("last_seen_at"),
            status=_value("status") or "active",
            tier=_value("tier"),
            company_id=_value("company_id"),
        )


@dataclass
class Activity:
    """A single member action (login, content_view, message, download, ...)."""

    member_id: str
    type: str
    created_at: datetime
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class EngagementMetrics:
    """Aggregated engagement counts for one member over one period."""

    member_id: str
    date: datetime
    period: str = "daily"
    login_count: float = 0
    content_views: float = 0
    messages_sent: float = 0
    downloads_count: float = 0
    session_duration: float = 0  # seconds
    feature_usage: Optional[Dict[str, int]] = None


@dataclass
class Payment:
    """A processed (or attempted) membership payment."""

    member_id: str
    amount: Decimal
    status: str
    processed_at: datetime
    currency: str = "usd"
    failure_reason: Optional[str] = None
