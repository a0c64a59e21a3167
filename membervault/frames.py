"""
Conversion of member records into validated, UTC-aware DataFrames.

The scorer accepts either sequences of record dataclasses (or plain dicts)
or DataFrames with the same column names. Both are normalized here so the
scoring components only ever see one shape.
"""

from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd
from pandera import DataFrameSchema

from .config import ScoringConfig, DEFAULT_CONFIG
from .records import Member
from .schemas import (
    ACTIVITY_SCHEMA,
    MEMBER_SCHEMA,
    METRICS_SCHEMA,
    PAYMENT_SCHEMA,
)


Records = Union[pd.DataFrame, Iterable[Any]]

MEMBER_COLUMNS = ["id", "joined_at", "last_seen_at", "status", "tier", "company_id"]
ACTIVITY_COLUMNS = ["member_id", "type", "created_at", "metadata"]
METRICS_COLUMNS = [
    "member_id",
    "date",
    "period",
    "login_count",
    "content_views",
    "messages_sent",
    "downloads_count",
    "session_duration",
    "feature_usage",
]
PAYMENT_COLUMNS = [
    "member_id",
    "amount",
    "currency",
    "status",
    "processed_at",
    "failure_reason",
]

# Columns that may be absent from caller frames, with their fill values
OPTIONAL_COLUMNS = {
    "last_seen_at": None,
    "status": "active",
    "tier": None,
    "company_id": None,
    "metadata": None,
    "period": "daily",
    "login_count": 0,
    "content_views": 0,
    "messages_sent": 0,
    "downloads_count": 0,
    "session_duration": 0,
    "feature_usage": None,
    "currency": "usd",
    "failure_reason": None,
}


def to_utc(value: Any) -> Optional[pd.Timestamp]:
    """Convert a datetime-like value to a UTC Timestamp (naive values are taken as UTC)."""
    if value is None or pd.isna(value):
        return None
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def reference_time(now: Optional[datetime] = None) -> pd.Timestamp:
    """Capture the single reference time used for one scoring call."""
    if now is None:
        return pd.Timestamp.now(tz="UTC")
    return to_utc(now)


def _as_dict(record: Any) -> dict:
    if is_dataclass(record) and not isinstance(record, type):
        return asdict(record)
    if isinstance(record, Mapping):
        return dict(record)
    raise ValueError(
        "Records must be dataclass instances or mappings (or pass a DataFrame), "
        f"got {type(record).__name__}"
    )


def _to_frame(
    data: Records,
    columns: list[str],
    datetime_columns: list[str],
    schema: DataFrameSchema,
) -> pd.DataFrame:
    """Build a DataFrame from records or a frame, then convert and validate it."""
    if isinstance(data, pd.DataFrame):
        df = data.copy()
        required = [c for c in columns if c not in OPTIONAL_COLUMNS]
        missing = set(required) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")
        for col in columns:
            if col not in df.columns:
                df[col] = OPTIONAL_COLUMNS[col]
    else:
        rows = [_as_dict(r) for r in data]
        df = pd.DataFrame(rows, columns=columns)

    for col in datetime_columns:
        df[col] = pd.to_datetime(df[col], utc=True)

    return schema.validate(df).reset_index(drop=True)


def members_frame(data: Records) -> pd.DataFrame:
    """Validated members frame."""
    return _to_frame(
        data, MEMBER_COLUMNS, ["joined_at", "last_seen_at"], MEMBER_SCHEMA
    )


def activities_frame(data: Records) -> pd.DataFrame:
    """Validated activity log."""
    return _to_frame(data, ACTIVITY_COLUMNS, ["created_at"], ACTIVITY_SCHEMA)


def metrics_frame(data: Records) -> pd.DataFrame:
    """Validated engagement metrics."""
    return _to_frame(data, METRICS_COLUMNS, ["date"], METRICS_SCHEMA)


def payments_frame(data: Records) -> pd.DataFrame:
    """Validated payments, most recent first."""
    df = _to_frame(data, PAYMENT_COLUMNS, ["processed_at"], PAYMENT_SCHEMA)
    # Stable sort keeps caller order for equal timestamps
    return df.sort_values(
        "processed_at", ascending=False, kind="mergesort"
    ).reset_index(drop=True)


def split_metric_windows(
    metrics: pd.DataFrame,
    now: pd.Timestamp,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split engagement metrics into the recent and baseline windows.

    Only rows of ``config.metrics_period`` are used so daily and weekly
    aggregates are never averaged together.

    Args:
        metrics: Validated metrics frame
        now: Reference time
        config: ScoringConfig with window lengths

    Returns:
        (recent, historical) frames: the last ``recent_window_days`` days,
        and the rows from ``baseline_start_days`` up to
        ``baseline_end_days`` before ``now``
    """
    metrics = metrics[metrics["period"] == config.metrics_period]
    dates = metrics["date"]

    recent_start = now - pd.Timedelta(days=config.recent_window_days)
    baseline_start = now - pd.Timedelta(days=config.baseline_start_days)
    baseline_end = now - pd.Timedelta(days=config.baseline_end_days)

    recent = metrics[dates >= recent_start]
    historical = metrics[(dates >= baseline_start) & (dates < baseline_end)]
    return recent, historical


@dataclass
class MemberFrames:
    """
    Everything the scoring components read for a single member.

    Attributes:
        member: The member record
        activities: Recent activity log
        recent_metrics: Engagement metrics for the recent window
        historical_metrics: Engagement metrics for the baseline window
        payments: Payment history, most recent first
    """

    member: Member
    activities: pd.DataFrame
    recent_metrics: pd.DataFrame
    historical_metrics: pd.DataFrame
    payments: pd.DataFrame

    @classmethod
    def build(
        cls,
        member: Member,
        activities: Records = (),
        recent_metrics: Records = (),
        historical_metrics: Records = (),
        payments: Records = (),
    ) -> "MemberFrames":
        """Normalize and validate all inputs for one member."""
        return cls(
            member=member,
            activities=activities_frame(activities),
            recent_metrics=metrics_frame(recent_metrics),
            historical_metrics=metrics_frame(historical_metrics),
            payments=payments_frame(payments),
        )
