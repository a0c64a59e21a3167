"""
Data schema definitions for churn scoring inputs and outputs.

Uses Pandera for runtime validation of input DataFrames so that malformed
exports (unknown statuses, negative counts, missing identifiers) are caught
before scoring instead of silently skewing a member's risk.

Timestamp columns are converted to UTC by ``membervault.frames`` before
validation, so only their presence is checked here.
"""

from pandera import Column, Check, DataFrameSchema

from .config import FACTOR_NAMES
from .records import (
    MEMBER_STATUSES,
    MEMBER_TIERS,
    METRIC_PERIODS,
    PAYMENT_STATUSES,
)


MEMBER_SCHEMA = DataFrameSchema(
    {
        "id": Column(
            str,
            nullable=False,
            unique=True,
            description="Unique member identifier"
        ),
        "joined_at": Column(nullable=False, description="When the member joined"),
        "last_seen_at": Column(nullable=True, description="Last time the member was seen"),
        "status": Column(
            str,
            nullable=False,
            checks=Check.isin(MEMBER_STATUSES),
        ),
        "tier": Column(
            nullable=True,
            checks=Check.isin(MEMBER_TIERS),
        ),
    },
    strict=False,
    coerce=True,
    description="Schema for member records"
)


ACTIVITY_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(str, nullable=False),
        "type": Column(
            str,
            nullable=False,
            description="Activity tag (login, content_view, message, download, ...)"
        ),
        "created_at": Column(nullable=False),
    },
    strict=False,  # metadata and any extra columns pass through
    coerce=True,
    description="Schema for member activity log"
)


# Averaged periods can hold fractional counts and durations
_count = [Check.greater_than_or_equal_to(0)]

METRICS_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(str, nullable=False),
        "date": Column(nullable=False),
        "period": Column(
            str,
            nullable=False,
            checks=Check.isin(METRIC_PERIODS),
        ),
        "login_count": Column(float, nullable=False, checks=_count),
        "content_views": Column(float, nullable=False, checks=_count),
        "messages_sent": Column(float, nullable=False, checks=_count),
        "downloads_count": Column(float, nullable=False, checks=_count),
        "session_duration": Column(
            float,
            nullable=False,
            checks=_count,
            description="Session duration in seconds"
        ),
    },
    strict=False,
    coerce=True,
    description="Schema for aggregated engagement metrics"
)


PAYMENT_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(str, nullable=False),
        "amount": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
        ),
        "currency": Column(str, nullable=False),
        "status": Column(
            str,
            nullable=False,
            checks=Check.isin(PAYMENT_STATUSES),
        ),
        "processed_at": Column(nullable=False),
    },
    strict=False,
    coerce=True,
    description="Schema for member payment history"
)


_factor_columns = {
    f"{name}_score": Column(
        int,
        nullable=False,
        checks=[
            Check.greater_than_or_equal_to(0),
            Check.less_than_or_equal_to(100),
        ]
    )
    for name in FACTOR_NAMES
}

PREDICTION_OUTPUT_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(str, nullable=False, unique=True),
        "churn_score": Column(
            int,
            nullable=False,
            checks=[
                Check.greater_than_or_equal_to(0),
                Check.less_than_or_equal_to(100),
            ]
        ),
        "confidence_level": Column(
            int,
            nullable=False,
            checks=[
                Check.greater_than_or_equal_to(0),
                Check.less_than_or_equal_to(100),
            ]
        ),
        "risk_level": Column(
            str,
            nullable=False,
            checks=Check.isin(["low", "medium", "high", "critical"])
        ),
        "top_risk_factor": Column(
            str,
            nullable=False,
            checks=Check.isin(list(FACTOR_NAMES))
        ),
        **_factor_columns,
    },
    strict=False,
    coerce=True,
    description="Schema for batch churn predictions"
)


