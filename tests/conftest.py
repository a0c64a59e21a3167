"""
Pytest fixtures for churn scoring tests.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

# Add package to path
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from membervault.config import ScoringConfig
from membervault.frames import MemberFrames, reference_time
from membervault.records import Activity, EngagementMetrics, Member, Payment
from membervault.scorer import ChurnScorer, generate_sample_data


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
MEMBER_ID = "mbr_001"


@pytest.fixture
def now():
    """Fixed reference time."""
    return NOW


@pytest.fixture
def ref():
    """Reference time as the components receive it."""
    return reference_time(NOW)


@pytest.fixture
def default_config():
    """Default scoring configuration."""
    return ScoringConfig()


@pytest.fixture
def scorer(default_config):
    """ChurnScorer with default config."""
    return ChurnScorer(default_config)


@pytest.fixture
def member():
    """Pro member, joined 90 days ago, seen yesterday."""
    return Member(
        id=MEMBER_ID,
        joined_at=NOW - timedelta(days=90),
        last_seen_at=NOW - timedelta(days=1),
        status="active",
        tier="pro",
    )


@pytest.fixture
def activity_log():
    """Build activities from days-ago lists: activity_log(login=[0, 3])."""
    def _build(**days_ago_by_type):
        return [
            Activity(
                member_id=MEMBER_ID,
                type=activity_type,
                created_at=NOW - timedelta(days=days_ago),
            )
            for activity_type, days in days_ago_by_type.items()
            for days_ago in days
        ]
    return _build


@pytest.fixture
def metric_rows():
    """Build n daily metric rows starting ``start`` days ago."""
    def _build(n, start=0, content_views=5, messages_sent=3, session_duration=900):
        return [
            EngagementMetrics(
                member_id=MEMBER_ID,
                date=NOW - timedelta(days=start + i),
                period="daily",
                login_count=1,
                content_views=content_views,
                messages_sent=messages_sent,
                session_duration=session_duration,
            )
            for i in range(n)
        ]
    return _build


@pytest.fixture
def payment_history():
    """Build monthly payments from statuses, most recent first."""
    def _build(*statuses):
        return [
            Payment(
                member_id=MEMBER_ID,
                amount=Decimal("19.99"),
                status=status,
                processed_at=NOW - timedelta(days=30 * i),
            )
            for i, status in enumerate(statuses)
        ]
    return _build


@pytest.fixture
def frames_for(member):
    """Build validated MemberFrames for the default member."""
    def _build(activities=(), recent_metrics=(), historical_metrics=(),
               payments=(), for_member=None):
        return MemberFrames.build(
            for_member or member,
            activities,
            recent_metrics,
            historical_metrics,
            payments,
        )
    return _build


@pytest.fixture
def engaged_inputs(member, activity_log, metric_rows, payment_history):
    """Healthy member: every factor scores 0."""
    return {
        "member": member,
        "activities": activity_log(
            login=[0, 1, 2, 3, 5, 8, 10, 12, 15, 20],
            content_view=[0, 1, 2, 3, 4, 6],
            message=[0, 1, 2, 4, 6, 8, 10, 12],
        ),
        "recent_metrics": metric_rows(14),
        "historical_metrics": metric_rows(30, start=30),
        "payments": payment_history(*["succeeded"] * 6),
    }


@pytest.fixture
def dormant_inputs(member, metric_rows):
    """Member who went silent: never seen, no activity, no payments."""
    gone = Member(
        id=MEMBER_ID,
        joined_at=NOW - timedelta(days=90),
        last_seen_at=None,
        tier="free",
    )
    return {
        "member": gone,
        "activities": [],
        "recent_metrics": [],
        "historical_metrics": metric_rows(4, start=35),
        "payments": [],
    }


@pytest.fixture
def sample_data():
    """100 sample members with realistic distributions."""
    return generate_sample_data(n_members=100, seed=42, now=NOW)
