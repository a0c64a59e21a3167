"""
Data quality and schema validation tests.

Tests input validation for member, activity, metric and payment frames.
"""

from datetime import timedelta

import pandas as pd
import pandera as pa
import pytest

from membervault import ChurnScorer
from membervault.frames import (
    activities_frame,
    members_frame,
    metrics_frame,
    payments_frame,
)
from membervault.schemas import PREDICTION_OUTPUT_SCHEMA


class TestInputSchemas:
    """Schema validation of scoring inputs."""

    def test_sample_data_valid(self, sample_data):
        """Generated sample data passes every schema."""
        assert len(members_frame(sample_data.members)) == 100
        assert len(activities_frame(sample_data.activities)) > 0
        assert len(metrics_frame(sample_data.metrics)) > 0
        assert len(payments_frame(sample_data.payments)) > 0

    def test_timestamps_converted_to_utc(self, activity_log):
        """Timestamp columns come out timezone-aware UTC."""
        df = activities_frame(activity_log(login=[0, 1]))

        assert str(df["created_at"].dt.tz) == "UTC"

    def test_unknown_payment_status_rejected(self, scorer, member, payment_history, now):
        """Payment status must be succeeded, failed or pending."""
        payments = payment_history("succeeded", "refunded")

        with pytest.raises(pa.errors.SchemaError):
            scorer.score(member, payments=payments, now=now)

    def test_unknown_metric_period_rejected(self, metric_rows):
        """Period must be daily, weekly or monthly."""
        rows = metric_rows(2)
        rows[0].period = "hourly"

        with pytest.raises(pa.errors.SchemaError):
            metrics_frame(rows)

    def test_negative_counts_rejected(self, metric_rows):
        """Counts can never be negative."""
        rows = metric_rows(2, session_duration=-5)

        with pytest.raises(pa.errors.SchemaError):
            metrics_frame(rows)

    def test_fractional_metrics_kept(self, now):
        """Averaged counts and durations are not truncated."""
        df = pd.DataFrame({
            "member_id": ["mbr_1", "mbr_1"],
            "date": [now, now - timedelta(days=1)],
            "content_views": [0.4, 2],
            "session_duration": [59.6, 60.6],
        })

        validated = metrics_frame(df)

        assert validated["content_views"].tolist() == [0.4, 2.0]
        assert validated["session_duration"].mean() == pytest.approx(60.1)

    def test_unsupported_record_type(self):
        """Records must be dataclasses, mappings or a DataFrame."""
        with pytest.raises(ValueError, match="dataclass instances or mappings"):
            activities_frame([("mbr_1", "login")])

    def test_unknown_activity_types_allowed(self, scorer, member, activity_log, now):
        """New activity tags pass through and are simply not counted."""
        activities = activity_log(reaction=[0, 1], login=[0])

        prediction = scorer.score(member, activities=activities, now=now)
        assert prediction.risk_factors["login_frequency"] == 50

    def test_null_member_id_rejected(self, now):
        """Members need an id; last_seen_at may be null."""
        ok = pd.DataFrame({
            "id": ["mbr_1"],
            "joined_at": [now - timedelta(days=3)],
            "last_seen_at": [None],
        })
        assert len(members_frame(ok)) == 1

        bad = ok.assign(id=[None])
        with pytest.raises(pa.errors.SchemaError):
            members_frame(bad)

    def test_duplicate_member_ids_rejected(self, now):
        """Member ids are unique."""
        df = pd.DataFrame({
            "id": ["mbr_1", "mbr_1"],
            "joined_at": [now, now],
        })

        with pytest.raises(pa.errors.SchemaError):
            members_frame(df)

    def test_unknown_tier_rejected(self, now):
        """Tier, when present, is free, starter or pro."""
        df = pd.DataFrame({
            "id": ["mbr_1"],
            "joined_at": [now],
            "tier": ["platinum"],
        })

        with pytest.raises(pa.errors.SchemaError):
            members_frame(df)

    def test_payments_sorted_most_recent_first(self, payment_history):
        """Payment frames are ordered by processed_at descending."""
        df = payments_frame(list(reversed(payment_history("failed", "succeeded", "succeeded"))))

        assert df["processed_at"].is_monotonic_decreasing
        assert df["status"].iloc[0] == "failed"


class TestOutputSchema:
    """Schema validation of batch output."""

    def test_batch_output_valid(self, sample_data, now):
        """Batch predictions satisfy the output schema."""
        result = ChurnScorer().score_batch(
            sample_data.members, sample_data.activities,
            sample_data.metrics, sample_data.payments, now=now,
        )

        validated = PREDICTION_OUTPUT_SCHEMA.validate(result.df)
        assert len(validated) == 100

    def test_out_of_range_score_rejected(self):
        """Scores over 100 are a schema error."""
        df = pd.DataFrame([{
            "member_id": "mbr_1",
            "churn_score": 140,
            "confidence_level": 50,
            "risk_level": "critical",
            "top_risk_factor": "login_frequency",
            "login_frequency_score": 100,
            "engagement_drop_score": 0,
            "payment_issues_score": 0,
            "content_consumption_score": 0,
            "session_duration_score": 0,
            "message_activity_score": 0,
        }])

        with pytest.raises(pa.errors.SchemaError):
            PREDICTION_OUTPUT_SCHEMA.validate(df)
