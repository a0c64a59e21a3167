"""
Main ChurnScorer class - orchestrates scoring components.

Usage:
    from membervault import ChurnScorer, ScoringConfig

    # Score one member
    scorer = ChurnScorer()
    prediction = scorer.score(
        member, activities, recent_metrics, historical_metrics, payments
    )
    print(prediction.churn_score, prediction.risk_level)

    # Score every member of a community from table exports
    result = scorer.score_batch(members_df, activities_df, metrics_df, payments_df)
    print(result.get_high_risk("high")[["member_id", "churn_score"]])
    print(result.summary())

    # With custom config
    config = ScoringConfig.from_yaml("configs/aggressive.yaml")
    scorer = ChurnScorer(config)
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .components import (
    ContentConsumptionScorer,
    EngagementDropScorer,
    LoginFrequencyScorer,
    MessageActivityScorer,
    PaymentIssuesScorer,
    SessionDurationScorer,
)
from .confidence import estimate_confidence
from .config import ScoringConfig, DEFAULT_CONFIG, FACTOR_NAMES
from .forecast import predict_churn_date
from .frames import (
    MemberFrames,
    Records,
    activities_frame,
    members_frame,
    metrics_frame,
    payments_frame,
    reference_time,
    split_metric_windows,
)
from .recommendations import generate_recommendations
from .records import Member
from .schemas import PREDICTION_OUTPUT_SCHEMA

logger = logging.getLogger(__name__)

RISK_LEVEL_ORDER = ["low", "medium", "high", "critical"]


@dataclass
class ChurnPrediction:
    """
    Churn risk estimate for a single member.

    Attributes:
        member_id: Member the prediction is for
        churn_score: Weighted risk score (0-100)
        confidence_level: How much history backs the score (0-100)
        risk_level: low / medium / high / critical
        risk_factors: Factor name -> factor score (0-100), in declared order
        top_risk_factor: Highest scoring factor
        predicted_churn_date: Projected churn date, None when not at risk
        recommendations: Retention actions, most urgent first
        calculated_at: Reference time the prediction was computed against
    """

    member_id: str
    churn_score: int
    confidence_level: int
    risk_level: str
    risk_factors: Dict[str, int]
    top_risk_factor: str
    predicted_churn_date: Optional[datetime]
    recommendations: List[str] = field(default_factory=list)
    calculated_at: Optional[datetime] = None

    def to_record(self) -> dict:
        """
        JSON-serializable row for the churn score store.

        Timestamps are ISO 8601 strings.
        """
        return {
            "member_id": self.member_id,
            "score": self.churn_score,
            "confidence_level": self.confidence_level,
            "risk_level": self.risk_level,
            "risk_factors": dict(self.risk_factors),
            "top_risk_factor": self.top_risk_factor,
            "predicted_churn_date": (
                self.predicted_churn_date.isoformat()
                if self.predicted_churn_date is not None
                else None
            ),
            "recommendations": list(self.recommendations),
            "calculated_at": (
                self.calculated_at.isoformat() if self.calculated_at is not None else None
            ),
        }


@dataclass
class ScoringResult:
    """
    Container for batch scoring results with factor breakdown.

    Attributes:
        df: One row per member with scores, risk level and factor columns
        component_columns: List of factor score column names
        predictions: The underlying ChurnPrediction objects, in row order
    """

    df: pd.DataFrame
    component_columns: list[str]
    predictions: list[ChurnPrediction] = field(default_factory=list)

    def get_high_risk(self, min_level: str = "high") -> pd.DataFrame:
        """
        Members at or above a risk level, highest churn score first.

        Args:
            min_level: Minimum risk level ("low", "medium", "high", "critical")
        """
        rank = self.df["risk_level"].map(RISK_LEVEL_ORDER.index)
        flagged = self.df[rank >= RISK_LEVEL_ORDER.index(min_level)]
        return flagged.sort_values("churn_score", ascending=False, kind="mergesort")

    def at_risk(self, threshold: int = DEFAULT_CONFIG.alert_threshold) -> pd.DataFrame:
        """Members whose churn score exceeds a creator's alert threshold."""
        return self.df[self.df["churn_score"] > threshold]

    def summary(self) -> pd.DataFrame:
        """
        Member count, average score and average confidence per tier and risk level.

        Members without a tier are reported as "unknown"; risk levels are
        ordered low to critical.
        """
        df = self.df.assign(
            tier=self.df["tier"].fillna("unknown"),
            risk_level=pd.Categorical(
                self.df["risk_level"], categories=RISK_LEVEL_ORDER, ordered=True
            ),
        )
        return (
            df.groupby(["tier", "risk_level"], observed=True)
            .agg(
                count=("member_id", "count"),
                avg_score=("churn_score", "mean"),
                avg_confidence=("confidence_level", "mean"),
            )
            .round(1)
        )

    def component_breakdown(self) -> pd.DataFrame:
        """
        Per-factor score statistics, plus how often each factor was the
        member's top risk factor.
        """
        factors = self.df[self.component_columns].rename(
            columns=lambda col: col.removesuffix("_score")
        )
        breakdown = factors.agg(["mean", "min", "max"]).T.astype(float)
        top = self.df["top_risk_factor"].value_counts()
        breakdown["top_factor_count"] = [int(top.get(name, 0)) for name in breakdown.index]
        return breakdown.round(1)

    def risk_level_counts(self) -> dict[str, int]:
        """Number of members per risk level (all levels present)."""
        counts = self.df["risk_level"].value_counts()
        return {level: int(counts.get(level, 0)) for level in RISK_LEVEL_ORDER}

    def to_records(self) -> list[dict]:
        """Churn score rows for every scored member."""
        return [prediction.to_record() for prediction in self.predictions]


class ChurnScorer:
    """
    Rule-based member churn risk engine.

    Calculates six factor scores independently, then combines them
    with fixed weights into a 0-100 churn score.

    Factors:
    - Login Frequency (25%): Logins this week/month, days since last seen
    - Engagement Drop (20%): Recent vs. baseline engagement averages
    - Payment Issues (20%): Failed payments in recent billing
    - Content Consumption (15%): Content views/downloads this week
    - Session Duration (10%): Average recent session length
    - Message Activity (10%): Messages in the last two weeks
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize scorer with configuration.

        Args:
            config: ScoringConfig instance. Uses DEFAULT_CONFIG if None.

        Raises:
            ValueError: If the config's weight table is invalid
        """
        self.config = config or DEFAULT_CONFIG
        self.config.validate()
        self._init_components()

    def _init_components(self) -> None:
        """Initialize all scoring components."""
        self.components = {
            "login_frequency": LoginFrequencyScorer(self.config),
            "engagement_drop": EngagementDropScorer(self.config),
            "payment_issues": PaymentIssuesScorer(self.config),
            "content_consumption": ContentConsumptionScorer(self.config),
            "session_duration": SessionDurationScorer(self.config),
            "message_activity": MessageActivityScorer(self.config),
        }

    def combine(self, risk_factors: Dict[str, int]) -> int:
        """
        Weighted sum of factor scores, rounded half up.

        Args:
            risk_factors: Factor name -> factor score

        Returns:
            Churn score
        """
        total = sum(
            risk_factors[name] * self.config.weights[name] for name in FACTOR_NAMES
        )
        # Half-up; round() would send 42.5 to 42
        return int(math.floor(round(total, 9) + 0.5))

    def score(
        self,
        member: Member,
        activities: Records = (),
        recent_metrics: Records = (),
        historical_metrics: Records = (),
        payments: Records = (),
        now: Optional[datetime] = None,
    ) -> ChurnPrediction:
        """
        Calculate the churn prediction for one member.

        Windowing the inputs is the caller's responsibility: activities
        should cover at least the last 30 days, recent metrics the last
        ~2 weeks and historical metrics the 30-60 days before that.

        Args:
            member: Member to score
            activities: Member's recent activity log
            recent_metrics: Engagement metrics for the recent window
            historical_metrics: Engagement metrics for the baseline window
            payments: Payment history (most recent first)
            now: Reference time; captured once if None

        Returns:
            ChurnPrediction

        Example:
            >>> scorer = ChurnScorer()
            >>> prediction = scorer.score(member, activities, recent, baseline, payments)
            >>> prediction.recommendations[:2]
        """
        now = reference_time(now)
        frames = MemberFrames.build(
            member, activities, recent_metrics, historical_metrics, payments
        )
        return self._predict(frames, now)

    def _predict(self, frames: MemberFrames, now: pd.Timestamp) -> ChurnPrediction:
        """Run every component against validated frames and assemble the prediction."""
        risk_factors = {
            name: component.score(frames, now)
            for name, component in self.components.items()
        }

        churn_score = self.combine(risk_factors)
        top_risk_factor = max(risk_factors, key=risk_factors.get)

        confidence = estimate_confidence(
            frames.member,
            len(frames.activities),
            len(frames.recent_metrics) + len(frames.historical_metrics),
            len(frames.payments),
            now,
            self.config,
        )

        prediction = ChurnPrediction(
            member_id=frames.member.id,
            churn_score=churn_score,
            confidence_level=confidence,
            risk_level=self.config.get_risk_level(churn_score),
            risk_factors=risk_factors,
            top_risk_factor=top_risk_factor,
            predicted_churn_date=predict_churn_date(churn_score, now, self.config),
            recommendations=generate_recommendations(risk_factors, self.config),
            calculated_at=now.to_pydatetime(),
        )
        logger.debug(
            "Scored member %s: %d (%s), top factor %s",
            prediction.member_id,
            prediction.churn_score,
            prediction.risk_level,
            prediction.top_risk_factor,
        )
        return prediction

    def score_batch(
        self,
        members: Records,
        activities: Records = (),
        metrics: Records = (),
        payments: Records = (),
        now: Optional[datetime] = None,
    ) -> ScoringResult:
        """
        Score every member from full table exports.

        Engagement metrics are split into the recent and baseline windows
        from the config, and all inputs are grouped by member.

        Args:
            members: Members to score
            activities: Activity log for those members
            metrics: Engagement metrics (all dates)
            payments: Payment history

        Returns:
            ScoringResult with one row per member
        """
        now = reference_time(now)
        members_df = members_frame(members)
        activities_df = activities_frame(activities)
        metrics_df = metrics_frame(metrics)
        payments_df = payments_frame(payments)
        recent_df, historical_df = split_metric_windows(metrics_df, now, self.config)

        grouped = {
            "activities": _group(activities_df),
            "recent_metrics": _group(recent_df),
            "historical_metrics": _group(historical_df),
            "payments": _group(payments_df),
        }
        empty = {
            "activities": activities_df.iloc[0:0],
            "recent_metrics": recent_df.iloc[0:0],
            "historical_metrics": historical_df.iloc[0:0],
            "payments": payments_df.iloc[0:0],
        }

        predictions = []
        rows = []
        for _, member_row in members_df.iterrows():
            member = Member.from_row(member_row)
            frames = MemberFrames(
                member=member,
                **{
                    name: groups.get(member.id, empty[name])
                    for name, groups in grouped.items()
                },
            )
            prediction = self._predict(frames, now)
            predictions.append(prediction)
            rows.append(_prediction_row(prediction, member))

        component_cols = [f"{name}_score" for name in self.components]
        columns = [
            "member_id",
            "tier",
            "status",
            "churn_score",
            "confidence_level",
            "risk_level",
            "top_risk_factor",
            "predicted_churn_date",
            "recommendations",
        ] + component_cols
        result = pd.DataFrame(rows, columns=columns)
        result = PREDICTION_OUTPUT_SCHEMA.validate(result)

        logger.info(
            "Scored %d members (%d at or above high risk)",
            len(result),
            int(result["risk_level"].isin(["high", "critical"]).sum()),
        )
        return ScoringResult(
            df=result, component_columns=component_cols, predictions=predictions
        )


def _group(df: pd.DataFrame) -> dict:
    """Split a frame into per-member frames keyed by member_id."""
    return {member_id: group for member_id, group in df.groupby("member_id", sort=False)}


def _prediction_row(prediction: ChurnPrediction, member: Member) -> dict:
    row = {
        "member_id": prediction.member_id,
        "tier": member.tier,
        "status": member.status,
        "churn_score": prediction.churn_score,
        "confidence_level": prediction.confidence_level,
        "risk_level": prediction.risk_level,
        "top_risk_factor": prediction.top_risk_factor,
        "predicted_churn_date": prediction.predicted_churn_date,
        "recommendations": prediction.recommendations,
    }
    for name, value in prediction.risk_factors.items():
        row[f"{name}_score"] = value
    return row


async def calculate_churn_score(
    member: Member,
    recent_activities: Records,
    recent_metrics: Records,
    historical_metrics: Records,
    payments: Records,
    now: Optional[datetime] = None,
    config: Optional[ScoringConfig] = None,
) -> ChurnPrediction:
    """
    Awaitable entry point for event-loop callers.

    The computation itself is synchronous and does no I/O.
    """
    return ChurnScorer(config).score(
        member,
        recent_activities,
        recent_metrics,
        historical_metrics,
        payments,
        now=now,
    )


@dataclass
class SampleData:
    """Table exports for a generated community."""

    members: pd.DataFrame
    activities: pd.DataFrame
    metrics: pd.DataFrame
    payments: pd.DataFrame


def generate_sample_data(
    n_members: int = 100,
    seed: int = 42,
    now: Optional[datetime] = None,
) -> SampleData:
    """
    Generate realistic sample data for testing.

    Each member gets an engagement propensity drawn from Beta(2, 2);
    activity volume, session length and payment reliability all follow
    it. Roughly a third of members are "fading": their engagement in
    the last two weeks is a fraction of their baseline.
    """
    now = reference_time(now)
    rng = np.random.RandomState(seed)

    propensity = rng.beta(2, 2, size=n_members)
    fading = rng.random_sample(n_members) < 0.33
    tiers = rng.choice(["free", "starter", "pro"], size=n_members, p=[0.5, 0.3, 0.2])
    tenure_days = rng.randint(5, 400, size=n_members)

    members, activities, metrics, payments = [], [], [], []

    def _days_ago(days):
        return now - pd.Timedelta(days=float(days))

    for i in range(n_members):
        member_id = f"mbr_{i:04d}"
        p = propensity[i]
        recent_scale = 0.25 if fading[i] else 1.0
        tenure = int(tenure_days[i])

        # Activity log (last 30 days)
        volumes = {
            "login": (p * 20, 30),
            "content_view": (p * 12 * recent_scale, 14),
            "download": (p * 2 * recent_scale, 14),
            "message": (p * 8 * recent_scale, 14),
        }
        login_times = []
        for activity_type, (rate, window) in volumes.items():
            window = min(window, tenure)
            for offset in rng.uniform(0, window, size=rng.poisson(rate)):
                created_at = _days_ago(offset)
                activities.append({
                    "member_id": member_id,
                    "type": activity_type,
                    "created_at": created_at,
                })
                if activity_type == "login":
                    login_times.append(created_at)

        last_seen = max(login_times) if login_times else None
        if last_seen is None and rng.random_sample() < 0.5:
            last_seen = _days_ago(min(rng.randint(15, 60), tenure))

        members.append({
            "id": member_id,
            "joined_at": _days_ago(tenure),
            "last_seen_at": last_seen,
            "status": "active",
            "tier": tiers[i],
        })

        # Daily engagement metrics (last 60 days, not every day)
        for day in range(min(60, tenure)):
            if rng.random_sample() > 0.3 + 0.6 * p:
                continue
            scale = recent_scale if day < 14 else 1.0
            metrics.append({
                "member_id": member_id,
                "date": _days_ago(day),
                "period": "daily",
                "login_count": int(rng.poisson(1 + 2 * p)),
                "content_views": int(rng.poisson(5 * p * scale)),
                "messages_sent": int(rng.poisson(3 * p * scale)),
                "downloads_count": int(rng.poisson(p * scale)),
                "session_duration": int(rng.gamma(2, 300 * p * scale) + 20),
            })

        # Monthly payments, most recent first
        failure_p = 0.35 * (1 - p)
        for month in range(min(12, tenure // 30 + 1)):
            status = rng.choice(
                ["succeeded", "failed", "pending"],
                p=[1 - failure_p - 0.02, failure_p, 0.02],
            )
            payments.append({
                "member_id": member_id,
                "amount": float(rng.choice([9.99, 19.99, 49.0])),
                "currency": "usd",
                "status": status,
                "processed_at": _days_ago(month * 30 + rng.randint(0, 3)),
            })

    return SampleData(
        members=pd.DataFrame(members),
        activities=pd.DataFrame(
            activities, columns=["member_id", "type", "created_at"]
        ),
        metrics=pd.DataFrame(
            metrics,
            columns=[
                "member_id",
                "date",
                "period",
                "login_count",
                "content_views",
                "messages_sent",
                "downloads_count",
                "session_duration",
            ],
        ),
        payments=pd.DataFrame(
            payments,
            columns=["member_id", "amount", "currency", "status", "processed_at"],
        ),
    )
