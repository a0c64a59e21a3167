"""Confidence estimation for churn predictions."""

import operator

import pandas as pd

from .components.base import clamp, tiered
from .config import ScoringConfig, DEFAULT_CONFIG
from .frames import to_utc
from .records import Member


def estimate_confidence(
    member: Member,
    activity_count: int,
    metric_count: int,
    payment_count: int,
    now: pd.Timestamp,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> int:
    """
    Estimate how much history backs a churn score.

    Starts from a base of 50 and adds a bonus for each kind of history:
    tenure (>60 days +20, >30 +10), tracked activities (>100 +15,
    >50 +10, >20 +5), engagement metric rows (>30 +10, >14 +5) and
    payments (>6 +5, >3 +3).

    Args:
        member: Member being scored (for join date)
        activity_count: Number of activities considered
        metric_count: Recent plus historical engagement metric rows
        payment_count: Number of payments considered
        now: Reference time
        config: ScoringConfig with bonus tables

    Returns:
        Confidence in [0, 100]
    """
    joined_at = to_utc(member.joined_at)
    tenure_days = (now - joined_at).days if joined_at is not None else 0

    confidence = (
        config.confidence_base
        + tiered(tenure_days, config.tenure_confidence, compare=operator.gt)
        + tiered(activity_count, config.activity_confidence, compare=operator.gt)
        + tiered(metric_count, config.metrics_confidence, compare=operator.gt)
        + tiered(payment_count, config.payment_confidence, compare=operator.gt)
    )
    return clamp(confidence)
