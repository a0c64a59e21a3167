"""Scoring components for member churn risk."""

from .base import BaseScorer, clamp, tiered
from .login import LoginFrequencyScorer
from .engagement import EngagementDropScorer
from .payment import PaymentIssuesScorer
from .content import ContentConsumptionScorer
from .session import SessionDurationScorer
from .message import MessageActivityScorer

__all__ = [
    "BaseScorer",
    "LoginFrequencyScorer",
    "EngagementDropScorer",
    "PaymentIssuesScorer",
    "ContentConsumptionScorer",
    "SessionDurationScorer",
    "MessageActivityScorer",
    "clamp",
    "tiered",
]
