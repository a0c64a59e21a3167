"""
MemberVault churn risk package

A rule-based scoring system for predicting which members of a creator's
community are about to churn, and what to do about it.
"""

from .scorer import (
    ChurnPrediction,
    ChurnScorer,
    ScoringResult,
    calculate_churn_score,
    generate_sample_data,
)
from .config import ScoringConfig
from .records import Activity, EngagementMetrics, Member, Payment

__all__ = [
    "ChurnScorer",
    "ChurnPrediction",
    "ScoringResult",
    "ScoringConfig",
    "Member",
    "Activity",
    "EngagementMetrics",
    "Payment",
    "calculate_churn_score",
    "generate_sample_data",
]
__version__ = "1.0.0"
