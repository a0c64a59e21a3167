"""Churn date projection."""

import math
from datetime import datetime
from typing import Optional

import pandas as pd

from .config import ScoringConfig, DEFAULT_CONFIG


def days_until_churn(churn_score: int, config: ScoringConfig = DEFAULT_CONFIG) -> int:
    """Days left before a member at this score is expected to churn (at least 1)."""
    # round() strips float noise such as 120 - 40 * 1.2 = 71.99999...
    remaining = round(
        config.forecast_horizon_days - churn_score * config.forecast_days_per_point, 9
    )
    return max(1, math.floor(remaining))


def predict_churn_date(
    churn_score: int,
    now: pd.Timestamp,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> Optional[datetime]:
    """
    Project when a member is likely to churn.

    Scores below ``forecast_min_score`` are not at risk enough to
    predict and return None. Higher scores give sooner dates.
    """
    if churn_score < config.forecast_min_score:
        return None
    days = days_until_churn(churn_score, config)
    return (now + pd.Timedelta(days=days)).to_pydatetime()
