"""
Scoring configuration for member churn risk.

All weights, thresholds, time windows and recommendation copy are defined
here so they can be tuned (or A/B tested from YAML files) without touching
the scoring components.

Threshold tables are lists of (threshold, points) pairs evaluated in order;
the first match wins and the matching rule is documented beside each table.
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Tuple

import yaml


FACTOR_NAMES = (
    "login_frequency",
    "engagement_drop",
    "payment_issues",
    "content_consumption",
    "session_duration",
    "message_activity",
)


@dataclass
class ScoringConfig:
    """
    Configuration for all scoring components.

    Every factor scores 0-100. The churn score is the weighted sum:
    - Login Frequency: 25%
    - Engagement Drop: 20%
    - Payment Issues: 20%
    - Content Consumption: 15%
    - Session Duration: 10%
    - Message Activity: 10%
    """

    # === Factor Weights (must sum to 1.0) ===
    weights: Dict[str, float] = field(default_factory=lambda: {
        "login_frequency": 0.25,
        "engagement_drop": 0.20,
        "payment_issues": 0.20,
        "content_consumption": 0.15,
        "session_duration": 0.10,
        "message_activity": 0.10,
    })

    # === Login Frequency (additive, 0-100) ===
    # logins in last 7 days <= threshold
    login_week_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (0, 40),   # No logins this week
        (1, 20),   # A single login
        # 2+: 0 points
    ])
    # logins in last 30 days <= threshold
    login_month_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (3, 30),   # Fewer than 4 logins this month
        (7, 15),   # 4-7 logins
        # 8+: 0 points
    ])
    # days since last seen > threshold
    last_seen_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (14, 30),  # Gone for over two weeks
        (7, 15),   # Gone for over a week
    ])
    never_seen_days: int = 999

    # === Engagement Drop (additive, 0-100) ===
    # percentage drop vs. baseline > threshold
    content_drop_thresholds: List[Tuple[float, int]] = field(default_factory=lambda: [
        (50, 35),
        (30, 20),
        (15, 10),
    ])
    message_drop_thresholds: List[Tuple[float, int]] = field(default_factory=lambda: [
        (60, 30),
        (40, 15),
        (20, 8),
    ])
    session_drop_thresholds: List[Tuple[float, int]] = field(default_factory=lambda: [
        (50, 35),
        (30, 20),
        (15, 10),
    ])
    min_baseline_rows: int = 4
    baseline_epsilon: float = 1e-9

    # === Payment Issues (0-100) ===
    # failure rate % > threshold
    failure_rate_thresholds: List[Tuple[float, int]] = field(default_factory=lambda: [
        (50, 80),
        (30, 60),
        (10, 30),
        (0, 15),
    ])
    payment_window: int = 6
    recent_failure_points: int = 20
    no_payments_default: int = 50

    # === Content Consumption (0-100) ===
    content_window_days: int = 7
    no_content_points: int = 90
    # content views in window < threshold
    content_view_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (2, 60),
        (5, 30),
    ])

    # === Session Duration (0-100) ===
    # average session seconds < threshold
    session_thresholds: List[Tuple[float, int]] = field(default_factory=lambda: [
        (60, 80),    # Under a minute
        (180, 60),   # Under 3 minutes
        (300, 40),   # Under 5 minutes
        (600, 20),   # Under 10 minutes
    ])
    no_sessions_default: int = 50

    # === Message Activity (0-100) ===
    message_window_days: int = 14
    # messages in window < threshold
    message_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (1, 70),   # Silent
        (3, 40),
        (7, 20),
    ])

    # === Confidence (0-100, additive on a base) ===
    confidence_base: int = 50
    # value > threshold
    tenure_confidence: List[Tuple[int, int]] = field(default_factory=lambda: [
        (60, 20),
        (30, 10),
    ])
    activity_confidence: List[Tuple[int, int]] = field(default_factory=lambda: [
        (100, 15),
        (50, 10),
        (20, 5),
    ])
    metrics_confidence: List[Tuple[int, int]] = field(default_factory=lambda: [
        (30, 10),
        (14, 5),
    ])
    payment_confidence: List[Tuple[int, int]] = field(default_factory=lambda: [
        (6, 5),
        (3, 3),
    ])

    # === Churn Date Projection ===
    forecast_min_score: int = 40
    forecast_horizon_days: float = 120
    forecast_days_per_point: float = 1.2

    # === Recommendations ===
    max_recommended_factors: int = 3
    min_actionable_score: int = 30
    recommendations: Dict[str, Tuple[str, str]] = field(default_factory=lambda: {
        "login_frequency": (
            "Send re-engagement email highlighting new content",
            "Offer exclusive content or limited-time access",
        ),
        "engagement_drop": (
            "Schedule 1-on-1 check-in call or message",
            "Survey member about their experience and needs",
        ),
        "payment_issues": (
            "Reach out about payment method update",
            "Offer payment plan or alternative billing options",
        ),
        "content_consumption": (
            "Share personalized content recommendations",
            "Highlight most popular or relevant content",
        ),
        "session_duration": (
            "Improve content discoverability and navigation",
            "Send curated content digest emails",
        ),
        "message_activity": (
            "Invite to community events or discussions",
            "Encourage participation with contests or challenges",
        ),
    })

    # === Metric Windows (batch scoring) ===
    recent_window_days: int = 14
    baseline_start_days: int = 60
    baseline_end_days: int = 30
    metrics_period: str = "daily"

    # === Risk Level Categorization ===
    risk_levels: Dict[str, Tuple[int, int]] = field(default_factory=lambda: {
        "low": (0, 39),
        "medium": (40, 69),
        "high": (70, 84),
        "critical": (85, 100),
    })
    alert_threshold: int = 70

    # === Metadata ===
    max_score: int = 100
    version: str = "1.0.0"

    def get_risk_level(self, score: int) -> str:
        """Map numeric score to risk level."""
        for level, (low, high) in self.risk_levels.items():
            if low <= score <= high:
                return level
        return "unknown"

    def validate(self) -> None:
        """
        Check the weight and recommendation tables cover every factor.

        Raises:
            ValueError: If weights are incomplete or do not sum to 1.0
        """
        missing = set(FACTOR_NAMES) - set(self.weights)
        extra = set(self.weights) - set(FACTOR_NAMES)
        if missing or extra:
            raise ValueError(
                f"Weights must cover exactly {list(FACTOR_NAMES)} "
                f"(missing: {missing or '{}'}, unknown: {extra or '{}'})"
            )

        total = sum(self.weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Weights must sum to 1.0, got {total:.4f}")

        missing_copy = set(FACTOR_NAMES) - set(self.recommendations)
        if missing_copy:
            raise ValueError(f"Missing recommendations for: {missing_copy}")

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ScoringConfig":
        """
        Load configuration from YAML file.

        Keys not present in the file keep their defaults, so a YAML file
        only needs the values being tuned.
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys in {path.name}: {unknown}")

        # YAML has no tuples
        for key, value in data.items():
            if isinstance(value, list):
                data[key] = [tuple(v) if isinstance(v, list) else v for v in value]
        if "recommendations" in data:
            data["recommendations"] = {
                k: tuple(v) for k, v in data["recommendations"].items()
            }
        if "risk_levels" in data:
            data["risk_levels"] = {k: tuple(v) for k, v in data["risk_levels"].items()}

        config = cls(**data)
        config.validate()
        return config

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = _plain(asdict(self))
        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def _plain(value):
    """Turn tuples into lists so safe_dump can write them."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


# Default configuration instance
DEFAULT_CONFIG = ScoringConfig()
