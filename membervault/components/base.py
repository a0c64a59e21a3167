"""Base class and helpers for scoring components."""

import operator
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Iterable, Tuple

import pandas as pd

if TYPE_CHECKING:
    from ..config import ScoringConfig
    from ..frames import MemberFrames


def tiered(
    value: float,
    thresholds: Iterable[Tuple[float, int]],
    default: int = 0,
    compare: Callable[[float, float], bool] = operator.le,
) -> int:
    """
    Look up points for a value in a threshold table (first match wins).

    Args:
        value: Measured value
        thresholds: (threshold, points) pairs in evaluation order
        default: Points when no threshold matches
        compare: ``compare(value, threshold)`` decides a match

    Returns:
        Points for the first matching threshold
    """
    for threshold, points in thresholds:
        if compare(value, threshold):
            return points
    return default


def clamp(score: float, low: int = 0, high: int = 100) -> int:
    """Clamp a score into [low, high]."""
    return int(max(low, min(high, score)))


class BaseScorer(ABC):
    """
    Abstract base class for scoring components.

    Each component turns one member's frames into a single 0-100 risk
    factor using pandas filtering and aggregation.
    """

    name: str = "base"

    def __init__(self, config: "ScoringConfig"):
        """
        Initialize scorer with configuration.

        Args:
            config: ScoringConfig instance with thresholds and weights
        """
        self.config = config

    @abstractmethod
    def score(self, frames: "MemberFrames", now: pd.Timestamp) -> int:
        """
        Calculate the factor score for one member.

        Args:
            frames: Normalized inputs for the member
            now: Reference time shared by every component

        Returns:
            Integer score in [0, 100]
        """
        pass

    @property
    @abstractmethod
    def required_columns(self) -> dict[str, list[str]]:
        """Columns required by this scorer, keyed by frame name."""
        pass

    def validate(self, frames: "MemberFrames") -> None:
        """Validate required columns exist."""
        for frame_name, columns in self.required_columns.items():
            df = getattr(frames, frame_name)
            missing = set(columns) - set(df.columns)
            if missing:
                raise ValueError(
                    f"{self.__class__.__name__} requires {frame_name} columns: {missing}"
                )

    @staticmethod
    def count_events(
        activities: pd.DataFrame,
        activity_type: str,
        since: pd.Timestamp,
    ) -> int:
        """Count activities of one type at or after ``since``."""
        mask = (activities["type"] == activity_type) & (activities["created_at"] >= since)
        return int(mask.sum())
