"""Retention recommendations for the riskiest factors."""

from typing import Mapping

from .config import ScoringConfig, DEFAULT_CONFIG


def generate_recommendations(
    risk_factors: Mapping[str, int],
    config: ScoringConfig = DEFAULT_CONFIG,
) -> list[str]:
    """
    Pick retention actions for the member's top risk factors.

    Factors are ranked by score (ties keep declared order), the top three
    are kept and any scoring below ``min_actionable_score`` is skipped.
    Each remaining factor contributes its pair of actions from
    ``config.recommendations``.
    """
    ranked = sorted(risk_factors.items(), key=lambda item: item[1], reverse=True)

    recommendations = []
    for factor, score in ranked[: config.max_recommended_factors]:
        if score < config.min_actionable_score:
            continue
        recommendations.extend(config.recommendations.get(factor, ()))
    return recommendations
