"""
Interaction weight tables.

Two independent tables: affinity weights feed the scorers, analytics
scores are only used for engagement reporting.
"""

from collections import Counter
from typing import Iterable

from recommender.schemas.catalog import Interaction, InteractionType
from recommender.schemas.recommendation import InteractionSummary

AFFINITY_WEIGHTS: dict[InteractionType, float] = {
    InteractionType.PURCHASE: 1.0,
    InteractionType.FAVORITE: 0.9,
    InteractionType.RATING: 0.8,
    InteractionType.LIKE: 0.7,
    InteractionType.VIEW: 0.1,
    InteractionType.DISLIKE: -0.5,
}

ANALYTICS_SCORES: dict[InteractionType, int] = {
    InteractionType.PURCHASE: 10,
    InteractionType.FAVORITE: 8,
    InteractionType.RATING: 6,
    InteractionType.LIKE: 5,
    InteractionType.VIEW: 1,
    InteractionType.DISLIKE: -2,
}


def affinity_weight(interaction_type: InteractionType) -> float:
    """Scoring weight of an interaction type"""
    return AFFINITY_WEIGHTS[InteractionType(interaction_type)]


def analytics_score(interaction_type: InteractionType) -> int:
    """Reporting score of an interaction type"""
    return ANALYTICS_SCORES[InteractionType(interaction_type)]


def summarize_interactions(user_id: int, interactions: Iterable[Interaction]) -> InteractionSummary:
    """
    Build engagement statistics for a user's interactions.

    Conversion rate is purchases over total interactions and the engagement
    score is the sum of analytics scores.
    """
    interactions = list(interactions)
    if not interactions:
        return InteractionSummary(user_id=user_id)

    type_counts = Counter(i.type.value for i in interactions)
    purchases = type_counts.get(InteractionType.PURCHASE.value, 0)

    return InteractionSummary(
        user_id=user_id,
        total_interactions=len(interactions),
        type_counts=dict(type_counts),
        unique_products=len({i.product_id for i in interactions}),
        active_days=len({i.timestamp.date() for i in interactions}),
        conversion_rate=purchases / len(interactions),
        engagement_score=float(sum(analytics_score(i.type) for i in interactions)),
    )
