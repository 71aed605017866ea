"""Pydantic schemas for engine inputs, outputs and persisted rows"""

from recommender.schemas.catalog import (
    Interaction,
    InteractionPatch,
    InteractionType,
    PreferencesPatch,
    PriceRange,
    Product,
    UserPreferences,
)
from recommender.schemas.recommendation import (
    Algorithm,
    CandidateScore,
    Confidence,
    InteractionSummary,
    Recommendation,
    RecommendationPatch,
    RecommendationResult,
    RecommendationStats,
    SimilarUser,
    UserProfile,
)

__all__ = [
    "Interaction",
    "InteractionPatch",
    "InteractionType",
    "PreferencesPatch",
    "PriceRange",
    "Product",
    "UserPreferences",
    "Algorithm",
    "CandidateScore",
    "Confidence",
    "InteractionSummary",
    "Recommendation",
    "RecommendationPatch",
    "RecommendationResult",
    "RecommendationStats",
    "SimilarUser",
    "UserProfile",
]
