"""Store contracts and their in-memory implementations"""

from recommender.repositories.base import (
    CatalogRepository,
    InteractionRepository,
    PreferenceRepository,
    RecommendationRepository,
)
from recommender.repositories.memory import (
    InMemoryCatalogRepository,
    InMemoryInteractionRepository,
    InMemoryPreferenceRepository,
    InMemoryRecommendationRepository,
)

__all__ = [
    "CatalogRepository",
    "InteractionRepository",
    "PreferenceRepository",
    "RecommendationRepository",
    "InMemoryCatalogRepository",
    "InMemoryInteractionRepository",
    "InMemoryPreferenceRepository",
    "InMemoryRecommendationRepository",
]
