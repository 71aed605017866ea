"""Recommendation scorers and the fusion combiner"""

from recommender.models.base import BaseScorer
from recommender.models.collaborative import CollaborativeScorer
from recommender.models.content_based import ContentBasedScorer
from recommender.models.hybrid import FusionCombiner
from recommender.models.interaction_weights import (
    affinity_weight,
    analytics_score,
    summarize_interactions,
)
from recommender.models.popularity import PopularityScorer
from recommender.models.similarity import SimilarityFinder
from recommender.models.user_profile import UserProfileBuilder

__all__ = [
    "BaseScorer",
    "CollaborativeScorer",
    "ContentBasedScorer",
    "FusionCombiner",
    "PopularityScorer",
    "SimilarityFinder",
    "UserProfileBuilder",
    "affinity_weight",
    "analytics_score",
    "summarize_interactions",
]
