"""Collaborative scorer: products touched by similar users"""

from collections import defaultdict
from typing import Optional

from loguru import logger

from recommender.core.config import settings
from recommender.models.base import BaseScorer
from recommender.models.interaction_weights import affinity_weight
from recommender.models.similarity import SimilarityFinder
from recommender.repositories.base import CatalogRepository, InteractionRepository
from recommender.schemas.recommendation import Algorithm, CandidateScore

COLLABORATIVE_REASON = "Recommended by users with similar preferences"


class CollaborativeScorer(BaseScorer):
    """
    Score products the target never touched by what similar users did
    with them.

    Each neighbour interaction adds ``affinity(type) * similarity`` to the
    product's score, so a product disliked by neighbours loses score.
    Products whose accumulated score is not positive are dropped.
    """

    algorithm = Algorithm.COLLABORATIVE

    def __init__(
        self,
        interactions: InteractionRepository,
        catalog: CatalogRepository,
        similarity: Optional[SimilarityFinder] = None,
        similar_users_limit: Optional[int] = None
    ):
        self.interactions = interactions
        self.catalog = catalog
        self.similarity = similarity or SimilarityFinder(interactions)
        self.similar_users_limit = similar_users_limit or settings.similar_users_limit

    def score(self, user_id: int, n: int = 10) -> list[CandidateScore]:
        similar_users = self.similarity.find(user_id, self.similar_users_limit)
        if not similar_users:
            logger.debug(f"No similar users for user {user_id}")
            return []

        seen = {i.product_id for i in self.interactions.get_user_interactions(user_id)}

        scores: dict[int, float] = defaultdict(float)
        for neighbour in similar_users:
            for interaction in self.interactions.get_user_interactions(neighbour.user_id):
                if interaction.product_id in seen:
                    continue
                scores[interaction.product_id] += affinity_weight(interaction.type) * neighbour.similarity

        if not scores:
            return []

        available = {p.id for p in self.catalog.get_products_by_ids(scores.keys())}
        # Rank on the accumulated score; clamping happens afterwards
        ranked = sorted(
            ((product_id, value) for product_id, value in scores.items()
             if product_id in available and value > 0),
            key=lambda item: (-item[1], item[0])
        )[:max(0, n)]
        return [
            self._create_candidate(product_id, value, COLLABORATIVE_REASON)
            for product_id, value in ranked
        ]
