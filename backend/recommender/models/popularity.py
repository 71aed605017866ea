"""Popularity scorer for cold-start and fallback scenarios"""

from recommender.core.tuning_config import get_config
from recommender.models.base import BaseScorer
from recommender.repositories.base import CatalogRepository, InteractionRepository
from recommender.schemas.recommendation import Algorithm, CandidateScore

POPULARITY_REASON = "Popular among other users"


class PopularityScorer(BaseScorer):
    """
    Popularity-based scorer using interaction counts across all users.

    Every available product the user has not touched is a candidate;
    products nobody interacted with score 0.
    """

    algorithm = Algorithm.POPULARITY

    def __init__(self, interactions: InteractionRepository, catalog: CatalogRepository):
        self.interactions = interactions
        self.catalog = catalog

    def score(self, user_id: int, n: int = 10) -> list[CandidateScore]:
        normalizer = get_config("popularity.count_normalizer")

        seen = {i.product_id for i in self.interactions.get_user_interactions(user_id)}
        counts = self.interactions.count_interactions_by_product()

        candidates = [
            self._create_candidate(
                product.id,
                min(counts.get(product.id, 0) / normalizer, 1.0),
                POPULARITY_REASON
            )
            for product in self.catalog.get_available_products()
            if product.id not in seen
        ]
        return self._rank(candidates, n)
