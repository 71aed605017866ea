"""Finds users whose interaction footprint overlaps with a target user"""

from collections import defaultdict

from recommender.core.tuning_config import get_config
from recommender.repositories.base import InteractionRepository
from recommender.schemas.catalog import Interaction, InteractionType
from recommender.schemas.recommendation import SimilarUser


class SimilarityFinder:
    """
    Neighbour search over shared products.

    For every other user who touched at least ``min_shared_products`` of the
    target's products, their interactions on those products are weighted
    (likes, favorites and good ratings count most) and the sum is divided by
    the number of shared products, capped at 1.0.
    """

    def __init__(self, interactions: InteractionRepository):
        self.interactions = interactions

    @staticmethod
    def interaction_weight(interaction: Interaction) -> float:
        cfg = get_config("similarity")
        if interaction.type == InteractionType.LIKE:
            return cfg["like_weight"]
        if interaction.type == InteractionType.FAVORITE:
            return cfg["favorite_weight"]
        if interaction.type == InteractionType.RATING:
            rating = interaction.rating or 0.0
            if rating >= 4:
                return cfg["high_rating_weight"]
            if rating >= 3:
                return cfg["mid_rating_weight"]
        return cfg["other_weight"]

    def find(self, user_id: int, limit: int = 10) -> list[SimilarUser]:
        """
        Find up to ``limit`` similar users, most similar first.

        Ties on similarity are broken by shared product count, then user id.
        """
        cfg = get_config("similarity")

        target_products = {i.product_id for i in self.interactions.get_user_interactions(user_id)}
        if not target_products or limit <= 0:
            return []

        weighted: dict[int, float] = defaultdict(float)
        shared: dict[int, set[int]] = defaultdict(set)

        for product_id in sorted(target_products):
            for interaction in self.interactions.get_product_interactions(product_id):
                if interaction.user_id == user_id:
                    continue
                weighted[interaction.user_id] += self.interaction_weight(interaction)
                shared[interaction.user_id].add(product_id)

        similar = []
        for other_id, products in shared.items():
            shared_count = len(products)
            score = weighted[other_id]
            if shared_count < cfg["min_shared_products"] or score <= cfg["min_weighted_score"]:
                continue
            similar.append(SimilarUser(
                user_id=other_id,
                similarity=max(0.0, min(1.0, score / max(1, shared_count))),
                shared_products=shared_count,
                weighted_score=score,
            ))

        similar.sort(key=lambda s: (-s.similarity, -s.shared_products, s.user_id))
        return similar[:limit]
