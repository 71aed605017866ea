"""Content-based scorer: catalog products matched against the user profile"""

from recommender.core.tuning_config import get_config
from recommender.models.base import BaseScorer
from recommender.models.user_profile import UserProfileBuilder
from recommender.repositories.base import CatalogRepository, InteractionRepository
from recommender.schemas.catalog import PriceRange, Product
from recommender.schemas.recommendation import Algorithm, CandidateScore, UserProfile


def attribute_match(value: str, weights: dict[str, float], partial_factor: float) -> float:
    """
    Score an attribute against a weight map.

    An exact (case-insensitive) key gives the key's weight. Otherwise the
    first key that contains the value, or is contained in it, gives a
    reduced weight.
    """
    value = (value or "").strip().lower()
    if not value or not weights:
        return 0.0
    if value in weights:
        return weights[value]
    for key, weight in weights.items():
        if key and (key in value or value in key):
            return weight * partial_factor
    return 0.0


def price_fit(price: float, window: PriceRange) -> float:
    """1.0 at the middle of the window, falling to 0 at its edges and outside"""
    if price < window.min or price > window.max:
        return 0.0
    half_range = (window.max - window.min) / 2
    if half_range <= 0:
        return 1.0
    mid = (window.min + window.max) / 2
    return max(0.0, 1 - abs(price - mid) / half_range)


class ContentBasedScorer(BaseScorer):
    """
    Score unseen, available products by category, brand, price and style.

    Sub-scores are combined as a weighted average over the weights that
    apply; style only applies to products that carry a style.
    """

    algorithm = Algorithm.CONTENT_BASED

    def __init__(
        self,
        interactions: InteractionRepository,
        catalog: CatalogRepository,
        profiles: UserProfileBuilder
    ):
        self.interactions = interactions
        self.catalog = catalog
        self.profiles = profiles

    def score(self, user_id: int, n: int = 10) -> list[CandidateScore]:
        profile = self.profiles.build(user_id)
        seen = {i.product_id for i in self.interactions.get_user_interactions(user_id)}

        candidates = []
        for product in self.catalog.get_available_products():
            if product.id in seen:
                continue
            value, reason = self.score_product(product, profile)
            candidates.append(self._create_candidate(product.id, value, reason))

        return self._rank(candidates, n)

    def score_product(self, product: Product, profile: UserProfile) -> tuple[float, str]:
        """Return (score, reason) for one product"""
        cfg = get_config("content_based")
        partial = cfg["partial_match_factor"]

        category_score = attribute_match(product.category, profile.category_weights, partial)
        brand_score = attribute_match(product.brand, profile.brand_weights, partial)
        price_score = price_fit(product.price, profile.price_preference)

        total = (
            category_score * cfg["category_weight"]
            + brand_score * cfg["brand_weight"]
            + price_score * cfg["price_weight"]
        )
        applied = cfg["category_weight"] + cfg["brand_weight"] + cfg["price_weight"]

        if product.style:
            total += cfg["style_placeholder"] * cfg["style_weight"]
            applied += cfg["style_weight"]

        value = total / applied if applied > 0 else 0.0

        return value, self._build_reason(
            product, value, category_score, brand_score, price_score, cfg["reason_threshold"]
        )

    @staticmethod
    def _build_reason(
        product: Product,
        value: float,
        category_score: float,
        brand_score: float,
        price_score: float,
        threshold: float
    ) -> str:
        parts = []
        if category_score > threshold:
            parts.append(f"matches your {product.category} preferences")
        if brand_score > threshold:
            parts.append(f"from your preferred brand {product.brand}")
        if price_score > threshold:
            parts.append("within your price range")

        if parts:
            return "Recommended because it " + " and ".join(parts)
        return f"Recommended based on your preferences ({min(1.0, value) * 100:.0f}% match)"
