"""Builds the transient scoring profile of a user"""

from loguru import logger

from recommender.core.tuning_config import get_config
from recommender.repositories.base import InteractionRepository, PreferenceRepository
from recommender.schemas.catalog import PriceRange
from recommender.schemas.recommendation import UserProfile


class UserProfileBuilder:
    """
    Combine stored preferences and interaction history into a UserProfile.

    Category and brand weights come only from explicit preferences; the
    interaction history contributes the positive interaction count. A
    profile is rebuilt for every scoring pass and never cached.
    """

    def __init__(
        self,
        interactions: InteractionRepository,
        preferences: PreferenceRepository
    ):
        self.interactions = interactions
        self.preferences = preferences

    def build(self, user_id: int) -> UserProfile:
        cfg = get_config("user_profile")

        history = self.interactions.get_user_interactions(user_id)
        positive = [i for i in history if i.is_positive(cfg["positive_rating"])]

        prefs = self.preferences.get_preferences(user_id)
        if prefs is None:
            logger.debug(f"User {user_id} has no stored preferences, using defaults")
            return UserProfile(
                user_id=user_id,
                price_preference=PriceRange(
                    min=cfg["default_price_min"],
                    max=cfg["default_price_max"]
                ),
                positive_interaction_count=len(positive),
            )

        return UserProfile(
            user_id=user_id,
            category_weights={c.lower(): 1.0 for c in prefs.categories},
            brand_weights={b.lower(): 1.0 for b in prefs.brands},
            price_preference=prefs.price_range,
            positive_interaction_count=len(positive),
        )
