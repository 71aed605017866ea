"""Read/write contracts the engine consumes from its backing stores"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from recommender.schemas.catalog import Interaction, Product, UserPreferences
from recommender.schemas.recommendation import Recommendation


class InteractionRepository(Protocol):
    """Source of user interactions; every query returns newest first"""

    def get_user_interactions(self, user_id: int) -> List[Interaction]:
        ...

    def get_product_interactions(self, product_id: int) -> List[Interaction]:
        ...

    def count_interactions_by_product(self) -> Dict[int, int]:
        """Number of interactions per product, across all users"""
        ...


class CatalogRepository(Protocol):
    """Product catalog; only available products are ever returned"""

    def get_available_products(self) -> List[Product]:
        ...

    def get_products_by_ids(self, product_ids: Iterable[int]) -> List[Product]:
        ...


class PreferenceRepository(Protocol):
    def get_preferences(self, user_id: int) -> Optional[UserPreferences]:
        ...


class RecommendationRepository(Protocol):
    """
    Persisted recommendations.

    ``replace_recommendations`` must swap a user's rows in one step so that
    readers never observe a partially refreshed set.
    """

    def delete_recommendations(self, user_id: int) -> int:
        ...

    def insert_recommendations(self, records: Sequence[Recommendation]) -> List[Recommendation]:
        ...

    def replace_recommendations(
        self,
        user_id: int,
        records: Sequence[Recommendation]
    ) -> List[Recommendation]:
        ...

    def query_active_recommendations(self, user_id: int, now: datetime) -> List[Recommendation]:
        ...

    def query_users_with_expired(self, now: datetime) -> List[int]:
        ...
