"""Pytest configuration and fixtures"""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from recommender.core.config import Settings
from recommender.repositories.memory import (
    InMemoryCatalogRepository,
    InMemoryInteractionRepository,
    InMemoryPreferenceRepository,
    InMemoryRecommendationRepository,
)
from recommender.schemas.catalog import Interaction, PriceRange, Product, UserPreferences
from recommender.services.recommendation_service import RecommendationService

BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when a test moves it"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(BASE_TIME + timedelta(days=30))


@pytest.fixture
def make_interaction():
    """Factory for interactions with increasing ids and timestamps"""
    ids = count(1)

    def _make(user_id: int, product_id: int, type: str = "like", rating=None) -> Interaction:
        interaction_id = next(ids)
        return Interaction(
            id=interaction_id,
            user_id=user_id,
            product_id=product_id,
            type=type,
            timestamp=BASE_TIME + timedelta(minutes=interaction_id),
            metadata={"rating": rating} if rating is not None else {},
        )

    return _make


@pytest.fixture
def sample_products() -> list[Product]:
    """Small catalog; product 6 is unavailable"""
    return [
        Product(id=1, name="MacBook Air", category="Electronics", brand="Apple", price=999.99),
        Product(id=2, name="Canvas Tote", category="Accessories", brand="Herschel", price=20.0),
        Product(id=3, name="Galaxy Tab", category="Electronics", brand="Samsung", price=649.0),
        Product(id=4, name="AirPods", category="Audio", brand="Apple", price=249.0),
        Product(id=5, name="Running Shoes", category="Sportswear", brand="Nike", price=120.0,
                style="athletic"),
        Product(id=6, name="Desk Lamp", category="Home", brand="Ikea", price=35.0,
                availability=False),
    ]


@pytest.fixture
def sample_interactions(make_interaction) -> list[Interaction]:
    """
    User 1 liked 1 and 3. User 2 shares both and also liked 4 and bought 5.
    User 3 favorited 1, rated 3 highly and viewed 2. User 4 only disliked 2.
    """
    return [
        make_interaction(1, 1, "like"),
        make_interaction(1, 3, "like"),
        make_interaction(2, 1, "like"),
        make_interaction(2, 3, "like"),
        make_interaction(2, 4, "like"),
        make_interaction(2, 5, "purchase"),
        make_interaction(3, 1, "favorite"),
        make_interaction(3, 3, "rating", rating=5),
        make_interaction(3, 2, "view"),
        make_interaction(4, 2, "dislike"),
    ]


@pytest.fixture
def sample_preferences() -> list[UserPreferences]:
    return [
        UserPreferences(
            user_id=1,
            categories=["Electronics"],
            brands=["Apple"],
            price_range=PriceRange(min=500, max=1500),
        ),
    ]


@pytest.fixture
def interaction_repo(sample_interactions) -> InMemoryInteractionRepository:
    return InMemoryInteractionRepository.from_interactions(sample_interactions)


@pytest.fixture
def catalog_repo(sample_products) -> InMemoryCatalogRepository:
    return InMemoryCatalogRepository.from_products(sample_products)


@pytest.fixture
def preference_repo(sample_preferences) -> InMemoryPreferenceRepository:
    return InMemoryPreferenceRepository(sample_preferences)


@pytest.fixture
def recommendation_repo() -> InMemoryRecommendationRepository:
    return InMemoryRecommendationRepository()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(default_limit=10, expiration_hours=24, refresh_workers=2)


@pytest.fixture
def service(
    interaction_repo,
    catalog_repo,
    preference_repo,
    recommendation_repo,
    test_settings,
    clock
) -> RecommendationService:
    return RecommendationService(
        interactions=interaction_repo,
        catalog=catalog_repo,
        preferences=preference_repo,
        recommendations=recommendation_repo,
        settings=test_settings,
        clock=clock,
    )
