"""
Recommendation Service

Public entry point of the engine:
- generate: return active recommendations, or fuse, persist and return new ones
- refresh / refresh_expired: recompute and atomically replace a user's rows
- score_for / stats / engagement_summary: read-side queries
"""

import threading
import weakref
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from pydantic import ValidationError

from recommender.core.config import Settings, settings as default_settings
from recommender.core.errors import InvalidRecommendationError, PersistenceError
from recommender.core.logging import log_timing
from recommender.core.tuning_config import get_config
from recommender.models.base import BaseScorer
from recommender.models.collaborative import CollaborativeScorer
from recommender.models.content_based import ContentBasedScorer
from recommender.models.hybrid import FusionCombiner
from recommender.models.interaction_weights import summarize_interactions
from recommender.models.popularity import PopularityScorer
from recommender.models.similarity import SimilarityFinder
from recommender.models.user_profile import UserProfileBuilder
from recommender.repositories.base import (
    CatalogRepository,
    InteractionRepository,
    PreferenceRepository,
    RecommendationRepository,
)
from recommender.repositories.memory import InMemoryRecommendationRepository
from recommender.schemas.recommendation import (
    CandidateScore,
    Confidence,
    InteractionSummary,
    Recommendation,
    RecommendationResult,
    RecommendationStats,
)
from recommender.utils.data_loader import DataLoader


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationService:
    """
    Recommendation lifecycle manager.

    All collaborators are passed in; the service owns no global state.
    Rows for one user are written under that user's lock so a refresh and
    a concurrent generate never interleave.
    """

    def __init__(
        self,
        interactions: InteractionRepository,
        catalog: CatalogRepository,
        preferences: PreferenceRepository,
        recommendations: RecommendationRepository,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.interactions = interactions
        self.catalog = catalog
        self.preferences = preferences
        self.recommendations = recommendations
        self.settings = settings or default_settings
        self._clock = clock

        self.profiles = UserProfileBuilder(interactions, preferences)
        self.similarity = SimilarityFinder(interactions)
        self.collaborative = CollaborativeScorer(
            interactions,
            catalog,
            similarity=self.similarity,
            similar_users_limit=self.settings.similar_users_limit
        )
        self.content_based = ContentBasedScorer(interactions, catalog, self.profiles)
        self.popularity = PopularityScorer(interactions, catalog)
        self.fusion = FusionCombiner([self.collaborative, self.content_based, self.popularity])

        # A user's lock lives only while some caller holds a reference to it
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _user_lock(self, user_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _build_records(
        self,
        user_id: int,
        candidates: list[CandidateScore],
        now: datetime
    ) -> list[Recommendation]:
        """Turn fused candidates into validated rows"""
        expires_at = now + timedelta(hours=self.settings.expiration_hours)
        try:
            return [
                Recommendation(
                    user_id=user_id,
                    product_id=c.product_id,
                    score=c.score,
                    algorithm=c.algorithm,
                    reason=c.reason,
                    created_at=now,
                    expires_at=expires_at,
                )
                for c in candidates
            ]
        except ValidationError as e:
            raise InvalidRecommendationError(
                f"Invalid recommendation for user {user_id}: {e}"
            ) from e

    @staticmethod
    def _by_score(rows: list[Recommendation]) -> list[Recommendation]:
        return sorted(rows, key=lambda r: r.score, reverse=True)

    def generate(self, user_id: int, limit: Optional[int] = None) -> list[RecommendationResult]:
        """
        Get recommendations for a user.

        Unexpired persisted rows are returned as they are. Otherwise a fresh
        set is fused, persisted with a new freshness window and returned.

        Args:
            user_id: User identifier
            limit: Maximum number of recommendations (default from settings)

        Returns:
            Recommendations sorted by score, best first. Never None.

        Raises:
            PersistenceError: if the store fails
        """
        limit = self.settings.default_limit if limit is None else limit
        if limit <= 0:
            return []

        active = self.recommendations.query_active_recommendations(user_id, self._clock())
        if active:
            logger.debug(f"Returning {len(active)} active recommendations for user {user_id}")
            return [r.to_result() for r in self._by_score(active)[:limit]]

        with self._user_lock(user_id):
            now = self._clock()
            # Another thread may have persisted a set while we waited
            active = self.recommendations.query_active_recommendations(user_id, now)
            if active:
                return [r.to_result() for r in self._by_score(active)[:limit]]

            candidates = self.fusion.combine(user_id, limit)
            if not candidates:
                logger.info(f"No recommendations available for user {user_id}")
                return []

            stored = self.recommendations.replace_recommendations(
                user_id, self._build_records(user_id, candidates, now)
            )

        logger.info(f"Generated {len(stored)} recommendations for user {user_id}")
        return [r.to_result() for r in self._by_score(stored)]

    def refresh(self, user_id: int) -> list[RecommendationResult]:
        """
        Recompute a user's recommendations and replace the persisted set.

        The new set is computed before the lock is taken; the swap itself
        is a single replace so readers see either the old or the new rows.
        """
        candidates = self.fusion.combine(user_id, self.settings.default_limit)

        with self._user_lock(user_id):
            records = self._build_records(user_id, candidates, self._clock())
            stored = self.recommendations.replace_recommendations(user_id, records)

        logger.info(f"Refreshed recommendations for user {user_id}: {len(stored)} rows")
        return [r.to_result() for r in self._by_score(stored)]

    def refresh_expired(self) -> int:
        """
        Refresh every user holding at least one expired row.

        Returns:
            Number of users refreshed
        """
        user_ids = self.recommendations.query_users_with_expired(self._clock())
        if not user_ids:
            logger.debug("No expired recommendations to refresh")
            return 0

        workers = max(1, min(self.settings.refresh_workers, len(user_ids)))
        with log_timing("refresh_expired", users=len(user_ids), workers=workers):
            with ThreadPoolExecutor(max_workers=workers) as pool:
                list(pool.map(self.refresh, user_ids))

        logger.info(f"Refreshed expired recommendations for {len(user_ids)} users")
        return len(user_ids)

    def score_for(self, user_id: int, product_id: int) -> float:
        """Active score of a product for a user, 0.0 if there is none"""
        for row in self.recommendations.query_active_recommendations(user_id, self._clock()):
            if row.product_id == product_id:
                return row.score
        return 0.0

    def stats(self, user_id: int) -> RecommendationStats:
        """Aggregates over the user's active recommendations"""
        active = self.recommendations.query_active_recommendations(user_id, self._clock())
        if not active:
            return RecommendationStats(user_id=user_id)

        confidence = Counter(r.confidence for r in active)
        return RecommendationStats(
            user_id=user_id,
            total=len(active),
            average_score=sum(r.score for r in active) / len(active),
            algorithm_distribution=dict(Counter(r.algorithm.value for r in active)),
            high_confidence_count=confidence[Confidence.HIGH],
            medium_confidence_count=confidence[Confidence.MEDIUM],
            low_confidence_count=confidence[Confidence.LOW],
        )

    def _single(self, scorer: BaseScorer, user_id: int, limit: Optional[int]) -> list[CandidateScore]:
        limit = self.settings.default_limit if limit is None else limit
        with log_timing(f"scorer.{scorer.name}", user_id=user_id) as span:
            candidates = scorer.score(user_id, limit)
            span["count"] = len(candidates)
        return candidates

    def collaborative_only(self, user_id: int, limit: Optional[int] = None) -> list[CandidateScore]:
        return self._single(self.collaborative, user_id, limit)

    def content_based_only(self, user_id: int, limit: Optional[int] = None) -> list[CandidateScore]:
        return self._single(self.content_based, user_id, limit)

    def algorithm_weights(self) -> dict[str, float]:
        """Four-way algorithm weight table (distinct from the fusion weights)"""
        return dict(get_config("algorithm_weights"))

    def engagement_summary(self, user_id: int) -> InteractionSummary:
        return summarize_interactions(user_id, self.interactions.get_user_interactions(user_id))


def build_service(
    seed_path: Optional[Path] = None,
    settings: Optional[Settings] = None
) -> RecommendationService:
    """
    Build a service backed by in-memory stores loaded from a seed file.

    Raises:
        PersistenceError: if the seed file cannot be loaded
    """
    loader = DataLoader(seed_path)
    if not loader.load_data():
        raise PersistenceError(f"Could not load seed data from {loader.data_path}")

    return RecommendationService(
        interactions=loader.interaction_repository(),
        catalog=loader.catalog_repository(),
        preferences=loader.preference_repository(),
        recommendations=InMemoryRecommendationRepository(),
        settings=settings,
    )
