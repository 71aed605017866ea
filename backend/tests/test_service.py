"""Tests for the recommendation lifecycle service"""

import importlib.util
import json
import threading
from datetime import timedelta
from pathlib import Path

import pytest

from recommender.core.config import Settings
from recommender.core.errors import InvalidRecommendationError, PersistenceError
from recommender.repositories.memory import (
    InMemoryCatalogRepository,
    InMemoryRecommendationRepository,
    store_operation,
)
from recommender.schemas.recommendation import Algorithm
from recommender.services.recommendation_service import RecommendationService, build_service

REPO_ROOT = Path(__file__).resolve().parents[2]
SEED_FILE = REPO_ROOT / "data" / "sample_store.json"


class FailingRecommendationRepository(InMemoryRecommendationRepository):
    """Store whose writes always fail"""

    @store_operation
    def replace_recommendations(self, user_id, records):
        raise RuntimeError("disk full")


class TestGenerate:
    """Tests for RecommendationService.generate"""

    def test_blended_order(self, service):
        """Test fused results for a user with neighbours and preferences"""
        results = service.generate(1)

        assert [r.product_id for r in results] == [5, 4, 2]
        assert results[0].score == pytest.approx(0.44)
        assert results[1].score == pytest.approx(0.28 + 0.4 / 3 + 0.02)
        assert results[2].score == pytest.approx(0.08)
        assert all(r.algorithm == Algorithm.HYBRID for r in results)

    def test_respects_limit_without_duplicates(self, service):
        """Test limit and unique product ids"""
        results = service.generate(1, limit=2)
        ids = [r.product_id for r in results]

        assert len(ids) == 2
        assert len(set(ids)) == len(ids)

    def test_persists_with_freshness_window(self, service, recommendation_repo, clock):
        """Test rows are stored with a 24 hour window"""
        service.generate(1, limit=2)
        rows = recommendation_repo.all_recommendations(1)

        assert len(rows) == 2
        for row in rows:
            assert row.created_at == clock.now
            assert row.expires_at == clock.now + timedelta(hours=24)
            assert row.expires_at > row.created_at
            assert 0.0 <= row.score <= 1.0

    def test_idempotent_while_active(self, service, monkeypatch):
        """Test a second call returns the stored set without re-scoring"""
        first = service.generate(1, limit=3)

        def fail(*args, **kwargs):
            raise AssertionError("fusion should not run")

        monkeypatch.setattr(service.fusion, "combine", fail)
        second = service.generate(1, limit=3)

        assert second == first

    def test_active_rows_respect_smaller_limit(self, service):
        """Test stored rows are truncated to the requested limit"""
        service.generate(1, limit=3)

        results = service.generate(1, limit=1)

        assert [r.product_id for r in results] == [5]

    def test_regenerates_after_expiry(self, service, clock):
        """Test expired rows are replaced with a fresh set"""
        first = service.generate(1, limit=2)
        clock.advance(hours=25)

        second = service.generate(1, limit=2)

        assert [r.product_id for r in second] == [r.product_id for r in first]
        assert second[0].expires_at == clock.now + timedelta(hours=24)

    def test_zero_limit(self, service, recommendation_repo):
        """Test a non-positive limit returns an empty list"""
        assert service.generate(1, limit=0) == []
        assert recommendation_repo.all_recommendations(1) == []

    def test_nothing_to_recommend(self, interaction_repo, preference_repo, test_settings, clock):
        """Test an empty catalog gives an empty list and stores nothing"""
        recommendations = InMemoryRecommendationRepository()
        service = RecommendationService(
            interactions=interaction_repo,
            catalog=InMemoryCatalogRepository(),
            preferences=preference_repo,
            recommendations=recommendations,
            settings=test_settings,
            clock=clock,
        )

        assert service.generate(1) == []
        assert recommendations.all_recommendations(1) == []

    def test_invalid_rows_are_rejected(
        self, interaction_repo, catalog_repo, preference_repo, recommendation_repo, clock
    ):
        """Test rows that would not expire after creation never reach the store"""
        service = RecommendationService(
            interactions=interaction_repo,
            catalog=catalog_repo,
            preferences=preference_repo,
            recommendations=recommendation_repo,
            settings=Settings(expiration_hours=0),
            clock=clock,
        )

        with pytest.raises(InvalidRecommendationError):
            service.generate(1)
        assert recommendation_repo.all_recommendations(1) == []

    def test_persistence_failure_propagates(
        self, interaction_repo, catalog_repo, preference_repo, test_settings, clock
    ):
        """Test store failures surface as PersistenceError"""
        service = RecommendationService(
            interactions=interaction_repo,
            catalog=catalog_repo,
            preferences=preference_repo,
            recommendations=FailingRecommendationRepository(),
            settings=test_settings,
            clock=clock,
        )

        with pytest.raises(PersistenceError) as exc_info:
            service.generate(1)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_concurrent_generate_persists_once(self, service, recommendation_repo):
        """Test parallel calls for one user agree on a single stored set"""
        results = []

        def worker():
            results.append(service.generate(1, limit=3))

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(r == results[0] for r in results)
        assert len(recommendation_repo.all_recommendations(1)) == 3

    def test_lock_registry_is_released(self, service):
        """Test per-user locks are not kept once nobody holds them"""
        service.generate(1)
        service.refresh(2)

        assert len(service._locks) == 0


class TestRefresh:
    """Tests for refresh and refresh_expired"""

    def test_refresh_replaces_rows(self, service, recommendation_repo, clock):
        """Test refresh swaps the whole stored set"""
        service.generate(1, limit=1)
        clock.advance(hours=1)

        results = service.refresh(1)
        rows = recommendation_repo.all_recommendations(1)

        assert len(results) == 3
        assert len(rows) == 3
        assert all(row.created_at == clock.now for row in rows)

    def test_concurrent_refresh_leaves_one_set(self, service, recommendation_repo):
        """Test parallel refreshes for one user never interleave their rows"""
        results = []

        def worker():
            results.append(service.refresh(1))

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        rows = recommendation_repo.all_recommendations(1)
        product_ids = [row.product_id for row in rows]

        assert len(results) == 6
        assert len(rows) == 3
        assert len(set(product_ids)) == len(product_ids)
        assert sorted(product_ids) == sorted(r.product_id for r in results[0])

    def test_refresh_expired_with_nothing_expired(self, service, monkeypatch):
        """Test no refresh happens when no row has expired"""
        service.generate(1)
        calls = []
        monkeypatch.setattr(service, "refresh", lambda user_id: calls.append(user_id))

        assert service.refresh_expired() == 0
        assert calls == []

    def test_refresh_expired_with_empty_store(self, service):
        """Test an empty store refreshes nobody"""
        assert service.refresh_expired() == 0

    def test_refresh_expired(self, service, recommendation_repo, clock):
        """Test every user with an expired row is refreshed"""
        service.generate(1)
        service.generate(2)
        clock.advance(hours=25)

        assert service.refresh_expired() == 2
        for user_id in (1, 2):
            active = recommendation_repo.query_active_recommendations(user_id, clock.now)
            assert active
            assert all(r.expires_at == clock.now + timedelta(hours=24) for r in active)
        assert recommendation_repo.query_users_with_expired(clock.now) == []


class TestQueries:
    """Tests for score_for, stats and the auxiliary queries"""

    def test_score_for(self, service):
        """Test active score lookup and the zero default"""
        service.generate(1)

        assert service.score_for(1, 5) == pytest.approx(0.44)
        assert service.score_for(1, 999) == 0.0
        assert service.score_for(999, 5) == 0.0

    def test_score_for_expired(self, service, clock):
        """Test expired rows do not count"""
        service.generate(1)
        clock.advance(hours=25)

        assert service.score_for(1, 5) == 0.0

    def test_stats(self, service):
        """Test aggregates over active rows"""
        service.generate(1)
        stats = service.stats(1)

        assert stats.total == 3
        assert stats.average_score == pytest.approx((0.44 + 0.28 + 0.4 / 3 + 0.02 + 0.08) / 3)
        assert stats.algorithm_distribution == {"hybrid": 3}
        assert stats.high_confidence_count == 0
        assert stats.medium_confidence_count == 0
        assert stats.low_confidence_count == 3

    def test_stats_without_rows(self, service):
        """Test stats for a user with nothing stored"""
        stats = service.stats(1)

        assert stats.total == 0
        assert stats.average_score == 0.0
        assert stats.algorithm_distribution == {}

    def test_single_algorithm_queries(self, service):
        """Test collaborative-only and content-based-only results"""
        collaborative = service.collaborative_only(1, limit=2)
        content = service.content_based_only(1)

        assert [c.product_id for c in collaborative] == [5, 4]
        assert [c.product_id for c in content] == [4, 5, 2]

    def test_algorithm_weights(self, service):
        """Test the four-way table is returned as a copy"""
        weights = service.algorithm_weights()

        assert weights == {
            "collaborative": 0.4,
            "content-based": 0.3,
            "hybrid": 0.2,
            "popularity": 0.1,
        }
        weights["hybrid"] = 1.0
        assert service.algorithm_weights()["hybrid"] == 0.2

    def test_engagement_summary(self, service):
        """Test engagement summary goes through the interaction store"""
        summary = service.engagement_summary(3)

        assert summary.total_interactions == 3
        assert summary.engagement_score == pytest.approx(8 + 6 + 1)


class TestBuildService:
    """Tests for the seed-file backed service and the batch script"""

    def test_build_from_seed_file(self):
        """Test the bundled seed file builds a working service"""
        service = build_service(SEED_FILE)
        results = service.generate(1, limit=3)

        assert 0 < len(results) <= 3
        assert 10 not in {r.product_id for r in results}

    def test_missing_seed_file(self, tmp_path):
        """Test a missing seed file is a persistence failure"""
        with pytest.raises(PersistenceError):
            build_service(tmp_path / "missing.json")

    def test_script_generate(self, capsys, monkeypatch):
        """Test the batch script prints generated recommendations as JSON"""
        spec = importlib.util.spec_from_file_location(
            "recommend_script", REPO_ROOT / "scripts" / "recommend.py"
        )
        script = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(script)
        monkeypatch.setattr(script, "setup_logging", lambda: None)

        code = script.main(["--seed-file", str(SEED_FILE), "generate", "--user-id", "1", "--limit", "2"])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert len(output) <= 2
        assert {"product_id", "score", "algorithm", "reason", "confidence", "expires_at"} <= set(output[0])
