"""Fusion combiner that blends the collaborative, content-based and popularity scorers"""

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from loguru import logger

from recommender.core.logging import log_timing
from recommender.core.tuning_config import get_config
from recommender.models.base import BaseScorer
from recommender.schemas.recommendation import Algorithm, CandidateScore, Confidence

SOURCE_PHRASES = {
    Algorithm.COLLABORATIVE: "similar users",
    Algorithm.CONTENT_BASED: "your preferences",
    Algorithm.POPULARITY: "popularity",
}


def combined_reason(sources: list[Algorithm]) -> str:
    """Reason for a product suggested by more than one scorer"""
    phrases = [SOURCE_PHRASES[s] for s in sources]
    if len(phrases) == 2:
        joined = f"{phrases[0]} and {phrases[1]}"
    else:
        joined = ", ".join(phrases[:-1]) + f", and {phrases[-1]}"
    return f"Combined recommendation based on {joined}"


class FusionCombiner:
    """
    Blend candidates of several scorers with fixed weights.

    Each scorer is asked for ``candidate_multiplier * limit`` candidates and
    the scorers run concurrently. A product's blended score is the sum of
    ``raw score * scorer weight`` over every scorer that suggested it.
    Products suggested by one scorer keep its algorithm and reason; the rest
    are tagged hybrid.
    """

    def __init__(
        self,
        scorers: list[BaseScorer],
        weights: Optional[dict[str, float]] = None
    ):
        self.scorers = scorers
        self.weights = dict(weights or get_config("fusion_weights"))

    def _run_scorer(self, scorer: BaseScorer, user_id: int, n: int) -> list[CandidateScore]:
        with log_timing(f"scorer.{scorer.name}", user_id=user_id) as span:
            candidates = scorer.score(user_id, n)
            span["count"] = len(candidates)
        return candidates

    def collect(self, user_id: int, n: int) -> dict[Algorithm, list[CandidateScore]]:
        """Run every scorer concurrently; the first failure propagates"""
        with ThreadPoolExecutor(max_workers=max(1, len(self.scorers))) as pool:
            futures = {
                scorer.algorithm: pool.submit(self._run_scorer, scorer, user_id, n)
                for scorer in self.scorers
            }
            return {algorithm: future.result() for algorithm, future in futures.items()}

    def combine(self, user_id: int, limit: int) -> list[CandidateScore]:
        """
        Generate blended recommendations for a user.

        Args:
            user_id: User identifier
            limit: Maximum number of recommendations

        Returns:
            Candidates sorted by blended score, without duplicate products
        """
        if limit <= 0:
            return []

        with log_timing("fusion", user_id=user_id, limit=limit) as span:
            per_scorer = self.collect(user_id, limit * get_config("candidate_multiplier"))

            blended: dict[int, float] = defaultdict(float)
            sources: dict[int, list[CandidateScore]] = defaultdict(list)

            for algorithm, candidates in per_scorer.items():
                weight = self.weights.get(algorithm.value, 0.0)
                for candidate in candidates:
                    blended[candidate.product_id] += candidate.score * weight
                    sources[candidate.product_id].append(candidate)

            ranked = sorted(blended.items(), key=lambda x: (-x[1], x[0]))[:limit]

            results = []
            for product_id, value in ranked:
                value = min(1.0, max(0.0, value))
                contributors = sources[product_id]
                if len(contributors) == 1:
                    algorithm = contributors[0].algorithm
                    reason = contributors[0].reason
                else:
                    algorithm = Algorithm.HYBRID
                    reason = combined_reason(sorted(
                        (c.algorithm for c in contributors),
                        key=list(SOURCE_PHRASES).index
                    ))

                results.append(CandidateScore(
                    product_id=product_id,
                    score=value,
                    algorithm=algorithm,
                    reason=reason,
                    confidence=Confidence.from_score(value)
                ))

            span["count"] = len(results)

        counts = {a.value: len(c) for a, c in per_scorer.items()}
        logger.debug(f"Fused {len(results)} recommendations for user {user_id} from {counts}")
        return results
