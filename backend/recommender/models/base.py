"""Base class for all scorers"""

from abc import ABC, abstractmethod

from recommender.schemas.recommendation import Algorithm, CandidateScore, Confidence


class BaseScorer(ABC):
    """Abstract base class for candidate scorers"""

    algorithm: Algorithm

    @abstractmethod
    def score(self, user_id: int, n: int = 10) -> list[CandidateScore]:
        """
        Score candidate products for a user.

        Args:
            user_id: User identifier
            n: Maximum number of candidates

        Returns:
            Candidates sorted by score, best first. An empty list when
            there is nothing to recommend.
        """
        pass

    @property
    def name(self) -> str:
        return self.algorithm.value

    def _create_candidate(
        self,
        product_id: int,
        score: float,
        reason: str
    ) -> CandidateScore:
        """Create a CandidateScore with the score clamped to [0, 1]"""
        score = min(1.0, max(0.0, score))
        return CandidateScore(
            product_id=product_id,
            score=score,
            algorithm=self.algorithm,
            reason=reason,
            confidence=Confidence.from_score(score)
        )

    @staticmethod
    def _rank(candidates: list[CandidateScore], n: int) -> list[CandidateScore]:
        """Sort best first; ties keep product id order"""
        return sorted(candidates, key=lambda c: (-c.score, c.product_id))[:max(0, n)]
