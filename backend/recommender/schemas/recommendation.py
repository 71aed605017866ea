"""Pydantic schemas for recommendations and scoring intermediates"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from recommender.core.tuning_config import TUNING_CONFIG
from recommender.schemas.catalog import PriceRange

PREVIOUSLY_RECOMMENDED = "Previously recommended"


class Algorithm(str, Enum):
    """Algorithm that produced a recommendation"""
    COLLABORATIVE = "collaborative"
    CONTENT_BASED = "content-based"
    HYBRID = "hybrid"
    POPULARITY = "popularity"


class Confidence(str, Enum):
    """Coarse confidence band derived from a score"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_score(cls, score: float) -> "Confidence":
        thresholds = TUNING_CONFIG["confidence"]
        if score >= thresholds["high"]:
            return cls.HIGH
        if score >= thresholds["medium"]:
            return cls.MEDIUM
        return cls.LOW


class CandidateScore(BaseModel):
    """A scored product produced by one of the scorers or by fusion"""

    model_config = ConfigDict(frozen=True)

    product_id: int = Field(..., description="Product identifier")
    score: float = Field(..., ge=0.0, le=1.0, description="Relevance score (0-1)")
    algorithm: Algorithm = Field(..., description="Algorithm that produced the score")
    reason: str = Field(..., description="Why this product was suggested")
    confidence: Confidence = Field(..., description="Confidence band of the score")


class RecommendationResult(CandidateScore):
    """A recommendation as returned to callers"""

    expires_at: datetime = Field(..., description="End of the freshness window")


class RecommendationPatch(BaseModel):
    """Fields of a persisted recommendation that may change"""

    score: Optional[float] = None
    expires_at: Optional[datetime] = None


class Recommendation(BaseModel):
    """
    Persisted recommendation row.

    Building one validates the score range and that the row expires after
    it was created, so nothing invalid can be handed to the store.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = Field(None, description="Row identifier, set by the store")
    user_id: int = Field(..., description="User identifier")
    product_id: int = Field(..., description="Product identifier")
    score: float = Field(..., ge=0.0, le=1.0)
    algorithm: Algorithm
    reason: str = PREVIOUSLY_RECOMMENDED
    created_at: datetime
    expires_at: datetime

    @model_validator(mode="after")
    def check_expiration(self) -> "Recommendation":
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")
        return self

    @property
    def confidence(self) -> Confidence:
        return Confidence.from_score(self.score)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def apply(self, patch: RecommendationPatch) -> Tuple["Recommendation", bool]:
        """
        Return a patched, re-validated copy and whether anything changed.

        Raises:
            pydantic.ValidationError: if the patched row breaks an invariant
        """
        updates: Dict[str, Any] = {}
        if patch.score is not None and patch.score != self.score:
            updates["score"] = patch.score
        if patch.expires_at is not None and patch.expires_at != self.expires_at:
            updates["expires_at"] = patch.expires_at

        if not updates:
            return self, False
        return Recommendation.model_validate({**self.model_dump(), **updates}), True

    def to_result(self) -> RecommendationResult:
        return RecommendationResult(
            product_id=self.product_id,
            score=self.score,
            algorithm=self.algorithm,
            reason=self.reason,
            confidence=self.confidence,
            expires_at=self.expires_at,
        )


class SimilarUser(BaseModel):
    """Neighbour found for one collaborative-scoring pass"""

    model_config = ConfigDict(frozen=True)

    user_id: int
    similarity: float = Field(..., ge=0.0, le=1.0)
    shared_products: int = Field(..., ge=0)
    weighted_score: float


class UserProfile(BaseModel):
    """Transient scoring profile, rebuilt on every scoring pass"""

    model_config = ConfigDict(frozen=True)

    user_id: int
    category_weights: Dict[str, float] = Field(default_factory=dict)
    brand_weights: Dict[str, float] = Field(default_factory=dict)
    price_preference: PriceRange
    positive_interaction_count: int = 0


class RecommendationStats(BaseModel):
    """Aggregates over a user's active recommendations"""

    user_id: int
    total: int = 0
    average_score: float = 0.0
    algorithm_distribution: Dict[str, int] = Field(default_factory=dict)
    high_confidence_count: int = 0
    medium_confidence_count: int = 0
    low_confidence_count: int = 0


class InteractionSummary(BaseModel):
    """Reporting summary of a user's interactions"""

    user_id: int
    total_interactions: int = 0
    type_counts: Dict[str, int] = Field(default_factory=dict)
    unique_products: int = 0
    active_days: int = 0
    conversion_rate: float = 0.0
    engagement_score: float = 0.0
