"""Pydantic schemas for the engine's inputs: interactions, products, preferences"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from recommender.core.errors import InvalidPreferencesError

MAX_CATEGORIES = 20
MAX_BRANDS = 20
MAX_STYLE_PREFERENCES = 10
MAX_PRICE = 999999.99


class InteractionType(str, Enum):
    """Kind of user interaction with a product"""
    VIEW = "view"
    LIKE = "like"
    DISLIKE = "dislike"
    FAVORITE = "favorite"
    RATING = "rating"
    PURCHASE = "purchase"


class InteractionPatch(BaseModel):
    """Fields of an interaction that may change; absent fields are left alone"""

    type: Optional[InteractionType] = None
    metadata: Optional[dict[str, Any]] = None


class Interaction(BaseModel):
    """A single user interaction (read-only input owned by the interaction store)"""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Interaction identifier")
    user_id: int = Field(..., description="User identifier")
    product_id: int = Field(..., description="Product identifier")
    type: InteractionType = Field(..., description="Interaction kind")
    timestamp: datetime = Field(..., description="When the interaction happened")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form metadata; ratings live under 'rating'"
    )

    @property
    def rating(self) -> Optional[float]:
        """Numeric rating from metadata, if any"""
        value = self.metadata.get("rating")
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    def is_positive(self, positive_rating: float = 4) -> bool:
        """Like, favorite, purchase, or a rating at or above ``positive_rating``"""
        if self.type in (InteractionType.LIKE, InteractionType.FAVORITE, InteractionType.PURCHASE):
            return True
        if self.type == InteractionType.RATING:
            rating = self.rating
            return rating is not None and rating >= positive_rating
        return False

    def apply(self, patch: InteractionPatch) -> Tuple["Interaction", bool]:
        """Return a patched copy and whether anything changed"""
        updates: dict[str, Any] = {}
        if patch.type is not None and patch.type != self.type:
            updates["type"] = patch.type
        if patch.metadata is not None and patch.metadata != self.metadata:
            updates["metadata"] = dict(patch.metadata)

        if not updates:
            return self, False
        return self.model_copy(update=updates), True


class Product(BaseModel):
    """Catalog product"""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Product identifier")
    name: str = Field(..., description="Display name")
    category: str = Field(..., description="Product category")
    brand: str = Field(..., description="Product brand")
    price: float = Field(..., ge=0.0, description="Price in dollars")
    style: Optional[str] = Field(None, description="Optional style attribute")
    availability: bool = Field(True, description="Whether the product can be recommended")


class PriceRange(BaseModel):
    """Inclusive price window"""

    model_config = ConfigDict(frozen=True)

    min: float = 0.0
    max: float = 1000.0


def _string_list_errors(values: List[str], label: str, limit: int) -> List[str]:
    errors = []
    if len(values) > limit:
        errors.append(f"Too many {label} (maximum {limit})")
    if any(not isinstance(v, str) or not v.strip() for v in values):
        errors.append(f"{label.capitalize()} must be non-empty strings")
    return errors


def _price_range_errors(price_range: PriceRange) -> List[str]:
    errors = []
    if price_range.min < 0:
        errors.append("Minimum price cannot be negative")
    if price_range.max < price_range.min:
        errors.append("Maximum price must be greater than or equal to minimum price")
    if price_range.min > MAX_PRICE or price_range.max > MAX_PRICE:
        errors.append("Price values are too large")
    return errors


class UserPreferences(BaseModel):
    """Stored shopping preferences of a user"""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., description="User identifier")
    categories: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    style_preferences: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_fields(self) -> "UserPreferences":
        errors = (
            _string_list_errors(self.categories, "categories", MAX_CATEGORIES)
            + _string_list_errors(self.brands, "brands", MAX_BRANDS)
            + _string_list_errors(self.style_preferences, "style preferences", MAX_STYLE_PREFERENCES)
            + _price_range_errors(self.price_range)
        )
        if errors:
            raise ValueError("; ".join(errors))
        return self


class PreferencesPatch(BaseModel):
    """
    Partial update of a user's preferences.

    Every field is optional; only the fields that are present are
    validated and applied, one by one.
    """

    categories: Optional[List[str]] = None
    brands: Optional[List[str]] = None
    price_range: Optional[PriceRange] = None
    style_preferences: Optional[List[str]] = None

    def validate_fields(self) -> List[str]:
        """Collect validation errors for the fields present in this patch"""
        errors: List[str] = []
        if self.categories is not None:
            errors += _string_list_errors(self.categories, "categories", MAX_CATEGORIES)
        if self.brands is not None:
            errors += _string_list_errors(self.brands, "brands", MAX_BRANDS)
        if self.style_preferences is not None:
            errors += _string_list_errors(
                self.style_preferences, "style preferences", MAX_STYLE_PREFERENCES
            )
        if self.price_range is not None:
            errors += _price_range_errors(self.price_range)
        return errors

    def apply(self, preferences: UserPreferences) -> Tuple[UserPreferences, bool]:
        """
        Apply this patch to ``preferences``.

        Returns:
            (new preferences, whether any field changed)

        Raises:
            InvalidPreferencesError: if a present field fails validation
        """
        errors = self.validate_fields()
        if errors:
            raise InvalidPreferencesError(errors)

        updates: dict[str, Any] = {}
        for field in ("categories", "brands", "price_range", "style_preferences"):
            value = getattr(self, field)
            if value is None:
                continue
            if isinstance(value, list):
                value = list(value)
            if value != getattr(preferences, field):
                updates[field] = value

        if not updates:
            return preferences, False
        return preferences.model_copy(update=updates), True
