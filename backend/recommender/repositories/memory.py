"""In-memory, pandas-backed implementations of the store contracts"""

import threading
from datetime import datetime
from functools import wraps
from itertools import count
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from loguru import logger

from recommender.core.errors import (
    InvalidRecommendationError,
    PersistenceError,
    RecommenderError,
)
from recommender.schemas.catalog import (
    Interaction,
    InteractionPatch,
    PreferencesPatch,
    Product,
    UserPreferences,
)
from recommender.schemas.recommendation import Recommendation

INTERACTION_COLUMNS = ["id", "user_id", "product_id", "type", "timestamp", "metadata"]
PRODUCT_COLUMNS = ["id", "name", "category", "brand", "price", "style", "availability"]


def store_operation(func):
    """Surface unexpected store failures as PersistenceError"""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except RecommenderError:
            raise
        except Exception as e:
            logger.error(f"{type(self).__name__}.{func.__name__} failed: {e}")
            raise PersistenceError(f"{func.__name__} failed: {e}") from e

    return wrapper


def _row_to_interaction(row: dict) -> Interaction:
    timestamp = row["timestamp"]
    if isinstance(timestamp, pd.Timestamp):
        timestamp = timestamp.to_pydatetime()
    metadata = row.get("metadata")
    return Interaction(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        product_id=int(row["product_id"]),
        type=row["type"],
        timestamp=timestamp,
        metadata=metadata if isinstance(metadata, dict) else {},
    )


def _row_to_product(row: dict) -> Product:
    style = row.get("style")
    return Product(
        id=int(row["id"]),
        name=row["name"],
        category=row["category"],
        brand=row["brand"],
        price=float(row["price"]),
        style=None if style is None or pd.isna(style) else style,
        availability=bool(row["availability"]),
    )


class InMemoryInteractionRepository:
    """Interaction log held in a DataFrame"""

    def __init__(self, df: Optional[pd.DataFrame] = None):
        self._lock = threading.RLock()
        if df is None:
            df = pd.DataFrame(columns=INTERACTION_COLUMNS)
        self._df = df[INTERACTION_COLUMNS].copy()

    @classmethod
    def from_interactions(cls, interactions: Iterable[Interaction]) -> "InMemoryInteractionRepository":
        repo = cls()
        for interaction in interactions:
            repo.add_interaction(interaction)
        return repo

    def _newest_first(self, df: pd.DataFrame) -> List[Interaction]:
        df = df.sort_values(["timestamp", "id"], ascending=[False, False], kind="mergesort")
        return [_row_to_interaction(row) for row in df.to_dict("records")]

    @store_operation
    def get_user_interactions(self, user_id: int) -> List[Interaction]:
        with self._lock:
            return self._newest_first(self._df[self._df["user_id"] == user_id])

    @store_operation
    def get_product_interactions(self, product_id: int) -> List[Interaction]:
        with self._lock:
            return self._newest_first(self._df[self._df["product_id"] == product_id])

    @store_operation
    def count_interactions_by_product(self) -> Dict[int, int]:
        with self._lock:
            if self._df.empty:
                return {}
            counts = self._df.groupby("product_id").size()
            return {int(product_id): int(n) for product_id, n in counts.items()}

    @store_operation
    def add_interaction(self, interaction: Interaction) -> Interaction:
        row = interaction.model_dump()
        row["type"] = interaction.type.value
        new_df = pd.DataFrame([row], columns=INTERACTION_COLUMNS)
        with self._lock:
            if self._df.empty:
                self._df = new_df
            else:
                self._df = pd.concat([self._df, new_df], ignore_index=True)
        return interaction

    @store_operation
    def update_interaction(
        self,
        interaction_id: int,
        patch: InteractionPatch
    ) -> Tuple[Optional[Interaction], bool]:
        """Apply a patch to a stored interaction; unknown ids return (None, False)"""
        with self._lock:
            mask = self._df["id"] == interaction_id
            if not mask.any():
                return None, False

            position = int(mask.to_numpy().nonzero()[0][0])
            current = _row_to_interaction(self._df.iloc[position].to_dict())
            updated, changed = current.apply(patch)
            if changed:
                types = self._df["type"].tolist()
                metadata = self._df["metadata"].tolist()
                types[position] = updated.type.value
                metadata[position] = updated.metadata
                self._df = self._df.assign(type=types, metadata=metadata)
            return updated, changed

    def __len__(self) -> int:
        with self._lock:
            return len(self._df)


class InMemoryCatalogRepository:
    """Product catalog held in a DataFrame"""

    def __init__(self, df: Optional[pd.DataFrame] = None):
        self._lock = threading.RLock()
        if df is None:
            df = pd.DataFrame(columns=PRODUCT_COLUMNS)
        self._df = df[PRODUCT_COLUMNS].copy()

    @classmethod
    def from_products(cls, products: Iterable[Product]) -> "InMemoryCatalogRepository":
        rows = [product.model_dump() for product in products]
        return cls(pd.DataFrame(rows, columns=PRODUCT_COLUMNS))

    def _available(self) -> pd.DataFrame:
        return self._df[self._df["availability"].astype(bool)]

    @store_operation
    def get_available_products(self) -> List[Product]:
        with self._lock:
            df = self._available().sort_values("id", kind="mergesort")
            return [_row_to_product(row) for row in df.to_dict("records")]

    @store_operation
    def get_products_by_ids(self, product_ids: Iterable[int]) -> List[Product]:
        wanted = set(product_ids)
        if not wanted:
            return []
        with self._lock:
            df = self._available()
            df = df[df["id"].isin(wanted)].sort_values("id", kind="mergesort")
            return [_row_to_product(row) for row in df.to_dict("records")]

    @store_operation
    def get_product(self, product_id: int) -> Optional[Product]:
        """Look up a product regardless of availability"""
        with self._lock:
            df = self._df[self._df["id"] == product_id]
            if df.empty:
                return None
            return _row_to_product(df.iloc[0].to_dict())

    def __len__(self) -> int:
        with self._lock:
            return len(self._df)


class InMemoryPreferenceRepository:
    """User preferences keyed by user id"""

    def __init__(self, preferences: Optional[Iterable[UserPreferences]] = None):
        self._lock = threading.RLock()
        self._preferences: Dict[int, UserPreferences] = {}
        for prefs in preferences or []:
            self._preferences[prefs.user_id] = prefs

    @store_operation
    def get_preferences(self, user_id: int) -> Optional[UserPreferences]:
        with self._lock:
            return self._preferences.get(user_id)

    @store_operation
    def save_preferences(self, preferences: UserPreferences) -> UserPreferences:
        with self._lock:
            self._preferences[preferences.user_id] = preferences
            return preferences

    @store_operation
    def update_preferences(
        self,
        user_id: int,
        patch: PreferencesPatch
    ) -> Tuple[UserPreferences, bool]:
        """
        Apply a preference patch, creating default preferences if needed.

        Raises:
            InvalidPreferencesError: if a present field fails validation
        """
        with self._lock:
            current = self._preferences.get(user_id) or UserPreferences(user_id=user_id)
            updated, changed = patch.apply(current)
            if changed or user_id not in self._preferences:
                self._preferences[user_id] = updated
            return updated, changed


class InMemoryRecommendationRepository:
    """Persisted recommendations keyed by user id"""

    def __init__(self):
        self._lock = threading.RLock()
        self._rows: Dict[int, List[Recommendation]] = {}
        self._ids = count(1)

    def _with_ids(self, records: Sequence[Recommendation]) -> List[Recommendation]:
        return [record.model_copy(update={"id": next(self._ids)}) for record in records]

    @store_operation
    def delete_recommendations(self, user_id: int) -> int:
        with self._lock:
            return len(self._rows.pop(user_id, []))

    @store_operation
    def insert_recommendations(self, records: Sequence[Recommendation]) -> List[Recommendation]:
        with self._lock:
            stored = self._with_ids(records)
            for record in stored:
                self._rows.setdefault(record.user_id, []).append(record)
            return stored

    @store_operation
    def replace_recommendations(
        self,
        user_id: int,
        records: Sequence[Recommendation]
    ) -> List[Recommendation]:
        if any(record.user_id != user_id for record in records):
            raise InvalidRecommendationError(
                f"replace_recommendations got rows for a user other than {user_id}"
            )
        with self._lock:
            stored = self._with_ids(records)
            self._rows[user_id] = stored
            return list(stored)

    @store_operation
    def query_active_recommendations(self, user_id: int, now: datetime) -> List[Recommendation]:
        with self._lock:
            return [r for r in self._rows.get(user_id, []) if not r.is_expired(now)]

    @store_operation
    def query_users_with_expired(self, now: datetime) -> List[int]:
        with self._lock:
            return sorted(
                user_id for user_id, rows in self._rows.items()
                if any(r.is_expired(now) for r in rows)
            )

    def all_recommendations(self, user_id: int) -> List[Recommendation]:
        """Every stored row for a user, expired or not"""
        with self._lock:
            return list(self._rows.get(user_id, []))
