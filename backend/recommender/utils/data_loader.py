"""Data loading utilities for the recommender"""

import json
from pathlib import Path
from typing import Optional

import pandas as pd
from loguru import logger

from recommender.core.config import settings
from recommender.repositories.memory import (
    InMemoryCatalogRepository,
    InMemoryInteractionRepository,
    InMemoryPreferenceRepository,
)
from recommender.schemas.catalog import UserPreferences
from recommender.utils.data_cleaner import DataCleaner


class DataLoader:
    """Load a JSON seed file and build the in-memory stores from it"""

    def __init__(self, data_path: Optional[Path] = None):
        self.data_path = Path(data_path) if data_path else settings.seed_path
        self.cleaner = DataCleaner()
        self._products_df: Optional[pd.DataFrame] = None
        self._interactions_df: Optional[pd.DataFrame] = None
        self._preferences: list[UserPreferences] = []
        self._is_loaded = False

    def load_data(self) -> bool:
        """
        Load and clean all data from the seed file.

        The file holds three lists: ``products``, ``preferences`` and
        ``interactions``. Missing lists are treated as empty.

        Returns:
            True if data was loaded successfully
        """
        logger.info(f"Loading data from {self.data_path}")

        if not self.data_path.exists():
            logger.error(f"Data file not found: {self.data_path}")
            return False

        try:
            with open(self.data_path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {self.data_path}: {e}")
            return False

        self.load_records(
            products=payload.get("products", []),
            interactions=payload.get("interactions", []),
            preferences=payload.get("preferences", []),
        )
        return True

    def load_records(
        self,
        products: list[dict],
        interactions: list[dict],
        preferences: list[dict]
    ) -> None:
        """Clean raw records that are already in memory"""
        self._products_df = self.cleaner.clean_products(pd.DataFrame(products))
        self._interactions_df = self.cleaner.clean_interactions(
            pd.DataFrame(interactions),
            known_products=self._products_df["id"].tolist()
        )
        self._preferences = self.cleaner.clean_preferences(preferences)
        self._is_loaded = True

        logger.info(
            f"Loaded {len(self._products_df)} products, "
            f"{len(self._interactions_df)} interactions, "
            f"{len(self._preferences)} preference records"
        )

    @property
    def is_loaded(self) -> bool:
        """Check if data is loaded"""
        return self._is_loaded

    @property
    def products(self) -> Optional[pd.DataFrame]:
        return self._products_df

    @property
    def interactions(self) -> Optional[pd.DataFrame]:
        return self._interactions_df

    @property
    def preferences(self) -> list[UserPreferences]:
        return list(self._preferences)

    def catalog_repository(self) -> InMemoryCatalogRepository:
        return InMemoryCatalogRepository(self._products_df)

    def interaction_repository(self) -> InMemoryInteractionRepository:
        return InMemoryInteractionRepository(self._interactions_df)

    def preference_repository(self) -> InMemoryPreferenceRepository:
        return InMemoryPreferenceRepository(self._preferences)

    def get_statistics(self) -> dict:
        """Get data statistics"""
        stats = {
            "is_loaded": self._is_loaded,
            "cleaning_report": self.cleaner.get_cleaning_report(),
        }

        if self._products_df is not None:
            stats["products"] = {
                "total": len(self._products_df),
                "available": int(self._products_df["availability"].sum()),
                "categories": int(self._products_df["category"].nunique()),
            }

        if self._interactions_df is not None:
            stats["interactions"] = {
                "total": len(self._interactions_df),
                "unique_users": int(self._interactions_df["user_id"].nunique()),
                "by_type": {
                    str(k): int(v)
                    for k, v in self._interactions_df["type"].value_counts().items()
                },
            }

        return stats
