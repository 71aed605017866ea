"""Data cleaning utilities for the seed data of the recommender"""

from typing import Iterable, Optional

import numpy as np
import pandas as pd
from loguru import logger
from pydantic import ValidationError

from recommender.schemas.catalog import InteractionType, UserPreferences

PRODUCT_COLUMNS = ["id", "name", "category", "brand", "price", "style", "availability"]
INTERACTION_COLUMNS = ["id", "user_id", "product_id", "type", "timestamp", "metadata"]

VALID_INTERACTION_TYPES = {t.value for t in InteractionType}


class DataCleaner:
    """Cleaning for product, interaction and preference records"""

    def __init__(self):
        self.cleaning_stats: dict = {}

    def _record(self, dataset_name: str, initial_rows: int, final_rows: int) -> None:
        removed_rows = initial_rows - final_rows
        self.cleaning_stats[dataset_name] = {
            "initial_rows": initial_rows,
            "final_rows": final_rows,
            "removed_rows": removed_rows,
            "removal_percentage": (removed_rows / initial_rows * 100) if initial_rows > 0 else 0
        }
        logger.info(
            f"Cleaning complete for {dataset_name}: "
            f"{initial_rows} -> {final_rows} rows ({removed_rows} removed)"
        )

    def clean_products(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Clean catalog rows.

        Args:
            df: Raw product DataFrame

        Returns:
            DataFrame with PRODUCT_COLUMNS, one row per product id
        """
        initial_rows = len(df)
        df = self._standardize_columns(df.copy())

        df = self._drop_missing(df, ["id", "name", "category", "brand", "price"])
        df = self._clean_ids(df, ["id"])

        for col in ("name", "category", "brand"):
            df[col] = df[col].astype(str).str.strip()
            df = df[df[col] != ""]

        df["price"] = pd.to_numeric(df["price"], errors="coerce").replace([np.inf, -np.inf], np.nan)
        before = len(df)
        df = df[df["price"].notna() & (df["price"] >= 0)]
        if before != len(df):
            logger.debug(f"Removed {before - len(df)} products with invalid prices")

        if "style" not in df.columns:
            df["style"] = None
        df["style"] = pd.Series(
            [s.strip() if isinstance(s, str) and s.strip() else None for s in df["style"]],
            index=df.index,
            dtype=object,
        )

        if "availability" not in df.columns:
            df["availability"] = True
        df["availability"] = df["availability"].fillna(True).astype(bool)

        df = df.drop_duplicates(subset=["id"], keep="last")
        df = df[PRODUCT_COLUMNS].reset_index(drop=True)

        self._record("products", initial_rows, len(df))
        return df

    def clean_interactions(
        self,
        df: pd.DataFrame,
        known_products: Optional[Iterable[int]] = None
    ) -> pd.DataFrame:
        """
        Clean interaction rows.

        Args:
            df: Raw interaction DataFrame
            known_products: When given, interactions on other products are dropped

        Returns:
            DataFrame with INTERACTION_COLUMNS and UTC timestamps
        """
        initial_rows = len(df)
        df = self._standardize_columns(df.copy())

        df = self._drop_missing(df, ["id", "user_id", "product_id", "type", "timestamp"])
        df = self._clean_ids(df, ["id", "user_id", "product_id"])

        df["type"] = df["type"].astype(str).str.strip().str.lower()
        before = len(df)
        df = df[df["type"].isin(VALID_INTERACTION_TYPES)]
        if before != len(df):
            logger.debug(f"Removed {before - len(df)} rows with unknown interaction types")

        df = self._validate_dates(df)

        if known_products is not None:
            before = len(df)
            df = df[df["product_id"].isin(set(known_products))]
            if before != len(df):
                logger.debug(f"Removed {before - len(df)} interactions on unknown products")

        if "metadata" not in df.columns:
            df["metadata"] = None
        df["metadata"] = [m if isinstance(m, dict) else {} for m in df["metadata"]]

        df = df.drop_duplicates(subset=["id"], keep="first")
        df = df[INTERACTION_COLUMNS].reset_index(drop=True)

        self._record("interactions", initial_rows, len(df))
        return df

    def clean_preferences(self, records: list[dict]) -> list[UserPreferences]:
        """Validate preference records, skipping invalid ones"""
        cleaned: dict[int, UserPreferences] = {}
        for record in records:
            try:
                prefs = UserPreferences.model_validate(record)
            except ValidationError as e:
                logger.warning(f"Skipping invalid preferences for user {record.get('user_id')}: {e}")
                continue
            cleaned[prefs.user_id] = prefs

        self._record("preferences", len(records), len(cleaned))
        return list(cleaned.values())

    def _standardize_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Standardize column names to lowercase with underscores"""
        column_mapping = {
            "interaction_type": "type",
            "created_at": "timestamp",
            "available": "availability",
            "is_available": "availability",
        }
        df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
        return df.rename(columns=column_mapping)

    def _drop_missing(self, df: pd.DataFrame, critical_columns: list[str]) -> pd.DataFrame:
        """Drop rows with missing critical fields"""
        for col in critical_columns:
            if col not in df.columns:
                logger.warning(f"Column {col} missing from input")
                df[col] = None
            before = len(df)
            df = df.dropna(subset=[col])
            if before != len(df):
                logger.debug(f"Dropped {before - len(df)} rows due to missing {col}")
        return df

    def _clean_ids(self, df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
        """Coerce id columns to integers, removing rows that are not"""
        for col in columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
            before = len(df)
            df = df[df[col].notna() & (df[col] % 1 == 0)]
            if before != len(df):
                logger.debug(f"Removed {before - len(df)} rows with invalid {col}")
            df[col] = df[col].astype("int64")
        return df

    def _validate_dates(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse timestamps as UTC and drop the ones that do not parse"""
        df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce", utc=True)
        before = len(df)
        df = df.dropna(subset=["timestamp"])
        if before != len(df):
            logger.debug(f"Removed {before - len(df)} rows with invalid dates")
        return df

    def get_cleaning_report(self) -> dict:
        """Get a report of all cleaning operations performed"""
        return self.cleaning_stats
