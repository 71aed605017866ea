"""Utility functions"""

from recommender.utils.data_loader import DataLoader
from recommender.utils.data_cleaner import DataCleaner

__all__ = ["DataLoader", "DataCleaner"]
