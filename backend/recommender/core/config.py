"""Application configuration and settings"""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings with type-safe configuration"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Personal Shopping Recommender"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Recommendation lifecycle
    default_limit: int = 10
    similar_users_limit: int = 10
    expiration_hours: int = 24

    # Worker pool used by refresh_expired
    refresh_workers: int = 4

    seed_file: str = "sample_store.json"

    # Data paths - check multiple locations for deployment flexibility
    @property
    def data_dir(self) -> Path:
        env_path = os.getenv("DATA_DIR")
        if env_path:
            return Path(env_path)
        # Relative to the repository root (development)
        config_relative = Path(__file__).parent.parent.parent.parent / "data"
        if config_relative.exists():
            return config_relative
        cwd_relative = Path("data")
        if cwd_relative.exists():
            return cwd_relative
        return config_relative

    @property
    def seed_path(self) -> Path:
        return self.data_dir / self.seed_file


settings = Settings()
