"""Application settings using Pydantic."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Segmentation thresholds (characters)
    short_block_chars: int = 120
    long_block_chars: int = 200
    very_long_block_chars: int = 800
    brevity_chars: int = 50
    prompt_line_chars: int = 120

    # Role decision thresholds (summed rule weights)
    weak_margin: float = 1.0
    corroboration_margin: float = 2.0

    # Turn grouping
    group_similarity_threshold: float = 0.2

    # Optional JSON files extending the built-in tables
    extra_markers_path: Optional[Path] = None
    lexicon_path: Optional[Path] = None

    # Raise on coverage violations instead of logging them
    strict_invariants: bool = False

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
