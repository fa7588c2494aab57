"""
Configuration management for labdb.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. The store, the file gateway and the maintenance CLI all read
the shared settings so data locations and ID prefixes stay consistent.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LABDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Data files
    DATA_DIR: Path = Field(default_factory=lambda: Path("public/database"))
    PERSONS_FILE: str = "persons.yaml"
    PUBLICATIONS_FILE: str = "pubs.yaml"
    PHOTOS_FILE: str = "photos.yaml"
    NEWS_FILE: str = "news.yaml"

    # ID allocation
    TEMP_ID_PREFIX: str = Field(".", min_length=1)
    PERSON_ID_PREFIX: str = "$"
    PUBLICATION_ID_PREFIX: str = "+"
    PHOTO_ID_PREFIX: str = "p-"
    NEWS_ID_PREFIX: str = "n-"

    # Logging
    LOG_LEVEL: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("LOG_LEVEL", mode="before")
    def _upper_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def collection_files(self) -> Dict[str, str]:
        return {
            "persons": self.PERSONS_FILE,
            "publications": self.PUBLICATIONS_FILE,
            "photos": self.PHOTOS_FILE,
            "news": self.NEWS_FILE,
        }

    @property
    def id_prefixes(self) -> Dict[str, str]:
        return {
            "persons": self.PERSON_ID_PREFIX,
            "publications": self.PUBLICATION_ID_PREFIX,
            "photos": self.PHOTO_ID_PREFIX,
            "news": self.NEWS_ID_PREFIX,
        }


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()
