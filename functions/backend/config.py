"""
Configuration and settings for the backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.firebase_constants import USERS_COLLECTION


class Settings(BaseSettings):
    """Environment-backed settings, read from LAST_USED_* variables or `.env`."""

    model_config = SettingsConfigDict(
        env_prefix="LAST_USED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_prefix: str = Field(default="/api")

    # Document store: "memory" for development, "firestore" or "sql" for production.
    store_backend: Literal["memory", "firestore", "sql"] = Field(default="memory")

    # SQLAlchemy URL for the "sql" backend (Postgres expected).
    database_url: Optional[str] = Field(default=None)

    # Firestore collection of user documents.
    users_collection: str = Field(default=USERS_COLLECTION)

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
