"""
Runtime configuration helpers for the social sync core.

Loads DATABASE_URL, LOCAL_CACHE_PATH and the other variables from the .env
file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Remote record store
    database_url: str = Field(default=f"sqlite+pysqlite:///{BASE_DIR / 'fitsocial_remote.db'}", alias="DATABASE_URL")

    # Local cache (identity, own profile, mirrored privacy settings)
    local_cache_path: str = Field(default=str(BASE_DIR / ".fitsocial_cache.db"), alias="LOCAL_CACHE_PATH")

    app_name: str = Field(default="FitSocial Sync", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")

    # Identity provider
    identity_provider_url: str | None = Field(default=None, alias="IDENTITY_PROVIDER_URL")
    identity_provider_timeout: float = Field(default=10.0, alias="IDENTITY_PROVIDER_TIMEOUT")
    device_identity: str | None = Field(default=None, alias="DEVICE_IDENTITY")

    # Query caps
    search_result_limit: int = Field(default=20, alias="SEARCH_RESULT_LIMIT")
    feed_result_limit: int = Field(default=50, alias="FEED_RESULT_LIMIT")
    suggestion_limit: int = Field(default=10, alias="SUGGESTION_LIMIT")
    publish_max_attempts: int = Field(default=3, alias="PUBLISH_MAX_ATTEMPTS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
