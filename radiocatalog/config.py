"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden by a CATALOG_* environment variable
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for every setting: a local SQLite file works out-of-the-box
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    """Catalog settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CATALOG_", case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite:///radiocatalog.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Heroku-style postgres:// URLs are not accepted by SQLAlchemy 2."""
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 10
    create_schema: bool = True

    # Catalog
    tle_directory: str | None = None
    background_workers: int = 2
    sync_on_close: bool = True

    # Observability
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
