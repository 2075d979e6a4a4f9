"""
Configuration settings for the sales query engine.

Uses Pydantic Settings to load environment variables for the data source,
database connection, logging, pagination bounds and search-index tuning.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Data source
    data_source: Literal["csv", "postgres"] = Field("csv", alias="DATA_SOURCE")
    data_path: Path = Field(Path("data/sales_data.csv"), alias="DATA_PATH")

    # Database (alternate data source)
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("sales", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(0, alias="DB_STATEMENT_TIMEOUT_MS", ge=0)
    db_fetch_batch_size: int = Field(10_000, alias="DB_FETCH_BATCH_SIZE", gt=0)

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Pagination bounds
    default_page_size: int = Field(10, alias="DEFAULT_PAGE_SIZE", gt=0)
    max_page_size: int = Field(1_000_000, alias="MAX_PAGE_SIZE", gt=0)

    # Search index
    phone_prefix_min_length: int = Field(3, alias="PHONE_PREFIX_MIN_LENGTH", gt=0)
    phone_prefix_max_length: int = Field(6, alias="PHONE_PREFIX_MAX_LENGTH", gt=0)
    phone_suffix_length: int = Field(4, alias="PHONE_SUFFIX_LENGTH", gt=0)
    cancel_check_interval: int = Field(10_000, alias="CANCEL_CHECK_INTERVAL", gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
