"""
Configuration settings for oracle-store.

Uses Pydantic Settings for environment variable management with .env file support.
Every variable is read with the ORACLE_ prefix (e.g. ORACLE_DATA_DIR).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ORACLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Local storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".oracle",
        description="Directory holding the local databases",
    )
    flat_store_url: str = Field(
        default="",
        description="SQLAlchemy URL for the flat record store (defaults to <data_dir>/oracle.db)",
    )
    document_store_url: str = Field(
        default="",
        description="Async SQLAlchemy URL for the document store (defaults to <data_dir>/oracle_documents.db)",
    )
    document_collection: str = Field(
        default="study_history",
        description="Collection name for archived study sessions",
    )
    document_store_version: int = Field(
        default=1,
        description="Schema version recorded for the document collection",
    )
    sql_echo: bool = Field(
        default=False,
        description="Echo SQL statements issued by both stores",
    )

    # ========================================
    # Accounts & rewards
    # ========================================
    auth_latency_ms: int = Field(
        default=0,
        description="Simulated latency before signup/login completes",
    )
    session_reward_credits: int = Field(
        default=50,
        description="Credits granted when a study session reward is claimed",
    )
    trajectory_points: int = Field(
        default=10,
        description="Number of recent attempts plotted in a performance trajectory",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="INFO",
        description="Log level for the CLI sink",
    )

    @model_validator(mode="after")
    def _default_store_urls(self) -> "Settings":
        if not self.flat_store_url:
            self.flat_store_url = f"sqlite:///{self.data_dir / 'oracle.db'}"
        if not self.document_store_url:
            self.document_store_url = f"sqlite+aiosqlite:///{self.data_dir / 'oracle_documents.db'}"
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
