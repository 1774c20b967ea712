"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Autoantibody Catalog API"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        """Normalize environment value, accepting common short forms."""
        if isinstance(v, str):
            v = v.strip().strip('"').strip("'").lower()
            if v in ("prod", "prd"):
                return "production"
            if v in ("dev", "local"):
                return "development"
            if v in ("stage", "stg"):
                return "staging"
        return v

    @field_validator("debug", mode="before")
    @classmethod
    def normalize_debug(cls, v) -> bool:
        """Normalize debug value, handling quoted strings."""
        if isinstance(v, str):
            v = v.strip().strip('"').strip("'").lower()
            return v in ("true", "1", "yes", "on")
        return bool(v)

    # API
    api_v1_prefix: str = "/api/v1"
    allowed_origins: str = Field(default="http://localhost:8000,http://localhost:3000")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]

    # Storage
    storage_backend: Literal["memory", "duckdb"] = "memory"
    records_path: Path = Field(
        default=Path("data/records.json"),
        description="JSON snapshot of catalog records (memory backend)",
    )
    duckdb_path: Path = Field(
        default=Path("data/catalog.duckdb"),
        description="DuckDB file holding the records table (duckdb backend)",
    )

    @field_validator("storage_backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").lower()
        return v

    # Query limits
    default_page_limit: int = 10
    max_page_limit: int = 100
    simple_search_default_limit: int = 20
    ranked_default_limit: int = 50
    min_ranked_term_length: int = 2
    export_max_limit: int = 10_000
    related_entries_limit: int = 5


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
