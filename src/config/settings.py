# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Capability providers ===
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    google_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Persistence store (recipes + executions) ===
    store_backend: Literal["memory", "json", "sqlite", "redis"] = "json"
    store_root: Path = Path("~/.recipeflow/store")
    store_redis_url: str = ""

    # === Object storage (data_processing uploads) ===
    object_storage: Literal["local", "s3"] = "local"
    object_storage_root: Path = Path("~/.recipeflow/media")
    object_storage_base_url: str = ""
    s3_bucket: str = ""
    s3_prefix: str = "recipeflow/"
    s3_region: str = ""
    s3_endpoint_url: str = ""

    # === Execution ===
    max_parallel_nodes: int = 4
    default_node_timeout_ms: int = 120_000
    recipe_allow_orphan_nodes: bool = True
    execution_retention_days: int = 30

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("default_node_timeout_ms", "execution_retention_days")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.store_backend == "redis" and not self.store_redis_url:
            errors.append("STORE_BACKEND=redis requires STORE_REDIS_URL")

        if self.object_storage == "s3" and not self.s3_bucket:
            errors.append("OBJECT_STORAGE=s3 requires S3_BUCKET")

        if self.max_parallel_nodes < 1:
            errors.append("MAX_PARALLEL_NODES must be >= 1")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
