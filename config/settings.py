"""
Configuration settings for the medical app data layer.
Loads from environment variables with validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MEDAPP_",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root logging level")

    # Storage Configuration
    storage_backend: Literal["memory", "file"] = Field(
        default="file",
        description="Persistent medium: in-memory dict or one JSON file per key",
    )
    storage_path: Path = Field(default=Path("./data"), description="Directory for the file backend")
    storage_namespace: str = Field(default="@MedicalApp:", description="Prefix of every persisted key")

    # Cache Configuration
    collection_cache_ttl_minutes: Optional[float] = Field(
        default=None,
        description="Cache lifetime for collection writes; cached copies never expire if unset",
    )

    # Default preferences
    default_language: str = "pt-BR"
    default_theme: Literal["light", "dark"] = "light"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8082


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
