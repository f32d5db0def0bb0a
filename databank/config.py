"""
Application configuration management.

Uses pydantic-settings for type-safe environment variable parsing.
All configuration is centralized here so backends never read
os.getenv() themselves.
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Databank settings with validation and type coercion.
    
    Values are loaded from environment variables or .env file.
    All fields have sensible defaults for local development.
    Dict-valued fields are read as JSON from the environment, e.g.
    DATABANK_SCHEMA='{"user": {"idCol": "nickname"}}'.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Storage Backend Selection
    # Options: "mongodb", "memory"
    storage_backend: Literal["mongodb", "memory"] = "mongodb"
    
    # MongoDB Configuration (default backend)
    mongodb_host: str = "localhost"
    mongodb_port: int = 27017
    mongodb_database: str = "test"
    mongodb_options: dict[str, Any] = {}
    
    # Per-type identity columns: {"<type>": {"idCol": "<field>"}}
    databank_schema: dict[str, dict[str, str]] = {}
    
    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    
    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    
    @property
    def is_development(self) -> bool:
        return self.environment == "development"
    
    @property
    def is_mongodb(self) -> bool:
        """Check if using MongoDB backend."""
        return self.storage_backend == "mongodb"
    
    @property
    def is_memory(self) -> bool:
        """Check if using the in-memory backend."""
        return self.storage_backend == "memory"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings singleton.
    
    Use this function to get settings instance throughout the application.
    The @lru_cache ensures we only parse environment once.
    """
    return Settings()


# Convenience export for direct import
settings = get_settings()
