# =============================================================================
# Webapp Configuration
# =============================================================================
# Settings loaded from environment variables. Connection and ingestion
# settings come from libs.models; only webapp concerns live here.
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from libs.models import IngestSettings, MinIOSettings, MongoSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@lru_cache
def get_minio_settings() -> MinIOSettings:
    return MinIOSettings()


@lru_cache
def get_mongo_settings() -> MongoSettings:
    return MongoSettings()


@lru_cache
def get_ingest_settings() -> IngestSettings:
    return IngestSettings()
