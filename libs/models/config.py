# =============================================================================
# Configuration Models Module
# =============================================================================
# Environment-backed settings for the ingestion service:
# - MinIOSettings: landing bucket connection
# - MongoSettings: job ledger and record store connection
# - IngestSettings: page size, decoding and idle polling
# =============================================================================

import codecs
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "MinIOSettings",
    "MongoSettings",
    "IngestSettings",
    "DEFAULT_PAGE_SIZE",
]

DEFAULT_PAGE_SIZE = 1000

# Shared by every settings model: read .env, tolerate unrelated variables.
_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    case_sensitive=False,
    extra="ignore",
)


# =============================================================================
# MinIO Settings
# =============================================================================

class MinIOSettings(BaseSettings):
    """
    Where uploaded objects live and how to reach them.

    The endpoint is ``host:port``; a leading ``http://`` or ``https://`` is
    accepted and stripped, since the MinIO client takes the scheme from
    ``MINIO_USE_SSL`` instead.
    """

    endpoint: str = Field(..., validation_alias="MINIO_ENDPOINT")
    access_key: str = Field(..., validation_alias="MINIO_ROOT_USER")
    secret_key: str = Field(..., validation_alias="MINIO_ROOT_PASSWORD")
    use_ssl: bool = Field(False, validation_alias="MINIO_USE_SSL")
    landing_bucket: str = Field("landing-zone", validation_alias="MINIO_LANDING_BUCKET")

    model_config = _ENV_CONFIG

    @field_validator("endpoint")
    @classmethod
    def strip_scheme(cls, v: str) -> str:
        for prefix in ("http://", "https://"):
            if v.startswith(prefix):
                v = v[len(prefix):]
        v = v.rstrip("/")
        if not v:
            raise ValueError("MINIO_ENDPOINT cannot be empty")
        return v


# =============================================================================
# MongoDB Settings
# =============================================================================

class MongoSettings(BaseSettings):
    """
    MongoDB connection for the ``jobs`` and ``records`` collections.

    ``MONGO_CONNECTION_STRING`` wins when set; otherwise the URI is assembled
    from host, port, credentials and auth source.
    """

    uri: Optional[str] = Field(None, validation_alias="MONGO_CONNECTION_STRING")
    host: str = Field("mongodb", validation_alias="MONGO_HOST")
    port: int = Field(27017, validation_alias="MONGO_PORT")
    username: Optional[str] = Field(None, validation_alias="MONGO_INITDB_ROOT_USERNAME")
    password: Optional[str] = Field(None, validation_alias="MONGO_INITDB_ROOT_PASSWORD")
    database: str = Field("line_ingest", validation_alias="MONGO_DATABASE")
    auth_source: str = Field("admin", validation_alias="MONGO_AUTH_SOURCE")

    model_config = _ENV_CONFIG

    @property
    def connection_string(self) -> str:
        if self.uri:
            return self.uri
        if self.username:
            return (
                f"mongodb://{self.username}:{self.password or ''}@"
                f"{self.host}:{self.port}/{self.database}?authSource={self.auth_source}"
            )
        return f"mongodb://{self.host}:{self.port}/{self.database}"


# =============================================================================
# Ingestion Settings
# =============================================================================

class IngestSettings(BaseSettings):
    """
    Tuning for the ingestion pipeline.

    - INGEST_PAGE_SIZE: records per bulk write (>= 1)
    - INGEST_ENCODING: text encoding of stored objects
    - INGEST_POLL_INTERVAL_SECONDS: idle poll period, 0 disables
    """

    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, validation_alias="INGEST_PAGE_SIZE")
    encoding: str = Field("utf-8", validation_alias="INGEST_ENCODING")
    poll_interval_seconds: float = Field(0.0, ge=0, validation_alias="INGEST_POLL_INTERVAL_SECONDS")

    model_config = _ENV_CONFIG

    @field_validator("encoding")
    @classmethod
    def known_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {v}") from exc
        return v
