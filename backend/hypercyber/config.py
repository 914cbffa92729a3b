"""Application settings and configuration helpers."""
from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./hypercyber.db", alias="DATABASE_URL"
    )
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8080, alias="PORT")
    jwt_secret: str = Field(default="change-me", alias="JWT_SECRET")
    jwt_expiration: int = Field(default=86400, alias="JWT_EXPIRATION")

    oidc_issuer: str | None = Field(default=None, alias="OIDC_ISSUER")
    oidc_client_id: str | None = Field(default=None, alias="OIDC_CLIENT_ID")
    oidc_client_secret: str | None = Field(default=None, alias="OIDC_CLIENT_SECRET")
    oidc_redirect_uri: str | None = Field(default=None, alias="OIDC_REDIRECT_URI")
    frontend_url: str = Field(default="http://localhost:5173", alias="FRONTEND_URL")

    storage_type: str = Field(default="local", alias="STORAGE_TYPE")
    storage_local_path: str = Field(default="./storage", alias="STORAGE_LOCAL_PATH")
    s3_bucket: str | None = Field(default=None, alias="S3_BUCKET")
    s3_region: str | None = Field(default=None, alias="S3_REGION")
    s3_access_key_id: str | None = Field(default=None, alias="S3_ACCESS_KEY_ID")
    s3_secret_access_key: str | None = Field(default=None, alias="S3_SECRET_ACCESS_KEY")
    s3_endpoint: str | None = Field(default=None, alias="S3_ENDPOINT")

    strict_status_values: bool = Field(default=True, alias="STRICT_STATUS_VALUES")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], alias="CORS_ORIGINS"
    )

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("database_url")
    @classmethod
    def _use_async_driver(cls, value: str) -> str:
        # Plain postgres URLs need the asyncpg driver for the async engine.
        for prefix in ("postgresql://", "postgres://"):
            if value.startswith(prefix):
                return "postgresql+asyncpg://" + value[len(prefix):]
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def oidc_configured(self) -> bool:
        """True when every setting the code flow needs is present."""

        return bool(
            self.oidc_issuer
            and self.oidc_client_id
            and self.oidc_client_secret
            and self.oidc_redirect_uri
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance built from the environment."""

    env = {
        field.alias: os.environ[field.alias]
        for field in Settings.model_fields.values()
        if field.alias and field.alias in os.environ
    }
    return Settings(**env)


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""

    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
