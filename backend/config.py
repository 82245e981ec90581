"""
Configuration and settings for the marketplace backend.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.constants import PIN_HASH_ROUNDS

DEFAULT_LOCALIDADES_PATH = Path(__file__).resolve().parent / "data" / "localidades.json"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="Guía Comercial API")
    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    allowed_origins: list[str] = Field(default=["*"], alias="ALLOWED_ORIGINS")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, alias="GUIA_USE_IN_MEMORY_BACKENDS"
    )

    # Document store: Firestore in production, any SQLAlchemy URL otherwise.
    firebase_project_id: Optional[str] = Field(
        default=None, alias="FIREBASE_PROJECT_ID"
    )
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Static reference data
    localidades_path: str = Field(
        default=str(DEFAULT_LOCALIDADES_PATH), alias="LOCALIDADES_PATH"
    )

    pin_hash_rounds: int = Field(default=PIN_HASH_ROUNDS, alias="PIN_HASH_ROUNDS")

    # S3-compatible storage for selfies
    storage_endpoint: Optional[str] = Field(default=None, alias="STORAGE_ENDPOINT")
    storage_region: Optional[str] = Field(default=None, alias="STORAGE_REGION")
    storage_bucket: Optional[str] = Field(default=None, alias="STORAGE_BUCKET")
    aws_access_key_id: Optional[str] = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(
        default=None, alias="AWS_SECRET_ACCESS_KEY"
    )

    # TusFacturas (AFIP padrón lookups)
    tusfacturas_api_key: Optional[str] = Field(
        default=None, alias="TUSFACTURAS_API_KEY"
    )
    tusfacturas_api_token: Optional[str] = Field(
        default=None, alias="TUSFACTURAS_API_TOKEN"
    )
    tusfacturas_user_token: Optional[str] = Field(
        default=None, alias="TUSFACTURAS_USER_TOKEN"
    )

    # Mercado Pago checkout
    mp_access_token: Optional[str] = Field(default=None, alias="MP_ACCESS_TOKEN")
    mp_notification_url: Optional[str] = Field(
        default=None, alias="MP_NOTIFICATION_URL"
    )
    app_url: Optional[str] = Field(default=None, alias="APP_URL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
