# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_PER_PAGE, MAX_PER_PAGE


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)

load_dotenv(_BACKEND_ROOT / ".env")

if os.getenv("CI"):
    _DEFAULT_SECRET_KEY: SecretStr | object = SecretStr("ci-test-secret-key-not-for-production")
else:
    _DEFAULT_SECRET_KEY = SecretStr("dev-secret-key-change-me")


class Settings(BaseSettings):
    environment: str = Field(default="development", description="development | production")

    # Auth
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        description="Secret key for JWT tokens",
    )  # type: ignore[assignment]
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Database
    database_url: str = Field(
        default=f"sqlite:///{_BACKEND_ROOT / 'tour_booking.db'}",
        description="SQLAlchemy URL for the primary database",
    )
    db_echo: bool = False

    # CORS
    cors_allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Receipt storage
    receipt_storage_backend: Literal["local", "r2", "none"] = "local"
    receipt_storage_dir: str = Field(default=str(_BACKEND_ROOT / "storage"))
    receipt_public_base_url: Optional[str] = Field(
        default=None, description="Public URL prefix for stored receipts"
    )
    receipt_max_bytes: int = 2 * 1024 * 1024

    # Cloudflare R2 (S3-compatible) receipt bucket
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: SecretStr = SecretStr("")
    r2_bucket_name: str = ""

    # Pagination
    default_per_page: int = DEFAULT_PER_PAGE
    max_per_page: int = MAX_PER_PAGE

    # Observability
    log_level: str = "INFO"
    prometheus_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip().startswith("["):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
