"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tenant_api.features.client.config import ClientConfig
from tenant_api.features.client.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
)
from tenant_api.features.client.models import RetryPolicy


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    api_base_url: str = Field(default=DEFAULT_BASE_URL, validation_alias="API_BASE_URL")
    api_timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS, validation_alias="API_TIMEOUT_MS"
    )
    api_retry_attempts: int = Field(
        default=DEFAULT_RETRY_ATTEMPTS, validation_alias="API_RETRY_ATTEMPTS"
    )
    api_retry_delay_ms: int = Field(
        default=DEFAULT_RETRY_DELAY_MS, validation_alias="API_RETRY_DELAY_MS"
    )
    api_refresh_enabled: bool = Field(
        default=True, validation_alias="API_REFRESH_ENABLED"
    )
    api_credentials_db: Path | None = Field(
        default=None, validation_alias="API_CREDENTIALS_DB"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")

    def to_client_config(self) -> ClientConfig:
        """Build the validated client configuration."""
        return ClientConfig(
            base_url=self.api_base_url,
            timeout_ms=self.api_timeout_ms,
            retry_policy=RetryPolicy(
                max_attempts=self.api_retry_attempts,
                base_delay_ms=self.api_retry_delay_ms,
            ),
            refresh_enabled=self.api_refresh_enabled,
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
