"""Configuration model for the request client."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tenant_api.features.client.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_MS,
    LOGIN_PATH,
)
from tenant_api.features.client.models import RetryPolicy


class ClientConfig(BaseModel):
    """Configuration for one API client instance.

    Central configuration for timeouts, retry policy, and the auth policy
    switches that do not involve callbacks.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: Annotated[str, Field(min_length=1)] = DEFAULT_BASE_URL
    timeout_ms: Annotated[int, Field(ge=1, le=600000)] = DEFAULT_TIMEOUT_MS
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    refresh_enabled: bool = Field(
        default=True,
        description="Refresh the access token and replay once on 401",
    )
    login_url: Annotated[str, Field(min_length=1)] = LOGIN_PATH

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) base URL and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            msg = f"base_url must start with http:// or https://, got '{v}'"
            raise ValueError(msg)
        return v.rstrip("/")
