"""Data models for the request client."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from tenant_api.features.client.cancellation import CancellationToken
from tenant_api.features.client.constants import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    LOGIN_PATH,
)
from tenant_api.features.client.errors import ClientError


T = TypeVar("T")

QueryValue = str | int | float | bool | None
QueryParams = Mapping[str, QueryValue | list[QueryValue] | tuple[QueryValue, ...]]


class ErrorDetail(BaseModel):
    """Single entry of the error envelope ``details`` array."""

    model_config = ConfigDict(extra="ignore")

    field: str | None = None
    message: str
    code: str | None = None


class ErrorEnvelope(BaseModel):
    """Wire shape of an API error response body."""

    model_config = ConfigDict(extra="ignore")

    error: str
    message: str
    details: list[ErrorDetail] | None = None
    timestamp: str | None = None
    path: str | None = None
    request_id: str | None = None

    def field_errors(self) -> dict[str, str] | None:
        """Reduce ``details`` into a field -> message map.

        Returns:
            Mapping for details that name a field, or None when the envelope
            carries no details at all.
        """
        if self.details is None:
            return None
        return {
            detail.field: detail.message for detail in self.details if detail.field
        }


class TokenPair(BaseModel):
    """Successful response of the refresh endpoint.

    Servers that do not rotate refresh tokens may omit ``refresh_token``.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: Annotated[str, Field(min_length=1)]
    refresh_token: str | None = None


class LoginResponse(BaseModel):
    """Successful response of the login endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: Annotated[str, Field(min_length=1)]
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None


class Page(BaseModel, Generic[T]):
    """Normalized collection response.

    The API returns collections either as a bare JSON array or wrapped in a
    paginated envelope; both are adapted into this shape.
    """

    model_config = ConfigDict(extra="ignore")

    items: list[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 0
    has_more: bool = False


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Uses exponential backoff: the delay before attempt ``n`` (n >= 2) is
    ``base_delay_ms * 2 ** (n - 2)``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_attempts: Annotated[int, Field(ge=1, le=10)] = DEFAULT_RETRY_ATTEMPTS
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = DEFAULT_RETRY_DELAY_MS

    def should_retry(self, error: ClientError, attempt: int) -> bool:
        """Determine if a failed attempt should be followed by another.

        Args:
            error: The typed error raised by the attempt.
            attempt: Number of the attempt that failed (1-indexed).

        Returns:
            True if the request should be attempted again.
        """
        if attempt >= self.max_attempts:
            return False
        return error.retryable

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate the wait before an attempt.

        Args:
            attempt: Number of the upcoming attempt (1-indexed, >= 2).

        Returns:
            Delay in milliseconds.
        """
        if attempt < 2:  # noqa: PLR2004
            return 0
        return self.base_delay_ms * 2 ** (attempt - 2)


@dataclass(frozen=True)
class RequestOptions:
    """Per-call overrides accepted by every verb.

    Attributes:
        headers: Extra headers merged over the defaults.
        timeout_ms: Deadline for each attempt, overriding the client default.
        cancel_token: Caller-owned token that aborts the request when fired.
    """

    headers: Mapping[str, str] | None = None
    timeout_ms: int | None = None
    cancel_token: CancellationToken | None = None


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to issue one logical request."""

    method: str
    endpoint: str
    params: QueryParams | None = None
    json_body: Any = None
    files: Mapping[str, Any] | None = None
    form_data: Mapping[str, Any] | None = None
    options: RequestOptions = field(default_factory=RequestOptions)
    expect_bytes: bool = False

    @property
    def is_multipart(self) -> bool:
        """Whether the payload is encoded as multipart form data."""
        return self.files is not None


@dataclass(frozen=True)
class AuthEvent:
    """Notification passed to the auth policy.

    Attributes:
        status: HTTP status that triggered the notification (401 or 403).
        endpoint: Endpoint of the request that failed.
        credentials_cleared: Whether stored credentials were wiped.
    """

    status: int
    endpoint: str
    credentials_cleared: bool


@dataclass(frozen=True)
class AuthPolicy:
    """How the client reacts to authentication and authorization failures.

    Attributes:
        refresh_enabled: Attempt a token refresh and replay on 401.
        on_auth_error: Callback invoked with an AuthEvent. Takes precedence
            over ``navigator``.
        navigator: Called with ``login_url`` when no callback is registered,
            the hard-redirect variant.
        login_url: Login entry point passed to ``navigator``.
    """

    refresh_enabled: bool = True
    on_auth_error: Callable[[AuthEvent], None] | None = None
    navigator: Callable[[str], None] | None = None
    login_url: str = LOGIN_PATH

    def notify(self, event: AuthEvent) -> None:
        """Dispatch an auth failure to the configured handler."""
        if self.on_auth_error is not None:
            self.on_auth_error(event)
        elif self.navigator is not None:
            self.navigator(self.login_url)
