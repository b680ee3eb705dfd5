"""Tenant-scoped request client with retries and token refresh.

This module provides the HTTP access layer with:
- Tenant query parameter and header injection with path exemptions
- Bearer token authentication backed by the credential store
- Per-attempt deadlines composed with caller cancellation tokens
- Retry policy with exponential backoff for transient failures
- Single-flight token refresh with one replay on 401
- Typed errors and header redaction for logging

Use ``tenant_api.features.client.factory.create_api_client`` to build a
client from environment settings.
"""

from tenant_api.features.client.builder import PreparedRequest, RequestBuilder
from tenant_api.features.client.cancellation import (
    CancellationToken,
    CancelReason,
    OperationCancelledError,
)
from tenant_api.features.client.client import ApiClient
from tenant_api.features.client.config import ClientConfig
from tenant_api.features.client.constants import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    HEADER_TENANT_ID,
    TENANT_QUERY_PARAM,
)
from tenant_api.features.client.dispatcher import RequestDispatcher
from tenant_api.features.client.display import (
    describe_error,
    is_authentication_error,
    is_authorization_error,
    is_retryable_error,
)
from tenant_api.features.client.errors import (
    ApiError,
    AuthError,
    ClientError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseFormatError,
)
from tenant_api.features.client.jwt import decode_jwt, user_id_from_token
from tenant_api.features.client.metrics import ClientMetrics
from tenant_api.features.client.models import (
    AuthEvent,
    AuthPolicy,
    ErrorDetail,
    ErrorEnvelope,
    LoginResponse,
    Page,
    RequestDescriptor,
    RequestOptions,
    RetryPolicy,
    TokenPair,
)
from tenant_api.features.client.redact import redact_headers, redact_url_credentials
from tenant_api.features.client.refresh import RefreshCoordinator, RefreshState
from tenant_api.features.client.retry import RetryController, RetryState, retry
from tenant_api.features.client.tenancy import is_auth_endpoint, is_tenant_exempt


__all__ = [
    # Client
    "ApiClient",
    "ClientConfig",
    # Components
    "RequestBuilder",
    "PreparedRequest",
    "RequestDispatcher",
    "RetryController",
    "RetryState",
    "retry",
    "RefreshCoordinator",
    "RefreshState",
    # Cancellation
    "CancellationToken",
    "CancelReason",
    "OperationCancelledError",
    # Models
    "AuthEvent",
    "AuthPolicy",
    "ErrorDetail",
    "ErrorEnvelope",
    "LoginResponse",
    "Page",
    "RequestDescriptor",
    "RequestOptions",
    "RetryPolicy",
    "TokenPair",
    # Errors
    "ClientError",
    "ApiError",
    "AuthError",
    "NetworkError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "ResponseFormatError",
    # Error display
    "describe_error",
    "is_retryable_error",
    "is_authentication_error",
    "is_authorization_error",
    # Tenancy
    "is_tenant_exempt",
    "is_auth_endpoint",
    # Constants
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY_MS",
    "HEADER_TENANT_ID",
    "TENANT_QUERY_PARAM",
    # JWT
    "decode_jwt",
    "user_id_from_token",
    # Metrics
    "ClientMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
