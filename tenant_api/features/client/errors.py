"""Typed errors surfaced by the request client.

Every failure a caller can observe is one of these classes, so callers can
handle errors uniformly without inspecting transport internals.
"""

from tenant_api.features.client.constants import (
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_UNAUTHORIZED,
    STATUS_NO_RESPONSE,
)


class ClientError(Exception):
    """Base exception for all request client errors.

    Attributes:
        message: Human-readable message.
        code: Machine-readable error code (e.g. ``NOT_FOUND``).
        status: HTTP status code, or 0 when no response was received.
        field_errors: Mapping of field name to validation message.
    """

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status: int = STATUS_NO_RESPONSE,
        field_errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status = status
        self.field_errors = field_errors

    @property
    def retryable(self) -> bool:
        """Whether the retry controller may attempt the request again."""
        return False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code!r}, "
            f"status={self.status})"
        )


class NetworkError(ClientError):
    """Transport-level failure; the server could not be reached."""

    default_code = "NETWORK_ERROR"

    def __init__(
        self, message: str = "Network error: Unable to connect to the server"
    ) -> None:
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return True


class RequestTimeoutError(ClientError):
    """The per-attempt deadline expired before a response arrived."""

    default_code = "TIMEOUT_ERROR"

    def __init__(
        self, message: str = "Request timeout: The request took too long"
    ) -> None:
        super().__init__(message)


class RequestCancelledError(ClientError):
    """The caller's cancellation token fired before the request completed."""

    default_code = "CANCELLED"

    def __init__(self, message: str = "Request cancelled by caller") -> None:
        super().__init__(message)


class ApiError(ClientError):
    """Non-2xx response from the API.

    Carries the error code and message from the response envelope and a
    field-to-message map built from the envelope ``details``.
    """

    def __init__(
        self,
        message: str,
        code: str,
        status: int,
        field_errors: dict[str, str] | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, code=code, status=status, field_errors=field_errors)
        self.request_id = request_id

    @property
    def retryable(self) -> bool:
        return self.status >= HTTP_STATUS_SERVER_ERROR_MIN


class ResponseFormatError(ClientError):
    """A successful response body did not have the expected shape."""

    default_code = "INVALID_RESPONSE"

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message, status=status)


class AuthError(ClientError):
    """Unrecoverable authentication failure.

    Raised after credentials have been cleared and the auth policy has been
    notified. Terminal: never retried.
    """

    default_code = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str = "Authentication required",
        status: int = HTTP_STATUS_UNAUTHORIZED,
    ) -> None:
        super().__init__(message, status=status)
