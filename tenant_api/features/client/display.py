"""User-facing error descriptions for typed client errors."""

from typing import Any

from tenant_api.features.client.constants import (
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_UNAUTHORIZED,
)
from tenant_api.features.client.errors import ClientError


ERROR_MESSAGES: dict[str, str] = {
    "NOT_FOUND": "The requested resource was not found.",
    "VALIDATION_ERROR": "Please check your input and try again.",
    "CONFLICT": "This action conflicts with the current state.",
    "AUTHENTICATION_ERROR": "Please sign in to continue.",
    "AUTHORIZATION_ERROR": "You do not have permission to perform this action.",
    "DOMAIN_ERROR": "This operation cannot be completed.",
    "INTERNAL_ERROR": "An internal error occurred. Please try again later.",
    "NETWORK_ERROR": "Unable to connect to the server. Please check your connection.",
    "TIMEOUT_ERROR": "The request took too long. Please try again.",
    "UNKNOWN_ERROR": "An unexpected error occurred.",
}


def is_retryable_error(error: BaseException) -> bool:
    """Check if an error is worth retrying (network failure or 5xx)."""
    return isinstance(error, ClientError) and error.retryable


def is_authentication_error(error: BaseException) -> bool:
    """Check for a 401 failure."""
    return isinstance(error, ClientError) and error.status == HTTP_STATUS_UNAUTHORIZED


def is_authorization_error(error: BaseException) -> bool:
    """Check for a 403 failure."""
    return isinstance(error, ClientError) and error.status == HTTP_STATUS_FORBIDDEN


def describe_error(error: BaseException) -> dict[str, Any]:
    """Summarize any error for display, e.g. in a toast notification.

    Args:
        error: Exception raised by the client or by application code.

    Returns:
        Dict with ``message``, ``code``, ``status``, ``field_errors``, and
        ``retryable``.
    """
    if isinstance(error, ClientError):
        return {
            "message": error.message
            or ERROR_MESSAGES.get(error.code, ERROR_MESSAGES["UNKNOWN_ERROR"]),
            "code": error.code,
            "status": error.status,
            "field_errors": error.field_errors,
            "retryable": error.retryable,
        }

    return {
        "message": str(error) or ERROR_MESSAGES["UNKNOWN_ERROR"],
        "code": "UNKNOWN_ERROR",
        "status": None,
        "field_errors": None,
        "retryable": False,
    }
