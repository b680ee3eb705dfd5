"""Translation of raw responses and transport failures into typed outcomes."""

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from tenant_api.features.client.cancellation import CancelReason, OperationCancelledError
from tenant_api.features.client.constants import (
    GENERIC_ERROR_MESSAGE,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    JSON_CONTENT_TYPE,
)
from tenant_api.features.client.errors import (
    ApiError,
    ClientError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseFormatError,
)
from tenant_api.features.client.models import ErrorEnvelope, Page


logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

UNKNOWN_ERROR_CODE = "UNKNOWN_ERROR"


def is_success(response: httpx.Response) -> bool:
    """Check for a 2xx status."""
    return HTTP_STATUS_OK_MIN <= response.status_code < HTTP_STATUS_OK_MAX


def is_json_response(response: httpx.Response) -> bool:
    """Check the declared content type for JSON."""
    content_type = response.headers.get("content-type")
    return bool(content_type) and JSON_CONTENT_TYPE in content_type.lower()


def decode_success(response: httpx.Response) -> Any:
    """Decode a successful response.

    Endpoints that intentionally return no body either omit the JSON content
    type or send an empty body; both yield an empty dict.

    Raises:
        ResponseFormatError: If the body claims to be JSON but is not.
    """
    if not is_json_response(response) or not response.content:
        return {}
    try:
        return response.json()
    except ValueError as exc:
        msg = f"Malformed JSON in response: {exc}"
        raise ResponseFormatError(msg, status=response.status_code) from exc


def parse_error(response: httpx.Response) -> ApiError:
    """Build an ApiError from a non-2xx response.

    Falls back to an ``UNKNOWN_ERROR`` envelope when the body is not a valid
    error envelope.
    """
    try:
        envelope = ErrorEnvelope.model_validate(response.json())
    except ValueError:
        envelope = ErrorEnvelope(
            error=UNKNOWN_ERROR_CODE,
            message=response.reason_phrase or GENERIC_ERROR_MESSAGE,
        )

    return ApiError(
        envelope.message,
        code=envelope.error,
        status=response.status_code,
        field_errors=envelope.field_errors(),
        request_id=envelope.request_id,
    )


def translate_exception(exc: BaseException) -> BaseException:
    """Map a failure raised during dispatch onto the client taxonomy.

    Typed client errors pass through unchanged; unknown exceptions are
    returned as-is so they surface to the caller unaltered.
    """
    if isinstance(exc, ClientError):
        return exc
    if isinstance(exc, OperationCancelledError):
        if exc.reason == CancelReason.TIMEOUT:
            return RequestTimeoutError()
        return RequestCancelledError()
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeoutError()
    if isinstance(exc, httpx.TransportError):
        return NetworkError()
    return exc


def to_page(
    payload: Any,
    item_model: type[M] | None = None,
    status: int = HTTP_STATUS_OK_MIN,
) -> Page[Any]:
    """Normalize a collection response into a Page.

    Accepts either a bare JSON array or a paginated object with ``items``.

    Args:
        payload: Decoded JSON body.
        item_model: Optional pydantic model to validate each item with.
        status: Status of the response, for error reporting.

    Raises:
        ResponseFormatError: If the payload is neither shape or items fail
            validation.
    """
    try:
        if isinstance(payload, list):
            page: Page[Any] = Page(
                items=payload,
                total=len(payload),
                limit=len(payload),
            )
        elif isinstance(payload, dict) and "items" in payload:
            page = Page.model_validate(payload)
        else:
            msg = f"Expected a list or paginated object, got {type(payload).__name__}"
            raise ResponseFormatError(msg, status=status)

        if item_model is not None:
            page = page.model_copy(
                update={
                    "items": [item_model.model_validate(item) for item in page.items]
                }
            )
    except ValidationError as exc:
        logger.warning("collection_shape_invalid", errors=exc.error_count())
        msg = f"Invalid collection payload: {exc}"
        raise ResponseFormatError(msg, status=status) from exc

    return page
