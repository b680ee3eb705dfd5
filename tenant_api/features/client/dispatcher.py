"""Single-attempt HTTP dispatch with a cancellable deadline."""

import time
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from tenant_api.features.client.cancellation import CancellationToken
from tenant_api.features.client.constants import DEFAULT_TIMEOUT_MS
from tenant_api.features.client.redact import (
    redact_headers,
    redact_url_credentials,
    tenant_log_fields,
)


logger = structlog.get_logger()


class RequestDispatcher:
    """Performs exactly one network attempt.

    The deadline is enforced with a timeout token composed with the caller's
    token; whichever fires first cancels the in-flight transport call. The
    transport's own timeouts are disabled so the composed token is the single
    source of truth for the deadline.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            http_client: Shared async HTTP client (owns the connection pool).
            default_timeout_ms: Deadline used when a call gives none.
        """
        self._http = http_client
        self._default_timeout_ms = default_timeout_ms
        self._log = logger.bind(component="client", subcomponent="dispatcher")

    @property
    def default_timeout_ms(self) -> int:
        """Get the client-wide default deadline."""
        return self._default_timeout_ms

    def effective_timeout_ms(self, timeout_ms: int | None) -> int:
        """Resolve a per-call override against the client default."""
        return timeout_ms if timeout_ms is not None else self._default_timeout_ms

    async def dispatch(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        *,
        json_body: Any = None,
        files: Mapping[str, Any] | None = None,
        form_data: Mapping[str, Any] | None = None,
        timeout_ms: int | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> httpx.Response:
        """Send one request and return the raw response.

        Args:
            method: HTTP method.
            url: Fully built URL.
            headers: Fully built headers.
            json_body: JSON payload; None sends no body.
            files: Multipart file fields.
            form_data: Multipart (or urlencoded) form fields.
            timeout_ms: Per-call deadline override.
            cancel_token: Caller-owned cancellation token.

        Returns:
            The raw HTTP response, whatever its status.

        Raises:
            httpx.TransportError: On connection-level failures.
            OperationCancelledError: When the deadline or caller token fires.
        """
        effective_ms = self.effective_timeout_ms(timeout_ms)
        deadline = CancellationToken.with_timeout(effective_ms / 1000.0)
        composed = CancellationToken.any_of(cancel_token, deadline)

        request_kwargs: dict[str, Any] = {"headers": dict(headers), "timeout": None}
        if files is not None:
            request_kwargs["files"] = files
            if form_data is not None:
                request_kwargs["data"] = form_data
        elif form_data is not None:
            request_kwargs["data"] = form_data
        elif json_body is not None:
            request_kwargs["json"] = json_body

        self._log.debug(
            "dispatch_start",
            method=method,
            url=redact_url_credentials(url),
            headers=redact_headers(dict(headers)),
            timeout_ms=effective_ms,
            **tenant_log_fields(dict(headers), url),
        )
        start_ns = time.perf_counter_ns()
        try:
            response = await composed.guard(
                self._http.request(method, url, **request_kwargs)
            )
        finally:
            composed.dispose()
            deadline.dispose()

        self._log.debug(
            "dispatch_complete",
            method=method,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
        )
        return response
