"""Tenant-aware API client with retries and transparent token refresh."""

import asyncio
import time
from collections.abc import Mapping
from typing import Any, NoReturn, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from tenant_api.features.client.builder import PreparedRequest, RequestBuilder
from tenant_api.features.client.config import ClientConfig
from tenant_api.features.client.constants import (
    HEADER_AUTHORIZATION,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_UNAUTHORIZED,
    LOGIN_PATH,
)
from tenant_api.features.client.dispatcher import RequestDispatcher
from tenant_api.features.client.errors import AuthError, ClientError, ResponseFormatError
from tenant_api.features.client.metrics import ClientMetrics
from tenant_api.features.client.models import (
    AuthEvent,
    AuthPolicy,
    LoginResponse,
    Page,
    QueryParams,
    RequestDescriptor,
    RequestOptions,
)
from tenant_api.features.client.refresh import RefreshCoordinator
from tenant_api.features.client.retry import RetryController, SleepFn
from tenant_api.features.client.tenancy import is_auth_endpoint
from tenant_api.features.client.translator import (
    decode_success,
    is_success,
    parse_error,
    to_page,
    translate_exception,
)
from tenant_api.features.credentials.store import CredentialStore


logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)


class ApiClient:
    """Client for the service-management API.

    Provides tenant-scoped HTTP operations with:
    - Tenant query parameter and header injection (with exemptions)
    - Bearer token authentication from the credential store
    - Per-attempt deadlines composed with caller cancellation
    - Retries with exponential backoff for network failures and 5xx
    - Single-flight token refresh and one replay on 401
    - Typed errors for every failure

    One instance is created per application and injected into callers.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        credentials: CredentialStore | None = None,
        auth_policy: AuthPolicy | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize the API client.

        Args:
            config: Client configuration; defaults apply when omitted.
            credentials: Credential store; an in-memory one when omitted.
            auth_policy: Reaction to auth failures; derived from ``config``
                when omitted.
            http_client: Existing async HTTP client to reuse. The caller
                keeps ownership and closes it.
            transport: Transport for the internally created HTTP client.
            sleep: Awaitable sleep used for retry backoff.
        """
        self._config = config or ClientConfig()
        self._credentials = credentials or CredentialStore()
        self._policy = auth_policy or AuthPolicy(
            refresh_enabled=self._config.refresh_enabled,
            login_url=self._config.login_url,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(transport=transport)
        self._metrics = ClientMetrics()
        self._builder = RequestBuilder(self._config.base_url, self._credentials)
        self._dispatcher = RequestDispatcher(self._http, self._config.timeout_ms)
        self._retry = RetryController(
            self._config.retry_policy, sleep=sleep, metrics=self._metrics
        )
        self._refresh = RefreshCoordinator(
            self._credentials, self._dispatcher, self._builder, metrics=self._metrics
        )
        self._log = logger.bind(component="client", base_url=self._config.base_url)

    @property
    def config(self) -> ClientConfig:
        """Get the client configuration."""
        return self._config

    @property
    def credentials(self) -> CredentialStore:
        """Get the credential store."""
        return self._credentials

    @property
    def builder(self) -> RequestBuilder:
        """Get the URL and header builder."""
        return self._builder

    @property
    def refresh_coordinator(self) -> RefreshCoordinator:
        """Get the refresh coordinator."""
        return self._refresh

    @property
    def metrics(self) -> ClientMetrics:
        """Get the client metrics."""
        return self._metrics

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it.

        The credential store is closed too; it only releases a durable store
        it owns.
        """
        if self._owns_http:
            await self._http.aclose()
        self._credentials.close()

    async def __aenter__(self) -> "ApiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()

    # ===== Session =====

    async def login(
        self, email: str, password: str, options: RequestOptions | None = None
    ) -> LoginResponse:
        """Authenticate and store the returned tokens.

        Raises:
            ApiError: On invalid credentials (401 on the login endpoint does
                not clear state or trigger a refresh).
            ResponseFormatError: If the response has no access token.
        """
        payload = await self.post(
            LOGIN_PATH, {"email": email, "password": password}, options
        )
        try:
            result = LoginResponse.model_validate(payload)
        except ValidationError as exc:
            msg = f"Login response missing access token: {exc.error_count()} errors"
            raise ResponseFormatError(msg, status=200) from exc

        self._credentials.set_token(result.access_token)
        if result.refresh_token:
            self._credentials.set_refresh_token(result.refresh_token)
        self._log.info("login_succeeded")
        return result

    def logout(self) -> None:
        """Forget all credentials, including the active tenant."""
        self._credentials.clear()

    def is_authenticated(self) -> bool:
        """Check whether an access token is known."""
        return self._credentials.get_token() is not None

    def set_tenant(self, tenant_id: str | None) -> None:
        """Switch the active tenant; None clears it."""
        self._credentials.set_tenant_id(tenant_id)

    # ===== Verbs =====

    async def get(
        self,
        path: str,
        params: QueryParams | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        """Send a GET request and return the decoded JSON body."""
        return await self.request(
            RequestDescriptor("GET", path, params=params, options=options or RequestOptions())
        )

    async def get_page(
        self,
        path: str,
        params: QueryParams | None = None,
        options: RequestOptions | None = None,
        item_model: type[M] | None = None,
    ) -> Page[Any]:
        """GET a collection and normalize it into a Page.

        Args:
            path: Collection endpoint.
            params: Optional query parameters (pagination, filters).
            options: Per-call options.
            item_model: Optional pydantic model to validate items with.
        """
        payload = await self.get(path, params, options)
        return to_page(payload, item_model)

    async def post(
        self, path: str, body: Any = None, options: RequestOptions | None = None
    ) -> Any:
        """Send a POST request with an optional JSON body."""
        return await self.request(
            RequestDescriptor("POST", path, json_body=body, options=options or RequestOptions())
        )

    async def put(
        self, path: str, body: Any = None, options: RequestOptions | None = None
    ) -> Any:
        """Send a PUT request with an optional JSON body."""
        return await self.request(
            RequestDescriptor("PUT", path, json_body=body, options=options or RequestOptions())
        )

    async def patch(
        self, path: str, body: Any = None, options: RequestOptions | None = None
    ) -> Any:
        """Send a PATCH request with an optional JSON body."""
        return await self.request(
            RequestDescriptor("PATCH", path, json_body=body, options=options or RequestOptions())
        )

    async def delete(self, path: str, options: RequestOptions | None = None) -> Any:
        """Send a DELETE request."""
        return await self.request(
            RequestDescriptor("DELETE", path, options=options or RequestOptions())
        )

    async def upload(
        self,
        path: str,
        files: Mapping[str, Any],
        data: Mapping[str, Any] | None = None,
        options: RequestOptions | None = None,
        method: str = "POST",
    ) -> Any:
        """Send a multipart request.

        ``Content-Type`` is left to the transport so it can set the
        multipart boundary. Pass file contents as bytes (for example
        ``{"file": ("a.pdf", data, "application/pdf")}``) so a retried
        attempt sends the same payload.
        """
        return await self.request(
            RequestDescriptor(
                method,
                path,
                files=files,
                form_data=data,
                options=options or RequestOptions(),
            )
        )

    async def download(
        self,
        path: str,
        params: QueryParams | None = None,
        options: RequestOptions | None = None,
    ) -> bytes:
        """GET a binary resource and return the raw body."""
        result: bytes = await self.request(
            RequestDescriptor(
                "GET",
                path,
                params=params,
                options=options or RequestOptions(),
                expect_bytes=True,
            )
        )
        return result

    # ===== Pipeline =====

    async def request(self, descriptor: RequestDescriptor) -> Any:
        """Execute one logical request.

        Args:
            descriptor: The request to issue.

        Returns:
            Decoded JSON (``{}`` for bodiless responses) or raw bytes when
            ``descriptor.expect_bytes`` is set.

        Raises:
            ClientError: Typed failure; see the errors module.
        """
        log = self._log.bind(method=descriptor.method, endpoint=descriptor.endpoint)
        start_ns = time.perf_counter_ns()
        try:
            response = await self._execute(descriptor, log)
            result = response.content if descriptor.expect_bytes else decode_success(response)
        except ClientError as exc:
            self._metrics.record_failure(exc.code)
            log.warning(
                "request_failed",
                error_code=exc.code,
                status=exc.status,
                duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
            )
            raise

        log.info(
            "request_complete",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter_ns() - start_ns) / 1_000_000, 2),
        )
        return result

    def _prepare(self, descriptor: RequestDescriptor) -> PreparedRequest:
        return self._builder.prepare(
            descriptor.endpoint,
            descriptor.params,
            descriptor.options.headers,
            multipart=descriptor.is_multipart,
        )

    async def _execute(
        self, descriptor: RequestDescriptor, log: structlog.stdlib.BoundLogger
    ) -> httpx.Response:
        prepared = self._prepare(descriptor)

        async def _attempt_fn(attempt: int) -> httpx.Response:
            return await self._attempt(descriptor, prepared, attempt)

        response = await self._retry.run(_attempt_fn, descriptor.options.cancel_token)

        if (
            response.status_code == HTTP_STATUS_UNAUTHORIZED
            and prepared.same_origin
            and not is_auth_endpoint(self._builder.api_path(descriptor.endpoint))
        ):
            response = await self._recover_unauthorized(descriptor, prepared, log)

        if response.status_code == HTTP_STATUS_FORBIDDEN and prepared.same_origin:
            log.warning("authorization_denied")
            self._policy.notify(
                AuthEvent(
                    status=HTTP_STATUS_FORBIDDEN,
                    endpoint=descriptor.endpoint,
                    credentials_cleared=False,
                )
            )

        if not is_success(response):
            raise parse_error(response)
        return response

    async def _attempt(
        self,
        descriptor: RequestDescriptor,
        prepared: PreparedRequest,
        attempt: int,
    ) -> httpx.Response:
        """Dispatch once; 5xx responses are raised so they can be retried."""
        start_ns = time.perf_counter_ns()
        try:
            response = await self._dispatcher.dispatch(
                descriptor.method,
                prepared.url,
                prepared.headers,
                json_body=descriptor.json_body,
                files=descriptor.files,
                form_data=descriptor.form_data,
                timeout_ms=descriptor.options.timeout_ms,
                cancel_token=descriptor.options.cancel_token,
            )
        except Exception as exc:
            translated = translate_exception(exc)
            if translated is exc:
                raise
            raise translated from exc

        self._metrics.record_request(
            response.status_code, (time.perf_counter_ns() - start_ns) / 1_000_000
        )
        if response.status_code >= HTTP_STATUS_SERVER_ERROR_MIN:
            raise parse_error(response)
        return response

    async def _recover_unauthorized(
        self,
        descriptor: RequestDescriptor,
        prepared: PreparedRequest,
        log: structlog.stdlib.BoundLogger,
    ) -> httpx.Response:
        """Refresh the token and replay the request exactly once.

        A request that was sent with a token another request has already
        replaced skips the refresh and replays with the current token.
        """
        if not self._policy.refresh_enabled:
            self._fail_authentication(descriptor, log, reason="refresh_disabled")

        current = self._credentials.get_token()
        sent = prepared.headers.get(HEADER_AUTHORIZATION)
        already_rotated = current is not None and sent != f"Bearer {current}"
        if not already_rotated and not await self._refresh.refresh():
            self._fail_authentication(descriptor, log, reason="refresh_failed")

        log.info("request_replay")
        replayed = await self._attempt(descriptor, self._prepare(descriptor), attempt=0)
        if replayed.status_code == HTTP_STATUS_UNAUTHORIZED:
            self._fail_authentication(descriptor, log, reason="replay_unauthorized")
        return replayed

    def _fail_authentication(
        self,
        descriptor: RequestDescriptor,
        log: structlog.stdlib.BoundLogger,
        reason: str,
    ) -> NoReturn:
        log.warning("authentication_failed", reason=reason)
        self._credentials.clear()
        self._policy.notify(
            AuthEvent(
                status=HTTP_STATUS_UNAUTHORIZED,
                endpoint=descriptor.endpoint,
                credentials_cleared=True,
            )
        )
        raise AuthError()
