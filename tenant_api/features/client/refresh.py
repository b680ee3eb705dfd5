"""Single-flight access token refresh."""

import asyncio
from enum import Enum

import structlog

from tenant_api.features.client.builder import RequestBuilder
from tenant_api.features.client.constants import REFRESH_PATH
from tenant_api.features.client.dispatcher import RequestDispatcher
from tenant_api.features.client.metrics import ClientMetrics
from tenant_api.features.client.models import TokenPair
from tenant_api.features.client.translator import is_success
from tenant_api.features.credentials.store import CredentialStore


logger = structlog.get_logger()


class RefreshState(str, Enum):
    """State of the refresh coordinator.

    - IDLE: No refresh in flight; the next request starts one.
    - REFRESHING: A refresh is in flight; callers share its outcome.
    """

    IDLE = "IDLE"
    REFRESHING = "REFRESHING"


class RefreshCoordinator:
    """Coordinates token refreshes so at most one is in flight per client.

    Every caller that asks for a refresh while one is pending awaits the same
    task. The task is shielded, so a caller that gets cancelled does not
    cancel the refresh for everybody else. Once the task finishes the
    coordinator returns to IDLE and a later 401 starts a fresh attempt.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        dispatcher: RequestDispatcher,
        builder: RequestBuilder,
        metrics: ClientMetrics | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            credentials: Store read for the refresh token and updated on
                success.
            dispatcher: Dispatcher used for the refresh call.
            builder: Builder used for the refresh URL.
            metrics: Optional metrics sink.
        """
        self._credentials = credentials
        self._dispatcher = dispatcher
        self._builder = builder
        self._metrics = metrics
        self._pending: asyncio.Task[bool] | None = None
        self._log = logger.bind(component="client", subcomponent="refresh")

    @property
    def state(self) -> RefreshState:
        """Get the current state."""
        if self._pending is None:
            return RefreshState.IDLE
        return RefreshState.REFRESHING

    async def refresh(self) -> bool:
        """Refresh the access token, joining an in-flight refresh if any.

        Returns:
            True if new tokens were stored, False otherwise.
        """
        if self._pending is None:
            self._log.info("token_refresh_started")
            self._pending = asyncio.ensure_future(self._run())
        else:
            self._log.debug("token_refresh_joined")
        return await asyncio.shield(self._pending)

    async def _run(self) -> bool:
        try:
            refreshed = await self._perform_refresh()
        finally:
            self._pending = None
        if self._metrics is not None:
            self._metrics.record_refresh(refreshed=refreshed)
        return refreshed

    async def _perform_refresh(self) -> bool:
        refresh_token = self._credentials.get_refresh_token()
        if not refresh_token:
            self._log.info("token_refresh_skipped", reason="no_refresh_token")
            return False

        url = self._builder.build_url(REFRESH_PATH)
        headers = self._builder.build_headers(endpoint=REFRESH_PATH, exclude_sensitive=True)

        try:
            response = await self._dispatcher.dispatch(
                "POST",
                url,
                headers,
                json_body={"refresh_token": refresh_token},
            )
        except Exception as exc:  # noqa: BLE001
            self._log.warning(
                "token_refresh_network_error",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return False

        if not is_success(response):
            self._log.warning("token_refresh_failed", status_code=response.status_code)
            return False

        try:
            tokens = TokenPair.model_validate(response.json())
        except ValueError as exc:
            self._log.warning("token_refresh_invalid_response", error=str(exc))
            return False

        self._credentials.set_token(tokens.access_token)
        if tokens.refresh_token:
            self._credentials.set_refresh_token(tokens.refresh_token)
        self._log.info("token_refreshed")
        return True
