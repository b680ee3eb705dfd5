"""Retry controller with bounded exponential backoff."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

from tenant_api.features.client.cancellation import (
    CancellationToken,
    OperationCancelledError,
)
from tenant_api.features.client.constants import (
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY_MS,
)
from tenant_api.features.client.errors import ClientError, RequestCancelledError
from tenant_api.features.client.metrics import ClientMetrics
from tenant_api.features.client.models import RetryPolicy


logger = structlog.get_logger()

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]
AttemptFn = Callable[[int], Awaitable[T]]


@dataclass
class RetryState:
    """Progress of one logical request through its attempts.

    Attributes:
        attempt: Number of the attempt currently running (1-indexed).
        delay_ms: Wait applied before the current attempt.
    """

    attempt: int = 1
    delay_ms: int = 0


class RetryController:
    """Drives an attempt function until it succeeds or the budget is spent.

    Only failures whose ``retryable`` flag is set (network failures and 5xx
    API errors) are retried; anything else propagates on first occurrence.
    When attempts are exhausted the last failure propagates unchanged.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
        metrics: ClientMetrics | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            policy: Attempt budget and backoff base.
            sleep: Awaitable sleep, replaceable in tests.
            metrics: Optional metrics sink.
        """
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._metrics = metrics
        self._log = logger.bind(component="client", subcomponent="retry")

    @property
    def policy(self) -> RetryPolicy:
        """Get the retry policy."""
        return self._policy

    async def run(
        self,
        attempt_fn: AttemptFn[T],
        cancel_token: CancellationToken | None = None,
    ) -> T:
        """Run ``attempt_fn`` with retries.

        Args:
            attempt_fn: Coroutine function receiving the attempt number.
            cancel_token: Caller token; firing it abandons a backoff wait.

        Returns:
            The first successful result.

        Raises:
            ClientError: The non-retryable or final failure.
            RequestCancelledError: If the caller cancels during a backoff.
        """
        state = RetryState()
        while True:
            try:
                return await attempt_fn(state.attempt)
            except ClientError as exc:
                if not self._policy.should_retry(exc, state.attempt):
                    raise
                state.attempt += 1
                state.delay_ms = self._policy.get_delay_ms(state.attempt)
                self._log.info(
                    "retry_attempt",
                    attempt=state.attempt,
                    delay_ms=state.delay_ms,
                    max_attempts=self._policy.max_attempts,
                    error_code=exc.code,
                    status=exc.status,
                )
                if self._metrics is not None:
                    self._metrics.record_retry()
                await self._backoff(state.delay_ms, cancel_token)

    async def _backoff(
        self, delay_ms: int, cancel_token: CancellationToken | None
    ) -> None:
        if cancel_token is None:
            await self._sleep(delay_ms / 1000.0)
            return
        try:
            await cancel_token.guard(self._sleep(delay_ms / 1000.0))
        except OperationCancelledError as exc:
            raise RequestCancelledError() from exc


async def retry(
    attempt_fn: AttemptFn[T],
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    base_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run ``attempt_fn`` under a one-off retry policy."""
    policy = RetryPolicy(max_attempts=max_attempts, base_delay_ms=base_delay_ms)
    return await RetryController(policy, sleep=sleep).run(attempt_fn)
