"""Composable cancellation tokens for in-flight requests.

A token is fired once, with a reason. Tokens compose: ``any_of`` returns a
token that fires as soon as any of its sources does, which is how the
caller's token and the per-attempt timeout token are combined.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar


T = TypeVar("T")


class CancelReason(str, Enum):
    """Why a token fired.

    - CALLER: The caller cancelled the request.
    - TIMEOUT: The internal deadline expired.
    """

    CALLER = "CALLER"
    TIMEOUT = "TIMEOUT"


class OperationCancelledError(Exception):
    """Raised by ``CancellationToken.guard`` when the token fires first."""

    def __init__(self, reason: CancelReason) -> None:
        """Initialize the error.

        Args:
            reason: Reason reported by the token that fired.
        """
        self.reason = reason
        super().__init__(f"Operation cancelled: {reason.value}")


class CancellationToken:
    """One-shot cancellation signal usable from a single event loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: CancelReason | None = None
        self._callbacks: list[Callable[["CancellationToken"], None]] = []
        self._links: list[tuple[CancellationToken, Callable[[CancellationToken], None]]] = []
        self._timer: asyncio.TimerHandle | None = None

    @property
    def cancelled(self) -> bool:
        """Whether the token has fired."""
        return self._reason is not None

    @property
    def reason(self) -> CancelReason | None:
        """Reason the token fired with, or None."""
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.CALLER) -> None:
        """Fire the token. Subsequent calls are ignored."""
        if self._reason is not None:
            return
        self._reason = reason
        self._event.set()
        for callback in list(self._callbacks):
            callback(self)

    def add_callback(self, callback: Callable[["CancellationToken"], None]) -> None:
        """Register a callback run when the token fires.

        Runs immediately if the token has already fired.
        """
        if self._reason is not None:
            callback(self)
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[["CancellationToken"], None]) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @classmethod
    def with_timeout(cls, timeout_s: float) -> "CancellationToken":
        """Create a token that fires with TIMEOUT after ``timeout_s`` seconds.

        Must be called from within a running event loop.
        """
        token = cls()
        loop = asyncio.get_running_loop()
        token._timer = loop.call_later(timeout_s, token.cancel, CancelReason.TIMEOUT)
        return token

    @classmethod
    def any_of(cls, *sources: "CancellationToken | None") -> "CancellationToken":
        """Compose tokens; the result fires with the reason of the first source.

        ``None`` entries are skipped so optional caller tokens can be passed
        straight through.
        """
        composed = cls()
        for source in sources:
            if source is None:
                continue

            def _forward(fired: CancellationToken) -> None:
                composed.cancel(fired.reason or CancelReason.CALLER)

            composed._links.append((source, _forward))
            source.add_callback(_forward)
        return composed

    def dispose(self) -> None:
        """Stop the timer and detach from source tokens."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for source, callback in self._links:
            source.remove_callback(callback)
        self._links.clear()

    async def wait(self) -> CancelReason:
        """Suspend until the token fires."""
        await self._event.wait()
        assert self._reason is not None  # noqa: S101
        return self._reason

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token wins the race the underlying task is cancelled and
        drained, so a late success is never observed.

        Raises:
            OperationCancelledError: If the token fired before completion.
        """
        if self._reason is not None:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError(self._reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        assert self._reason is not None  # noqa: S101
        raise OperationCancelledError(self._reason)
