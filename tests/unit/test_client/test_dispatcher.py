"""Unit tests for single-attempt dispatch."""

import asyncio

import httpx
import pytest

from tenant_api.features.client.cancellation import (
    CancellationToken,
    CancelReason,
    OperationCancelledError,
)
from tenant_api.features.client.dispatcher import RequestDispatcher

from tests.helpers.http import RecordingTransport


class TestRequestDispatcher:
    """Tests for RequestDispatcher.dispatch."""

    def test_effective_timeout(self) -> None:
        """Test that per-call deadlines override the default."""
        dispatcher = RequestDispatcher(httpx.AsyncClient(), default_timeout_ms=500)

        assert dispatcher.effective_timeout_ms(None) == 500
        assert dispatcher.effective_timeout_ms(50) == 50

    @pytest.mark.asyncio
    async def test_returns_raw_response(self) -> None:
        """Test that non-2xx responses are returned, not raised."""
        transport = RecordingTransport(lambda _: httpx.Response(404))
        async with httpx.AsyncClient(transport=transport) as http:
            response = await RequestDispatcher(http).dispatch(
                "GET", "http://api.test/clients", {"x-tenant-id": "t1"}
            )

        assert response.status_code == 404
        assert transport.requests[0].headers["x-tenant-id"] == "t1"
        assert transport.requests[0].content == b""

    @pytest.mark.asyncio
    async def test_form_data(self) -> None:
        """Test that form fields without files are urlencoded."""
        transport = RecordingTransport(lambda _: httpx.Response(200))
        async with httpx.AsyncClient(transport=transport) as http:
            await RequestDispatcher(http).dispatch(
                "POST", "http://api.test/forms", {}, form_data={"a": "1"}
            )

        assert transport.requests[0].content == b"a=1"

    @pytest.mark.asyncio
    async def test_deadline(self) -> None:
        """Test that the deadline cancels a slow transport call."""

        async def handler(_: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=RecordingTransport(handler)) as http:
            with pytest.raises(OperationCancelledError) as exc_info:
                await RequestDispatcher(http).dispatch(
                    "GET", "http://api.test/slow", {}, timeout_ms=10
                )

        assert exc_info.value.reason == CancelReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_caller_token_wins(self) -> None:
        """Test that the caller's token reports CALLER, not TIMEOUT."""

        async def handler(_: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        async with httpx.AsyncClient(transport=RecordingTransport(handler)) as http:
            with pytest.raises(OperationCancelledError) as exc_info:
                await RequestDispatcher(http).dispatch(
                    "GET", "http://api.test/slow", {}, cancel_token=token
                )

        assert exc_info.value.reason == CancelReason.CALLER
