"""Unit tests for structured logging setup."""

import io
import json
import logging

import structlog

from tenant_api.observability.logging import (
    bind_session_context,
    clear_session_context,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self) -> None:
        """Test that events are rendered as JSON lines."""
        sink = io.StringIO()
        configure_logging(level=logging.INFO, output=sink)

        get_logger().info("request_complete", status_code=200)

        record = json.loads(sink.getvalue().strip().splitlines()[-1])
        assert record["event"] == "request_complete"
        assert record["status_code"] == 200
        assert record["level"] == "info"

    def test_level_filtering(self) -> None:
        """Test that events below the level are dropped."""
        sink = io.StringIO()
        configure_logging(level=logging.WARNING, output=sink)

        get_logger().info("dispatch_start")

        assert sink.getvalue() == ""


class TestSessionContext:
    """Tests for session context binding."""

    def test_bind_and_clear(self) -> None:
        """Test that session fields are bound and removed."""
        bind_session_context("abc123", tenant_id="t1")

        context = structlog.contextvars.get_contextvars()
        assert context["session_id"] == "abc123"
        assert context["tenant_id"] == "t1"

        clear_session_context()

        context = structlog.contextvars.get_contextvars()
        assert "session_id" not in context
        assert "tenant_id" not in context
