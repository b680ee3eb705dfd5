"""Unit tests for client metrics."""

from tenant_api.features.client.metrics import ClientMetrics


class TestClientMetrics:
    """Tests for ClientMetrics counters."""

    def test_record_request(self) -> None:
        """Test request counting by status."""
        metrics = ClientMetrics()

        metrics.record_request(200, 10.0)
        metrics.record_request(200, 30.0)
        metrics.record_request(503, 5.0)

        assert metrics.http_requests_total == {200: 2, 503: 1}
        assert metrics.http_request_count == 3
        assert metrics.avg_duration_ms == 15.0

    def test_empty_average(self) -> None:
        """Test the average with no requests."""
        assert ClientMetrics().avg_duration_ms == 0.0

    def test_failures_and_refreshes(self) -> None:
        """Test failure and refresh counters."""
        metrics = ClientMetrics()

        metrics.record_failure("NETWORK_ERROR")
        metrics.record_failure("NETWORK_ERROR")
        metrics.record_refresh(refreshed=True)
        metrics.record_refresh(refreshed=False)
        metrics.record_retry()

        result = metrics.to_dict()
        assert result["http_failures_total"] == {"NETWORK_ERROR": 2}
        assert result["token_refresh_attempts_total"] == 2
        assert result["token_refresh_success_total"] == 1
        assert result["http_retry_total"] == 1

    def test_instances_are_independent(self) -> None:
        """Test that metrics are not shared between clients."""
        first = ClientMetrics()
        second = ClientMetrics()

        first.record_retry()

        assert second.http_retry_total == 0
