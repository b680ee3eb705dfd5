"""Metrics collection for the request client."""

from dataclasses import dataclass, field


@dataclass
class ClientMetrics:
    """Counters for one client instance.

    Owned by the client rather than shared process-wide, so two clients
    (for example one per tenant in a worker) report independently.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    http_retry_total: int = 0
    http_failures_total: dict[str, int] = field(default_factory=dict)
    token_refresh_attempts_total: int = 0
    token_refresh_success_total: int = 0
    http_duration_ms_total: float = 0.0
    http_request_count: int = 0

    def record_request(self, status_code: int, duration_ms: float) -> None:
        """Record a completed HTTP exchange.

        Args:
            status_code: HTTP status code.
            duration_ms: Time spent in the attempt.
        """
        self.http_requests_total[status_code] = (
            self.http_requests_total.get(status_code, 0) + 1
        )
        self.http_duration_ms_total += duration_ms
        self.http_request_count += 1

    def record_retry(self) -> None:
        """Record a retry attempt."""
        self.http_retry_total += 1

    def record_failure(self, code: str) -> None:
        """Record a failure surfaced to the caller.

        Args:
            code: Error code of the surfaced error.
        """
        self.http_failures_total[code] = self.http_failures_total.get(code, 0) + 1

    def record_refresh(self, *, refreshed: bool) -> None:
        """Record a token refresh outcome."""
        self.token_refresh_attempts_total += 1
        if refreshed:
            self.token_refresh_success_total += 1

    @property
    def avg_duration_ms(self) -> float:
        """Average attempt duration in milliseconds."""
        if self.http_request_count == 0:
            return 0.0
        return self.http_duration_ms_total / self.http_request_count

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_retry_total": self.http_retry_total,
            "http_failures_total": dict(self.http_failures_total),
            "token_refresh_attempts_total": self.token_refresh_attempts_total,
            "token_refresh_success_total": self.token_refresh_success_total,
            "http_duration_ms_total": self.http_duration_ms_total,
            "http_request_count": self.http_request_count,
        }
