"""Metrics collection for the resilient HTTP client."""

from dataclasses import dataclass, field
from typing import ClassVar

from portfolio_gateway.http.models import FailureKind


@dataclass
class HttpClientMetrics:
    """Metrics for outbound HTTP calls.

    Singleton class shared by every client instance; counters are tagged
    with the dependency name so integrations can be told apart.
    """

    http_requests_total: dict[str, dict[int, int]] = field(default_factory=dict)
    http_retry_total: dict[str, int] = field(default_factory=dict)
    http_failures_total: dict[str, dict[str, int]] = field(default_factory=dict)
    http_duration_ms_total: float = 0.0
    http_request_count: int = 0

    _instance: ClassVar["HttpClientMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "HttpClientMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(
        self, dependency: str, status_code: int, duration_ms: float
    ) -> None:
        """Record a completed transport call that produced a response.

        Args:
            dependency: Dependency name of the client.
            status_code: HTTP status code.
            duration_ms: Duration of the attempt in milliseconds.
        """
        by_status = self.http_requests_total.setdefault(dependency, {})
        by_status[status_code] = by_status.get(status_code, 0) + 1
        self.http_duration_ms_total += duration_ms
        self.http_request_count += 1

    def record_retry(self, dependency: str) -> None:
        """Record a retry attempt."""
        self.http_retry_total[dependency] = self.http_retry_total.get(dependency, 0) + 1

    def record_failure(self, dependency: str, failure_kind: FailureKind) -> None:
        """Record a terminal failure.

        Args:
            dependency: Dependency name of the client.
            failure_kind: Classification of the failure.
        """
        by_kind = self.http_failures_total.setdefault(dependency, {})
        key = failure_kind.value
        by_kind[key] = by_kind.get(key, 0) + 1

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": {
                dep: dict(counts) for dep, counts in self.http_requests_total.items()
            },
            "http_retry_total": dict(self.http_retry_total),
            "http_failures_total": {
                dep: dict(counts) for dep, counts in self.http_failures_total.items()
            },
            "http_duration_ms_total": self.http_duration_ms_total,
            "http_request_count": self.http_request_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average attempt duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.http_request_count == 0:
            return 0.0
        return self.http_duration_ms_total / self.http_request_count
