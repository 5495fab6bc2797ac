"""Unit tests for HTTP client metrics."""

from collections.abc import Iterator

import pytest

from portfolio_gateway.http.metrics import HttpClientMetrics
from portfolio_gateway.http.models import FailureKind


@pytest.fixture(autouse=True)
def reset_metrics() -> Iterator[None]:
    """Reset the singleton around each test."""
    HttpClientMetrics.reset()
    yield
    HttpClientMetrics.reset()


class TestHttpClientMetrics:
    """Tests for HttpClientMetrics."""

    def test_singleton(self) -> None:
        """Test that get_instance returns the same object until reset."""
        first = HttpClientMetrics.get_instance()

        assert HttpClientMetrics.get_instance() is first
        HttpClientMetrics.reset()
        assert HttpClientMetrics.get_instance() is not first

    def test_record_request_by_dependency_and_status(self) -> None:
        """Test responses are counted per dependency and status."""
        metrics = HttpClientMetrics.get_instance()

        metrics.record_request("openai", 200, 10.0)
        metrics.record_request("openai", 200, 30.0)
        metrics.record_request("fsa", 503, 5.0)

        assert metrics.http_requests_total == {"openai": {200: 2}, "fsa": {503: 1}}
        assert metrics.http_request_count == 3
        assert metrics.avg_duration_ms == 15.0

    def test_record_retry_and_failure(self) -> None:
        """Test retries and terminal failures are counted."""
        metrics = HttpClientMetrics.get_instance()

        metrics.record_retry("recaptcha")
        metrics.record_retry("recaptcha")
        metrics.record_failure("recaptcha", FailureKind.TIMEOUT)

        assert metrics.http_retry_total == {"recaptcha": 2}
        assert metrics.http_failures_total == {"recaptcha": {"TIMEOUT": 1}}

    def test_avg_duration_empty(self) -> None:
        """Test average duration with no requests."""
        assert HttpClientMetrics.get_instance().avg_duration_ms == 0.0

    def test_to_dict_is_a_snapshot(self) -> None:
        """Test the exported dict does not alias internal counters."""
        metrics = HttpClientMetrics.get_instance()
        metrics.record_request("fsa", 200, 1.0)

        snapshot = metrics.to_dict()
        metrics.record_request("fsa", 200, 1.0)

        assert snapshot["http_requests_total"] == {"fsa": {200: 1}}
        assert snapshot["http_request_count"] == 1
