"""Unit tests for request correlation context."""

import asyncio
from collections.abc import Iterator

import pytest
import structlog

from portfolio_gateway.context import (
    RequestContext,
    bind_request_context,
    clear_request_context,
    correlation_id_from_headers,
    create_background_context,
    create_request_context,
    current_request_context,
    default_context_provider,
    new_correlation_id,
    request_context,
)


@pytest.fixture(autouse=True)
def clean_context() -> Iterator[None]:
    """Ensure no context leaks between tests."""
    clear_request_context()
    yield
    clear_request_context()
    structlog.contextvars.clear_contextvars()


class TestCorrelationIdFromHeaders:
    """Tests for inbound correlation id extraction."""

    def test_trace_id_wins(self) -> None:
        """Test x-trace-id is preferred over x-correlation-id."""
        headers = {"x-trace-id": "trace", "x-correlation-id": "corr"}

        assert correlation_id_from_headers(headers) == "trace"

    def test_falls_back_to_correlation_id(self) -> None:
        """Test x-correlation-id is used when x-trace-id is absent."""
        assert correlation_id_from_headers({"X-Correlation-Id": "corr"}) == "corr"

    def test_blank_values_ignored(self) -> None:
        """Test blank header values do not count."""
        headers = {"x-trace-id": "  ", "x-correlation-id": "corr"}

        assert correlation_id_from_headers(headers) == "corr"

    def test_list_values(self) -> None:
        """Test multi-valued headers use the first value."""
        headers = {"x-trace-id": ["a", "b"]}
        assert correlation_id_from_headers(headers) == "a"  # type: ignore[arg-type]

    def test_missing(self) -> None:
        """Test no id is found without tracing headers."""
        assert correlation_id_from_headers({"accept": "*/*"}) is None
        assert correlation_id_from_headers(None) is None


class TestContextFactories:
    """Tests for context construction."""

    def test_new_ids_are_unique(self) -> None:
        """Test generated ids never repeat."""
        assert len({new_correlation_id() for _ in range(100)}) == 100

    def test_request_context_reuses_inbound_id(self) -> None:
        """Test an inbound id is carried into the context."""
        context = create_request_context(
            headers={"x-trace-id": "abc-123"},
            path="/api/contact",
            method="post",
            user_id="u1",
        )

        assert context.correlation_id == "abc-123"
        assert context.source == "http-request"
        assert context.method == "POST"
        assert context.path == "/api/contact"
        assert context.user_id == "u1"

    def test_request_context_generates_id(self) -> None:
        """Test a fresh id is generated when none was sent."""
        context = create_request_context(headers={})

        assert context.correlation_id

    def test_background_context(self) -> None:
        """Test background contexts get a fresh id and a source label."""
        first = create_background_context("scheduler")
        second = create_background_context("scheduler")

        assert first.source == "scheduler"
        assert first.correlation_id != second.correlation_id

    def test_log_fields(self) -> None:
        """Test log fields carry the id and source only."""
        context = RequestContext(correlation_id="abc", source="test", user_id="u1")

        assert context.log_fields() == {"correlation_id": "abc", "source": "test"}


class TestBinding:
    """Tests for binding contexts to the running task."""

    def test_bind_and_clear(self) -> None:
        """Test binding makes a context current until cleared."""
        context = RequestContext(correlation_id="bound")

        token = bind_request_context(context)
        assert current_request_context() is context
        assert structlog.contextvars.get_contextvars()["correlation_id"] == "bound"

        clear_request_context(token)
        assert current_request_context() is None
        assert "correlation_id" not in structlog.contextvars.get_contextvars()

    def test_nested_contexts_restore_outer(self) -> None:
        """Test leaving an inner block restores the outer context."""
        outer = RequestContext(correlation_id="outer")
        inner = RequestContext(correlation_id="inner")

        with request_context(outer):
            with request_context(inner):
                assert current_request_context() is inner
            assert current_request_context() is outer
            assert structlog.contextvars.get_contextvars()["correlation_id"] == "outer"

        assert current_request_context() is None

    def test_default_provider_uses_bound_context(self) -> None:
        """Test the default provider returns the bound context."""
        context = RequestContext(correlation_id="bound")

        with request_context(context):
            assert default_context_provider() is context

    def test_default_provider_fabricates_when_unbound(self) -> None:
        """Test the default provider creates a fresh context otherwise."""
        first = default_context_provider()
        second = default_context_provider()

        assert first.source == "http-client"
        assert first.correlation_id != second.correlation_id

    @pytest.mark.asyncio
    async def test_tasks_are_isolated(self) -> None:
        """Test concurrent tasks each see their own context."""

        async def observe(correlation_id: str) -> str | None:
            with request_context(RequestContext(correlation_id=correlation_id)):
                await asyncio.sleep(0)
                current = current_request_context()
                return current.correlation_id if current else None

        results = await asyncio.gather(observe("one"), observe("two"), observe("three"))

        assert results == ["one", "two", "three"]
        assert current_request_context() is None
