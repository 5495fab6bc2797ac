"""End-to-end scenarios for the resilient HTTP client.

Each scenario drives the full client stack (settings, context, retries,
redaction and logging) against a scripted transport.
"""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from portfolio_gateway.context import RequestContext, create_request_context
from portfolio_gateway.http import (
    ClientSettings,
    HttpClientError,
    HttpClientMetrics,
    create_http_client,
)
from portfolio_gateway.observability import map_error_to_response
from tests.helpers.transport import ScriptedTransport


@pytest.fixture(autouse=True)
def reset_metrics() -> Iterator[None]:
    HttpClientMetrics.reset()
    yield
    HttpClientMetrics.reset()


@pytest.fixture
def mock_sleep() -> Iterator[AsyncMock]:
    with patch(
        "portfolio_gateway.http.client.asyncio.sleep", new_callable=AsyncMock
    ) as sleep:
        yield sleep


@pytest.fixture
def logger() -> MagicMock:
    return MagicMock()


@pytest.mark.asyncio
async def test_recovers_from_transient_unavailability(
    mock_sleep: AsyncMock, logger: MagicMock
) -> None:
    """Two 503s then a 200 succeed after two backed-off retries."""
    script = ScriptedTransport(
        httpx.Response(503),
        httpx.Response(503),
        httpx.Response(200, json={"ok": True}),
    )
    client = create_http_client(
        ClientSettings(max_retries=2, retry_delay_ms=50, backoff_factor=2),
        transport=script.transport,
        logger=logger,
    )

    response = await client.get("https://api.example.com/status")

    assert response.data == {"ok": True}
    assert script.call_count == 3
    assert [c.args[0] for c in mock_sleep.await_args_list] == pytest.approx(
        [0.05, 0.1]
    )
    logger.info.assert_called_once()
    assert logger.info.call_args.kwargs["status"] == 200
    logger.error.assert_not_called()


@pytest.mark.asyncio
async def test_unauthorized_fails_fast_with_redacted_log(
    mock_sleep: AsyncMock, logger: MagicMock
) -> None:
    """A 401 is terminal and the credential never reaches the log."""
    script = ScriptedTransport(httpx.Response(401, json={"error": "unauthorized"}))
    client = create_http_client(transport=script.transport, logger=logger)

    with pytest.raises(HttpClientError) as exc_info:
        await client.post(
            "https://api.test/resource",
            {"q": 1},
            headers={"Authorization": "Bearer secret"},
        )

    assert script.call_count == 1
    mock_sleep.assert_not_awaited()
    assert exc_info.value.status == 401
    assert exc_info.value.data == {"error": "unauthorized"}
    logged = logger.error.call_args.kwargs
    assert logged["headers"]["Authorization"] == "[REDACTED]"
    assert "Bearer secret" not in repr(logger.mock_calls)

    mapped = map_error_to_response(exc_info.value)
    assert mapped.status == 502
    assert mapped.body["correlation_id"] == exc_info.value.correlation_id


@pytest.mark.asyncio
async def test_timeouts_exhaust_retries_with_redacted_url(
    mock_sleep: AsyncMock, logger: MagicMock
) -> None:
    """Repeated timeouts end in one error whose URL hides the token."""
    script = ScriptedTransport(httpx.ConnectTimeout("connect timed out"))
    client = create_http_client(
        transport=script.transport, logger=logger, max_retries=1
    )

    with pytest.raises(HttpClientError) as exc_info:
        await client.get("https://api.example.com/data?token=xyz")

    assert script.call_count == 2
    assert exc_info.value.url == "https://api.example.com/data?token=[REDACTED]"
    assert exc_info.value.status is None
    assert exc_info.value.is_recoverable is True
    logger.error.assert_called_once()
    assert logger.error.call_args.kwargs["url"] == exc_info.value.url


@pytest.mark.asyncio
async def test_provider_correlation_id_on_every_attempt(
    mock_sleep: AsyncMock, logger: MagicMock
) -> None:
    """The provider's id is sent on both attempts and logged."""
    script = ScriptedTransport(httpx.Response(500), httpx.Response(200))
    client = create_http_client(
        transport=script.transport,
        logger=logger,
        context_provider=lambda: RequestContext(correlation_id="abc-123"),
    )

    await client.get("https://api.example.com/x")

    assert script.header_values("x-trace-id") == ["abc-123", "abc-123"]
    assert script.header_values("x-correlation-id") == ["abc-123", "abc-123"]
    assert logger.info.call_args.kwargs["correlation_id"] == "abc-123"


@pytest.mark.asyncio
async def test_inbound_request_id_reaches_dependency(logger: MagicMock) -> None:
    """An id received from the browser is forwarded to the dependency."""
    inbound = create_request_context(
        headers={"X-Correlation-Id": "browser-42"}, path="/api/analyze", method="post"
    )
    script = ScriptedTransport(httpx.Response(200, json={"ok": True}))
    client = create_http_client(transport=script.transport, logger=logger)

    response = await client.get("https://api.example.com/x", context=inbound)

    assert response.correlation_id == "browser-42"
    assert script.header_values("x-trace-id") == ["browser-42"]
    assert logger.info.call_args.kwargs["source"] == "http-request"
