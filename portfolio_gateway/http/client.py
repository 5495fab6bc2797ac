"""Async HTTP client with retries, correlation ids, and redacted logging."""

import asyncio
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from portfolio_gateway.context import (
    CORRELATION_ID_HEADER,
    TRACE_HEADERS,
    TRACE_ID_HEADER,
    RequestContext,
)
from portfolio_gateway.http.constants import (
    ERROR_CLASS_DEPENDENCY,
    EVENT_ERROR,
    EVENT_RESPONSE,
    EVENT_RETRY,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    OUTCOME_ERROR,
    OUTCOME_RETRY,
    OUTCOME_SUCCESS,
)
from portfolio_gateway.http.errors import HttpClientError
from portfolio_gateway.http.metrics import HttpClientMetrics
from portfolio_gateway.http.models import (
    ClientResponse,
    ClientSettings,
    FailureKind,
    RequestDescriptor,
)
from portfolio_gateway.http.redact import redact_headers, redact_url, resolve_url


logger = structlog.get_logger()


@dataclass(frozen=True)
class AttemptFailure:
    """Why a single transport call did not produce a usable response."""

    kind: FailureKind
    message: str
    retryable: bool
    status: int | None = None
    data: Any = None


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one transport call: a response, a failure, or both."""

    duration_ms: float
    response: httpx.Response | None = None
    data: Any = None
    failure: AttemptFailure | None = None


class ResilientHttpClient:
    """HTTP client with bounded automatic recovery from transient failures.

    Provides async HTTP calls with:
    - Exponential backoff retries for timeouts, connection failures and
      retryable statuses
    - One correlation id per logical call, sent on every attempt
    - Structured logs with secrets redacted
    - A single typed error on terminal failure
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Client settings; defaults apply when omitted.
            transport: Optional transport, used to fake traffic in tests.
        """
        self._settings = settings or ClientSettings()
        self._policy = self._settings.retry_policy
        self._log = self._settings.logger or logger
        self._metrics = HttpClientMetrics.get_instance()
        self._client = httpx.AsyncClient(
            base_url=self._settings.base_url or "",
            headers=self._settings.default_headers,
            timeout=self._settings.timeout_ms / 1000.0,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def settings(self) -> ClientSettings:
        """Settings this client was built with."""
        return self._settings

    async def __aenter__(self) -> "ResilientHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def request(self, descriptor: RequestDescriptor) -> ClientResponse:
        """Perform one logical call, retrying transient failures.

        Args:
            descriptor: What to send.

        Returns:
            ClientResponse for the first successful attempt.

        Raises:
            HttpClientError: When the failure is not retryable or retries are
                exhausted.
        """
        context = descriptor.context or self._settings.context_provider()
        safe_url = redact_url(
            resolve_url(self._settings.base_url, descriptor.url, descriptor.params)
        )
        headers = self._build_headers(descriptor, context)
        log_fields: dict[str, Any] = {
            "dependency": self._settings.dependency_name,
            "method": descriptor.method,
            "url": safe_url,
            **context.log_fields(),
        }

        return await self._execute_with_retry(
            descriptor=descriptor,
            headers=headers,
            context=context,
            safe_url=safe_url,
            log_fields=log_fields,
        )

    async def get(self, url: str, **overrides: Any) -> ClientResponse:
        """Send a GET request."""
        return await self._dispatch("GET", url, None, overrides)

    async def delete(self, url: str, **overrides: Any) -> ClientResponse:
        """Send a DELETE request."""
        return await self._dispatch("DELETE", url, None, overrides)

    async def head(self, url: str, **overrides: Any) -> ClientResponse:
        """Send a HEAD request."""
        return await self._dispatch("HEAD", url, None, overrides)

    async def options(self, url: str, **overrides: Any) -> ClientResponse:
        """Send an OPTIONS request."""
        return await self._dispatch("OPTIONS", url, None, overrides)

    async def post(
        self, url: str, data: Any = None, **overrides: Any
    ) -> ClientResponse:
        """Send a POST request with ``data`` as the body."""
        return await self._dispatch("POST", url, data, overrides)

    async def put(
        self, url: str, data: Any = None, **overrides: Any
    ) -> ClientResponse:
        """Send a PUT request with ``data`` as the body."""
        return await self._dispatch("PUT", url, data, overrides)

    async def patch(
        self, url: str, data: Any = None, **overrides: Any
    ) -> ClientResponse:
        """Send a PATCH request with ``data`` as the body."""
        return await self._dispatch("PATCH", url, data, overrides)

    async def _dispatch(
        self,
        method: str,
        url: str,
        data: Any,
        overrides: dict[str, Any],
    ) -> ClientResponse:
        if data is not None:
            overrides = {**overrides, "data": data}
        return await self.request(
            RequestDescriptor(method=method, url=url, **overrides)
        )

    def _build_headers(
        self,
        descriptor: RequestDescriptor,
        context: RequestContext,
    ) -> dict[str, str]:
        """Build per-call headers with tracing headers injected.

        Args:
            descriptor: Request being sent.
            context: Context owning the correlation id.

        Returns:
            Headers for every attempt of this call.
        """
        headers = {
            name: value
            for name, value in descriptor.headers.items()
            if name.lower() not in TRACE_HEADERS
        }
        headers[TRACE_ID_HEADER] = context.correlation_id
        headers[CORRELATION_ID_HEADER] = context.correlation_id
        return headers

    async def _execute_with_retry(
        self,
        descriptor: RequestDescriptor,
        headers: dict[str, str],
        context: RequestContext,
        safe_url: str,
        log_fields: dict[str, Any],
    ) -> ClientResponse:
        """Execute attempts until success, a terminal failure, or exhaustion.

        Args:
            descriptor: Request being sent.
            headers: Headers including tracing headers.
            context: Context owning the correlation id.
            safe_url: Redacted URL for logs and errors.
            log_fields: Fields shared by every log entry of this call.

        Returns:
            ClientResponse from the successful attempt.
        """
        policy = self._policy
        dependency = self._settings.dependency_name
        failure: AttemptFailure | None = None
        outcome: AttemptOutcome | None = None
        attempts = 0

        for attempt in range(policy.max_retries + 1):
            attempts = attempt + 1
            outcome = await self._execute_single(descriptor, headers)

            if outcome.failure is None and outcome.response is not None:
                self._log.info(
                    EVENT_RESPONSE,
                    **log_fields,
                    status=outcome.response.status_code,
                    duration_ms=round(outcome.duration_ms, 2),
                    attempts=attempts,
                    outcome=OUTCOME_SUCCESS,
                )
                return ClientResponse(
                    status_code=outcome.response.status_code,
                    headers=dict(outcome.response.headers),
                    data=outcome.data,
                    raw=outcome.response,
                    duration_ms=outcome.duration_ms,
                    correlation_id=context.correlation_id,
                    attempts=attempts,
                )

            failure = outcome.failure
            if failure is None or not policy.should_retry(failure.retryable, attempt):
                break

            delay_ms = policy.get_delay_ms(attempt)
            self._metrics.record_retry(dependency)
            if self._settings.log_retries:
                self._log.warning(
                    EVENT_RETRY,
                    **log_fields,
                    status=failure.status,
                    message=failure.message,
                    failure_kind=failure.kind.value,
                    attempt=attempt,
                    delay_ms=delay_ms,
                    max_retries=policy.max_retries,
                    outcome=OUTCOME_RETRY,
                )
            await asyncio.sleep(delay_ms / 1000.0)

        if failure is None:
            failure = AttemptFailure(
                kind=FailureKind.UNKNOWN,
                message="Request produced neither a response nor an error",
                retryable=False,
            )

        self._metrics.record_failure(dependency, failure.kind)
        self._log.error(
            EVENT_ERROR,
            **log_fields,
            status=failure.status,
            message=failure.message,
            failure_kind=failure.kind.value,
            headers=redact_headers(headers),
            duration_ms=round(outcome.duration_ms, 2) if outcome else 0.0,
            attempts=attempts,
            error_class=ERROR_CLASS_DEPENDENCY,
            is_recoverable=failure.retryable,
            outcome=OUTCOME_ERROR,
        )
        raise HttpClientError(
            failure.message,
            method=descriptor.method,
            url=safe_url,
            correlation_id=context.correlation_id,
            failure_kind=failure.kind,
            status=failure.status,
            data=failure.data,
            is_recoverable=failure.retryable,
            attempts=attempts,
        )

    async def _execute_single(
        self,
        descriptor: RequestDescriptor,
        headers: dict[str, str],
    ) -> AttemptOutcome:
        """Execute a single transport call and classify the result.

        Args:
            descriptor: Request being sent.
            headers: Headers including tracing headers.

        Returns:
            AttemptOutcome describing the response or failure.
        """
        timeout_ms = descriptor.timeout_ms or self._settings.timeout_ms
        kwargs: dict[str, Any] = {"headers": headers}
        if descriptor.params:
            kwargs["params"] = descriptor.params
        if descriptor.timeout_ms is not None:
            kwargs["timeout"] = descriptor.timeout_ms / 1000.0
        if isinstance(descriptor.data, bytes | str):
            kwargs["content"] = descriptor.data
        elif descriptor.data is not None:
            kwargs["json"] = descriptor.data

        start = time.perf_counter()
        try:
            # httpx timeouts are per phase; this bounds the whole attempt
            async with asyncio.timeout(timeout_ms / 1000.0):
                response = await self._client.request(
                    descriptor.method, descriptor.url, **kwargs
                )
        except httpx.TimeoutException as e:
            return self._transport_failure(
                start, FailureKind.TIMEOUT, e, retryable=True
            )
        except TimeoutError:
            return self._transport_failure(
                start,
                FailureKind.TIMEOUT,
                TimeoutError(f"Attempt exceeded {timeout_ms} ms"),
                retryable=True,
            )
        except httpx.ConnectError as e:
            return self._transport_failure(
                start, FailureKind.CONNECTION, e, retryable=True
            )
        except httpx.TransportError as e:
            return self._transport_failure(
                start, FailureKind.TRANSPORT, e, retryable=False
            )
        except Exception as e:  # noqa: BLE001
            return self._transport_failure(
                start, FailureKind.UNKNOWN, e, retryable=False
            )

        duration_ms = (time.perf_counter() - start) * 1000
        status = response.status_code
        self._metrics.record_request(
            self._settings.dependency_name, status, duration_ms
        )

        if not HTTP_STATUS_OK_MIN <= status < HTTP_STATUS_OK_MAX:
            return AttemptOutcome(
                duration_ms=duration_ms,
                response=response,
                failure=AttemptFailure(
                    kind=FailureKind.HTTP_STATUS,
                    message=f"Request failed with status code {status}",
                    retryable=self._policy.is_retryable_status(status),
                    status=status,
                    data=_decode_body(response, strict=False),
                ),
            )

        try:
            data = _decode_body(response, strict=True)
        except ValueError as e:
            return AttemptOutcome(
                duration_ms=duration_ms,
                response=response,
                failure=AttemptFailure(
                    kind=FailureKind.PARSE,
                    message=f"Failed to decode response body: {e}",
                    retryable=False,
                    status=status,
                    data=response.text,
                ),
            )

        return AttemptOutcome(duration_ms=duration_ms, response=response, data=data)

    @staticmethod
    def _transport_failure(
        start: float,
        kind: FailureKind,
        error: Exception,
        retryable: bool,
    ) -> AttemptOutcome:
        message = str(error) or type(error).__name__
        return AttemptOutcome(
            duration_ms=(time.perf_counter() - start) * 1000,
            failure=AttemptFailure(kind=kind, message=message, retryable=retryable),
        )


def _decode_body(response: httpx.Response, strict: bool) -> Any:
    """Decode a response body.

    JSON responses are parsed; anything else is returned as text. Empty
    bodies decode to None.

    Args:
        response: Transport response.
        strict: Raise on malformed JSON instead of falling back to text.

    Returns:
        Parsed body.

    Raises:
        ValueError: If strict and a JSON body cannot be parsed.
    """
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" not in content_type.lower():
        return response.text
    try:
        return response.json()
    except ValueError:
        if strict:
            raise
        return response.text


def create_http_client(
    settings: ClientSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **overrides: Any,
) -> ResilientHttpClient:
    """Build a client from base settings plus keyword overrides.

    Args:
        settings: Base settings; defaults apply when omitted.
        transport: Optional transport, used to fake traffic in tests.
        **overrides: Any ``ClientSettings`` field.

    Returns:
        A new, independent client.
    """
    base = settings or ClientSettings()
    if overrides:
        base = ClientSettings.model_validate({**dict(base), **overrides})
    return ResilientHttpClient(base, transport=transport)
