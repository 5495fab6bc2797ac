"""Correlation context for one logical operation.

A context is either inherited from an inbound web request (its tracing
headers) or fabricated for background work. The active context lives in a
``contextvars`` slot, so concurrent asyncio tasks never observe each other's
correlation ids.
"""

import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar, Token

import structlog
from pydantic import BaseModel, ConfigDict, Field


# Tracing headers, both carry the same correlation id
TRACE_ID_HEADER = "x-trace-id"
CORRELATION_ID_HEADER = "x-correlation-id"
TRACE_HEADERS = (TRACE_ID_HEADER, CORRELATION_ID_HEADER)

DEFAULT_CONTEXT_SOURCE = "http-client"
HTTP_REQUEST_SOURCE = "http-request"
BACKGROUND_SOURCE = "background"

_current_context: ContextVar["RequestContext | None"] = ContextVar(
    "portfolio_gateway_request_context", default=None
)


def new_correlation_id() -> str:
    """Generate a globally unique correlation id."""
    return str(uuid.uuid4())


class RequestContext(BaseModel):
    """Correlation data threaded through one logical operation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    correlation_id: str = Field(default_factory=new_correlation_id, min_length=1)
    source: str = Field(default=DEFAULT_CONTEXT_SOURCE, min_length=1)
    user_id: str | None = None
    path: str | None = None
    method: str | None = None

    def log_fields(self) -> dict[str, str]:
        """Return the fields every log entry for this context carries."""
        return {"correlation_id": self.correlation_id, "source": self.source}


def correlation_id_from_headers(headers: Mapping[str, str] | None) -> str | None:
    """Extract an inbound correlation id from tracing headers.

    ``x-trace-id`` wins over ``x-correlation-id``. Header names are matched
    case-insensitively and blank values are ignored.

    Args:
        headers: Inbound request headers.

    Returns:
        The correlation id, or None when neither header is present.
    """
    if not headers:
        return None
    lowered = {key.lower(): value for key, value in headers.items()}
    for name in (TRACE_ID_HEADER, CORRELATION_ID_HEADER):
        value = lowered.get(name)
        if isinstance(value, list | tuple):
            value = value[0] if value else None
        if value and str(value).strip():
            return str(value).strip()
    return None


def create_background_context(source: str = BACKGROUND_SOURCE) -> RequestContext:
    """Create a fresh context for work not triggered by a web request."""
    return RequestContext(source=source)


def create_request_context(
    headers: Mapping[str, str] | None = None,
    path: str | None = None,
    method: str | None = None,
    user_id: str | None = None,
) -> RequestContext:
    """Create the context for an inbound web request.

    Args:
        headers: Inbound request headers.
        path: Request path.
        method: Request method.
        user_id: Authenticated user, if any.

    Returns:
        Context reusing the caller's correlation id when one was sent.
    """
    correlation_id = correlation_id_from_headers(headers) or new_correlation_id()
    return RequestContext(
        correlation_id=correlation_id,
        source=HTTP_REQUEST_SOURCE,
        user_id=user_id,
        path=path,
        method=method.upper() if method else None,
    )


def bind_request_context(context: RequestContext) -> Token["RequestContext | None"]:
    """Make a context current for this task and its log entries.

    Args:
        context: Context to bind.

    Returns:
        Token that restores the previous context when passed to
        ``clear_request_context``.
    """
    structlog.contextvars.bind_contextvars(correlation_id=context.correlation_id)
    return _current_context.set(context)


def clear_request_context(token: Token["RequestContext | None"] | None = None) -> None:
    """Unbind the current context.

    Args:
        token: Token from ``bind_request_context``; restores the outer context
            when given, otherwise clears the slot.
    """
    if token is not None:
        _current_context.reset(token)
    else:
        _current_context.set(None)

    outer = _current_context.get()
    if outer is None:
        structlog.contextvars.unbind_contextvars("correlation_id")
    else:
        structlog.contextvars.bind_contextvars(correlation_id=outer.correlation_id)


def current_request_context() -> RequestContext | None:
    """Return the context bound to the running task, if any."""
    return _current_context.get()


@contextmanager
def request_context(context: RequestContext) -> Iterator[RequestContext]:
    """Bind a context for the duration of a ``with`` block."""
    token = bind_request_context(context)
    try:
        yield context
    finally:
        clear_request_context(token)


def default_context_provider() -> RequestContext:
    """Context used by HTTP clients when the caller supplies none."""
    return current_request_context() or create_background_context(
        DEFAULT_CONTEXT_SOURCE
    )
