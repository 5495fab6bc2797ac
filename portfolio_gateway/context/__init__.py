"""Request context and correlation id propagation."""

from portfolio_gateway.context.request_context import (
    CORRELATION_ID_HEADER,
    DEFAULT_CONTEXT_SOURCE,
    HTTP_REQUEST_SOURCE,
    TRACE_HEADERS,
    TRACE_ID_HEADER,
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


__all__ = [
    "CORRELATION_ID_HEADER",
    "DEFAULT_CONTEXT_SOURCE",
    "HTTP_REQUEST_SOURCE",
    "TRACE_HEADERS",
    "TRACE_ID_HEADER",
    "RequestContext",
    "bind_request_context",
    "clear_request_context",
    "correlation_id_from_headers",
    "create_background_context",
    "create_request_context",
    "current_request_context",
    "default_context_provider",
    "new_correlation_id",
    "request_context",
]
