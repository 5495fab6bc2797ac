"""Resilient HTTP client for outbound integrations.

This module provides async HTTP calls with:
- Exponential backoff retries for transient failures
- Correlation id propagation through tracing headers
- Structured, redacted logging of every logical call
- A uniform error type for terminal failures
- Metrics collection for observability
"""

from portfolio_gateway.http.client import ResilientHttpClient, create_http_client
from portfolio_gateway.http.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    RETRYABLE_STATUSES,
)
from portfolio_gateway.http.errors import HttpClientError
from portfolio_gateway.http.metrics import HttpClientMetrics
from portfolio_gateway.http.models import (
    ClientResponse,
    ClientSettings,
    FailureKind,
    RequestDescriptor,
    RetryPolicy,
)
from portfolio_gateway.http.redact import (
    REDACTED_VALUE,
    redact_headers,
    redact_url,
    resolve_url,
)


__all__ = [
    # Client
    "ResilientHttpClient",
    "create_http_client",
    # Models
    "ClientResponse",
    "ClientSettings",
    "FailureKind",
    "RequestDescriptor",
    "RetryPolicy",
    # Errors
    "HttpClientError",
    # Constants
    "DEFAULT_BACKOFF_FACTOR",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY_MS",
    "DEFAULT_TIMEOUT_MS",
    "RETRYABLE_STATUSES",
    # Metrics
    "HttpClientMetrics",
    # Redaction
    "REDACTED_VALUE",
    "redact_headers",
    "redact_url",
    "resolve_url",
]
