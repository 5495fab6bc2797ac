"""Data models for the resilient HTTP client."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_gateway.context import RequestContext, default_context_provider
from portfolio_gateway.http.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_DEPENDENCY_NAME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    MAX_BACKOFF_FACTOR,
    MAX_RETRIES,
    MAX_RETRY_DELAY_MS,
    MAX_TIMEOUT_MS,
    RETRYABLE_STATUSES,
)


SUPPORTED_METHODS = frozenset(
    {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"}
)


class FailureKind(str, Enum):
    """Classification of a failed attempt.

    - TIMEOUT: Attempt exceeded its timeout (retryable)
    - CONNECTION: Could not connect, including DNS failure (retryable)
    - HTTP_STATUS: Non-2xx response; retryable only for the retry set
    - PARSE: Response body could not be decoded
    - TRANSPORT: Any other transport-level failure
    - UNKNOWN: Unclassified error
    """

    TIMEOUT = "TIMEOUT"
    CONNECTION = "CONNECTION"
    HTTP_STATUS = "HTTP_STATUS"
    PARSE = "PARSE"
    TRANSPORT = "TRANSPORT"
    UNKNOWN = "UNKNOWN"


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Uses deterministic exponential backoff with no jitter and no cap:
    delay = base_delay_ms * (backoff_factor ^ attempt)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=MAX_RETRIES)] = DEFAULT_MAX_RETRIES
    base_delay_ms: Annotated[int, Field(ge=0, le=MAX_RETRY_DELAY_MS)] = (
        DEFAULT_RETRY_DELAY_MS
    )
    backoff_factor: Annotated[float, Field(gt=0.0, le=MAX_BACKOFF_FACTOR)] = (
        DEFAULT_BACKOFF_FACTOR
    )

    @staticmethod
    def is_retryable_status(status_code: int | None) -> bool:
        """Check whether a response status is worth retrying."""
        return status_code in RETRYABLE_STATUSES

    def should_retry(self, retryable: bool, attempt: int) -> bool:
        """Determine if a failed attempt should be repeated.

        Args:
            retryable: Whether the failure was classified as transient.
            attempt: Current attempt number (0-indexed).

        Returns:
            True if another attempt is allowed.
        """
        return retryable and attempt < self.max_retries

    def get_delay_ms(self, attempt: int) -> float:
        """Calculate delay before the next retry attempt.

        Args:
            attempt: Index of the attempt that just failed (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        return self.base_delay_ms * (self.backoff_factor**attempt)


class ClientSettings(BaseModel):
    """Immutable configuration for one client instance.

    Resolved once at construction; each third-party dependency gets its own
    instance with its own base URL and dependency name.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    base_url: str | None = Field(default=None, description="Base for relative URLs")
    timeout_ms: Annotated[int, Field(gt=0, le=MAX_TIMEOUT_MS)] = DEFAULT_TIMEOUT_MS
    max_retries: Annotated[int, Field(ge=0, le=MAX_RETRIES)] = DEFAULT_MAX_RETRIES
    retry_delay_ms: Annotated[int, Field(ge=0, le=MAX_RETRY_DELAY_MS)] = (
        DEFAULT_RETRY_DELAY_MS
    )
    backoff_factor: Annotated[float, Field(gt=0.0, le=MAX_BACKOFF_FACTOR)] = (
        DEFAULT_BACKOFF_FACTOR
    )
    dependency_name: Annotated[str, Field(min_length=1)] = DEFAULT_DEPENDENCY_NAME
    default_headers: dict[str, str] = Field(default_factory=dict)
    logger: Any = Field(
        default=None, description="structlog-style logger; None uses the module logger"
    )
    context_provider: Callable[[], RequestContext] = default_context_provider
    log_retries: bool = Field(
        default=False, description="Also log each failed attempt that is retried"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str | None) -> str | None:
        """Ensure the base URL is absolute http(s)."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            msg = f"base_url must be an absolute http(s) URL, got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy derived from these settings."""
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.retry_delay_ms,
            backoff_factor=self.backoff_factor,
        )


class RequestDescriptor(BaseModel):
    """One logical outbound call.

    ``data`` holding a dict or list is sent as JSON; str or bytes are sent
    as the raw body.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: str = "GET"
    url: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] | None = None
    data: Any = None
    timeout_ms: Annotated[int | None, Field(gt=0, le=MAX_TIMEOUT_MS)] = None
    context: RequestContext | None = None

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """Upper-case the method and reject unknown verbs."""
        method = v.upper()
        if method not in SUPPORTED_METHODS:
            msg = f"Unsupported HTTP method: {v}"
            raise ValueError(msg)
        return method


@dataclass(frozen=True)
class ClientResponse:
    """Successful response plus call metadata.

    Attributes:
        status_code: HTTP status code.
        headers: Response headers.
        data: Parsed JSON body, or text for non-JSON responses.
        raw: Underlying transport response.
        duration_ms: Time spent on the final attempt.
        correlation_id: Correlation id sent with every attempt.
        attempts: Number of transport calls made.
    """

    status_code: int
    headers: dict[str, str]
    data: Any
    raw: httpx.Response = field(repr=False)
    duration_ms: float
    correlation_id: str
    attempts: int = 1
