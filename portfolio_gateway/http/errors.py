"""Error type raised by the resilient HTTP client."""

from typing import Any

from portfolio_gateway.http.models import FailureKind


class HttpClientError(Exception):
    """Terminal failure of a logical HTTP call.

    Raised once retries are exhausted or the failure was not retryable.
    Callers can branch on ``status`` without knowing the transport.

    Attributes:
        status: HTTP status code, if a response was received.
        data: Response body, if any.
        method: Request method.
        url: Resolved request URL with secrets redacted.
        correlation_id: Correlation id sent with every attempt.
        failure_kind: Classification of the last failure.
        is_recoverable: Whether the last failure was transient.
        attempts: Number of transport calls made.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        *,
        method: str,
        url: str,
        correlation_id: str,
        failure_kind: FailureKind,
        status: int | None = None,
        data: Any = None,
        is_recoverable: bool = False,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data
        self.method = method
        self.url = url
        self.correlation_id = correlation_id
        self.failure_kind = failure_kind
        self.is_recoverable = is_recoverable
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        The response body is left out; it may contain user data.
        """
        return {
            "message": self.message,
            "status": self.status,
            "method": self.method,
            "url": self.url,
            "correlation_id": self.correlation_id,
            "failure_kind": self.failure_kind.value,
            "is_recoverable": self.is_recoverable,
            "attempts": self.attempts,
        }

    def __repr__(self) -> str:
        return (
            f"HttpClientError({self.message!r}, method={self.method!r}, "
            f"url={self.url!r}, status={self.status!r})"
        )
