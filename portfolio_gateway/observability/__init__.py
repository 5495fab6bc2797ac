"""Observability module for logging and error classification."""

from portfolio_gateway.observability.errors import (
    AppError,
    ErrorClassification,
    ErrorResponse,
    ErrorType,
    classify_error,
    map_error_to_response,
)
from portfolio_gateway.observability.logging import (
    configure_logging,
    configure_logging_from_settings,
    dependency_log_context,
    get_logger,
    redact_sensitive_fields,
)


__all__ = [
    "AppError",
    "ErrorClassification",
    "ErrorResponse",
    "ErrorType",
    "classify_error",
    "configure_logging",
    "configure_logging_from_settings",
    "dependency_log_context",
    "get_logger",
    "map_error_to_response",
    "redact_sensitive_fields",
]
