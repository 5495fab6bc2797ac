"""Structured logging configuration.

Every entry carries the service and environment it was emitted from, plus
any correlation or dependency fields bound to the running task. ``headers``
and ``url`` fields are redacted before rendering, whichever logger emitted
them.
"""

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TextIO

import structlog

from portfolio_gateway.http.redact import redact_headers, redact_url


if TYPE_CHECKING:
    from portfolio_gateway.settings import AppSettings


SERVICE_NAME = "portfolio-gateway"


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
    service: str = SERVICE_NAME,
    environment: str = "development",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
        service: Service name attached to every entry.
        environment: Deployment environment attached to every entry.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _static_fields(service=service, environment=environment),
        redact_sensitive_fields,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # httpx and httpcore log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=level,
    )


def configure_logging_from_settings(
    settings: "AppSettings",
    verbose: bool = False,
    json_format: bool = True,
    output: TextIO = sys.stderr,
) -> None:
    """Configure logging from application settings.

    Args:
        settings: Loaded settings; ``LOG_LEVEL`` and ``APP_ENV`` are used.
        verbose: Force DEBUG regardless of the configured level.
        json_format: Whether to use JSON format.
        output: Output stream.
    """
    level = logging.DEBUG if verbose else logging.getLevelName(settings.log_level)
    configure_logging(
        level=level,
        output=output,
        json_format=json_format,
        environment=settings.app_env,
    )


def redact_sensitive_fields(
    _logger: object, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask secrets in ``headers`` and ``url`` fields of any log entry."""
    headers = event_dict.get("headers")
    if isinstance(headers, Mapping):
        event_dict["headers"] = redact_headers(headers)
    url = event_dict.get("url")
    if isinstance(url, str):
        event_dict["url"] = redact_url(url)
    return event_dict


def _static_fields(**fields: str) -> structlog.types.Processor:
    """Build a processor adding fixed fields without overriding bound ones."""

    def processor(
        _logger: object, _method: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


@contextmanager
def dependency_log_context(dependency: str, **fields: Any) -> Iterator[None]:
    """Tag every entry logged inside the block with a dependency name.

    Fields bound before the block are restored on exit, so nested blocks
    and concurrent tasks never see each other's tags.

    Args:
        dependency: Dependency name, as used by the HTTP client.
        **fields: Extra fields to bind alongside it.
    """
    with structlog.contextvars.bound_contextvars(dependency=dependency, **fields):
        yield
