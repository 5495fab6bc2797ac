"""CLI commands for checking configuration and probing dependencies."""

import asyncio
import json
import sys

import click
from pydantic import ValidationError

from portfolio_gateway import __version__
from portfolio_gateway.context import create_background_context
from portfolio_gateway.http import (
    ClientResponse,
    HttpClientError,
    RequestDescriptor,
    ResilientHttpClient,
)
from portfolio_gateway.observability.logging import (
    configure_logging_from_settings,
    dependency_log_context,
)
from portfolio_gateway.settings import AppSettings, get_settings


COMPONENT_CLI = "cli"


def _load_settings() -> AppSettings:
    """Load settings, exit on validation failure."""
    try:
        return get_settings()
    except ValidationError as e:
        click.echo("Configuration validation failed:", err=True)
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            click.echo(f"  - {location}: {error['msg']}", err=True)
        sys.exit(1)


def _parse_headers(raw_headers: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(
                f"expected 'Name: value', got '{raw}'", param_hint="--header"
            )
        headers[name.strip()] = value.strip()
    return headers


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--json-logs/--console-logs", default=True, help="Log as JSON or for humans"
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """Portfolio gateway operator tools."""
    ctx.obj = {"verbose": verbose, "json_logs": json_logs}


def _setup(ctx: click.Context) -> AppSettings:
    """Load settings and configure logging from them."""
    settings = _load_settings()
    options = ctx.obj or {}
    configure_logging_from_settings(
        settings,
        verbose=options.get("verbose", False),
        json_format=options.get("json_logs", True),
    )
    return settings


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate the environment configuration."""
    settings = _setup(ctx)
    click.echo("Configuration is valid!")
    click.echo(f"  Environment: {settings.app_env}")
    click.echo(f"  HTTP timeout: {settings.http_timeout_ms} ms")
    click.echo(f"  HTTP max retries: {settings.http_max_retries}")
    click.echo(f"  HTTP retry delay: {settings.http_retry_delay_ms} ms")
    click.echo(f"  HTTP backoff factor: {settings.http_retry_backoff_factor}")
    click.echo(
        f"  OpenAI configured: {'yes' if settings.openai_api_key else 'no'}"
    )
    click.echo(
        f"  reCAPTCHA configured: {'yes' if settings.recaptcha_secret_key else 'no'}"
    )
    click.echo(
        f"  Google Places configured: {'yes' if settings.google_maps_api_key else 'no'}"
    )
    click.echo(f"  Log level: {settings.log_level}")


async def _probe(
    settings: AppSettings,
    descriptor: RequestDescriptor,
    dependency: str,
) -> ClientResponse:
    async with ResilientHttpClient(settings.http_client_settings(dependency)) as client:
        return await client.request(descriptor)


@cli.command()
@click.argument("url")
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option(
    "--header", "-H", "headers", multiple=True, help="Extra header as 'Name: value'"
)
@click.option(
    "--dependency", default="probe", show_default=True, help="Dependency name for logs"
)
@click.option("--json", "json_output", is_flag=True, help="Print result as JSON")
@click.pass_context
def probe(  # noqa: PLR0913
    ctx: click.Context,
    url: str,
    method: str,
    headers: tuple[str, ...],
    dependency: str,
    json_output: bool,
) -> None:
    """Send one request through the resilient client and report the outcome."""
    settings = _setup(ctx)
    try:
        descriptor = RequestDescriptor(
            method=method,
            url=url,
            headers=_parse_headers(headers),
            context=create_background_context(COMPONENT_CLI),
        )
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--method") from e

    try:
        with dependency_log_context(dependency, component=COMPONENT_CLI):
            response = asyncio.run(_probe(settings, descriptor, dependency))
    except HttpClientError as e:
        if json_output:
            click.echo(json.dumps(e.to_dict(), indent=2))
        else:
            click.echo(f"Request failed: {e.message}", err=True)
            click.echo(f"  Status: {e.status}", err=True)
            click.echo(f"  Attempts: {e.attempts}", err=True)
            click.echo(f"  Correlation ID: {e.correlation_id}", err=True)
        sys.exit(1)

    result = {
        "status": response.status_code,
        "duration_ms": round(response.duration_ms, 2),
        "attempts": response.attempts,
        "correlation_id": response.correlation_id,
    }
    if json_output:
        click.echo(json.dumps(result, indent=2))
    else:
        click.echo(f"Status: {result['status']}")
        click.echo(f"  Duration: {result['duration_ms']} ms")
        click.echo(f"  Attempts: {result['attempts']}")
        click.echo(f"  Correlation ID: {result['correlation_id']}")


def main() -> None:
    """Console script entry point."""
    cli()
