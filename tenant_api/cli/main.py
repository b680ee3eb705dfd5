"""CLI commands for the tenant API client."""

import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, NoReturn

import click
import structlog
from pydantic import ValidationError

from tenant_api.features.client.client import ApiClient
from tenant_api.features.client.display import describe_error
from tenant_api.features.client.errors import ClientError
from tenant_api.features.client.factory import create_api_client
from tenant_api.features.client.jwt import user_id_from_token
from tenant_api.features.client.models import AuthEvent, RequestDescriptor, RequestOptions
from tenant_api.observability.logging import bind_session_context, configure_logging
from tenant_api.settings import AppSettings, get_settings


logger = structlog.get_logger()

DEFAULT_CREDENTIALS_DB = Path.home() / ".tenant-api" / "credentials.db"


def _format_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'value'}: {error['msg']}"
        for error in exc.errors()
    )


def _load_settings(db_path: Path | None, verbose: bool) -> AppSettings:
    """Load settings, configure logging, and pin the credential database."""
    try:
        settings = get_settings()
        settings.to_client_config()
    except ValidationError as exc:
        msg = f"Invalid configuration: {_format_validation_error(exc)}"
        raise click.ClickException(msg) from exc

    level = (
        logging.DEBUG
        if verbose
        else getattr(logging, settings.log_level.upper(), logging.INFO)
    )
    configure_logging(level=level, json_format=settings.log_json)

    effective_db = db_path or settings.api_credentials_db or DEFAULT_CREDENTIALS_DB
    return settings.model_copy(update={"api_credentials_db": effective_db})


def _open_client(settings: AppSettings) -> ApiClient:
    def _on_auth_error(event: AuthEvent) -> None:
        click.echo(
            f"Authentication failed ({event.status}) for {event.endpoint}; "
            "run 'tenant-api login' again.",
            err=True,
        )

    client = create_api_client(settings, on_auth_error=_on_auth_error)
    bind_session_context(str(uuid.uuid4())[:8], client.credentials.get_tenant_id())
    return client


def _parse_params(pairs: tuple[str, ...]) -> dict[str, str | list[str]]:
    """Parse repeated ``key=value`` options; repeated keys become lists."""
    params: dict[str, str | list[str]] = {}
    for pair in pairs:
        if "=" not in pair:
            msg = f"Expected key=value, got '{pair}'"
            raise click.BadParameter(msg, param_hint="--param")
        key, value = pair.split("=", 1)
        existing = params.get(key)
        if existing is None:
            params[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            params[key] = [existing, value]
    return params


def _fail(error: ClientError) -> NoReturn:
    info = describe_error(error)
    logger.warning("cli_command_failed", error_code=info["code"], status=info["status"])
    click.echo(f"Error [{info['code']}] {info['message']}", err=True)
    for field, message in (info["field_errors"] or {}).items():
        click.echo(f"  - {field}: {message}", err=True)
    sys.exit(1)


db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Credential database (default: API_CREDENTIALS_DB or ~/.tenant-api).",
)
verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose logging."
)


@click.group()
@click.version_option(version="0.1.0")
def cli() -> None:
    """Tenant API client CLI."""


@cli.command()
@click.option("--email", required=True, help="Account email.")
@click.option("--password", prompt=True, hide_input=True, help="Account password.")
@click.option("--tenant", "tenant_id", default=None, help="Tenant to activate.")
@db_option
@verbose_option
def login(
    email: str,
    password: str,
    tenant_id: str | None,
    db_path: Path | None,
    verbose: bool,
) -> None:
    """Sign in and store the session tokens."""
    settings = _load_settings(db_path, verbose)

    async def _run() -> None:
        async with _open_client(settings) as client:
            await client.login(email, password)
            if tenant_id:
                client.set_tenant(tenant_id)

    try:
        asyncio.run(_run())
    except ClientError as exc:
        _fail(exc)
    click.echo("Logged in.")


@cli.command()
@db_option
@verbose_option
def logout(db_path: Path | None, verbose: bool) -> None:
    """Forget stored tokens and the active tenant."""
    settings = _load_settings(db_path, verbose)
    client = _open_client(settings)
    client.logout()
    asyncio.run(client.aclose())
    click.echo("Logged out.")


@cli.command("use-tenant")
@click.argument("tenant_id")
@db_option
@verbose_option
def use_tenant(tenant_id: str, db_path: Path | None, verbose: bool) -> None:
    """Set the active tenant for subsequent requests."""
    settings = _load_settings(db_path, verbose)
    client = _open_client(settings)
    client.set_tenant(tenant_id)
    asyncio.run(client.aclose())
    click.echo(f"Active tenant: {tenant_id}")


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@db_option
@verbose_option
def whoami(json_output: bool, db_path: Path | None, verbose: bool) -> None:
    """Show the stored session."""
    settings = _load_settings(db_path, verbose)
    client = _open_client(settings)
    token = client.credentials.get_token()
    session = {
        "authenticated": token is not None,
        "user_id": user_id_from_token(token),
        "tenant_id": client.credentials.get_tenant_id(),
        "base_url": client.config.base_url,
    }
    asyncio.run(client.aclose())

    if json_output:
        click.echo(json.dumps(session, indent=2))
        return
    for key, value in session.items():
        click.echo(f"{key}: {value}")


@cli.command()
@click.argument(
    "method",
    type=click.Choice(["GET", "POST", "PUT", "PATCH", "DELETE"], case_sensitive=False),
)
@click.argument("path")
@click.option(
    "--param", "-p", "params", multiple=True, help="Query parameter key=value."
)
@click.option("--data", "-d", "body", default=None, help="JSON request body.")
@click.option(
    "--timeout", "timeout_ms", type=int, default=None, help="Deadline in milliseconds."
)
@db_option
@verbose_option
def request(  # noqa: PLR0913
    method: str,
    path: str,
    params: tuple[str, ...],
    body: str | None,
    timeout_ms: int | None,
    db_path: Path | None,
    verbose: bool,
) -> None:
    """Send an authenticated, tenant-scoped request and print the JSON result."""
    settings = _load_settings(db_path, verbose)
    try:
        payload = json.loads(body) if body is not None else None
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON body: {exc}"
        raise click.BadParameter(msg, param_hint="--data") from exc

    descriptor = RequestDescriptor(
        method.upper(),
        path,
        params=_parse_params(params) or None,
        json_body=payload,
        options=RequestOptions(timeout_ms=timeout_ms),
    )

    async def _run() -> Any:
        async with _open_client(settings) as client:
            return await client.request(descriptor)

    try:
        result = asyncio.run(_run())
    except ClientError as exc:
        _fail(exc)
    click.echo(json.dumps(result, indent=2, ensure_ascii=False))


def main() -> None:
    """Entry point for the ``tenant-api`` console script."""
    cli()
