"""Factory for creating API clients from application settings."""

from collections.abc import Callable

import httpx
import structlog

from tenant_api.features.client.client import ApiClient
from tenant_api.features.client.models import AuthEvent, AuthPolicy
from tenant_api.features.credentials.kv import SqliteKeyValueStore
from tenant_api.features.credentials.store import CredentialStore
from tenant_api.settings import AppSettings, get_settings


logger = structlog.get_logger()


def create_api_client(
    settings: AppSettings | None = None,
    *,
    on_auth_error: Callable[[AuthEvent], None] | None = None,
    navigator: Callable[[str], None] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ApiClient:
    """Create an API client wired from settings.

    Credentials persist to SQLite when ``API_CREDENTIALS_DB`` is set and
    live in memory otherwise.

    Args:
        settings: Application settings; loaded from the environment when
            omitted.
        on_auth_error: Callback for auth failures.
        navigator: Redirect handler used when no callback is given.
        transport: Optional HTTP transport (tests, proxies).

    Returns:
        A configured ApiClient. Close it with ``aclose()``.
    """
    log = logger.bind(component="client", subcomponent="factory")
    settings = settings or get_settings()
    config = settings.to_client_config()

    durable = (
        SqliteKeyValueStore(settings.api_credentials_db)
        if settings.api_credentials_db is not None
        else None
    )
    credentials = CredentialStore(durable, owns_durable=True)
    policy = AuthPolicy(
        refresh_enabled=config.refresh_enabled,
        on_auth_error=on_auth_error,
        navigator=navigator,
        login_url=config.login_url,
    )

    log.info(
        "api_client_created",
        base_url=config.base_url,
        durable_credentials=durable is not None,
        refresh_enabled=config.refresh_enabled,
    )
    return ApiClient(config, credentials, policy, transport=transport)
