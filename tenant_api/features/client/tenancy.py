"""Tenant-exemption policy.

Endpoints that must work before or without a tenant context (authentication
and tenant bootstrap) are exempt from tenant scoping. Everything else gets
both the ``tenant_id`` query parameter and the ``x-tenant-id`` header.
"""

import re

from tenant_api.features.client.constants import AUTH_PATH_PREFIX


_TENANTS_COLLECTION = "/tenants"
_TENANT_CODE_CHECK_PREFIX = "/tenants/check-code"
_SINGLE_TENANT_PATTERN = re.compile(r"^/tenants/[^/]+$")


def endpoint_path(endpoint: str) -> str:
    """Strip any query string or fragment from an endpoint."""
    return endpoint.split("?", 1)[0].split("#", 1)[0]


def is_auth_endpoint(endpoint: str) -> bool:
    """Check whether an endpoint belongs to the authentication API."""
    return endpoint_path(endpoint).startswith(AUTH_PATH_PREFIX)


def is_tenant_exempt(endpoint: str | None) -> bool:
    """Check whether an endpoint is exempt from tenant scoping.

    Rules, evaluated in order:
    - ``/auth/...``
    - exactly ``/tenants``
    - ``/tenants/check-code...``
    - ``/tenants/<id>`` (a single path segment after ``/tenants/``)

    Args:
        endpoint: Endpoint path, optionally with a query string. None means
            the caller did not name an endpoint and scoping applies.

    Returns:
        True if no tenant parameter or header should be added.
    """
    if endpoint is None:
        return False

    path = endpoint_path(endpoint)
    if path.startswith(AUTH_PATH_PREFIX):
        return True
    if path == _TENANTS_COLLECTION:
        return True
    if path.startswith(_TENANT_CODE_CHECK_PREFIX):
        return True
    return bool(_SINGLE_TENANT_PATTERN.match(path))
