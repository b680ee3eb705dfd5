"""Durable key names used by the credential store."""

TOKEN_KEY = "auth_token"  # noqa: S105
REFRESH_TOKEN_KEY = "refresh_token"  # noqa: S105
TENANT_ID_KEY = "tenant_id"

# Written by the tenant context provider; read only as a fallback
LEGACY_TENANT_ID_KEY = "current_tenant_id"

ALL_KEYS = (TOKEN_KEY, REFRESH_TOKEN_KEY, TENANT_ID_KEY, LEGACY_TENANT_ID_KEY)
