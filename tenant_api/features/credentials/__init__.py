"""Credential storage for the request client.

Keeps the access token, refresh token, and active tenant id in memory and
mirrors them to an optional durable key-value store.
"""

from tenant_api.features.credentials.errors import (
    CredentialStoreError,
    StoreConnectionError,
)
from tenant_api.features.credentials.keys import (
    LEGACY_TENANT_ID_KEY,
    REFRESH_TOKEN_KEY,
    TENANT_ID_KEY,
    TOKEN_KEY,
)
from tenant_api.features.credentials.kv import KeyValueStore, SqliteKeyValueStore
from tenant_api.features.credentials.store import CredentialStore


__all__ = [
    # Store
    "CredentialStore",
    # Durable backends
    "KeyValueStore",
    "SqliteKeyValueStore",
    # Keys
    "TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    "TENANT_ID_KEY",
    "LEGACY_TENANT_ID_KEY",
    # Errors
    "CredentialStoreError",
    "StoreConnectionError",
]
