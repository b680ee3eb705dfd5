"""Credential store: access token, refresh token, and active tenant."""

import structlog

from tenant_api.features.credentials.errors import CredentialStoreError
from tenant_api.features.credentials.keys import (
    ALL_KEYS,
    LEGACY_TENANT_ID_KEY,
    REFRESH_TOKEN_KEY,
    TENANT_ID_KEY,
    TOKEN_KEY,
)
from tenant_api.features.credentials.kv import KeyValueStore


logger = structlog.get_logger()


class CredentialStore:
    """Holds credentials in memory, mirrored to an optional durable store.

    Reads hit the in-memory cache first and fall back lazily to the durable
    store. Without a durable store (for example in a batch job) reads simply
    return None until a value is set. If the durable store fails, the error
    is logged once and the store keeps working from memory only.
    """

    def __init__(
        self, durable: KeyValueStore | None = None, *, owns_durable: bool = False
    ) -> None:
        """Initialize the credential store.

        Args:
            durable: Optional durable key-value store.
            owns_durable: Close the durable store in ``close()``.
        """
        self._durable = durable
        self._owns_durable = owns_durable
        self._durable_failed = False
        self._token: str | None = None
        self._refresh_token: str | None = None
        self._tenant_id: str | None = None
        self._log = logger.bind(component="credentials")

    @property
    def durable(self) -> KeyValueStore | None:
        """Get the durable store, if any."""
        return self._durable

    @property
    def has_durable_store(self) -> bool:
        """Whether values survive the process."""
        return self._durable is not None and not self._durable_failed

    def _disable_durable(self, operation: str, key: str, exc: Exception) -> None:
        self._durable_failed = True
        self._log.warning(
            "credential_store_unavailable",
            operation=operation,
            key=key,
            error=str(exc),
        )

    def _read(self, key: str) -> str | None:
        if self._durable is None or self._durable_failed:
            return None
        try:
            return self._durable.get(key) or None
        except CredentialStoreError as exc:
            self._disable_durable("read", key, exc)
            return None

    def _write(self, key: str, value: str | None) -> None:
        if self._durable is None or self._durable_failed:
            return
        try:
            if value:
                self._durable.set(key, value)
            else:
                self._durable.delete(key)
        except CredentialStoreError as exc:
            self._disable_durable("write", key, exc)

    def get_token(self) -> str | None:
        """Get the access token."""
        if not self._token:
            self._token = self._read(TOKEN_KEY)
        return self._token

    def set_token(self, token: str | None) -> None:
        """Set or clear (with None) the access token."""
        self._token = token or None
        self._write(TOKEN_KEY, self._token)

    def get_refresh_token(self) -> str | None:
        """Get the refresh token."""
        if not self._refresh_token:
            self._refresh_token = self._read(REFRESH_TOKEN_KEY)
        return self._refresh_token

    def set_refresh_token(self, token: str | None) -> None:
        """Set or clear (with None) the refresh token."""
        self._refresh_token = token or None
        self._write(REFRESH_TOKEN_KEY, self._refresh_token)

    def get_tenant_id(self) -> str | None:
        """Get the active tenant id.

        Falls back to the legacy ``current_tenant_id`` key, which the tenant
        context provider writes before it has synchronized the primary key.
        """
        if not self._tenant_id:
            self._tenant_id = self._read(TENANT_ID_KEY) or self._read(
                LEGACY_TENANT_ID_KEY
            )
        return self._tenant_id

    def set_tenant_id(self, tenant_id: str | None) -> None:
        """Set or clear (with None) the active tenant id.

        The legacy key is removed so it cannot resurface an older tenant.
        """
        self._tenant_id = tenant_id or None
        self._write(TENANT_ID_KEY, self._tenant_id)
        self._write(LEGACY_TENANT_ID_KEY, None)

    def clear(self) -> None:
        """Remove every durable credential key and reset memory."""
        self._token = None
        self._refresh_token = None
        self._tenant_id = None
        for key in ALL_KEYS:
            self._write(key, None)
        self._log.info("credentials_cleared")

    def close(self) -> None:
        """Close the durable store when this instance owns it."""
        if not self._owns_durable or self._durable is None:
            return
        close = getattr(self._durable, "close", None)
        if callable(close):
            close()
