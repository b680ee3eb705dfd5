"""Exceptions for the durable credential cache."""


class CredentialStoreError(Exception):
    """Base exception for durable key-value store failures."""


class StoreConnectionError(CredentialStoreError):
    """Raised when the SQLite database cannot be opened or queried."""

    def __init__(self, message: str = "Credential database not available") -> None:
        """Initialize the connection error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(message)
