"""Redaction helpers so credentials never reach the logs."""

import re

from tenant_api.features.client.constants import HEADER_TENANT_ID, TENANT_QUERY_PARAM


# Headers whose values must never appear in logs
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "x-api-key",
        "x-auth-token",
        "proxy-authorization",
        "set-cookie",
    }
)

REDACTED_VALUE = "[REDACTED]"

_URL_CREDENTIALS_PATTERN = re.compile(r"(https?://)([^:/]+):([^@]+)@")


def is_sensitive_header(header_name: str) -> bool:
    """Check if a header name is sensitive.

    Args:
        header_name: The header name to check.

    Returns:
        True if the header should be redacted.
    """
    return header_name.lower() in SENSITIVE_HEADERS


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Args:
        headers: Original headers dictionary.

    Returns:
        New dictionary with sensitive values replaced by [REDACTED].
    """
    return {
        key: REDACTED_VALUE if is_sensitive_header(key) else value
        for key, value in headers.items()
    }


def redact_url_credentials(url: str) -> str:
    """Redact ``user:password@`` credentials embedded in a URL."""
    return _URL_CREDENTIALS_PATTERN.sub(r"\1[REDACTED]:[REDACTED]@", url)


def tenant_log_fields(headers: dict[str, str], url: str) -> dict[str, bool]:
    """Summarize tenant scoping of a request for structured logs."""
    return {
        "tenant_header": HEADER_TENANT_ID in headers,
        "tenant_param": f"{TENANT_QUERY_PARAM}=" in url,
    }
