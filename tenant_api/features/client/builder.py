"""URL and header construction with tenant and credential injection."""

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from tenant_api.features.client.constants import (
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HEADER_TENANT_ID,
    JSON_CONTENT_TYPE,
    TENANT_QUERY_PARAM,
)
from tenant_api.features.client.models import QueryParams, QueryValue
from tenant_api.features.client.tenancy import is_tenant_exempt
from tenant_api.features.credentials.store import CredentialStore


@dataclass(frozen=True)
class PreparedRequest:
    """URL and headers ready to hand to the dispatcher.

    Attributes:
        url: Final URL including query parameters.
        headers: Final header set.
        same_origin: Whether the URL targets the configured API origin.
    """

    url: str
    headers: dict[str, str]
    same_origin: bool


def _stringify(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_absolute(endpoint: str) -> bool:
    return endpoint.startswith(("http://", "https://"))


def _merge_headers(headers: dict[str, str], extra: Mapping[str, str]) -> None:
    """Merge ``extra`` into ``headers``; names compare case-insensitively."""
    for name, value in extra.items():
        lowered = name.lower()
        for existing in [key for key in headers if key.lower() == lowered]:
            del headers[existing]
        headers[name] = value


class RequestBuilder:
    """Builds request URLs and headers for one API origin.

    Tenant scoping follows ``is_tenant_exempt``; credentials come from the
    injected CredentialStore so a refreshed token is picked up on rebuild.
    """

    def __init__(self, base_url: str, credentials: CredentialStore) -> None:
        """Initialize the builder.

        Args:
            base_url: API base address. A trailing slash is stripped.
            credentials: Store providing token and tenant id.
        """
        self._base_url = base_url.rstrip("/")
        self._base = httpx.URL(self._base_url)
        self._credentials = credentials

    @property
    def base_url(self) -> str:
        """Get the normalized base URL."""
        return self._base_url

    def is_same_origin(self, endpoint: str) -> bool:
        """Check whether an endpoint targets the configured API origin.

        Relative endpoints are always same-origin.
        """
        if not _is_absolute(endpoint):
            return True
        target = httpx.URL(endpoint)
        return (
            target.scheme == self._base.scheme
            and target.host == self._base.host
            and target.port == self._base.port
        )

    def api_path(self, endpoint: str) -> str:
        """Path below the base URL, used for tenant and auth decisions.

        Absolute URLs have the base path prefix (such as ``/v1``) removed so
        they classify the same way as the equivalent relative endpoint.
        """
        if not _is_absolute(endpoint):
            return endpoint if endpoint.startswith("/") else f"/{endpoint}"
        path = httpx.URL(endpoint).path
        prefix = self._base.path.rstrip("/")
        if prefix and path.startswith(f"{prefix}/"):
            return path[len(prefix) :]
        return path

    def build_url(
        self,
        endpoint: str,
        params: QueryParams | None = None,
        *,
        scoped: bool = True,
    ) -> str:
        """Build the final request URL.

        Adds ``tenant_id`` when a tenant is known, the path is not exempt,
        and the caller did not supply one. List values repeat the key;
        scalars overwrite; None values are skipped.

        Args:
            endpoint: Path relative to the base URL, or an absolute URL.
            params: Optional query parameters.
            scoped: Set False to skip tenant injection (cross-origin calls).

        Returns:
            URL string.
        """
        if _is_absolute(endpoint):
            url = httpx.URL(endpoint)
        else:
            url = httpx.URL(self._base_url + self.api_path(endpoint))

        tenant_id = self._credentials.get_tenant_id()
        caller_tenant = params.get(TENANT_QUERY_PARAM) if params else None
        if (
            scoped
            and tenant_id
            and not caller_tenant
            and not is_tenant_exempt(self.api_path(endpoint))
        ):
            url = url.copy_set_param(TENANT_QUERY_PARAM, tenant_id)

        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, list | tuple):
                for item in value:
                    if item is not None:
                        url = url.copy_add_param(key, _stringify(item))
            else:
                url = url.copy_set_param(key, _stringify(value))

        return str(url)

    def build_headers(
        self,
        custom: Mapping[str, str] | None = None,
        endpoint: str | None = None,
        *,
        exclude_sensitive: bool = False,
    ) -> dict[str, str]:
        """Build JSON request headers.

        Args:
            custom: Caller headers merged over ``Content-Type``.
            endpoint: Endpoint used for the tenant-exemption check.
            exclude_sensitive: Omit Authorization and tenant headers, used
                for cross-origin URLs so credentials never leak.

        Returns:
            Header dictionary.
        """
        headers = {HEADER_CONTENT_TYPE: JSON_CONTENT_TYPE}
        _merge_headers(headers, custom or {})
        if not exclude_sensitive:
            _merge_headers(headers, self._credential_headers(endpoint))
        return headers

    def build_auth_headers(
        self,
        endpoint: str | None = None,
        custom: Mapping[str, str] | None = None,
        *,
        exclude_sensitive: bool = False,
    ) -> dict[str, str]:
        """Build headers without ``Content-Type`` for multipart payloads.

        The transport sets the multipart boundary itself, so only caller,
        Authorization, and tenant headers are produced.
        """
        headers: dict[str, str] = {}
        _merge_headers(headers, custom or {})
        if not exclude_sensitive:
            _merge_headers(headers, self._credential_headers(endpoint))
        return headers

    def _credential_headers(self, endpoint: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        token = self._credentials.get_token()
        if token:
            headers[HEADER_AUTHORIZATION] = f"Bearer {token}"

        tenant_id = self._credentials.get_tenant_id()
        path = self.api_path(endpoint) if endpoint is not None else None
        if tenant_id and not is_tenant_exempt(path):
            headers[HEADER_TENANT_ID] = tenant_id
        return headers

    def prepare(
        self,
        endpoint: str,
        params: QueryParams | None = None,
        custom_headers: Mapping[str, str] | None = None,
        *,
        multipart: bool = False,
    ) -> PreparedRequest:
        """Build URL and headers for a request, sanitizing cross-origin calls.

        Args:
            endpoint: Path or absolute URL.
            params: Optional query parameters.
            custom_headers: Caller headers.
            multipart: Omit ``Content-Type`` for multipart payloads.

        Returns:
            PreparedRequest with URL and headers.
        """
        same_origin = self.is_same_origin(endpoint)
        url = self.build_url(endpoint, params, scoped=same_origin)
        if multipart:
            headers = self.build_auth_headers(
                endpoint, custom_headers, exclude_sensitive=not same_origin
            )
        else:
            headers = self.build_headers(
                custom_headers, endpoint, exclude_sensitive=not same_origin
            )
        return PreparedRequest(url=url, headers=headers, same_origin=same_origin)
