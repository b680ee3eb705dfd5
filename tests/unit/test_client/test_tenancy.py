"""Unit tests for tenant exemption rules."""

import pytest

from tenant_api.features.client.tenancy import (
    endpoint_path,
    is_auth_endpoint,
    is_tenant_exempt,
)


class TestIsTenantExempt:
    """Tests for is_tenant_exempt."""

    @pytest.mark.parametrize(
        "endpoint",
        [
            "/auth/login",
            "/auth/refresh",
            "/auth/me",
            "/tenants",
            "/tenants/check-code",
            "/tenants/check-code/ACME",
            "/tenants/t1",
            "/tenants/abc-123",
        ],
    )
    def test_exempt_paths(self, endpoint: str) -> None:
        """Test that auth and tenant-management paths are exempt."""
        assert is_tenant_exempt(endpoint) is True

    @pytest.mark.parametrize(
        "endpoint",
        [
            "/clients",
            "/clients/42",
            "/tenants/t1/members",
            "/tenantsx",
            "/services/auth/",
            "/",
        ],
    )
    def test_scoped_paths(self, endpoint: str) -> None:
        """Test that business paths are tenant-scoped."""
        assert is_tenant_exempt(endpoint) is False

    def test_missing_endpoint_is_scoped(self) -> None:
        """Test that an unknown endpoint is treated as scoped."""
        assert is_tenant_exempt(None) is False

    def test_query_string_ignored(self) -> None:
        """Test that a query string does not change the decision."""
        assert is_tenant_exempt("/tenants?page=2") is True
        assert is_tenant_exempt("/clients?tenant=x") is False


class TestEndpointHelpers:
    """Tests for endpoint path helpers."""

    def test_endpoint_path_strips_query_and_fragment(self) -> None:
        """Test stripping of query string and fragment."""
        assert endpoint_path("/clients?page=1#top") == "/clients"
        assert endpoint_path("/clients#top") == "/clients"

    def test_is_auth_endpoint(self) -> None:
        """Test detection of auth endpoints."""
        assert is_auth_endpoint("/auth/login") is True
        assert is_auth_endpoint("/clients") is False
