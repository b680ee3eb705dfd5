"""Tenant-scoped HTTP access layer for the service-management API."""

__version__ = "0.1.0"
