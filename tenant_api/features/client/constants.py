"""HTTP constants for the request client.

Centralizes header names, defaults, and status ranges shared across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_SERVER_ERROR_MIN = 500

# Client defaults
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000

# Header names
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_TENANT_ID = "x-tenant-id"
JSON_CONTENT_TYPE = "application/json"

# Query parameter carrying the tenant scope
TENANT_QUERY_PARAM = "tenant_id"

# Auth endpoints
AUTH_PATH_PREFIX = "/auth/"
LOGIN_PATH = "/auth/login"
REFRESH_PATH = "/auth/refresh"

# Status 0 marks failures that never produced an HTTP response
STATUS_NO_RESPONSE = 0

# Message used when an error body cannot be parsed and has no reason phrase
GENERIC_ERROR_MESSAGE = "An unknown error occurred"
