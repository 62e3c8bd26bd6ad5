"""
Constants for the Freemius API client library.
Compatible with the Freemius REST API signing scheme.
"""

import os

try:
    import ssl  # noqa: F401
    API_PROTOCOL = "https"
except ImportError:
    API_PROTOCOL = "http"

API_VERSION = "1"
FORMAT = "json"

SDK_VERSION = "1.0.0"
USER_AGENT = f"fs-python-{SDK_VERSION}"

# Base addresses (can be overridden before import through the environment)
API_ADDRESS = os.environ.get("FS_API__ADDRESS", f"{API_PROTOCOL}://api.freemius.com")
SANDBOX_API_ADDRESS = os.environ.get(
    "FS_API__SANDBOX_ADDRESS", f"{API_PROTOCOL}://sandbox-api.freemius.com"
)

# HTTP Headers
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_DATE = "Date"
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_MD5 = "Content-MD5"
HEADER_EXPECT = "Expect"
HEADER_USER_AGENT = "User-Agent"

# Authorization scheme tags
AUTH_SCHEME_SECRET = "FS"
AUTH_SCHEME_PUBLIC = "FSP"

# Signed URL query parameters
QUERY_AUTH_DATE = "auth_date"
QUERY_AUTHORIZATION = "authorization"

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_MULTIPART = "multipart/form-data"

SCOPES = ("app", "developer", "user", "install")

# Methods whose JSON body is hashed into Content-MD5 and sent on the wire
BODY_METHODS = ("POST", "PUT")

# Kind tag carried by transport failures
TRANSPORT_ERROR_TYPE = "CurlException"

# Default configuration values
DEFAULT_CONFIG = {
    'connect_timeout': 10,      # seconds
    'timeout': 60,              # seconds
    'verify_ssl': False,        # TLS peer/host verification for https targets
    'api_address': API_ADDRESS,
    'sandbox_api_address': SANDBOX_API_ADDRESS,
    'mime_resolver': None,      # MimeResolver used for file parts
}

# Content types for file uploads when no system lookup is used
MIME_TYPES = {
    'zip': 'application/zip',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
}
