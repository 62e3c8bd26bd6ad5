"""
Freemius API Client Library

A Python client library that signs and dispatches requests to the
Freemius REST API (FS / FSP authorization scheme).

Example usage:
    from freemius_api import FreemiusClient

    client = FreemiusClient("developer", 1234, "pk_...", "sk_...")
    result = client.post("plugins/115/tags.json", {"add_contributor": True},
                         file_params={"file": "my-plugin.zip"})
"""

from .client import Credentials, FreemiusClient
from .exceptions import (
    FreemiusError,
    ConfigurationError,
    SigningPreconditionError,
    EncodingError,
    TransportError,
    ApiError
)
from .multipart import (
    MimeResolver,
    FixedTableMimeResolver,
    SystemMimeResolver,
    encode_body
)
from .signing import (
    SignedRequest,
    get_clock_diff,
    set_clock_diff,
    sign_request
)
from .transport import TransportOptions
from .constants import (
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_MD5,
    HEADER_DATE,
    DEFAULT_CONFIG,
    SDK_VERSION
)

__version__ = SDK_VERSION
__author__ = "Freemius"
__all__ = [
    "FreemiusClient",
    "Credentials",
    "FreemiusError",
    "ConfigurationError",
    "SigningPreconditionError",
    "EncodingError",
    "TransportError",
    "ApiError",
    "MimeResolver",
    "FixedTableMimeResolver",
    "SystemMimeResolver",
    "encode_body",
    "SignedRequest",
    "get_clock_diff",
    "set_clock_diff",
    "sign_request",
    "TransportOptions",
    "HEADER_AUTHORIZATION",
    "HEADER_CONTENT_MD5",
    "HEADER_DATE",
    "DEFAULT_CONFIG",
    "SDK_VERSION"
]
