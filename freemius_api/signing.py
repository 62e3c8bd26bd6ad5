"""
Request signing for the Freemius API.

Every request carries three headers derived from a five line
string-to-sign:

    METHOD
    Content-MD5 (hex MD5 of the JSON body for POST/PUT, else empty)
    Content-Type
    Date (RFC 1123, shifted by the process clock offset)
    canonical resource path (no query string)

    Authorization: FS {id}:{public_key}:base64url(hex(HMAC-SHA256(string_to_sign, secret_key)))

When the secret key equals the public key the scheme tag is FSP.
"""

import base64
import hashlib
import hmac
import threading
import time
from dataclasses import dataclass
from email.utils import formatdate
from typing import List, Optional, Tuple

from .constants import (
    AUTH_SCHEME_PUBLIC,
    AUTH_SCHEME_SECRET,
    BODY_METHODS,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_MD5,
    HEADER_DATE,
)
from .exceptions import SigningPreconditionError

_clock_lock = threading.Lock()
_clock_diff = 0


def set_clock_diff(seconds: int):
    """
    Set the clock diff between this host and the API server for all calls.

    Args:
        seconds: Local time minus server time, in seconds
    """
    global _clock_diff
    with _clock_lock:
        _clock_diff = int(seconds)


def get_clock_diff() -> int:
    with _clock_lock:
        return _clock_diff


@dataclass(frozen=True)
class SignedRequest:
    """Signature values for a single request. Never reused."""

    date: str
    authorization: str
    content_md5: Optional[str] = None

    def headers(self) -> List[Tuple[str, str]]:
        """Signature headers in wire order."""
        headers = [
            (HEADER_DATE, self.date),
            (HEADER_AUTHORIZATION, self.authorization),
        ]
        if self.content_md5:
            headers.append((HEADER_CONTENT_MD5, self.content_md5))
        return headers


def base64url_encode(data: bytes) -> str:
    """URL-safe base64 without '=' padding."""
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def format_date(timestamp: float) -> str:
    """Format a unix timestamp as an RFC 1123 date."""
    return formatdate(timestamp, usegmt=True)


def auth_scheme(public_key: str, secret_key: str) -> str:
    # Identical keys mean the signature uses public key hash encoding.
    return AUTH_SCHEME_SECRET if secret_key != public_key else AUTH_SCHEME_PUBLIC


def content_md5(method: str, json_body: str) -> str:
    if method.upper() in BODY_METHODS and json_body:
        return hashlib.md5(json_body.encode('utf-8')).hexdigest()
    return ''


def build_string_to_sign(method: str, content_md5: str, content_type: str,
                         date: str, resource_path: str) -> str:
    # Empty fields still occupy their line.
    return "\n".join([method, content_md5, content_type, date, resource_path])


def compute_signature(string_to_sign: str, secret_key: str) -> str:
    mac = hmac.new(
        secret_key.encode('utf-8'),
        string_to_sign.encode('utf-8'),
        hashlib.sha256
    )
    return base64url_encode(mac.hexdigest().encode('ascii'))


def _check_preconditions(resource_path, public_key, secret_key):
    if not isinstance(resource_path, str) or not resource_path:
        raise SigningPreconditionError("resource_path must be a non-empty string")
    if '?' in resource_path:
        raise SigningPreconditionError(
            f"resource_path must not include a query string: {resource_path}"
        )
    if not isinstance(public_key, str) or not public_key:
        raise SigningPreconditionError("public_key must be a non-empty string")
    if not isinstance(secret_key, str) or not secret_key:
        raise SigningPreconditionError("secret_key must be a non-empty string")


def sign_request(
    resource_path: str,
    method: str,
    json_body: str,
    content_type: str,
    public_key: str,
    secret_key: str,
    entity_id: int,
    clock_diff: Optional[int] = None,
    now: Optional[float] = None,
) -> SignedRequest:
    """
    Generate the authorization values for a request.

    Args:
        resource_path: Canonical resource path, query string removed
        method: HTTP method used for signing
        json_body: JSON encoded parameters ('' when none)
        content_type: Content-Type header value
        public_key: Scope entity public key
        secret_key: Scope entity secret key (equal to public_key for FSP)
        entity_id: Scope entity id
        clock_diff: Clock offset in seconds (process-wide value when None)
        now: Unix timestamp to sign with (current time when None)

    Returns:
        SignedRequest with date, authorization and optional content_md5

    Raises:
        SigningPreconditionError: If inputs are malformed
    """
    _check_preconditions(resource_path, public_key, secret_key)

    method = method.upper()
    if clock_diff is None:
        clock_diff = get_clock_diff()
    if now is None:
        now = time.time()

    md5 = content_md5(method, json_body or '')
    date = format_date(int(now) - clock_diff)

    string_to_sign = build_string_to_sign(method, md5, content_type or '', date, resource_path)
    signature = compute_signature(string_to_sign, secret_key)

    authorization = f"{auth_scheme(public_key, secret_key)} {entity_id}:{public_key}:{signature}"

    return SignedRequest(
        date=date,
        authorization=authorization,
        content_md5=md5 or None,
    )
