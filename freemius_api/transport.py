"""
HTTP transport for signed requests.

Performs one exchange through requests. When the connection fails with
"Network is unreachable" for an IPv6 literal host (a host with IPv6 enabled
but no IPv6 connectivity), IPv4-only resolution is forced for the whole
process and the exchange is retried exactly once.
"""

import ipaddress
import logging
import re
import socket
import threading
import warnings
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

import requests
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util import connection as urllib3_connection

from .constants import HEADER_USER_AGENT, USER_AGENT
from .exceptions import TransportError

logger = logging.getLogger(__name__)

# curl-equivalent error numbers
CURLE_UNKNOWN = 0
CURLE_COULDNT_CONNECT = 7
CURLE_OPERATION_TIMEDOUT = 28
CURLE_SSL_CONNECT_ERROR = 35
CURLE_TOO_MANY_REDIRECTS = 47

_CONNECT_UNREACHABLE = re.compile(
    r"Failed to connect to ([^:].*?)(?: port \d+)?(?: after \d+ ms)?: Network is unreachable",
    re.IGNORECASE,
)
_POOL_UNREACHABLE = re.compile(
    r"host='([^']+)'.*Network is unreachable",
    re.IGNORECASE | re.DOTALL,
)

Header = Tuple[str, Optional[str]]


@dataclass(frozen=True)
class TransportOptions:
    """
    Configuration of a single HTTP exchange.

    Headers keep insertion order. A header whose value is None is
    suppressed on the wire.
    """

    method: str = 'GET'
    url: str = ''
    headers: Tuple[Header, ...] = ()
    body: Optional[bytes] = None
    verify_ssl: bool = True
    connect_timeout: float = 10
    timeout: float = 60

    def with_headers(self, *headers: Header) -> 'TransportOptions':
        return replace(self, headers=self.headers + tuple(headers))

    def header_dict(self) -> Dict[str, Optional[str]]:
        return dict(self.headers)

    @property
    def is_https(self) -> bool:
        return self.url.lower().startswith('https')


DEFAULT_TRANSPORT_OPTIONS = TransportOptions(
    headers=((HEADER_USER_AGENT, USER_AGENT),),
)


# Process-wide resolution family

_ip_lock = threading.Lock()
_force_ipv4 = False
_default_gai_family = urllib3_connection.allowed_gai_family


def _ipv4_gai_family():
    return socket.AF_INET


def force_ipv4():
    """Make every subsequent connection resolve IPv4 addresses only."""
    global _force_ipv4
    with _ip_lock:
        _force_ipv4 = True
        urllib3_connection.allowed_gai_family = _ipv4_gai_family


def is_ipv4_forced() -> bool:
    with _ip_lock:
        return _force_ipv4


def reset_ip_resolution():
    """Restore the default (dual stack) resolution family."""
    global _force_ipv4
    with _ip_lock:
        _force_ipv4 = False
        urllib3_connection.allowed_gai_family = _default_gai_family


def is_ipv6_literal(host: str) -> bool:
    """True if host is a literal IPv6 address (16 byte packed form)."""
    try:
        address = ipaddress.ip_address(host.strip('[]'))
    except ValueError:
        return False
    return len(address.packed) == 16


def match_unreachable_host(message: str) -> Optional[str]:
    """
    Extract the host from a "Network is unreachable" connection failure.

    Text matching is best effort: the wording depends on the transport and
    the platform.
    """
    for pattern in (_CONNECT_UNREACHABLE, _POOL_UNREACHABLE):
        match = pattern.search(message)
        if match:
            return match.group(1).strip('[]')
    return None


def should_retry_ipv4(message: str) -> bool:
    if is_ipv4_forced():
        return False
    host = match_unreachable_host(message)
    return host is not None and is_ipv6_literal(host)


def error_code(error: requests.RequestException) -> int:
    # Order matters: ConnectTimeout and SSLError are ConnectionErrors too.
    if isinstance(error, requests.exceptions.Timeout):
        return CURLE_OPERATION_TIMEDOUT
    if isinstance(error, requests.exceptions.SSLError):
        return CURLE_SSL_CONNECT_ERROR
    if isinstance(error, requests.exceptions.TooManyRedirects):
        return CURLE_TOO_MANY_REDIRECTS
    if isinstance(error, requests.exceptions.ConnectionError):
        return CURLE_COULDNT_CONNECT
    return CURLE_UNKNOWN


def _send(session: requests.Session, options: TransportOptions) -> requests.Response:
    verify = options.verify_ssl if options.is_https else True
    with warnings.catch_warnings():
        if not verify:
            warnings.simplefilter('ignore', InsecureRequestWarning)
        return session.request(
            options.method,
            options.url,
            headers=options.header_dict(),
            data=options.body or None,
            verify=verify,
            timeout=(options.connect_timeout, options.timeout),
        )


def execute(options: TransportOptions, session: Optional[requests.Session] = None) -> bytes:
    """
    Perform the HTTP exchange described by options.

    Args:
        options: Per-call transport options
        session: Caller owned session; a private one is created and closed
            when omitted

    Returns:
        Raw response body

    Raises:
        TransportError: If the exchange fails, after the IPv4 fallback
    """
    owns_session = session is None
    if owns_session:
        session = requests.Session()

    try:
        logger.debug(f"{options.method} {options.url}")
        try:
            response = _send(session, options)
        except requests.RequestException as e:
            if not should_retry_ipv4(str(e)):
                raise TransportError(error_code(e), str(e)) from e

            logger.warning(f"IPv6 network unreachable for {options.url}, forcing IPv4 resolution")
            force_ipv4()
            try:
                response = _send(session, options)
            except requests.RequestException as retry_error:
                raise TransportError(error_code(retry_error), str(retry_error)) from retry_error

        return response.content
    finally:
        if owns_session:
            session.close()
