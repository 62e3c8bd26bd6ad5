"""
Freemius API client.

Builds, signs and dispatches requests scoped to an app, developer, user
or install entity.
"""

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import requests

from .constants import (
    API_VERSION,
    BODY_METHODS,
    DEFAULT_CONFIG,
    FORMAT,
    HEADER_CONTENT_TYPE,
    HEADER_EXPECT,
    QUERY_AUTH_DATE,
    QUERY_AUTHORIZATION,
    SCOPES,
)
from .exceptions import ApiError, ConfigurationError
from .multipart import DEFAULT_MIME_RESOLVER, EncodedBody, encode_body
from .signing import SignedRequest, set_clock_diff, sign_request
from .transport import DEFAULT_TRANSPORT_OPTIONS, TransportOptions, execute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Scope entity credentials. secret_key equals public_key in FSP mode."""

    scope: str
    id: int
    public_key: str
    secret_key: str
    sandbox: bool = False


class FreemiusClient:
    """
    Client for signed requests to the Freemius API.

    When no secret key is given the public key is used in its place and
    requests are signed with the FSP (public key hash) scheme.
    """

    def __init__(self, scope: str, entity_id: int, public_key: str,
                 secret_key: Optional[str] = None, sandbox: bool = False, **config):
        """
        Initialize the client.

        Args:
            scope: 'app', 'developer', 'user' or 'install'
            entity_id: Scope entity id
            public_key: Scope entity public key
            secret_key: Scope entity secret key (public key hash mode when None)
            sandbox: Whether to target the sandbox API
            **config: Configuration options (connect_timeout, timeout,
                verify_ssl, api_address, sandbox_api_address, mime_resolver)
        """
        if secret_key is None:
            secret_key = public_key

        self.credentials = Credentials(
            scope=scope,
            id=entity_id,
            public_key=public_key,
            secret_key=secret_key,
            sandbox=sandbox,
        )

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}

        self._validate_config()

        self.mime_resolver = self.config['mime_resolver'] or DEFAULT_MIME_RESOLVER

    def _validate_config(self):
        """Validate credentials and client configuration."""
        credentials = self.credentials
        if credentials.scope not in SCOPES:
            raise ConfigurationError(f"scope must be one of {', '.join(SCOPES)}")

        if isinstance(credentials.id, bool) or not isinstance(credentials.id, int):
            raise ConfigurationError("entity_id must be an integer")

        if not credentials.public_key:
            raise ConfigurationError("public_key cannot be empty")

        unknown = set(self.config) - set(DEFAULT_CONFIG)
        if unknown:
            raise ConfigurationError(f"Unknown configuration options: {', '.join(sorted(unknown))}")

        if self.config['connect_timeout'] <= 0:
            raise ConfigurationError("connect_timeout must be positive")

        if self.config['timeout'] <= 0:
            raise ConfigurationError("timeout must be positive")

    @staticmethod
    def set_clock_diff(seconds: int):
        """Set the clock diff for all API calls in this process."""
        set_clock_diff(seconds)

    def get_url(self, canonized_path: str = '') -> str:
        if self.credentials.sandbox:
            address = self.config['sandbox_api_address']
        else:
            address = self.config['api_address']
        return address.rstrip('/') + canonized_path

    def canonize_path(self, path: str) -> str:
        """
        Scope a relative path to the client's entity.

        'plugins/115/tags.json' becomes '/v1/developers/{id}/plugins/115/tags.json'.
        A query string is kept as is.
        """
        path = path.strip('/')
        query = ''
        query_pos = path.find('?')
        if query_pos != -1:
            query = path[query_pos:]
            path = path[:query_pos]

        suffix = '.' + FORMAT
        if path.lower().endswith(suffix):
            path = path[:-len(suffix)]

        base = f"/{self.credentials.scope}s/{self.credentials.id}"
        return (
            f"/v{API_VERSION}{base}"
            + ('/' + path if path else '')
            + ('' if '.' in path else suffix)
            + query
        )

    def _sign(self, resource_path: str, method: str,
              json_body: str = '', content_type: str = '') -> SignedRequest:
        credentials = self.credentials
        return sign_request(
            resource_path,
            method,
            json_body,
            content_type,
            public_key=credentials.public_key,
            secret_key=credentials.secret_key,
            entity_id=credentials.id,
        )

    def get_signed_url(self, path: str) -> str:
        """
        Build a GET URL carrying its signature as auth_date and
        authorization query parameters.
        """
        resource = self.canonize_path(path).split('?', 1)
        resource_path = resource[0]

        auth = self._sign(resource_path, 'GET')

        query = resource[1] + '&' if len(resource) > 1 and resource[1] else ''
        query += urlencode({
            QUERY_AUTH_DATE: auth.date,
            QUERY_AUTHORIZATION: auth.authorization,
        })
        return self.get_url(f"{resource_path}?{query}")

    def _prepare_request_body(self, method: str, params, file_params) -> EncodedBody:
        """Encode the body; files only travel with POST and PUT."""
        if method in BODY_METHODS:
            return encode_body(params, file_params, self.mime_resolver)
        return encode_body(params)

    def _transport_options(self, method: str, url: str, body: Optional[bytes],
                           content_type: str, signed: SignedRequest) -> TransportOptions:
        options = replace(
            DEFAULT_TRANSPORT_OPTIONS,
            method=method,
            url=url,
            body=body,
            verify_ssl=self.config['verify_ssl'],
            connect_timeout=self.config['connect_timeout'],
            timeout=self.config['timeout'],
        )
        return options.with_headers(
            (HEADER_CONTENT_TYPE, content_type),
            *signed.headers(),
            # Never wait on 'Expect: 100-continue'
            (HEADER_EXPECT, None),
        )

    def make_request(
        self,
        canonized_path: str,
        method: str = 'GET',
        params: Optional[Mapping[str, Any]] = None,
        file_params: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> bytes:
        """
        Make a signed HTTP request.

        Args:
            canonized_path: Canonical path, optionally with a query string
            method: HTTP method
            params: Parameters sent as the JSON body of POST/PUT requests
            file_params: Field name to file path, sent as multipart
            session: Optional caller owned requests session

        Returns:
            Raw response body

        Raises:
            EncodingError: If a file part cannot be encoded
            SigningPreconditionError: If the request cannot be signed
            TransportError: If the HTTP exchange fails
        """
        method = method.upper()
        signing_method = method

        encoded = self._prepare_request_body(method, params, file_params)

        # Multipart PUT travels as POST with a method override; it is still
        # signed as PUT.
        if encoded.is_multipart and method == 'PUT':
            canonized_path += ('&' if '?' in canonized_path else '?') + 'method=PUT'
            method = 'POST'

        body = encoded.body if method in BODY_METHODS and encoded.body else None

        resource_path = canonized_path.split('?', 1)[0]
        signed = self._sign(resource_path, signing_method, encoded.signed_payload, encoded.content_type)

        url = self.get_url(canonized_path)
        options = self._transport_options(method, url, body, encoded.content_type, signed)

        if options.is_https and not options.verify_ssl:
            logger.debug(f"TLS verification disabled for {url}")

        return execute(options, session)

    def api(
        self,
        path: str,
        method: str = 'GET',
        params: Optional[Mapping[str, Any]] = None,
        file_params: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        Call an API endpoint relative to the client's scope and decode the
        JSON response.

        Raises:
            ApiError: If the response is not JSON or carries an error
        """
        raw = self.make_request(self.canonize_path(path), method, params, file_params)

        try:
            result = json.loads(raw.decode('utf-8'))
        except ValueError as e:
            raise ApiError.from_message(f"Invalid API response: {raw[:200]!r}") from e

        if isinstance(result, dict) and 'error' in result:
            raise ApiError(result)

        return result

    def get(self, path: str, **kwargs) -> Any:
        """Make authenticated GET request."""
        return self.api(path, 'GET', **kwargs)

    def post(self, path: str, params=None, file_params=None) -> Any:
        """Make authenticated POST request."""
        return self.api(path, 'POST', params, file_params)

    def put(self, path: str, params=None, file_params=None) -> Any:
        """Make authenticated PUT request."""
        return self.api(path, 'PUT', params, file_params)

    def delete(self, path: str, **kwargs) -> Any:
        """Make authenticated DELETE request."""
        return self.api(path, 'DELETE', **kwargs)

    def ping(self) -> Any:
        return self.api('/ping.json')

    def close(self):
        """Nothing to release; every request owns its own session."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
