"""
Custom exceptions for the Freemius API client library.
"""

from typing import Any, Dict, Optional

from .constants import TRANSPORT_ERROR_TYPE


class FreemiusError(Exception):
    """Base exception for Freemius client errors."""
    pass


class ConfigurationError(FreemiusError):
    """Raised when client configuration is invalid."""
    pass


class SigningPreconditionError(FreemiusError):
    """Raised when the signer is handed malformed inputs."""
    pass


class EncodingError(FreemiusError):
    """Raised when a request body cannot be encoded."""
    pass


class TransportError(FreemiusError):
    """
    Raised when the HTTP exchange fails after the IPv4 fallback is exhausted.

    Carries a curl-equivalent numeric code, the transport message and a
    fixed kind tag.
    """

    def __init__(self, code: int, message: str, type: str = TRANSPORT_ERROR_TYPE):
        super().__init__(message)
        self.code = code
        self.message = message
        self.type = type

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': {
                'code': self.code,
                'message': self.message,
                'type': self.type,
            }
        }

    def __str__(self):
        return f"{self.type} [{self.code}]: {self.message}"


class ApiError(FreemiusError):
    """Raised when the API answers with an error payload."""

    def __init__(self, payload: Dict[str, Any]):
        error = payload.get('error', {}) if isinstance(payload, dict) else {}
        if not isinstance(error, dict):
            error = {'message': str(error)}
        self.payload = payload
        self.code = error.get('code', '')
        self.message = error.get('message', '')
        self.type = error.get('type', '')
        self.http = error.get('http')
        super().__init__(f"{self.type or 'ApiError'}: {self.message}")

    @classmethod
    def from_message(cls, message: str, code: Optional[str] = None) -> 'ApiError':
        return cls({'error': {'code': code or 'invalid_response', 'message': message, 'type': 'ApiError'}})
