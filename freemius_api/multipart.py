"""
Request body encoding: compact JSON for plain calls, multipart/form-data
when files are attached.

Multipart bodies are built in memory. Boundaries are never escaped: a
boundary is assumed not to occur inside any field value or file content.
The per-body random token makes a collision practically impossible but
this is not checked.
"""

import json
import mimetypes
import os
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .constants import CONTENT_TYPE_JSON, CONTENT_TYPE_MULTIPART, MIME_TYPES
from .exceptions import EncodingError

CRLF = b"\r\n"


class MimeResolver:
    """Resolves the Content-Type of a file part."""

    def resolve(self, file_path: str) -> str:
        raise NotImplementedError


class FixedTableMimeResolver(MimeResolver):
    """Extension lookup in a fixed table; unknown extensions are an error."""

    def __init__(self, table: Optional[Mapping[str, str]] = None):
        self.table = dict(MIME_TYPES if table is None else table)

    def resolve(self, file_path: str) -> str:
        ext = os.path.splitext(file_path)[1].lstrip('.').lower()
        if ext not in self.table:
            raise EncodingError(f"Unknown file type: {os.path.basename(file_path)}")
        return self.table[ext]


class SystemMimeResolver(MimeResolver):
    """Uses the platform mimetypes database, then the fixed table."""

    def __init__(self, fallback: Optional[MimeResolver] = None):
        self.fallback = fallback or FixedTableMimeResolver()

    def resolve(self, file_path: str) -> str:
        content_type, _ = mimetypes.guess_type(file_path, strict=False)
        if content_type:
            return content_type
        return self.fallback.resolve(file_path)


DEFAULT_MIME_RESOLVER = FixedTableMimeResolver()


@dataclass(frozen=True)
class MultipartBody:
    body: bytes
    boundary: str

    @property
    def content_type(self) -> str:
        return f"{CONTENT_TYPE_MULTIPART}; boundary={self.boundary}"


@dataclass(frozen=True)
class EncodedBody:
    """
    Result of body encoding.

    signed_payload is the JSON text hashed into Content-MD5; it is empty
    for multipart bodies, which are not hashed.
    """

    body: bytes
    content_type: str
    signed_payload: str = ''
    is_multipart: bool = False


def encode_json(params: Optional[Mapping[str, Any]]) -> str:
    """Serialize parameters to compact JSON, or '' when there are none."""
    if not params:
        return ''
    return json.dumps(params, separators=(',', ':'))


def generate_boundary() -> str:
    return '----' + uuid.uuid4().hex


def _read_file(file_path: str) -> bytes:
    try:
        with open(file_path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise EncodingError(f"Cannot read file {file_path}: {e}") from e


def build_multipart_body(
    fields: Mapping[str, Any],
    files: Mapping[str, str],
    boundary: str,
    mime_resolver: Optional[MimeResolver] = None,
) -> MultipartBody:
    """
    Build a multipart/form-data body.

    Args:
        fields: Scalar form fields, emitted in order
        files: Field name to file path, emitted in order after fields
        boundary: Boundary token unique to this body
        mime_resolver: Content-Type lookup for file parts

    Returns:
        MultipartBody

    Raises:
        EncodingError: If a file type is unknown or a file cannot be read
    """
    resolver = mime_resolver or DEFAULT_MIME_RESOLVER
    delimiter = b'--' + boundary.encode('ascii')
    lines = []

    for name, value in fields.items():
        if isinstance(value, bytes):
            data = value
        else:
            data = str(value).encode('utf-8')
        lines += [
            delimiter,
            f'Content-Disposition: form-data; name="{name}"'.encode('utf-8'),
            b'',
            data,
        ]

    for name, file_path in files.items():
        filename = os.path.basename(file_path)
        content_type = resolver.resolve(file_path)
        lines += [
            delimiter,
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"'.encode('utf-8'),
            f'Content-Type: {content_type}'.encode('utf-8'),
            b'',
            _read_file(file_path),
        ]

    lines.append(delimiter + b'--')

    return MultipartBody(body=CRLF.join(lines), boundary=boundary)


def encode_body(
    params: Optional[Mapping[str, Any]],
    file_params: Optional[Mapping[str, str]] = None,
    mime_resolver: Optional[MimeResolver] = None,
    boundary: Optional[str] = None,
) -> EncodedBody:
    """
    Encode request parameters.

    Without files the parameters become a JSON body. With files, a
    multipart body is produced and any parameters are carried as a single
    JSON encoded "data" field.
    """
    json_params = encode_json(params)

    if not file_params:
        return EncodedBody(
            body=json_params.encode('utf-8'),
            content_type=CONTENT_TYPE_JSON,
            signed_payload=json_params,
        )

    fields: Dict[str, Any] = {'data': json_params} if json_params else {}
    multipart = build_multipart_body(
        fields,
        file_params,
        boundary or generate_boundary(),
        mime_resolver,
    )
    return EncodedBody(
        body=multipart.body,
        content_type=multipart.content_type,
        is_multipart=True,
    )
