"""
Unit tests for request body encoding.
"""

import json

import pytest

from freemius_api import EncodingError, FixedTableMimeResolver, SystemMimeResolver, encode_body
from freemius_api.multipart import build_multipart_body, encode_json, generate_boundary


@pytest.fixture
def plugin_zip(tmp_path):
    path = tmp_path / "my-plugin.zip"
    path.write_bytes(b"PK\x03\x04zipdata")
    return str(path)


class TestJSONBody:
    """Test JSON encoding of plain requests."""

    def test_empty_params(self):
        assert encode_json(None) == ''
        assert encode_json({}) == ''

    def test_compact_json(self):
        assert encode_json({"b": 1, "a": True}) == '{"b":1,"a":true}'

    def test_encode_body_without_files(self):
        encoded = encode_body({"add_contributor": True})

        assert encoded.body == b'{"add_contributor":true}'
        assert encoded.content_type == "application/json"
        assert encoded.signed_payload == '{"add_contributor":true}'
        assert encoded.is_multipart is False

    def test_encode_empty_body(self):
        encoded = encode_body({})

        assert encoded.body == b''
        assert encoded.signed_payload == ''


class TestMultipartBody:
    """Test multipart/form-data encoding."""

    def test_unique_boundaries(self):
        assert generate_boundary() != generate_boundary()
        assert generate_boundary().startswith('----')

    def test_file_part(self, plugin_zip):
        encoded = encode_body({}, {"file": plugin_zip}, boundary="----b")

        assert encoded.is_multipart is True
        assert encoded.content_type == "multipart/form-data; boundary=----b"
        assert encoded.signed_payload == ''
        assert encoded.body == (
            b'------b\r\n'
            b'Content-Disposition: form-data; name="file"; filename="my-plugin.zip"\r\n'
            b'Content-Type: application/zip\r\n'
            b'\r\n'
            b'PK\x03\x04zipdata\r\n'
            b'------b--'
        )

    def test_params_wrapped_as_data_field(self, plugin_zip):
        encoded = encode_body({"add_contributor": True}, {"file": plugin_zip}, boundary="----b")

        body = encoded.body
        assert body.count(b'Content-Disposition') == 2
        assert b'Content-Disposition: form-data; name="data"\r\n\r\n{"add_contributor":true}\r\n' in body
        assert b'name="add_contributor"' not in body
        assert body.index(b'name="data"') < body.index(b'name="file"')

    def test_terminates_with_closing_boundary(self, plugin_zip):
        encoded = encode_body({"a": 1}, {"file": plugin_zip})
        boundary = encoded.content_type.split("boundary=")[1]

        assert encoded.body.endswith(f"--{boundary}--".encode())

    def test_disposition_names_match_fields(self, tmp_path):
        icon = tmp_path / "icon.PNG"
        icon.write_bytes(b"png")
        banner = tmp_path / "banner.jpeg"
        banner.write_bytes(b"jpeg")

        multipart = build_multipart_body(
            {"title": "x"},
            {"icon": str(icon), "banner": str(banner)},
            "----b",
        )

        assert b'name="title"\r\n' in multipart.body
        assert b'name="icon"; filename="icon.PNG"\r\nContent-Type: image/png' in multipart.body
        assert b'name="banner"; filename="banner.jpeg"\r\nContent-Type: image/jpeg' in multipart.body

    def test_data_field_is_json(self, plugin_zip):
        params = {"version": "1.0.1", "tags": ["a", "b"]}
        encoded = encode_body(params, {"file": plugin_zip}, boundary="----b")

        data = encoded.body.split(b'name="data"\r\n\r\n')[1].split(b'\r\n')[0]
        assert json.loads(data) == params

    def test_unknown_extension(self, tmp_path):
        exe = tmp_path / "setup.exe"
        exe.write_bytes(b"MZ")

        with pytest.raises(EncodingError):
            encode_body({}, {"file": str(exe)})

    def test_missing_file(self, tmp_path):
        with pytest.raises(EncodingError):
            encode_body({}, {"file": str(tmp_path / "missing.zip")})


class TestMimeResolvers:
    """Test file Content-Type resolution."""

    def test_fixed_table(self):
        resolver = FixedTableMimeResolver()

        assert resolver.resolve("a.zip") == "application/zip"
        assert resolver.resolve("a.JPG") == "image/jpeg"
        assert resolver.resolve("/tmp/dir.v2/a.gif") == "image/gif"

    def test_fixed_table_unknown(self):
        with pytest.raises(EncodingError):
            FixedTableMimeResolver().resolve("a.exe")

        with pytest.raises(EncodingError):
            FixedTableMimeResolver().resolve("README")

    def test_custom_table(self):
        resolver = FixedTableMimeResolver({"txt": "text/plain"})

        assert resolver.resolve("notes.txt") == "text/plain"
        with pytest.raises(EncodingError):
            resolver.resolve("a.zip")

    def test_system_resolver(self):
        assert SystemMimeResolver().resolve("notes.txt") == "text/plain"

    def test_system_resolver_fallback(self):
        resolver = SystemMimeResolver(FixedTableMimeResolver({"fspkg": "application/x-fs"}))

        assert resolver.resolve("a.fspkg") == "application/x-fs"
        with pytest.raises(EncodingError):
            resolver.resolve("a.unknownext")
