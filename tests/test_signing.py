"""
Unit tests for request signing.
"""

import base64
import hashlib
import hmac

import pytest

from freemius_api import SigningPreconditionError, set_clock_diff, sign_request
from freemius_api.signing import (
    base64url_encode,
    build_string_to_sign,
    format_date,
    get_clock_diff,
)

NOW = 1423945486  # Sat, 14 Feb 2015 20:24:46 GMT
PATH = "/v1/developers/1234/plugins/115/tags.json"


def expected_signature(string_to_sign, secret):
    digest = hmac.new(secret.encode(), string_to_sign.encode(), hashlib.sha256).hexdigest()
    return base64.urlsafe_b64encode(digest.encode()).decode().rstrip('=')


def sign(method="GET", body="", content_type="application/json",
         public="pk_public", secret="sk_secret", **kwargs):
    kwargs.setdefault('now', NOW)
    return sign_request(PATH, method, body, content_type, public, secret, 1234, **kwargs)


class TestSignRequest:
    """Test authorization header generation."""

    def test_format_date(self):
        assert format_date(NOW) == "Sat, 14 Feb 2015 20:24:46 GMT"

    def test_string_to_sign_has_five_lines(self):
        string_to_sign = build_string_to_sign("GET", "", "", "date", PATH)

        assert string_to_sign == f"GET\n\n\ndate\n{PATH}"
        assert len(string_to_sign.split("\n")) == 5

    def test_get_signature(self):
        signed = sign()

        string_to_sign = f"GET\n\napplication/json\nSat, 14 Feb 2015 20:24:46 GMT\n{PATH}"
        assert signed.date == "Sat, 14 Feb 2015 20:24:46 GMT"
        assert signed.authorization == f"FS 1234:pk_public:{expected_signature(string_to_sign, 'sk_secret')}"
        assert signed.content_md5 is None

    def test_method_is_uppercased(self):
        assert sign(method="get") == sign(method="GET")

    def test_post_body_md5(self):
        body = '{"add_contributor":true}'
        signed = sign(method="POST", body=body)

        md5 = hashlib.md5(body.encode()).hexdigest()
        string_to_sign = f"POST\n{md5}\napplication/json\nSat, 14 Feb 2015 20:24:46 GMT\n{PATH}"
        assert signed.content_md5 == md5
        assert signed.authorization.endswith(expected_signature(string_to_sign, 'sk_secret'))

    def test_put_body_md5(self):
        assert sign(method="PUT", body='{"a":1}').content_md5 is not None

    def test_get_body_not_hashed(self):
        assert sign(method="GET", body='{"a":1}').content_md5 is None
        assert sign(method="GET", body='{"a":1}') == sign(method="GET")

    def test_empty_post_body_not_hashed(self):
        assert sign(method="POST", body="").content_md5 is None

    def test_fs_scheme_with_secret(self):
        assert sign().authorization.startswith("FS 1234:pk_public:")

    def test_fsp_scheme_without_secret(self):
        signed = sign(public="pk_public", secret="pk_public")

        assert signed.authorization.startswith("FSP 1234:pk_public:")

    def test_signature_has_no_padding(self):
        signature = sign().authorization.rsplit(":", 1)[1]

        assert "=" not in signature
        assert "+" not in signature
        assert "/" not in signature

    def test_base64url_encode(self):
        assert base64url_encode(b"\xfb\xff") == "-_8"

    def test_deterministic(self):
        assert sign() == sign()

    def test_different_time_changes_signature(self):
        first = sign(now=NOW)
        second = sign(now=NOW + 1)

        assert first.date != second.date
        assert first.authorization != second.authorization

    def test_clock_diff_argument(self):
        signed = sign(clock_diff=60)

        assert signed.date == format_date(NOW - 60)

    def test_process_clock_diff(self):
        set_clock_diff(-30)

        assert get_clock_diff() == -30
        assert sign().date == format_date(NOW + 30)
        assert sign() == sign(clock_diff=-30)

    def test_headers_order(self):
        signed = sign(method="POST", body='{"a":1}')

        names = [name for name, _ in signed.headers()]
        assert names == ["Date", "Authorization", "Content-MD5"]

    def test_headers_without_md5(self):
        names = [name for name, _ in sign().headers()]

        assert names == ["Date", "Authorization"]

    def test_query_string_rejected(self):
        with pytest.raises(SigningPreconditionError):
            sign_request(PATH + "?a=1", "GET", "", "", "pk", "sk", 1)

    def test_empty_path_rejected(self):
        with pytest.raises(SigningPreconditionError):
            sign_request("", "GET", "", "", "pk", "sk", 1)

    def test_empty_keys_rejected(self):
        with pytest.raises(SigningPreconditionError):
            sign_request(PATH, "GET", "", "", "", "sk", 1)

        with pytest.raises(SigningPreconditionError):
            sign_request(PATH, "GET", "", "", "pk", None, 1)
