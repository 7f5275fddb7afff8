"""Tests for unverified token claim decoding."""
import pytest

from session_guardian_sdk.token_claims import (
    MalformedTokenError,
    decode_claims,
    extract_anti_forgery,
    extract_expiry,
)


class TestDecodeClaims:
    def test_decodes_payload_segment(self, make_token):
        token = make_token(expires_in=60, now=1000, sub="user-1", role="admin")

        claims = decode_claims(token)

        assert claims["exp"] == 1060
        assert claims["sub"] == "user-1"
        assert claims["role"] == "admin"

    def test_payload_without_padding(self, make_token):
        """Base64url segments arrive unpadded."""
        token = make_token(expires_in=1, now=0, x="ab")
        assert "=" not in token
        assert decode_claims(token)["x"] == "ab"

    @pytest.mark.parametrize(
        "token",
        ["", "no-dots-here", "header.", "h.a.s", "a.bm90LWpzb24.c"],
    )
    def test_malformed_tokens_raise(self, token):
        with pytest.raises(MalformedTokenError):
            decode_claims(token)

    def test_non_object_payload_raises(self):
        # "WzEsMl0" is base64url for "[1,2]"
        with pytest.raises(MalformedTokenError, match="JSON object"):
            decode_claims("h.WzEsMl0.s")

    def test_malformed_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_claims("garbage")


class TestExtractExpiry:
    def test_integer_exp(self):
        assert extract_expiry({"exp": 1700000000}) == 1700000000.0

    def test_missing_exp_raises(self):
        with pytest.raises(MalformedTokenError):
            extract_expiry({"sub": "x"})

    @pytest.mark.parametrize("value", ["1700000000", True, None])
    def test_non_numeric_exp_raises(self, value):
        with pytest.raises(MalformedTokenError):
            extract_expiry({"exp": value})


class TestExtractAntiForgery:
    def test_reads_first_known_claim(self):
        assert extract_anti_forgery({"csrf": "abc"}) == "abc"
        assert extract_anti_forgery({"csrfToken": "def"}) == "def"

    def test_absent_or_empty_claim(self):
        assert extract_anti_forgery({}) is None
        assert extract_anti_forgery({"csrf": ""}) is None
