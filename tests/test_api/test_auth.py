"""Tests for credentials, redaction, and auth headers."""

import logging

import pytest

from paperless_ocr.api.auth import AuthHandler, Credential, redact_key, redact_secrets
from paperless_ocr.errors.exceptions import ConfigurationError

KEY = "sk-live-abcdefghijklmnop"


class TestRedactKey:
    def test_long_key_shows_four_chars(self):
        assert redact_key(KEY) == "sk-l***"

    def test_short_key_fully_masked(self):
        assert redact_key("12345678") == "***"
        assert redact_key("") == "***"


class TestCredential:
    def test_valid(self):
        cred = Credential(api_key=KEY)
        assert cred.secret() == KEY
        assert cred.redacted() == "sk-l***"
        assert cred.is_mistral_endpoint

    def test_secret_not_in_repr(self):
        assert KEY not in repr(Credential(api_key=KEY))

    @pytest.mark.parametrize("key", ["", "has space", "tab\tkey"])
    def test_invalid_keys(self, key):
        with pytest.raises(ConfigurationError):
            Credential(api_key=key)

    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com", "https://"])
    def test_invalid_base_url(self, url):
        with pytest.raises(ConfigurationError):
            Credential(api_key=KEY, base_url=url)

    def test_http_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="paperless_ocr.api.auth"):
            Credential(api_key=KEY, base_url="http://localhost:8080")
        assert "does not use HTTPS" in caplog.text

    def test_http_rejected_when_https_required(self):
        with pytest.raises(ConfigurationError):
            Credential(api_key=KEY, base_url="http://localhost:8080", require_https=True)

    def test_non_mistral_host(self):
        cred = Credential(api_key=KEY, base_url="https://ocr.example.com")
        assert not cred.is_mistral_endpoint


class TestRedactSecrets:
    def test_scrubs_raw_key(self):
        cred = Credential(api_key=KEY)
        text = redact_secrets(f"invalid key {KEY} supplied", cred)
        assert KEY not in text
        assert "sk-l***" in text

    def test_scrubs_bearer_tokens(self):
        assert redact_secrets("Authorization: Bearer abc.def.ghi") == "Authorization: Bearer ***"

    def test_scrubs_sk_style_tokens(self):
        assert "sk-otherkey123456" not in redact_secrets("leaked sk-otherkey123456 here")

    def test_leaves_plain_text(self):
        assert redact_secrets("HTTP 400: bad request") == "HTTP 400: bad request"


class TestAuthHandler:
    def test_json_headers(self):
        headers = AuthHandler(Credential(api_key=KEY)).headers()
        assert headers["Authorization"] == f"Bearer {KEY}"
        assert headers["Accept-Encoding"] == "gzip, deflate, br"
        assert headers["Content-Type"] == "application/json"
        assert headers["Accept"] == "application/json"

    def test_multipart_headers_omit_content_type(self):
        headers = AuthHandler(Credential(api_key=KEY)).multipart_headers()
        assert "Content-Type" not in headers
        assert headers["Authorization"] == f"Bearer {KEY}"

    def test_redacted(self):
        assert AuthHandler(Credential(api_key=KEY)).redacted() == "sk-l***"
