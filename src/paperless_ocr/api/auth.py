"""Credential handling and request headers for the OCR vendor."""

from __future__ import annotations

import logging
import re

import httpx
from pydantic import BaseModel, ConfigDict, SecretStr, model_validator

from paperless_ocr.config.defaults import DEFAULT_BASE_URL
from paperless_ocr.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ACCEPT_ENCODING = "gzip, deflate, br"
_MISTRAL_HOST_SUFFIX = "mistral.ai"
_REDACTED = "***"

# Bearer tokens and sk-style keys that may leak into vendor error bodies
_TOKEN_PATTERNS = (
    re.compile(r"(Bearer\s+)\S+", re.IGNORECASE),
    re.compile(r"\bsk-[A-Za-z0-9_-]{8,}"),
)


def redact_key(key: str) -> str:
    """Show at most a 4-character prefix of ``key``."""
    if len(key) > 8:
        return f"{key[:4]}{_REDACTED}"
    return _REDACTED


class Credential(BaseModel):
    """API key plus the base URL it is valid for."""

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    base_url: str = DEFAULT_BASE_URL
    require_https: bool = False

    @model_validator(mode="after")
    def _check(self) -> Credential:
        key = self.api_key.get_secret_value()
        if not key:
            raise ConfigurationError("API key must not be empty")
        if any(ch.isspace() for ch in key):
            raise ConfigurationError("API key must not contain whitespace")

        try:
            url = httpx.URL(self.base_url)
        except httpx.InvalidURL as exc:
            raise ConfigurationError(f"Invalid API base URL: {self.base_url}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigurationError(f"Invalid API base URL: {self.base_url}")

        if url.scheme != "https":
            if self.require_https:
                raise ConfigurationError("API base URL must use HTTPS")
            logger.warning("API base URL does not use HTTPS: %s", self.base_url)
        if not self.is_mistral_endpoint:
            logger.warning("API base URL is not a Mistral AI endpoint: %s", url.host)
        return self

    @property
    def is_mistral_endpoint(self) -> bool:
        host = httpx.URL(self.base_url).host
        return host == _MISTRAL_HOST_SUFFIX or host.endswith("." + _MISTRAL_HOST_SUFFIX)

    def secret(self) -> str:
        return self.api_key.get_secret_value()

    def redacted(self) -> str:
        return redact_key(self.secret())


def redact_secrets(text: str, credential: Credential | None = None) -> str:
    """Scrub the raw API key and anything token-shaped from ``text``."""
    if credential is not None:
        key = credential.secret()
        if key:
            text = text.replace(key, credential.redacted())
    for pattern in _TOKEN_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + _REDACTED, text)
        else:
            text = pattern.sub(_REDACTED, text)
    return text


class AuthHandler:
    """Builds per-request headers for a credential."""

    def __init__(self, credential: Credential) -> None:
        self._credential = credential

    @property
    def credential(self) -> Credential:
        return self._credential

    def headers(self) -> dict[str, str]:
        """Headers for JSON requests."""
        return {
            "Authorization": f"Bearer {self._credential.secret()}",
            "Accept-Encoding": _ACCEPT_ENCODING,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def multipart_headers(self) -> dict[str, str]:
        """Headers for multipart uploads; httpx sets Content-Type with the boundary."""
        headers = self.headers()
        del headers["Content-Type"]
        return headers

    def redacted(self) -> str:
        return self._credential.redacted()
