"""Proxy configuration loaded from environment variables.

Azure Functions app settings (or ``local.settings.json`` for local dev)
are the source of truth. Every value has a default that talks to the
public NHC servers.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if a timeout is not
    positive, an upstream URL is not http(s), or the CORS origin is
    empty.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from nhc_proxy.core.constants import (
    DEFAULT_ATCF_BASE_URL,
    DEFAULT_NHC_BASE_URL,
    DEFAULT_USER_AGENT,
)
from nhc_proxy.core.exceptions import ProxyError


class ConfigValidationError(ProxyError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ProxyConfig:
    """Immutable proxy configuration.

    Loaded once per invocation and threaded through the router into the
    upstream client.

    Attributes:
        nhc_base_url: Root URL of the NHC website.
        atcf_base_url: Directory URL of the public A-deck files.
        user_agent: ``User-Agent`` header sent upstream (NHC asks for contact info).
        json_timeout_s: Timeout in seconds for JSON, GeoJSON and text fetches.
        kmz_timeout_s: Timeout in seconds for KMZ archive fetches.
        allowed_origin: Value of ``Access-Control-Allow-Origin``.
    """

    nhc_base_url: str = DEFAULT_NHC_BASE_URL
    atcf_base_url: str = DEFAULT_ATCF_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    json_timeout_s: float = 20.0
    kmz_timeout_s: float = 30.0
    allowed_origin: str = "*"

    @classmethod
    def from_env(cls) -> ProxyConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``NHC_JSON_TIMEOUT_S=abc``).
        """
        config = cls(
            nhc_base_url=os.getenv("NHC_BASE_URL", DEFAULT_NHC_BASE_URL).rstrip("/"),
            atcf_base_url=os.getenv("NHC_ATCF_BASE_URL", DEFAULT_ATCF_BASE_URL).rstrip("/"),
            user_agent=os.getenv("NHC_USER_AGENT", DEFAULT_USER_AGENT),
            json_timeout_s=float(os.getenv("NHC_JSON_TIMEOUT_S", "20")),
            kmz_timeout_s=float(os.getenv("NHC_KMZ_TIMEOUT_S", "30")),
            allowed_origin=os.getenv("CORS_ALLOWED_ORIGIN", "*"),
        )
        _validate(config)
        return config


def _validate(config: ProxyConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    for key, url in (
        ("NHC_BASE_URL", config.nhc_base_url),
        ("NHC_ATCF_BASE_URL", config.atcf_base_url),
    ):
        if not url.startswith(("http://", "https://")):
            raise ConfigValidationError(key, url, "must be an http(s) URL")

    if config.json_timeout_s <= 0:
        raise ConfigValidationError(
            "NHC_JSON_TIMEOUT_S",
            config.json_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.kmz_timeout_s <= 0:
        raise ConfigValidationError(
            "NHC_KMZ_TIMEOUT_S",
            config.kmz_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.user_agent.strip():
        raise ConfigValidationError("NHC_USER_AGENT", config.user_agent, "must not be empty")

    if not config.allowed_origin:
        raise ConfigValidationError(
            "CORS_ALLOWED_ORIGIN",
            config.allowed_origin,
            "must not be empty",
        )
