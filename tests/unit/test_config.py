"""Tests for proxy configuration.

Covers:
- Default values point at the public NHC servers
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from nhc_proxy.core.config import ConfigValidationError, ProxyConfig
from nhc_proxy.core.constants import (
    DEFAULT_ATCF_BASE_URL,
    DEFAULT_NHC_BASE_URL,
    DEFAULT_USER_AGENT,
)


class TestProxyConfigDefaults:
    """Verify default configuration values."""

    def test_default_urls(self) -> None:
        cfg = ProxyConfig()
        assert cfg.nhc_base_url == "https://www.nhc.noaa.gov"
        assert cfg.atcf_base_url == "https://ftp.nhc.noaa.gov/atcf/aid_public"

    def test_default_timeouts(self) -> None:
        cfg = ProxyConfig()
        assert cfg.json_timeout_s == 20.0
        assert cfg.kmz_timeout_s == 30.0

    def test_default_origin(self) -> None:
        assert ProxyConfig().allowed_origin == "*"


class TestProxyConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "NHC_BASE_URL": "http://localhost:8080",
            "NHC_ATCF_BASE_URL": "http://localhost:8081/atcf",
            "NHC_USER_AGENT": "storm-map (ops@example.org)",
            "NHC_JSON_TIMEOUT_S": "5",
            "NHC_KMZ_TIMEOUT_S": "12.5",
            "CORS_ALLOWED_ORIGIN": "https://maps.example.org",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = ProxyConfig.from_env()

        assert cfg.nhc_base_url == "http://localhost:8080"
        assert cfg.atcf_base_url == "http://localhost:8081/atcf"
        assert cfg.user_agent == "storm-map (ops@example.org)"
        assert cfg.json_timeout_s == 5.0
        assert cfg.kmz_timeout_s == 12.5
        assert cfg.allowed_origin == "https://maps.example.org"

    def test_defaults_when_env_missing(self) -> None:
        """Missing environment variables fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = ProxyConfig.from_env()

        assert cfg.nhc_base_url == DEFAULT_NHC_BASE_URL
        assert cfg.atcf_base_url == DEFAULT_ATCF_BASE_URL
        assert cfg.user_agent == DEFAULT_USER_AGENT

    def test_trailing_slash_stripped(self) -> None:
        env = {"NHC_BASE_URL": "https://mirror.example.org/", "NHC_ATCF_BASE_URL": "https://a.example.org/atcf/"}
        with patch.dict(os.environ, env, clear=True):
            cfg = ProxyConfig.from_env()
        assert cfg.nhc_base_url == "https://mirror.example.org"
        assert cfg.atcf_base_url == "https://a.example.org/atcf"

    def test_frozen_immutability(self) -> None:
        """ProxyConfig is frozen (immutable)."""
        cfg = ProxyConfig()
        with pytest.raises(AttributeError):
            cfg.json_timeout_s = 1.0  # type: ignore[misc]


class TestProxyConfigValidation:
    """Fail-fast validation in from_env."""

    def test_non_http_base_url_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"NHC_BASE_URL": "ftp://nhc.noaa.gov"}, clear=True),
            pytest.raises(ConfigValidationError, match="NHC_BASE_URL"),
        ):
            ProxyConfig.from_env()

    def test_non_http_atcf_url_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"NHC_ATCF_BASE_URL": "aid_public"}, clear=True),
            pytest.raises(ConfigValidationError, match="http\\(s\\) URL"),
        ):
            ProxyConfig.from_env()

    def test_json_timeout_zero_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"NHC_JSON_TIMEOUT_S": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="NHC_JSON_TIMEOUT_S"),
        ):
            ProxyConfig.from_env()

    def test_kmz_timeout_negative_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"NHC_KMZ_TIMEOUT_S": "-1"}, clear=True),
            pytest.raises(ConfigValidationError, match="must be > 0"),
        ):
            ProxyConfig.from_env()

    def test_blank_user_agent_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"NHC_USER_AGENT": "  "}, clear=True),
            pytest.raises(ConfigValidationError, match="NHC_USER_AGENT"),
        ):
            ProxyConfig.from_env()

    def test_empty_origin_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"CORS_ALLOWED_ORIGIN": ""}, clear=True),
            pytest.raises(ConfigValidationError, match="CORS_ALLOWED_ORIGIN"),
        ):
            ProxyConfig.from_env()

    def test_non_numeric_env_raises_value_error(self) -> None:
        """Non-numeric string for a float field → ValueError."""
        with (
            patch.dict(os.environ, {"NHC_KMZ_TIMEOUT_S": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            ProxyConfig.from_env()

    def test_error_contains_key_and_value(self) -> None:
        """ConfigValidationError includes key and value attributes."""
        with (
            patch.dict(os.environ, {"NHC_JSON_TIMEOUT_S": "-3"}, clear=True),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            ProxyConfig.from_env()
        assert exc_info.value.key == "NHC_JSON_TIMEOUT_S"
        assert exc_info.value.value == -3.0
        assert exc_info.value.stage == "config"
