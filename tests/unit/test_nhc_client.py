"""Tests for the NHC upstream client.

Responses are served by ``httpx.MockTransport``; no network access.
"""

from __future__ import annotations

import httpx
import pytest

from nhc_proxy.core.config import ProxyConfig
from nhc_proxy.core.constants import ACCEPT_KMZ, CONE_KMZ_PATH, FORECAST_TRACK_GEOJSON_PATH
from nhc_proxy.core.exceptions import ContractError
from nhc_proxy.providers.base import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from nhc_proxy.providers.nhc import NhcClient

URL = "https://www.nhc.noaa.gov/CurrentStorms.json"


def _client(handler, **config: object) -> NhcClient:
    return NhcClient(ProxyConfig(**config), transport=httpx.MockTransport(handler))  # type: ignore[arg-type]


class TestUrlBuilding:
    def test_nhc_url(self) -> None:
        client = NhcClient(ProxyConfig())
        assert client.nhc_url(FORECAST_TRACK_GEOJSON_PATH, year="2025", storm_id="AL052025") == (
            "https://www.nhc.noaa.gov/gis/forecast/archive/2025/AL052025_5day_latest.geojson"
        )

    def test_nhc_url_custom_base(self) -> None:
        client = NhcClient(ProxyConfig(nhc_base_url="http://localhost:9000"))
        assert client.nhc_url(CONE_KMZ_PATH, storm_id="AL052025") == (
            "http://localhost:9000/storm_graphics/api/AL052025_CONE_latest.kmz"
        )

    def test_atcf_url(self) -> None:
        client = NhcClient(ProxyConfig())
        assert client.atcf_url("aal052025.dat") == (
            "https://ftp.nhc.noaa.gov/atcf/aid_public/aal052025.dat"
        )


class TestFetchers:
    def test_fetch_json(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"activeStorms": []}))
        assert client.fetch_json(URL) == {"activeStorms": []}

    def test_sends_user_agent_and_accept(self) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, content=b"PK")

        client = _client(handler, user_agent="storm-map (ops@example.org)")
        assert client.fetch_bytes("https://www.nhc.noaa.gov/x.kmz") == b"PK"
        assert seen["user-agent"] == "storm-map (ops@example.org)"
        assert seen["accept"] == ACCEPT_KMZ

    def test_fetch_text(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="AL, 05, ..."))
        assert client.fetch_text("https://ftp.nhc.noaa.gov/a.dat") == "AL, 05, ..."

    def test_invalid_json_is_contract_error(self) -> None:
        client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(ContractError) as exc_info:
            client.fetch_json(URL)
        assert exc_info.value.code == "UPSTREAM_INVALID_JSON"
        assert exc_info.value.stage == "upstream"


class TestErrorMapping:
    def test_404(self) -> None:
        client = _client(lambda request: httpx.Response(404))
        with pytest.raises(UpstreamNotFoundError) as exc_info:
            client.fetch_json(URL)
        assert exc_info.value.url == URL
        assert exc_info.value.status_code == 404

    def test_server_error_is_retryable(self) -> None:
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(UpstreamError, match="NHC API error: 503") as exc_info:
            client.fetch_json(URL)
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True

    def test_client_error_not_retryable(self) -> None:
        client = _client(lambda request: httpx.Response(403))
        with pytest.raises(UpstreamError) as exc_info:
            client.fetch_bytes(URL)
        assert exc_info.value.retryable is False
        assert not isinstance(exc_info.value, UpstreamNotFoundError)

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError):
            _client(handler).fetch_json(URL)

    def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamUnavailableError, match="Unable to connect"):
            _client(handler).fetch_text(URL)
