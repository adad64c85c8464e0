"""NHC upstream client.

Fetches JSON, KMZ bytes and A-deck text from NHC servers with
``httpx``. Every failure is translated into an ``UpstreamError``
subclass; nothing here retries.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from nhc_proxy.core.constants import ACCEPT_JSON, ACCEPT_KMZ, ACCEPT_TEXT
from nhc_proxy.core.exceptions import ContractError
from nhc_proxy.providers.base import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)

if TYPE_CHECKING:
    from nhc_proxy.core.config import ProxyConfig

logger = logging.getLogger("nhc_proxy.providers.nhc")


class NhcClient:
    """Thin ``httpx`` wrapper bound to a ``ProxyConfig``.

    Args:
        config: Proxy configuration (base URLs, User-Agent, timeouts).
        transport: Optional ``httpx`` transport, used by tests to serve
            canned responses via ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ProxyConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def config(self) -> ProxyConfig:
        return self._config

    def nhc_url(self, path_template: str, **params: object) -> str:
        """Build an absolute URL on the NHC website from a path template."""
        return f"{self._config.nhc_base_url}{path_template.format(**params)}"

    def atcf_url(self, filename: str) -> str:
        return f"{self._config.atcf_base_url}/{filename}"

    # ------------------------------------------------------------------
    # Public fetchers
    # ------------------------------------------------------------------

    def fetch_json(self, url: str) -> Any:
        """GET *url* and decode the body as JSON.

        Raises:
            UpstreamError: On transport failure or non-2xx status.
            ContractError: If the body is not valid JSON.
        """
        response = self._get(url, accept=ACCEPT_JSON, timeout=self._config.json_timeout_s)
        try:
            return response.json()
        except ValueError as exc:
            msg = f"Upstream response from {url} is not valid JSON: {exc}"
            raise ContractError(msg, stage="upstream", code="UPSTREAM_INVALID_JSON") from exc

    def fetch_bytes(self, url: str) -> bytes:
        """GET *url* as raw bytes (KMZ archives)."""
        response = self._get(url, accept=ACCEPT_KMZ, timeout=self._config.kmz_timeout_s)
        return response.content

    def fetch_text(self, url: str) -> str:
        """GET *url* as text (A-deck files)."""
        response = self._get(url, accept=ACCEPT_TEXT, timeout=self._config.json_timeout_s)
        return response.text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get(self, url: str, *, accept: str, timeout: float) -> httpx.Response:
        headers = {"User-Agent": self._config.user_agent, "Accept": accept}
        logger.info("Fetching from NHC | url=%s", url)
        try:
            with httpx.Client(
                timeout=timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.get(url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                msg = f"Data not found upstream: {url}"
                raise UpstreamNotFoundError(msg, url=url) from exc
            msg = f"NHC API error: {status} {exc.response.reason_phrase}"
            raise UpstreamError(msg, url=url, status_code=status, retryable=status >= 500) from exc
        except httpx.TimeoutException as exc:
            msg = f"Request timeout while fetching {url}"
            raise UpstreamTimeoutError(msg, url=url) from exc
        except httpx.TransportError as exc:
            msg = f"Unable to connect to NHC at {url}: {exc}"
            raise UpstreamUnavailableError(msg, url=url) from exc

        logger.debug(
            "NHC response | url=%s | status=%d | bytes=%d",
            url,
            response.status_code,
            len(response.content),
        )
        return response
