"""Upstream error taxonomy.

Failures talking to NHC servers are mapped onto these exceptions by the
client so that the router can choose an HTTP status without touching
``httpx`` types. Timeouts and connection failures are
``TransientError``s; a 404 is a ``PermanentError``.
"""

from __future__ import annotations

from nhc_proxy.core.exceptions import PermanentError, ProxyError, TransientError


class UpstreamError(ProxyError):
    """Base exception for upstream fetch failures.

    Attributes:
        url: The upstream URL that failed.
        status_code: HTTP status returned upstream, ``None`` when no
            response was received.
    """

    default_stage = "upstream"
    default_code = "UPSTREAM_ERROR"

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
        retryable: bool = False,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message, retryable=retryable)


class UpstreamNotFoundError(UpstreamError, PermanentError):
    """NHC answered 404; normal when a storm has no product of that kind."""

    default_code = "UPSTREAM_NOT_FOUND"

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message, url=url, status_code=404)


class UpstreamTimeoutError(UpstreamError, TransientError):
    """The upstream request timed out."""

    default_code = "UPSTREAM_TIMEOUT"

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message, url=url, retryable=True)


class UpstreamUnavailableError(UpstreamError, TransientError):
    """The upstream host could not be reached (DNS or connection failure)."""

    default_code = "UPSTREAM_UNAVAILABLE"

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message, url=url, retryable=True)
