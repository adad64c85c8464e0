"""JSON response envelope with CORS headers.

Every response the proxy returns is a ``ProxyResponse``. Success bodies
look like ``{"success": true, "data": ..., "endpoint": ..., "timestamp": ...}``
and failure bodies like ``{"success": false, "error": ..., "endpoint": ...,
"timestamp": ...}``. The Azure Functions entry point only converts this
into an ``HttpResponse``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from nhc_proxy.core.constants import cors_headers


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class ProxyResponse:
    """Transport-neutral HTTP response."""

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=cors_headers)

    def to_json(self) -> str:
        return json.dumps(self.body)


def success(
    data: object,
    *,
    endpoint: str,
    allowed_origin: str = "*",
    status_code: int = 200,
    **extra: object,
) -> ProxyResponse:
    """Build a ``success: true`` envelope around *data*.

    Extra keyword arguments (``source``, ``message``) are added to the body.
    """
    body: dict[str, Any] = {"success": True, "data": data, **extra}
    body["endpoint"] = endpoint
    body["timestamp"] = utc_timestamp()
    return ProxyResponse(status_code=status_code, body=body, headers=cors_headers(allowed_origin))


def failure(
    status_code: int,
    error: str,
    *,
    endpoint: str,
    allowed_origin: str = "*",
    **extra: object,
) -> ProxyResponse:
    """Build a ``success: false`` envelope (``details``, ``stormId``, ... as extras)."""
    body: dict[str, Any] = {"success": False, "error": error, **extra}
    body["endpoint"] = endpoint
    body["timestamp"] = utc_timestamp()
    return ProxyResponse(status_code=status_code, body=body, headers=cors_headers(allowed_origin))


def notice(
    message: str,
    *,
    endpoint: str,
    allowed_origin: str = "*",
    **extra: object,
) -> ProxyResponse:
    """Build a 200 ``success: false`` envelope for a product that does not apply.

    The request is valid, but NHC never issues the product for it.
    """
    body: dict[str, Any] = {"success": False, "message": message, **extra}
    body["endpoint"] = endpoint
    body["timestamp"] = utc_timestamp()
    return ProxyResponse(status_code=200, body=body, headers=cors_headers(allowed_origin))


def preflight(allowed_origin: str = "*") -> ProxyResponse:
    """Response to a CORS ``OPTIONS`` preflight request."""
    return ProxyResponse(
        status_code=200,
        body={"message": "CORS preflight response"},
        headers=cors_headers(allowed_origin),
    )
