"""Azure Functions entry point for the NHC Proxy.

This module registers the HTTP function using the Python v2 programming
model.

All business logic lives in the nhc_proxy package. This file is purely
the wiring layer between the Azure Functions HTTP binding and
``nhc_proxy.routing.handle_request``.
"""

from __future__ import annotations

import logging
import uuid

import azure.functions as func

from nhc_proxy.core.config import ProxyConfig
from nhc_proxy.core.constants import DEFAULT_ENDPOINT
from nhc_proxy.routing import ProxyRequest, handle_request

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

logger = logging.getLogger("nhc_proxy.function_app")


def to_proxy_request(req: func.HttpRequest) -> ProxyRequest:
    """Convert an Azure ``HttpRequest`` to the transport-neutral request."""
    endpoint = req.route_params.get("endpoint") or DEFAULT_ENDPOINT
    correlation_id = req.headers.get("x-correlation-id") or str(uuid.uuid4())
    return ProxyRequest(
        method=req.method or "GET",
        endpoint=endpoint,
        params=dict(req.params),
        correlation_id=correlation_id,
    )


# ---------------------------------------------------------------------------
# HTTP: NHC proxy
# ---------------------------------------------------------------------------


@app.function_name("nhc_proxy")
@app.route(route="nhc/{endpoint?}", methods=["GET", "OPTIONS"])
def nhc_proxy(req: func.HttpRequest) -> func.HttpResponse:
    """Proxy one NHC product as CORS-enabled JSON.

    Route:
        ``/api/nhc/{endpoint}`` with optional ``stormId`` and ``year``
        query parameters. ``endpoint`` defaults to ``active-storms``.

    Returns:
        The JSON envelope built by ``handle_request``; upstream and parse
        failures become 4xx/5xx responses rather than exceptions.

    Raises:
        ConfigValidationError: If app settings are invalid (fail fast).
    """
    request = to_proxy_request(req)
    logger.info(
        "HTTP trigger fired | method=%s | endpoint=%s | correlation_id=%s",
        request.method,
        request.endpoint,
        request.correlation_id,
    )

    response = handle_request(request, config=ProxyConfig.from_env())

    return func.HttpResponse(
        body=response.to_json(),
        status_code=response.status_code,
        headers=response.headers,
        mimetype="application/json",
    )
