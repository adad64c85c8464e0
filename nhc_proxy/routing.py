"""Request routing: endpoint name → upstream fetch → translation → envelope.

This module is the glue between the HTTP entry point and the
format-translation core. Each endpoint handler decides which NHC
resources to fetch, in which fallback order, and which parser turns
the payload into JSON. ``handle_request`` maps every ``ProxyError`` to
an HTTP status so handlers can simply raise.

Endpoints (``/api/nhc/{endpoint}?stormId=AL052025&year=2025``):

- ``active-storms``       CurrentStorms.json pass-through
- ``forecast-track``      5-day GeoJSON, else forecast-track KMZ from CurrentStorms.json
- ``historical-track``    best-track GeoJSON, else an empty collection
- ``forecast-cone``       cone GeoJSON, else cone KMZ, else storm metadata
- ``forecast-track-kmz``  storm-graphics track KMZ
- ``track-kmz``           best-track KMZ
- ``gefs-adeck``          A-deck GEFS ensemble tracks
- ``storm-surge``         peak storm surge KMZ (Atlantic storms only)
- ``wind-speed-probability[-50kt|-64kt]``  latest 34/50/64 kt probability KMZ
- ``wind-arrival-most-likely`` / ``wind-arrival-earliest``  34 kt arrival time KMZ
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from nhc_proxy.core import constants as c
from nhc_proxy.core.config import ProxyConfig
from nhc_proxy.core.exceptions import ContractError, ProxyError, ValidationError
from nhc_proxy.core.responses import ProxyResponse, failure, notice, preflight, success
from nhc_proxy.parsers.adeck import adeck_filename, parse_ensemble_tracks
from nhc_proxy.parsers.kml import (
    KmlParseError,
    kmz_to_cone_geojson,
    kmz_to_surge_geojson,
    kmz_to_track_geojson,
    kmz_to_wind_arrival_geojson,
    kmz_to_wind_probability_geojson,
)
from nhc_proxy.parsers.kmz import KmzError
from nhc_proxy.providers.base import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from nhc_proxy.providers.fallback import FallbackPipeline, Source, SourcesExhaustedError
from nhc_proxy.providers.nhc import NhcClient

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("nhc_proxy.routing")


class MissingParameterError(ValidationError):
    """Raised when a required query parameter is absent."""

    default_stage = "routing"
    default_code = "MISSING_PARAMETER"


@dataclass(frozen=True, slots=True)
class ProxyRequest:
    """Transport-neutral view of an incoming request."""

    method: str = "GET"
    endpoint: str = c.DEFAULT_ENDPOINT
    params: dict[str, str] = field(default_factory=dict)
    correlation_id: str = ""


@dataclass(frozen=True, slots=True)
class _Context:
    request: ProxyRequest
    client: NhcClient

    @property
    def endpoint(self) -> str:
        return self.request.endpoint

    @property
    def origin(self) -> str:
        return self.client.config.allowed_origin

    @property
    def year(self) -> str:
        return self.request.params.get("year") or str(datetime.now(UTC).year)

    def storm_id(self) -> str:
        storm_id = self.request.params.get("stormId", "").strip()
        if not storm_id:
            msg = f"stormId parameter is required for {self.endpoint} endpoint"
            raise MissingParameterError(msg)
        return storm_id

    def ok(self, data: object, **extra: object) -> ProxyResponse:
        return success(data, endpoint=self.endpoint, allowed_origin=self.origin, **extra)

    def fail(self, status_code: int, error: str, **extra: object) -> ProxyResponse:
        return failure(
            status_code, error, endpoint=self.endpoint, allowed_origin=self.origin, **extra
        )

    def notice(self, message: str, **extra: object) -> ProxyResponse:
        return notice(message, endpoint=self.endpoint, allowed_origin=self.origin, **extra)


# ---------------------------------------------------------------------------
# Shared upstream helpers
# ---------------------------------------------------------------------------


def _find_active_storm(client: NhcClient, storm_id: str) -> dict[str, Any] | None:
    """Look a storm up in CurrentStorms.json (case-insensitive id match)."""
    payload = client.fetch_json(client.nhc_url(c.ACTIVE_STORMS_PATH))
    if not isinstance(payload, dict):
        msg = "CurrentStorms.json is not a JSON object"
        raise ContractError(msg, stage="upstream", code="UPSTREAM_SHAPE_CHANGED")
    for storm in payload.get("activeStorms") or []:
        if isinstance(storm, dict) and str(storm.get("id", "")).lower() == storm_id.lower():
            return storm
    return None


# ---------------------------------------------------------------------------
# Endpoint handlers
# ---------------------------------------------------------------------------


def _active_storms(ctx: _Context) -> ProxyResponse:
    return ctx.ok(ctx.client.fetch_json(ctx.client.nhc_url(c.ACTIVE_STORMS_PATH)))


def _forecast_track(ctx: _Context) -> ProxyResponse:
    storm_id = ctx.storm_id()
    client = ctx.client
    geojson_url = client.nhc_url(
        c.FORECAST_TRACK_GEOJSON_PATH, year=ctx.year, storm_id=storm_id.upper()
    )

    def from_kmz() -> dict[str, object]:
        storm = _find_active_storm(client, storm_id)
        kmz_url = ((storm or {}).get("forecastTrack") or {}).get("kmzFile")
        if not kmz_url:
            msg = f"Forecast track KMZ data not available for {storm_id}"
            raise UpstreamNotFoundError(msg)
        return kmz_to_track_geojson(client.fetch_bytes(kmz_url)).to_dict()

    pipeline = FallbackPipeline(
        c.FORECAST_TRACK,
        Source("geojson", lambda: client.fetch_json(geojson_url)),
        Source("kmz", from_kmz),
    )
    try:
        result = pipeline.run()
    except SourcesExhaustedError:
        return ctx.fail(404, "Forecast track data not available", stormId=storm_id)
    return ctx.ok(result.value, source=result.source)


def _historical_track(ctx: _Context) -> ProxyResponse:
    storm_id = ctx.storm_id()
    url = ctx.client.nhc_url(c.BEST_TRACK_GEOJSON_PATH, year=ctx.year, storm_id=storm_id.upper())
    try:
        data = ctx.client.fetch_json(url)
    except ProxyError as exc:
        # "No data" is a valid state for a young storm.
        logger.info("Historical track unavailable | storm=%s | code=%s", storm_id, exc.code)
        return ctx.ok(
            {"features": []},
            message="No historical track data available for this storm",
        )
    return ctx.ok(data)


def _forecast_cone(ctx: _Context) -> ProxyResponse:
    storm_id = ctx.storm_id()
    client = ctx.client
    geojson_url = client.nhc_url(c.CONE_GEOJSON_PATH, year=ctx.year, storm_id=storm_id.upper())
    kmz_url = client.nhc_url(c.CONE_KMZ_PATH, storm_id=storm_id.upper())

    def from_metadata() -> dict[str, object]:
        storm = _find_active_storm(client, storm_id)
        if storm is None:
            msg = "Storm not found in active storms list"
            raise UpstreamNotFoundError(msg)
        return {
            "stormId": storm.get("id"),
            "name": storm.get("name"),
            "hasKmzCone": False,
            "error": "Cone data could not be processed",
            "trackCone": storm.get("trackCone"),
            "forecastTrack": storm.get("forecastTrack"),
        }

    pipeline = FallbackPipeline(
        c.FORECAST_CONE,
        Source("geojson", lambda: client.fetch_json(geojson_url)),
        Source("kmz", lambda: kmz_to_cone_geojson(client.fetch_bytes(kmz_url)).to_dict()),
        Source("metadata", from_metadata),
    )
    try:
        result = pipeline.run()
    except SourcesExhaustedError as exc:
        if isinstance(exc.last_error, UpstreamNotFoundError):
            return ctx.fail(404, "Storm not found in active storms list", stormId=storm_id)
        return ctx.fail(500, "Failed to fetch cone data and storm metadata", stormId=storm_id)
    return ctx.ok(result.value, source=result.source)


def _forecast_track_kmz(ctx: _Context) -> ProxyResponse:
    storm_id = ctx.storm_id()
    url = ctx.client.nhc_url(c.FORECAST_TRACK_KMZ_PATH, storm_id=storm_id.upper())
    return ctx.ok(kmz_to_track_geojson(ctx.client.fetch_bytes(url)).to_dict(), source="kmz")


def _track_kmz(ctx: _Context) -> ProxyResponse:
    storm_id = ctx.storm_id()
    url = ctx.client.nhc_url(c.BEST_TRACK_KMZ_PATH, storm_id=storm_id.lower())
    return ctx.ok(kmz_to_track_geojson(ctx.client.fetch_bytes(url)).to_dict(), source="kmz")


def _gefs_adeck(ctx: _Context) -> ProxyResponse:
    filename = adeck_filename(ctx.storm_id())
    try:
        raw = ctx.client.fetch_text(ctx.client.atcf_url(filename))
    except UpstreamNotFoundError as exc:
        return ctx.fail(404, "A-deck file not found on NHC server", details=exc.message)
    except UpstreamError as exc:
        return ctx.fail(502, "Failed to retrieve A-deck from NHC", details=exc.message)

    if not raw.strip():
        return ctx.fail(404, "A-deck file is empty or not available", filename=filename)

    parsed = parse_ensemble_tracks(raw)
    wire = parsed.to_dict()
    if parsed.is_empty:
        logger.warning(
            "No GEFS tracks in A-deck | filename=%s | cycle=%s",
            filename,
            parsed.latest_cycle,
        )
    else:
        logger.info(
            "GEFS A-deck parsed | filename=%s | models=%d | cycle=%s",
            filename,
            len(parsed.models_present),
            parsed.latest_cycle,
        )
    return ctx.ok(
        {
            "filename": filename,
            "modelsPresent": wire["modelsPresent"],
            "tracks": wire["tracks"],
            "cycleTime": parsed.latest_cycle,
        }
    )


def _storm_surge(ctx: _Context) -> ProxyResponse:
    storm_id = ctx.storm_id()
    if not storm_id.upper().startswith(c.STORM_SURGE_BASIN):
        return ctx.notice(
            "Storm surge data is typically only available for Atlantic storms (AL prefix)",
            stormId=storm_id,
        )
    url = ctx.client.nhc_url(c.STORM_SURGE_KMZ_PATH, storm_id=storm_id.upper())
    return ctx.ok(kmz_to_surge_geojson(ctx.client.fetch_bytes(url)).to_dict(), source="kmz")


def _wind_speed_probability(knots: int) -> Callable[[_Context], ProxyResponse]:
    """Handler for the basin-wide ``knots`` kt probability product (no storm id)."""

    def handler(ctx: _Context) -> ProxyResponse:
        url = ctx.client.nhc_url(c.WIND_SPEED_PROBABILITY_KMZ_PATH, knots=knots)
        collection = kmz_to_wind_probability_geojson(ctx.client.fetch_bytes(url), f"{knots}kt")
        return ctx.ok(collection.to_dict(), source="kmz")

    return handler


def _wind_arrival(path_template: str) -> Callable[[_Context], ProxyResponse]:
    def handler(ctx: _Context) -> ProxyResponse:
        storm_id = ctx.storm_id()
        url = ctx.client.nhc_url(path_template, storm_id=storm_id.upper())
        return ctx.ok(
            kmz_to_wind_arrival_geojson(ctx.client.fetch_bytes(url)).to_dict(), source="kmz"
        )

    return handler


_HANDLERS: dict[str, Callable[[_Context], ProxyResponse]] = {
    c.ACTIVE_STORMS: _active_storms,
    c.FORECAST_TRACK: _forecast_track,
    c.HISTORICAL_TRACK: _historical_track,
    c.FORECAST_CONE: _forecast_cone,
    c.FORECAST_TRACK_KMZ: _forecast_track_kmz,
    c.TRACK_KMZ: _track_kmz,
    c.GEFS_ADECK: _gefs_adeck,
    c.STORM_SURGE: _storm_surge,
    c.WIND_SPEED_PROBABILITY: _wind_speed_probability(34),
    c.WIND_SPEED_PROBABILITY_50KT: _wind_speed_probability(50),
    c.WIND_SPEED_PROBABILITY_64KT: _wind_speed_probability(64),
    c.WIND_ARRIVAL_MOST_LIKELY: _wind_arrival(c.WIND_ARRIVAL_MOST_LIKELY_KMZ_PATH),
    c.WIND_ARRIVAL_EARLIEST: _wind_arrival(c.WIND_ARRIVAL_EARLIEST_KMZ_PATH),
}


def supported_endpoints() -> list[str]:
    return list(_HANDLERS)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def error_response(exc: ProxyError, ctx: _Context) -> ProxyResponse:
    """Map a ``ProxyError`` raised by a handler to an HTTP failure envelope."""
    if isinstance(exc, ValidationError):
        return ctx.fail(400, exc.message)
    if isinstance(exc, UpstreamNotFoundError):
        return ctx.fail(
            404,
            "Data not found (this is normal if no data is available for this storm/time period)",
        )
    if isinstance(exc, UpstreamTimeoutError):
        return ctx.fail(408, "Request timeout while fetching data from NHC")
    if isinstance(exc, UpstreamUnavailableError):
        return ctx.fail(503, "Unable to connect to NHC API")
    if isinstance(exc, UpstreamError):
        return ctx.fail(exc.status_code or 502, exc.message)
    if isinstance(exc, KmzError | KmlParseError):
        return ctx.fail(500, f"Failed to parse KMZ {ctx.endpoint} data", details=exc.message)
    if isinstance(exc, ContractError):
        return ctx.fail(502, "Unexpected response from NHC", details=exc.message)
    return ctx.fail(500, "Internal server error", details=exc.message)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def handle_request(
    request: ProxyRequest,
    *,
    config: ProxyConfig | None = None,
    client: NhcClient | None = None,
) -> ProxyResponse:
    """Serve one proxy request.

    Args:
        request: The incoming request.
        config: Proxy configuration; loaded from the environment if omitted.
        client: Upstream client; built from *config* if omitted.

    Returns:
        A ``ProxyResponse``; never raises for upstream or parse failures.
    """
    if client is None:
        client = NhcClient(config or ProxyConfig.from_env())
    origin = client.config.allowed_origin

    method = request.method.upper()
    if method == "OPTIONS":
        return preflight(origin)
    if method != "GET":
        return ProxyResponse(
            status_code=405,
            body={"error": "Method not allowed. Only GET requests are supported."},
            headers=c.cors_headers(origin),
        )

    ctx = _Context(request=request, client=client)
    handler = _HANDLERS.get(request.endpoint)
    if handler is None:
        return ctx.fail(
            400,
            f"Invalid endpoint. Supported endpoints: {', '.join(supported_endpoints())}",
        )

    logger.info(
        "%s started | storm=%s | correlation_id=%s",
        request.endpoint,
        request.params.get("stormId", ""),
        request.correlation_id,
    )
    try:
        response = handler(ctx)
    except ProxyError as exc:
        exc.correlation_id = exc.correlation_id or request.correlation_id
        logger.warning(
            "%s failed | %s",
            request.endpoint,
            " | ".join(f"{key}={value}" for key, value in exc.to_error_dict().items()),
        )
        return error_response(exc, ctx)
    except Exception:
        logger.exception("Unexpected error serving %s", request.endpoint)
        return ctx.fail(500, "Internal server error")

    logger.info("%s completed | status=%d", request.endpoint, response.status_code)
    return response
