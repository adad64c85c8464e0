"""Shared proxy constants, single source of truth.

Centralises endpoint names, upstream URL templates, and the CORS header
set that the router and the upstream client would otherwise duplicate.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Upstream defaults
# ---------------------------------------------------------------------------

DEFAULT_NHC_BASE_URL: str = "https://www.nhc.noaa.gov"
"""Root of the NHC website (JSON, GeoJSON and KMZ products)."""

DEFAULT_ATCF_BASE_URL: str = "https://ftp.nhc.noaa.gov/atcf/aid_public"
"""Directory holding the public ATCF A-deck (``a*.dat``) files."""

DEFAULT_USER_AGENT: str = "nhc-proxy (+https://www.nhc.noaa.gov)"

# ---------------------------------------------------------------------------
# Upstream path templates (relative to the NHC base URL)
# ---------------------------------------------------------------------------

ACTIVE_STORMS_PATH = "/CurrentStorms.json"
FORECAST_TRACK_GEOJSON_PATH = "/gis/forecast/archive/{year}/{storm_id}_5day_latest.geojson"
BEST_TRACK_GEOJSON_PATH = "/gis/best_track/archive/{year}/{storm_id}_best_track.geojson"
CONE_GEOJSON_PATH = "/gis/forecast/archive/{year}/{storm_id}_latest_CONE.geojson"
CONE_KMZ_PATH = "/storm_graphics/api/{storm_id}_CONE_latest.kmz"
FORECAST_TRACK_KMZ_PATH = "/storm_graphics/api/{storm_id}_TRACK_latest.kmz"
BEST_TRACK_KMZ_PATH = "/gis/best_track/{storm_id}_best_track.kmz"
STORM_SURGE_KMZ_PATH = "/storm_graphics/api/{storm_id}_PeakStormSurge_latest.kmz"
WIND_SPEED_PROBABILITY_KMZ_PATH = "/gis/forecast/archive/latest_wsp{knots}knt120hr_5km.kmz"
WIND_ARRIVAL_MOST_LIKELY_KMZ_PATH = "/storm_graphics/api/{storm_id}_most_likely_toa_34_latest.kmz"
WIND_ARRIVAL_EARLIEST_KMZ_PATH = (
    "/storm_graphics/api/{storm_id}_earliest_reasonable_toa_34_latest.kmz"
)

STORM_SURGE_BASIN = "AL"
"""Peak storm surge graphics are only issued for Atlantic storms."""

# ---------------------------------------------------------------------------
# Accept headers per payload kind
# ---------------------------------------------------------------------------

ACCEPT_JSON = "application/json"
ACCEPT_KMZ = "application/vnd.google-earth.kmz"
ACCEPT_TEXT = "text/plain, */*"

# ---------------------------------------------------------------------------
# Endpoint names (path segment after ``/api/nhc/``)
# ---------------------------------------------------------------------------

ACTIVE_STORMS = "active-storms"
FORECAST_TRACK = "forecast-track"
HISTORICAL_TRACK = "historical-track"
FORECAST_CONE = "forecast-cone"
FORECAST_TRACK_KMZ = "forecast-track-kmz"
TRACK_KMZ = "track-kmz"
GEFS_ADECK = "gefs-adeck"
STORM_SURGE = "storm-surge"
WIND_SPEED_PROBABILITY = "wind-speed-probability"
WIND_SPEED_PROBABILITY_50KT = "wind-speed-probability-50kt"
WIND_SPEED_PROBABILITY_64KT = "wind-speed-probability-64kt"
WIND_ARRIVAL_MOST_LIKELY = "wind-arrival-most-likely"
WIND_ARRIVAL_EARLIEST = "wind-arrival-earliest"

DEFAULT_ENDPOINT = ACTIVE_STORMS

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

CORS_ALLOWED_HEADERS = "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token"
CORS_ALLOWED_METHODS = "GET,OPTIONS"


def cors_headers(allowed_origin: str = "*") -> dict[str, str]:
    """Return the CORS + content-type header set attached to every response."""
    return {
        "Access-Control-Allow-Origin": allowed_origin,
        "Access-Control-Allow-Headers": CORS_ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": CORS_ALLOWED_METHODS,
        "Content-Type": ACCEPT_JSON,
    }
