"""Coordinate token parsing for KML and ATCF inputs.

Responsibilities:
- Convert a KML ``lon,lat[,alt]`` token to a ``(lon, lat)`` pair
- Convert ATCF hemisphere-suffixed tokens (``142N``, ``0805W``) to
  signed decimal degrees
- Normalise longitudes into (-180, 180]

Every function here is total: bad input yields ``nan`` (KML) or
``None`` (ATCF) and the caller decides whether to skip the record.
"""

from __future__ import annotations

import math
import re

# Integral magnitudes are tenths of a degree (``142N`` = 14.2N).
_ATCF_TENTHS_RE = re.compile(r"^(-?\d+)([A-Z])$", re.IGNORECASE)
# Some feeds carry decimal degrees instead (``14.2N``).
_ATCF_DECIMAL_RE = re.compile(r"^(-?\d+(?:\.\d+)?)([A-Z])$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# KML
# ---------------------------------------------------------------------------


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return math.nan


def parse_kml_coordinate_token(token: str) -> tuple[float, float]:
    """Parse one KML coordinate tuple (``lon,lat[,alt]``) to ``(lon, lat)``.

    Altitude is ignored. A missing or non-numeric field becomes ``nan``.
    """
    parts = token.strip().split(",")
    lon = _to_float(parts[0])
    lat = _to_float(parts[1]) if len(parts) > 1 else math.nan
    return (lon, lat)


def is_valid_position(position: tuple[float, float]) -> bool:
    """Whether both components are finite and inside WGS 84 bounds."""
    lon, lat = position
    if math.isnan(lon) or math.isnan(lat):
        return False
    return -180.0 <= lon <= 180.0 and -90.0 <= lat <= 90.0


# ---------------------------------------------------------------------------
# ATCF
# ---------------------------------------------------------------------------


def normalize_longitude(lon: float) -> float:
    """Wrap a longitude into (-180, 180] by whole turns of 360 degrees.

    Non-finite input gives ``nan``.
    """
    if not math.isfinite(lon):
        return math.nan
    if -180.0 < lon <= 180.0:
        return lon
    lon = math.fmod(lon + 180.0, 360.0)
    if lon <= 0.0:
        lon += 360.0
    return lon - 180.0


def _parse_atcf_magnitude(token: str | None, positive: str, negative: str) -> float | None:
    if not token:
        return None
    token = token.strip()

    try:
        match = _ATCF_TENTHS_RE.match(token)
        if match:
            value = int(match.group(1)) / 10.0
        else:
            match = _ATCF_DECIMAL_RE.match(token)
            if not match:
                return None
            value = float(match.group(1))
    except (OverflowError, ValueError):
        # Digit runs too long for int() or too large for a float.
        return None
    if not math.isfinite(value):
        return None

    hemisphere = match.group(2).upper()
    if hemisphere == negative:
        return -value
    if hemisphere == positive:
        return value
    return None


def parse_atcf_latitude(token: str | None) -> float | None:
    """Parse an ATCF latitude token (``142N`` → 14.2, ``142S`` → -14.2).

    Returns ``None`` when the token is empty, not hemisphere-suffixed or
    beyond the poles.
    """
    value = _parse_atcf_magnitude(token, "N", "S")
    if value is None or abs(value) > 90.0:
        return None
    return value


def parse_atcf_longitude(token: str | None) -> float | None:
    """Parse an ATCF longitude token (``0805W`` → -80.5, ``1850E`` → -175.0).

    The result is normalised into (-180, 180], so ``1800W`` gives 180.0.
    Returns ``None`` when the token is empty or not hemisphere-suffixed.
    """
    value = _parse_atcf_magnitude(token, "E", "W")
    if value is None:
        return None
    return normalize_longitude(value)
