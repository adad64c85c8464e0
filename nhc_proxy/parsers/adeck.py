"""ATCF A-deck parsing for GEFS ensemble tracks.

An A-deck (``aal052025.dat``) holds one comma-separated record per
technique, cycle and forecast hour. The fields used here are::

    0 basin, 1 cyclone number, 2 cycle (YYYYMMDDHH), 3 technique number,
    4 technique, 5 tau, 6 latitude, 7 longitude, 8 vmax

Only the newest cycle is kept, and only the GEFS techniques: ``AEMN``
(ensemble mean), ``AC00`` (control) and ``AP01``..``AP30`` (perturbation
members). Malformed records are skipped, never raised.
"""

from __future__ import annotations

import logging
import re

from nhc_proxy.core.exceptions import ValidationError
from nhc_proxy.models.tracks import EnsembleParseResult, ModelTrack, TrackPoint
from nhc_proxy.parsers.coordinates import parse_atcf_latitude, parse_atcf_longitude

logger = logging.getLogger("nhc_proxy.parsers.adeck")

MIN_FIELDS = 9
ENSEMBLE_MEAN = "AEMN"
ENSEMBLE_CONTROL = "AC00"

_CYCLE_RE = re.compile(r"^\d{10}$")
_GEFS_TECH_RE = re.compile(r"^A(EMN|C00|P\d{2})$")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")
_STORM_ID_RE = re.compile(r"^(AL|EP|CP)(\d{2})(\d{4})$", re.IGNORECASE)

# Field indexes
_CYCLE = 2
_TECH = 4
_TAU = 5
_LAT = 6
_LON = 7
_VMAX = 8


class InvalidStormIdError(ValidationError):
    """Raised when a storm id is not ``<basin><nn><yyyy>`` (e.g. ``AL052025``)."""

    default_stage = "adeck"
    default_code = "INVALID_STORM_ID"


def adeck_filename(storm_id: str) -> str:
    """Map a storm id to its A-deck filename (``AL052025`` → ``aal052025.dat``).

    Raises:
        InvalidStormIdError: If the id is not an AL/EP/CP storm id.
    """
    match = _STORM_ID_RE.match(storm_id.strip())
    if not match:
        msg = f"Invalid stormId format: {storm_id}. Expected like AL052025"
        raise InvalidStormIdError(msg)
    basin, number, year = match.groups()
    return f"a{basin.lower()}{number}{year}.dat"


def _parse_int(text: str) -> int | None:
    """Leading-integer parse: ``"45"`` and ``"45 "`` give 45, ``"x"`` gives None."""
    match = _LEADING_INT_RE.match(text.strip())
    if not match:
        return None
    try:
        return int(match.group(0))
    except ValueError:
        # Beyond the interpreter's int string-conversion digit limit.
        return None


def _model_sort_key(model_id: str) -> tuple[int, str]:
    if model_id == ENSEMBLE_MEAN:
        return (0, model_id)
    if model_id == ENSEMBLE_CONTROL:
        return (1, model_id)
    return (2, model_id)


def _split_records(raw_text: str) -> list[list[str]]:
    records: list[list[str]] = []
    for line in re.split(r"\r?\n", raw_text):
        if not line or "," not in line:
            continue
        fields = [f.strip() for f in line.split(",")]
        if len(fields) < MIN_FIELDS:
            continue
        if not _CYCLE_RE.match(fields[_CYCLE]):
            continue
        records.append(fields)
    return records


def _to_point(fields: list[str]) -> TrackPoint | None:
    tech = fields[_TECH].upper()
    if not _GEFS_TECH_RE.match(tech):
        return None

    tau = _parse_int(fields[_TAU] or "0")
    lat = parse_atcf_latitude(fields[_LAT])
    lon = parse_atcf_longitude(fields[_LON])
    if tau is None or lat is None or lon is None:
        logger.debug(
            "Skipping A-deck record | tech=%s | tau=%r | lat=%r | lon=%r",
            tech,
            fields[_TAU],
            fields[_LAT],
            fields[_LON],
        )
        return None

    return TrackPoint(
        model_id=tech,
        tau=tau,
        lat=lat,
        lon=lon,
        vmax=_parse_int(fields[_VMAX]),
    )


def parse_ensemble_tracks(raw_text: str) -> EnsembleParseResult:
    """Parse A-deck text into per-model GEFS tracks for the latest cycle.

    Within each model, points are sorted by tau (stable) and only the
    first point per tau is kept. Models are ordered mean, control, then
    members, ties broken lexicographically.

    Never raises: unusable input yields an empty ``EnsembleParseResult``.
    """
    records = _split_records(raw_text)
    if not records:
        return EnsembleParseResult()

    latest_cycle = max(fields[_CYCLE] for fields in records)

    by_model: dict[str, list[TrackPoint]] = {}
    for fields in records:
        if fields[_CYCLE] != latest_cycle:
            continue
        point = _to_point(fields)
        if point is not None:
            by_model.setdefault(point.model_id, []).append(point)

    tracks: list[ModelTrack] = []
    for model_id, points in by_model.items():
        unique: dict[int, TrackPoint] = {}
        for point in sorted(points, key=lambda p: p.tau):
            unique.setdefault(point.tau, point)
        if unique:
            tracks.append(ModelTrack(model_id=model_id, points=tuple(unique.values())))

    tracks.sort(key=lambda t: _model_sort_key(t.model_id))

    logger.info(
        "Parsed A-deck ensemble | cycle=%s | records=%d | models=%d",
        latest_cycle,
        len(records),
        len(tracks),
    )
    return EnsembleParseResult(
        models_present=tuple(t.model_id for t in tracks),
        tracks=tuple(tracks),
        latest_cycle=latest_cycle,
    )
