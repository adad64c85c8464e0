"""Data model for GEFS ensemble tracks parsed from an ATCF A-deck.

A ``TrackPoint`` is one A-deck line reduced to position and intensity;
a ``ModelTrack`` is the tau-ordered sequence of points for one ensemble
member; an ``EnsembleParseResult`` bundles every member of the latest
forecast cycle. All three are immutable and built fresh per parse call.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """A single forecast position for one ensemble member.

    Attributes:
        model_id: ATCF technique identifier (e.g. ``"AEMN"``, ``"AP03"``).
        tau: Forecast lead time in hours from the cycle time.
        lat: Latitude in decimal degrees, south negative.
        lon: Longitude in decimal degrees in (-180, 180], west negative.
        vmax: Maximum sustained wind in knots, ``None`` when not reported.
    """

    model_id: str
    tau: int
    lat: float
    lon: float
    vmax: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "modelId": self.model_id,
            "tau": self.tau,
            "lat": self.lat,
            "lon": self.lon,
            "vmax": self.vmax,
        }


@dataclass(frozen=True, slots=True)
class ModelTrack:
    """All points of one ensemble member, sorted by ascending tau."""

    model_id: str
    points: tuple[TrackPoint, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "modelId": self.model_id,
            "points": [p.to_dict() for p in self.points],
        }


@dataclass(frozen=True, slots=True)
class EnsembleParseResult:
    """Output of ``parse_ensemble_tracks``.

    Attributes:
        models_present: Model ids in output order (mean, control, members).
        tracks: One ``ModelTrack`` per entry of ``models_present``.
        latest_cycle: 10-digit ``YYYYMMDDHH`` cycle, ``None`` if no valid line.
    """

    models_present: tuple[str, ...] = ()
    tracks: tuple[ModelTrack, ...] = ()
    latest_cycle: str | None = None

    @property
    def is_empty(self) -> bool:
        return len(self.tracks) == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "modelsPresent": list(self.models_present),
            "tracks": [t.to_dict() for t in self.tracks],
            "latestCycle": self.latest_cycle,
        }
