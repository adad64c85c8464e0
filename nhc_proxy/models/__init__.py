"""Data models.

Defines the data structures produced by the format-translation layer:
- FeatureCollection / Feature / Geometry: GeoJSON extracted from KMZ
- TrackPoint / ModelTrack / EnsembleParseResult: GEFS tracks from an A-deck
"""

from nhc_proxy.models.geojson import Feature, FeatureCollection, Geometry
from nhc_proxy.models.tracks import EnsembleParseResult, ModelTrack, TrackPoint

__all__ = [
    "EnsembleParseResult",
    "Feature",
    "FeatureCollection",
    "Geometry",
    "ModelTrack",
    "TrackPoint",
]
