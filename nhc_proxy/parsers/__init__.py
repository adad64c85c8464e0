"""Format-translation layer.

Turns raw NHC payloads into structured JSON:
- **coordinates**: KML and ATCF coordinate tokens → decimal degrees
- **kmz**: KMZ archive → KML text
- **kml**: KML element tree → GeoJSON cone, track, surge and wind feature collections
- **adeck**: ATCF A-deck text → GEFS ensemble tracks

All entry points are pure and synchronous; failures are typed
``ProxyError`` subclasses (the A-deck parser never raises).
"""

from nhc_proxy.parsers.adeck import (
    InvalidStormIdError,
    adeck_filename,
    parse_ensemble_tracks,
)
from nhc_proxy.parsers.coordinates import (
    normalize_longitude,
    parse_atcf_latitude,
    parse_atcf_longitude,
    parse_kml_coordinate_token,
)
from nhc_proxy.parsers.kml import (
    KmlParseError,
    NoConeFoundError,
    NoDocumentError,
    NoPlacemarksError,
    NoTrackFeaturesError,
    extract_cone,
    extract_surge,
    extract_track,
    extract_wind_arrival,
    extract_wind_probability,
    kmz_to_cone_geojson,
    kmz_to_surge_geojson,
    kmz_to_track_geojson,
    kmz_to_wind_arrival_geojson,
    kmz_to_wind_probability_geojson,
    parse_kml_document,
)
from nhc_proxy.parsers.kmz import (
    ArchiveReadError,
    EntryReadError,
    KmzError,
    NoKmlFoundError,
    unpack_kmz,
)

__all__ = [
    "ArchiveReadError",
    "EntryReadError",
    "InvalidStormIdError",
    "KmlParseError",
    "KmzError",
    "NoConeFoundError",
    "NoDocumentError",
    "NoKmlFoundError",
    "NoPlacemarksError",
    "NoTrackFeaturesError",
    "adeck_filename",
    "extract_cone",
    "extract_surge",
    "extract_track",
    "extract_wind_arrival",
    "extract_wind_probability",
    "kmz_to_cone_geojson",
    "kmz_to_surge_geojson",
    "kmz_to_track_geojson",
    "kmz_to_wind_arrival_geojson",
    "kmz_to_wind_probability_geojson",
    "normalize_longitude",
    "parse_atcf_latitude",
    "parse_atcf_longitude",
    "parse_ensemble_tracks",
    "parse_kml_coordinate_token",
    "parse_kml_document",
    "unpack_kmz",
]
