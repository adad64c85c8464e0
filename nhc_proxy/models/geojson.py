"""GeoJSON data model for KMZ-derived storm products.

A ``FeatureCollection`` is the output of the KML extractors
and is serialised verbatim into the response ``data`` field.
Coordinates are ``(lon, lat)`` pairs in decimal degrees (EPSG:4326).
"""

from __future__ import annotations

from dataclasses import dataclass, field

POLYGON = "Polygon"
LINE_STRING = "LineString"
POINT = "Point"

Position = tuple[float, float]


@dataclass(frozen=True, slots=True)
class Geometry:
    """A GeoJSON geometry.

    Attributes:
        type: ``"Polygon"``, ``"LineString"`` or ``"Point"``.
        coordinates: A single position for ``Point``, a list of
            positions for ``LineString``, a list of rings for ``Polygon``.
    """

    type: str
    coordinates: Position | list[Position] | list[list[Position]]

    @classmethod
    def polygon(cls, exterior: list[Position]) -> Geometry:
        return cls(type=POLYGON, coordinates=[list(exterior)])

    @classmethod
    def line_string(cls, vertices: list[Position]) -> Geometry:
        return cls(type=LINE_STRING, coordinates=list(vertices))

    @classmethod
    def point(cls, position: Position) -> Geometry:
        return cls(type=POINT, coordinates=position)

    def to_dict(self) -> dict[str, object]:
        if self.type == POINT:
            coords: object = list(self.coordinates)  # type: ignore[arg-type]
        elif self.type == LINE_STRING:
            coords = [list(c) for c in self.coordinates]  # type: ignore[union-attr]
        else:
            coords = [[list(c) for c in ring] for ring in self.coordinates]  # type: ignore[union-attr]
        return {"type": self.type, "coordinates": coords}


@dataclass(frozen=True, slots=True)
class Feature:
    """A single GeoJSON feature extracted from a KML Placemark.

    Attributes:
        geometry: The feature geometry.
        properties: Free-form key/value pairs (``name``, ``stormName``,
            ``description`` and a classification tag such as ``trackType``
            or ``type``). Values may be strings, numbers, ``None`` or lists.
    """

    geometry: Geometry
    properties: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "type": "Feature",
            "properties": dict(self.properties),
            "geometry": self.geometry.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class FeatureCollection:
    """An ordered collection of features."""

    features: tuple[Feature, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain GeoJSON ``FeatureCollection`` dict."""
        return {
            "type": "FeatureCollection",
            "features": [f.to_dict() for f in self.features],
        }

    def __len__(self) -> int:
        return len(self.features)
