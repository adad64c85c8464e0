"""KML → GeoJSON extraction for NHC storm products.

Walks the lxml element tree of an NHC KML document and emits GeoJSON
features. Lookups use ElementPath ``{*}`` wildcards, so documents with
or without the OGC KML 2.2 namespace are handled alike.

- ``extract_cone``: first cone/uncertainty placemark → one ``Polygon``
- ``extract_track``: every placemark line/point → ``LineString`` / ``Point``
- ``extract_surge``: peak storm surge areas → ``Polygon`` with height in feet
- ``extract_wind_probability``: wind speed probability bands → ``Polygon``
- ``extract_wind_arrival``: tropical-storm-force wind arrival lines,
  polygons and time labels
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from nhc_proxy.core.exceptions import PermanentError
from nhc_proxy.models.geojson import Feature, FeatureCollection, Geometry
from nhc_proxy.parsers.coordinates import is_valid_position, parse_kml_coordinate_token
from nhc_proxy.parsers.kmz import unpack_kmz

if TYPE_CHECKING:
    from collections.abc import Iterator

    from lxml.etree import _Element

    from nhc_proxy.models.geojson import Position

logger = logging.getLogger("nhc_proxy.parsers.kml")

UNKNOWN_STORM = "Unknown Storm"
DEFAULT_SURGE_NAME = "Storm Surge Area"
WIND_ARRIVAL_SPEED = "34kt"

_CONTAINER_TAGS = ("Document", "Folder")
_CONE_KEYWORDS = ("cone", "uncertainty")

# ElementPath expressions, namespace-agnostic
_NAME = "{*}name"
_DESCRIPTION = "{*}description"
_STYLE_URL = "{*}styleUrl"
_RING_COORDS = "{*}outerBoundaryIs/{*}LinearRing/{*}coordinates"
_POLYGON_RING_COORDS = "{*}Polygon/" + _RING_COORDS
_LINE_COORDS = "{*}LineString/{*}coordinates"
_POINT_COORDS = "{*}Point/{*}coordinates"
_ICON_HREF = "{*}IconStyle/{*}Icon/{*}href"

# The parser always reads UTF-8 bytes; a declared encoding would override that.
_XML_DECLARATION_RE = re.compile(r"^\ufeff?\s*<\?xml[^>]*\?>")

_SURGE_RANGE_RE = re.compile(r"(\d+)-(\d+)\s*ft", re.IGNORECASE)
_PROBABILITY_RANGE_RE = re.compile(r"(\d+)-(\d+)")
_PROBABILITY_VALUE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%?")

_STYLE_GROUP_RE = re.compile(r"^style(\d+)")
_LABEL_PART_RE = re.compile(r"style(\d+)([abc])")
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_HOUR_WORDS = {
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
    "ten": "10",
    "eleven": "11",
    "twelve": "12",
}
_LINE_TIME_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(\w{3})\s+(\d{1,2})\s*(AM|PM)",
        r"(\d{1,2})\s*(AM|PM)\s*(\w{3})",
        r"(\d{1,2}):(\d{2})\s*(AM|PM)",
        r"(\d{4})\s*(UTC|GMT)",
    )
)
_POLYGON_TIME_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(\d{1,2})\s*(AM|PM)\s*(UTC|GMT)",
        r"(\d{1,2}):(\d{2})\s*(AM|PM)\s*(UTC|GMT)",
        r"(\d{4})\s*(UTC|GMT)",
        r"(Mon|Tue|Wed|Thu|Fri|Sat|Sun)[\s,]*(\d{1,2})\s*(AM|PM)",
    )
)
# Label part letter → component type, with a display offset in degrees.
_LABEL_PARTS = (
    ("a", "day", [-0.01, 0.01]),
    ("b", "hour", [0.01, 0.01]),
    ("c", "period", [0.0, -0.01]),
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class KmlParseError(PermanentError):
    """Raised when KML text cannot be parsed or lacks the expected content."""

    default_stage = "extract_kml"
    default_code = "KML_PARSE_FAILED"


class NoDocumentError(KmlParseError):
    """Raised when the KML has neither a ``Document`` nor a ``Folder``."""

    default_code = "KML_NO_DOCUMENT"


class NoConeFoundError(KmlParseError):
    """Raised when no placemark carries a cone polygon."""

    default_code = "KML_NO_CONE"


class NoPlacemarksError(KmlParseError):
    """Raised when the container (and its folders) hold no placemarks."""

    default_code = "KML_NO_PLACEMARKS"


class NoTrackFeaturesError(KmlParseError):
    """Raised when placemarks exist but none carries line or point geometry."""

    default_code = "KML_NO_TRACK_FEATURES"


# ---------------------------------------------------------------------------
# Element tree helpers
# ---------------------------------------------------------------------------


def _local_name(elem: _Element) -> str:
    tag = elem.tag
    if not isinstance(tag, str):
        # Comments and processing instructions.
        return ""
    return tag.rsplit("}", 1)[-1]


def _text(elem: _Element, path: str) -> str:
    return (elem.findtext(path) or "").strip()


def _style_id(placemark: _Element) -> str | None:
    style_url = _text(placemark, _STYLE_URL)
    return style_url.rsplit("#", 1)[-1] or None


def _walk_placemarks(elem: _Element) -> Iterator[_Element]:
    """Placemarks under *elem*, then those in nested Folders/Documents, depth first."""
    yield from elem.iterchildren("{*}Placemark")
    for child in elem.iterchildren("{*}Folder", "{*}Document"):
        yield from _walk_placemarks(child)


def _placemark_polygons(placemark: _Element) -> list[_Element]:
    """``MultiGeometry`` polygons if any, else the placemark's own ``Polygon``."""
    polygons = placemark.findall("{*}MultiGeometry/{*}Polygon")
    return polygons or placemark.findall("{*}Polygon")


# ---------------------------------------------------------------------------
# Document access
# ---------------------------------------------------------------------------


def parse_kml_document(kml_text: str) -> _Element:
    """Parse KML text into an lxml element tree.

    Any XML declaration is dropped first: the text is already decoded,
    so a declared ``encoding`` must not be applied a second time.

    Raises:
        KmlParseError: If the text is empty or not well-formed XML.
    """
    from lxml import etree  # type: ignore[attr-defined]

    if not kml_text.strip():
        msg = "KML document is empty"
        raise KmlParseError(msg)

    body = _XML_DECLARATION_RE.sub("", kml_text, count=1)
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        return etree.fromstring(body.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Failed to parse KML XML: {exc}"
        raise KmlParseError(msg) from exc


def find_container(doc: _Element) -> _Element:
    """Return the top-level ``Document`` (preferred) or ``Folder`` element.

    Raises:
        NoDocumentError: If neither exists at the top level.
    """
    if _local_name(doc) in _CONTAINER_TAGS:
        return doc
    for tag in _CONTAINER_TAGS:
        container = doc.find(f"{{*}}{tag}")
        if container is not None:
            return container
    msg = "No Document or Folder found in KML"
    raise NoDocumentError(msg)


def storm_name(doc: _Element) -> str:
    """Storm name from the container's own ``name``, else ``"Unknown Storm"``."""
    try:
        container = find_container(doc)
    except NoDocumentError:
        return UNKNOWN_STORM
    return _text(container, _NAME) or UNKNOWN_STORM


def _parse_positions(coord_text: str | None, placemark_name: str) -> list[Position]:
    positions: list[Position] = []
    for token in (coord_text or "").split():
        position = parse_kml_coordinate_token(token)
        if not is_valid_position(position):
            logger.warning(
                "Skipping unusable coordinate %r in Placemark '%s'",
                token,
                placemark_name,
            )
            continue
        positions.append(position)
    return positions


def _base_properties(placemark: _Element, name: str, storm: str) -> dict[str, object]:
    return {
        "name": name,
        "stormName": storm,
        "description": _text(placemark, _DESCRIPTION),
    }


# ---------------------------------------------------------------------------
# Cone
# ---------------------------------------------------------------------------


def extract_cone(doc: _Element) -> FeatureCollection:
    """Extract the forecast cone polygon as a one-feature collection.

    A placemark qualifies if its name mentions "cone" or "uncertainty"
    (case-insensitive) or if it has a ``Polygon`` child. The first
    qualifying placemark with outer-boundary coordinates wins; a
    qualifying placemark without them is skipped and scanning continues.

    Raises:
        NoDocumentError: If the KML has no ``Document``/``Folder``.
        NoConeFoundError: If no placemark yields a cone polygon.
    """
    container = find_container(doc)
    storm = storm_name(doc)

    for placemark in container.iterchildren("{*}Placemark"):
        name = _text(placemark, _NAME)
        has_polygon = placemark.find("{*}Polygon") is not None
        lowered = name.lower()
        if not has_polygon and not any(k in lowered for k in _CONE_KEYWORDS):
            continue

        exterior = _parse_positions(placemark.findtext(_POLYGON_RING_COORDS), name)
        if not exterior:
            logger.debug("Cone candidate '%s' has no outer boundary, continuing", name)
            continue

        feature = Feature(
            geometry=Geometry.polygon(exterior),
            properties=_base_properties(placemark, name, storm),
        )
        logger.info(
            "Extracted cone polygon | storm=%s | placemark=%s | vertices=%d",
            storm,
            name,
            len(exterior),
        )
        return FeatureCollection(features=(feature,))

    msg = "No cone polygon found in KML data"
    raise NoConeFoundError(msg)


# ---------------------------------------------------------------------------
# Track
# ---------------------------------------------------------------------------


def _track_type(name: str) -> str:
    lowered = name.lower()
    if "forecast" in lowered:
        return "forecast"
    if "past" in lowered:
        return "historical"
    return "track"


def _point_type(name: str) -> str:
    return "current" if "current" in name.lower() else "position"


def _collect_placemarks(container: _Element) -> list[_Element]:
    """Placemarks directly under *container*, then those one folder deep."""
    return container.findall("{*}Placemark") + container.findall("{*}Folder/{*}Placemark")


def extract_track(doc: _Element) -> FeatureCollection:
    """Extract track lines and position markers as GeoJSON features.

    Each placemark may contribute a ``LineString`` feature (tagged with
    ``trackType``) and a ``Point`` feature (tagged with ``pointType``);
    a point uses only the first coordinate of its placemark.

    Raises:
        NoDocumentError: If the KML has no ``Document``/``Folder``.
        NoPlacemarksError: If no placemark exists at the top or folder level.
        NoTrackFeaturesError: If no placemark has line or point geometry.
    """
    container = find_container(doc)
    placemarks = _collect_placemarks(container)
    if not placemarks:
        msg = "No Placemarks found in KML data"
        raise NoPlacemarksError(msg)

    storm = storm_name(doc)
    features: list[Feature] = []

    for placemark in placemarks:
        name = _text(placemark, _NAME)

        vertices = _parse_positions(placemark.findtext(_LINE_COORDS), name)
        if vertices:
            properties = _base_properties(placemark, name, storm)
            properties["trackType"] = _track_type(name)
            features.append(Feature(geometry=Geometry.line_string(vertices), properties=properties))

        positions = _parse_positions(placemark.findtext(_POINT_COORDS), name)
        if positions:
            properties = _base_properties(placemark, name, storm)
            properties["pointType"] = _point_type(name)
            features.append(Feature(geometry=Geometry.point(positions[0]), properties=properties))

    if not features:
        msg = "No track features found in KML data"
        raise NoTrackFeaturesError(msg)

    logger.info(
        "Extracted track features | storm=%s | placemarks=%d | features=%d",
        storm,
        len(placemarks),
        len(features),
    )
    return FeatureCollection(features=tuple(features))


# ---------------------------------------------------------------------------
# Storm surge
# ---------------------------------------------------------------------------


def _surge_height_ft(name: str, description: str) -> int:
    """Upper bound of a ``"3-6 ft"`` range in the name, else the description."""
    match = _SURGE_RANGE_RE.search(name) or _SURGE_RANGE_RE.search(description)
    return int(match.group(2)) if match else 0


def extract_surge(doc: _Element) -> FeatureCollection:
    """Extract peak storm surge polygons at any folder depth.

    An empty collection is a valid result (no surge areas issued).
    """
    features: list[Feature] = []
    for placemark in _walk_placemarks(doc):
        name = _text(placemark, _NAME)
        description = _text(placemark, _DESCRIPTION)
        height = _surge_height_ft(name, description)
        for polygon in _placemark_polygons(placemark):
            exterior = _parse_positions(polygon.findtext(_RING_COORDS), name)
            if not exterior:
                continue
            features.append(
                Feature(
                    geometry=Geometry.polygon(exterior),
                    properties={
                        "name": name or DEFAULT_SURGE_NAME,
                        "description": description,
                        "SURGE_FT": height,
                        "height": height,
                    },
                )
            )

    logger.info("Extracted storm surge polygons | features=%d", len(features))
    return FeatureCollection(features=tuple(features))


# ---------------------------------------------------------------------------
# Wind speed probability
# ---------------------------------------------------------------------------


def _probability_pct(name: str) -> float:
    """Representative percentage for an NHC probability band name."""
    if "<5%" in name or "&lt;5%" in name:
        return 2.5
    if ">90%" in name or "&gt;90%" in name:
        return 95.0
    match = _PROBABILITY_RANGE_RE.search(name)
    if match:
        return (float(match.group(1)) + float(match.group(2))) / 2
    match = _PROBABILITY_VALUE_RE.search(name)
    if match:
        return float(match.group(1))
    return 0.0


def extract_wind_probability(doc: _Element, wind_speed: str = "34kt") -> FeatureCollection:
    """Extract wind speed probability bands as polygons.

    Every polygon of a ``MultiGeometry`` becomes its own feature, tagged
    with ``polygonIndex``. ``wind_speed`` (``"34kt"``, ``"50kt"``,
    ``"64kt"``) is copied onto each feature.
    """
    features: list[Feature] = []
    for placemark in _walk_placemarks(doc):
        name = _text(placemark, _NAME)
        for index, polygon in enumerate(_placemark_polygons(placemark)):
            exterior = _parse_positions(polygon.findtext(_RING_COORDS), name)
            if not exterior:
                continue
            features.append(
                Feature(
                    geometry=Geometry.polygon(exterior),
                    properties={
                        "name": name,
                        "description": _text(placemark, _DESCRIPTION),
                        "probability": _probability_pct(name),
                        "styleId": _style_id(placemark),
                        "windSpeed": wind_speed,
                        "type": "wind_probability",
                        "polygonIndex": index,
                    },
                )
            )

    logger.info(
        "Extracted wind probability polygons | wind_speed=%s | features=%d",
        wind_speed,
        len(features),
    )
    return FeatureCollection(features=tuple(features))


# ---------------------------------------------------------------------------
# Wind arrival
# ---------------------------------------------------------------------------


def _icon_labels(doc: _Element) -> dict[str, str]:
    """Map style id → icon file stem (``.../Wed.png`` → ``Wed``)."""
    labels: dict[str, str] = {}
    for style in doc.iter("{*}Style"):
        style_id = style.get("id")
        href = _text(style, _ICON_HREF)
        if style_id and href:
            labels[style_id] = href.rsplit("/", 1)[-1].replace(".png", "")
    return labels


def _style_arrival_time(style_id: str | None, labels: dict[str, str]) -> str | None:
    """Assemble ``"Wed 8 AM"`` from the icon labels of a style group.

    ``style3a``, ``style3b`` and ``style3c`` belong to group ``style3``;
    their labels supply the weekday, the hour and AM/PM.
    """
    if not style_id:
        return None
    match = _STYLE_GROUP_RE.match(style_id)
    if not match:
        return None
    base = f"style{match.group(1)}"

    day = hour = period = ""
    for other_id, label in labels.items():
        suffix = other_id[len(base) :]
        if not other_id.startswith(base) or suffix[:1].isdigit():
            continue
        lowered = label.lower()
        if label in _WEEKDAYS:
            day = label
        elif lowered in ("am", "pm"):
            period = label.upper()
        elif lowered in _HOUR_WORDS:
            hour = _HOUR_WORDS[lowered]
        elif label.isdigit():
            hour = label

    if day and hour and period:
        return f"{day} {hour} {period}"
    if hour and period:
        return f"{hour} {period}"
    if day:
        return day
    return labels.get(style_id)


def _time_in_text(text: str, patterns: tuple[re.Pattern[str], ...]) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


class _WindArrivalBuilder:
    """Accumulates wind arrival features while walking placemarks.

    Time-label points whose style is ``style<N>[abc]`` are held back and
    merged per group ``N`` into a single point once the walk is done.
    """

    def __init__(self, labels: dict[str, str]) -> None:
        self.labels = labels
        self.features: list[Feature] = []
        self.label_parts: dict[str, dict[str, tuple[str, Position]]] = {}

    def _properties(
        self, placemark: _Element, name: str, style_id: str | None
    ) -> dict[str, object]:
        return {
            "name": name,
            "description": _text(placemark, _DESCRIPTION),
            "arrivalTime": None,
            "styleId": style_id,
            "windSpeed": WIND_ARRIVAL_SPEED,
        }

    def add_placemark(self, placemark: _Element) -> None:
        name = _text(placemark, _NAME)
        if placemark.find("{*}Point") is not None:
            self._add_point(placemark, name, placemark.findtext(_POINT_COORDS), 0)
        elif placemark.find("{*}LineString") is not None:
            self._add_line(placemark, name, placemark.findtext(_LINE_COORDS), 0)
        elif placemark.find("{*}MultiGeometry") is not None:
            for index, point in enumerate(placemark.iterfind("{*}MultiGeometry/{*}Point")):
                self._add_point(placemark, name, point.findtext("{*}coordinates"), index)
            for index, line in enumerate(placemark.iterfind("{*}MultiGeometry/{*}LineString")):
                self._add_line(placemark, name, line.findtext("{*}coordinates"), index)
            for index, polygon in enumerate(placemark.iterfind("{*}MultiGeometry/{*}Polygon")):
                self._add_polygon(placemark, name, polygon.findtext(_RING_COORDS), index)
        elif placemark.find("{*}Polygon") is not None:
            self._add_polygon(placemark, name, placemark.findtext(_POLYGON_RING_COORDS), 0)

    def _add_line(self, placemark: _Element, name: str, coords: str | None, index: int) -> None:
        vertices = _parse_positions(coords, name)
        if not vertices:
            return
        style_id = _style_id(placemark)
        properties = self._properties(placemark, name, style_id)
        properties["arrivalTime"] = _style_arrival_time(style_id, self.labels) or _time_in_text(
            f"{name} {properties['description']}", _LINE_TIME_PATTERNS
        )
        properties["type"] = "wind_arrival_line"
        properties["lineIndex"] = index
        self.features.append(
            Feature(geometry=Geometry.line_string(vertices), properties=properties)
        )

    def _add_point(self, placemark: _Element, name: str, coords: str | None, index: int) -> None:
        positions = _parse_positions(coords, name)
        if not positions:
            return
        style_id = _style_id(placemark)
        part = _LABEL_PART_RE.search(style_id or "")
        if part:
            group, letter = part.groups()
            self.label_parts.setdefault(group, {})[letter] = (style_id, positions[0])
            return

        properties = self._properties(placemark, name, style_id)
        properties["arrivalTime"] = (
            _style_arrival_time(style_id, self.labels)
            or _time_in_text(f"{name} {properties['description']}", _LINE_TIME_PATTERNS)
            or "Unknown"
        )
        properties["type"] = "wind_arrival_point"
        properties["pointIndex"] = index
        self.features.append(Feature(geometry=Geometry.point(positions[0]), properties=properties))

    def _add_polygon(self, placemark: _Element, name: str, coords: str | None, index: int) -> None:
        exterior = _parse_positions(coords, name)
        if not exterior:
            return
        properties = self._properties(placemark, name, _style_id(placemark))
        properties["arrivalTime"] = _time_in_text(
            f"{name} {properties['description']}", _POLYGON_TIME_PATTERNS
        )
        properties["type"] = "wind_arrival"
        properties["polygonIndex"] = index
        self.features.append(Feature(geometry=Geometry.polygon(exterior), properties=properties))

    def _label_group_feature(self, group: str, parts: dict[str, tuple[str, Position]]) -> Feature:
        lon = sum(parts[letter][1][0] for letter, _, _ in _LABEL_PARTS) / len(_LABEL_PARTS)
        lat = sum(parts[letter][1][1] for letter, _, _ in _LABEL_PARTS) / len(_LABEL_PARTS)

        arrival_time = "Unknown"
        for letter, _, _ in _LABEL_PARTS:
            found = _style_arrival_time(parts[letter][0], self.labels)
            if found:
                arrival_time = found
                break

        components = []
        for letter, kind, offset in _LABEL_PARTS:
            style_id, position = parts[letter]
            text = self.labels.get(style_id, "")
            if kind == "hour":
                text = _HOUR_WORDS.get(text.lower(), text)
            components.append(
                {
                    "type": kind,
                    "styleId": style_id,
                    "text": text,
                    "coordinates": list(position),
                    "offset": offset,
                }
            )

        return Feature(
            geometry=Geometry.point((lon, lat)),
            properties={
                "name": "",
                "description": "",
                "arrivalTime": arrival_time,
                "styleId": f"group{group}",
                "windSpeed": WIND_ARRIVAL_SPEED,
                "type": "wind_arrival_group",
                "pointIndex": 0,
                "components": components,
            },
        )

    def build(self) -> FeatureCollection:
        features = list(self.features)
        for group, parts in self.label_parts.items():
            # A label needs all three parts (day, hour, AM/PM).
            if all(letter in parts for letter, _, _ in _LABEL_PARTS):
                features.append(self._label_group_feature(group, parts))
        return FeatureCollection(features=tuple(features))


def extract_wind_arrival(doc: _Element) -> FeatureCollection:
    """Extract 34 kt wind arrival time lines, areas and labels.

    Arrival times come from the icon labels of the placemark's style
    group when present, else from a time phrase in the name or
    description. Three-part time labels (``style<N>a/b/c`` points) are
    merged into one ``wind_arrival_group`` point at their centroid.
    """
    builder = _WindArrivalBuilder(_icon_labels(doc))
    for placemark in _walk_placemarks(doc):
        builder.add_placemark(placemark)
    result = builder.build()
    logger.info("Extracted wind arrival features | features=%d", len(result))
    return result


# ---------------------------------------------------------------------------
# KMZ convenience
# ---------------------------------------------------------------------------


def kmz_to_cone_geojson(archive_bytes: bytes) -> FeatureCollection:
    """Unpack a cone KMZ and extract its polygon."""
    return extract_cone(parse_kml_document(unpack_kmz(archive_bytes)))


def kmz_to_track_geojson(archive_bytes: bytes) -> FeatureCollection:
    """Unpack a track KMZ and extract its lines and points."""
    return extract_track(parse_kml_document(unpack_kmz(archive_bytes)))


def kmz_to_surge_geojson(archive_bytes: bytes) -> FeatureCollection:
    return extract_surge(parse_kml_document(unpack_kmz(archive_bytes)))


def kmz_to_wind_probability_geojson(
    archive_bytes: bytes, wind_speed: str = "34kt"
) -> FeatureCollection:
    return extract_wind_probability(parse_kml_document(unpack_kmz(archive_bytes)), wind_speed)


def kmz_to_wind_arrival_geojson(archive_bytes: bytes) -> FeatureCollection:
    return extract_wind_arrival(parse_kml_document(unpack_kmz(archive_bytes)))
