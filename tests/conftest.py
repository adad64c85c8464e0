"""Shared pytest fixtures for the NHC Proxy test suite."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable

import pytest

# ---------------------------------------------------------------------------
# KML documents
# ---------------------------------------------------------------------------

KML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
KML_NS = "http://www.opengis.net/kml/2.2"

CONE_KML = f"""{KML_HEADER}<kml xmlns="{KML_NS}">
  <Document>
    <name>Hurricane Erin</name>
    <Placemark>
      <name>Advisory Label</name>
      <Point><coordinates>-60.0,20.0,0</coordinates></Point>
    </Placemark>
    <Placemark>
      <name>Cone of Uncertainty</name>
      <description>Probable track area</description>
      <Polygon>
        <outerBoundaryIs>
          <LinearRing>
            <coordinates>
              -60.0,20.0,0 -61.0,21.0,0 -62.0,20.0,0 -60.0,20.0,0
            </coordinates>
          </LinearRing>
        </outerBoundaryIs>
      </Polygon>
    </Placemark>
  </Document>
</kml>
"""

TRACK_KML = f"""{KML_HEADER}<kml xmlns="{KML_NS}">
  <Document>
    <name>Hurricane Erin Track</name>
    <Placemark>
      <name>Forecast Track</name>
      <LineString>
        <coordinates>-60.0,20.0,0 -62.5,22.0,0 -65.0,25.0,0</coordinates>
      </LineString>
    </Placemark>
    <Folder>
      <name>Forecast Points</name>
      <Placemark>
        <name>Current Position</name>
        <description>Max wind 100 kt</description>
        <Point><coordinates>-60.0,20.0,0</coordinates></Point>
      </Placemark>
      <Placemark>
        <name>12 hr</name>
        <Point><coordinates>-61.2,21.1,0</coordinates></Point>
      </Placemark>
    </Folder>
  </Document>
</kml>
"""


SURGE_KML = f"""{KML_HEADER}<kml xmlns="{KML_NS}">
  <Document>
    <name>AL052025 Peak Storm Surge</name>
    <Folder>
      <name>Surge</name>
      <Folder>
        <name>Coast</name>
        <Placemark>
          <name>Up to 3-6 ft above ground</name>
          <Polygon>
            <outerBoundaryIs><LinearRing>
              <coordinates>-80.0,25.0,0 -80.5,25.5,0 -81.0,25.0,0 -80.0,25.0,0</coordinates>
            </LinearRing></outerBoundaryIs>
          </Polygon>
        </Placemark>
        <Placemark>
          <description>Greater than 1-3 FT</description>
          <MultiGeometry>
            <Polygon>
              <outerBoundaryIs><LinearRing>
                <coordinates>-82.0,26.0,0 -82.5,26.5,0 -83.0,26.0,0 -82.0,26.0,0</coordinates>
              </LinearRing></outerBoundaryIs>
            </Polygon>
            <Polygon>
              <outerBoundaryIs><LinearRing>
                <coordinates>-84.0,27.0,0 -84.5,27.5,0 -85.0,27.0,0 -84.0,27.0,0</coordinates>
              </LinearRing></outerBoundaryIs>
            </Polygon>
          </MultiGeometry>
        </Placemark>
      </Folder>
    </Folder>
  </Document>
</kml>
"""

WIND_PROBABILITY_KML = f"""{KML_HEADER}<kml xmlns="{KML_NS}">
  <Document>
    <name>34 kt Wind Speed Probabilities</name>
    <Folder>
      <Placemark>
        <name>&lt;5%</name>
        <styleUrl>#wsp_5</styleUrl>
        <Polygon>
          <outerBoundaryIs><LinearRing>
            <coordinates>-70.0,20.0,0 -75.0,25.0,0 -80.0,20.0,0 -70.0,20.0,0</coordinates>
          </LinearRing></outerBoundaryIs>
        </Polygon>
      </Placemark>
      <Placemark>
        <name>10-20%</name>
        <styleUrl>#wsp_10</styleUrl>
        <MultiGeometry>
          <Polygon>
            <outerBoundaryIs><LinearRing>
              <coordinates>-71.0,21.0,0 -74.0,24.0,0 -77.0,21.0,0 -71.0,21.0,0</coordinates>
            </LinearRing></outerBoundaryIs>
          </Polygon>
          <Polygon>
            <outerBoundaryIs><LinearRing>
              <coordinates>-60.0,15.0,0 -61.0,16.0,0 -62.0,15.0,0 -60.0,15.0,0</coordinates>
            </LinearRing></outerBoundaryIs>
          </Polygon>
        </MultiGeometry>
      </Placemark>
      <Placemark>
        <name>&gt;90%</name>
        <Polygon>
          <outerBoundaryIs><LinearRing>
            <coordinates>-72.0,22.0,0 -73.0,23.0,0 -74.0,22.0,0 -72.0,22.0,0</coordinates>
          </LinearRing></outerBoundaryIs>
        </Polygon>
      </Placemark>
    </Folder>
  </Document>
</kml>
"""

WIND_ARRIVAL_KML = f"""{KML_HEADER}<kml xmlns="{KML_NS}">
  <Document>
    <name>Most Likely Arrival Time of TS Winds</name>
    <Style id="style1"><LineStyle><width>2</width></LineStyle></Style>
    <Style id="style1a"><IconStyle><Icon><href>icons/Wed.png</href></Icon></IconStyle></Style>
    <Style id="style1b"><IconStyle><Icon><href>icons/eight.png</href></Icon></IconStyle></Style>
    <Style id="style1c"><IconStyle><Icon><href>icons/AM.png</href></Icon></IconStyle></Style>
    <Folder>
      <Placemark>
        <name>Arrival line</name>
        <styleUrl>#style1</styleUrl>
        <LineString><coordinates>-70.0,20.0,0 -71.0,21.0,0</coordinates></LineString>
      </Placemark>
      <Placemark>
        <styleUrl>#style1a</styleUrl>
        <Point><coordinates>-70.0,20.0,0</coordinates></Point>
      </Placemark>
      <Placemark>
        <styleUrl>#style1b</styleUrl>
        <Point><coordinates>-71.0,20.0,0</coordinates></Point>
      </Placemark>
      <Placemark>
        <styleUrl>#style1c</styleUrl>
        <Point><coordinates>-72.0,20.0,0</coordinates></Point>
      </Placemark>
      <Placemark>
        <styleUrl>#style2a</styleUrl>
        <Point><coordinates>-75.0,25.0,0</coordinates></Point>
      </Placemark>
      <Placemark>
        <name>Arrival area</name>
        <description>Winds arrive by 2 PM UTC</description>
        <Polygon>
          <outerBoundaryIs><LinearRing>
            <coordinates>-70.0,20.0,0 -71.0,21.0,0 -72.0,20.0,0 -70.0,20.0,0</coordinates>
          </LinearRing></outerBoundaryIs>
        </Polygon>
      </Placemark>
      <Placemark>
        <name>Label Thu 5 PM</name>
        <Point><coordinates>-73.0,22.0,0</coordinates></Point>
      </Placemark>
    </Folder>
  </Document>
</kml>
"""


@pytest.fixture()
def cone_kml() -> str:
    """Cone KML: a label Point placemark followed by the cone Polygon."""
    return CONE_KML


@pytest.fixture()
def track_kml() -> str:
    """Track KML: one forecast line plus two points inside a Folder."""
    return TRACK_KML


# ---------------------------------------------------------------------------
# KMZ archives
# ---------------------------------------------------------------------------


def build_kmz(entries: list[tuple[str, bytes | str]]) -> bytes:
    """Build an in-memory zip archive from ``(name, content)`` pairs."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries:
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture()
def make_kmz() -> Callable[[list[tuple[str, bytes | str]]], bytes]:
    """Factory fixture building KMZ bytes from ``(name, content)`` pairs."""
    return build_kmz


@pytest.fixture()
def cone_kmz() -> bytes:
    return build_kmz([("icons/cone.png", b"\x89PNG"), ("al052025_cone.kml", CONE_KML)])


@pytest.fixture()
def track_kmz() -> bytes:
    return build_kmz([("al052025_track.kml", TRACK_KML)])


# ---------------------------------------------------------------------------
# A-deck text
# ---------------------------------------------------------------------------


def adeck_line(
    cycle: str,
    tech: str,
    tau: int | str,
    lat: str,
    lon: str,
    vmax: int | str = 35,
) -> str:
    """Format one A-deck record with the usual ATCF column padding."""
    return f"AL, 05, {cycle}, 03, {tech}, {tau:>3}, {lat}, {lon}, {vmax:>3}, 1005, TS"


ADECK_TEXT = "\n".join(
    [
        adeck_line("2025090100", "AEMN", 0, "142N", "0805W", 40),
        adeck_line("2025090100", "AP01", 0, "143N", "0806W", 40),
        adeck_line("2025090106", "AP02", 0, "150N", "0810W", 45),
        adeck_line("2025090106", "AP02", 12, "155N", "0820W", 50),
        adeck_line("2025090106", "AEMN", 0, "150N", "0810W", 45),
        adeck_line("2025090106", "AC00", 0, "151N", "0811W", 45),
        adeck_line("2025090106", "AP01", 12, "156N", "0821W", 50),
        adeck_line("2025090106", "AP01", 0, "151N", "0812W", 45),
        adeck_line("2025090106", "OFCL", 0, "150N", "0810W", 45),
        adeck_line("2025090106", "AVNO", 0, "150N", "0810W", 45),
    ]
)


@pytest.fixture()
def adeck_text() -> str:
    """Two cycles; the later one has AEMN, AC00, AP01, AP02 and non-GEFS techs."""
    return ADECK_TEXT
