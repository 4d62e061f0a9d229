"""Grid lines and edge labels for the visible map area.

Lines are computed on the Everest 1956 grid of the zone under the view
centre and converted back to WGS 84 for drawing. Nothing here touches a
rendering surface; the result is plain data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

from coordinates import GeoCoordinate, is_valid_coordinate
from datum import to_global, to_local
from logger import LogCategory, get_logger
from projection import project, unproject

MAX_GRID_LATITUDE = 89.999
MAJOR_LINE_FACTOR = 10
LABEL_MIN_ZOOM = 10

# Grid step (metres) -> lowest zoom at which it is drawn.
MIN_ZOOM_FOR_STEP = {1000: 12, 5000: 10, 10000: 8}


@dataclass(frozen=True)
class GridLine:
    start: GeoCoordinate
    end: GeoCoordinate
    value: int
    orientation: str  # "easting" (north-south line) or "northing" (east-west line)
    major: bool = False


@dataclass(frozen=True)
class GridLabel:
    position: GeoCoordinate
    text: str
    edge: str  # "north", "south", "west" or "east"


@dataclass
class GridOverlay:
    zone: Optional[int] = None
    step: Optional[int] = None
    lines: List[GridLine] = field(default_factory=list)
    labels: List[GridLabel] = field(default_factory=list)

    @property
    def visible(self) -> bool:
        return bool(self.lines)


def grid_step_for_zoom(zoom: float, interval: Union[str, int] = "auto") -> int:
    if interval != "auto":
        return int(interval)
    if zoom > 14:
        return 1000
    if zoom > 11:
        return 5000
    return 10000


def min_zoom_for_step(step: int) -> int:
    return MIN_ZOOM_FOR_STEP.get(step, 8)


def grid_label(value: float) -> str:
    """Two-digit kilometre label, e.g. ``772000 -> "72"``."""
    return str(int(math.floor(value / 1000)) % 100).zfill(2)


def _to_wgs84(zone: int, easting: float, northing: float) -> Optional[GeoCoordinate]:
    try:
        coord = to_global(unproject(zone, easting, northing))
    except (OverflowError, ValueError, ZeroDivisionError):
        return None
    return coord if is_valid_coordinate(coord) else None


def _to_local(lat: float, lng: float) -> Optional[GeoCoordinate]:
    local = to_local(GeoCoordinate(lat, lng))
    if not is_valid_coordinate(local) or abs(local.lat) >= 90:
        return None
    return local


def compute_grid_overlay(south: float, west: float, north: float, east: float, zoom: float,
                         interval: Union[str, int] = "auto", show_labels: bool = True) -> GridOverlay:
    """Grid lines (and optionally labels) covering the given WGS 84 bounds."""

    step = grid_step_for_zoom(zoom, interval)
    if zoom < min_zoom_for_step(step):
        return GridOverlay(step=step)

    north = min(north, MAX_GRID_LATITUDE)
    south = max(south, -MAX_GRID_LATITUDE)
    center = _to_local((north + south) / 2, (west + east) / 2)
    south_west = _to_local(south, west)
    north_east = _to_local(north, east)
    if center is None or south_west is None or north_east is None:
        get_logger().debug("Grid overlay skipped for out-of-domain bounds",
                           category=LogCategory.GEODESY, south=south, west=west,
                           north=north, east=east)
        return GridOverlay(step=step)

    zone = project(center).zone
    sw = project(south_west, zone)
    ne = project(north_east, zone)
    min_easting = int(math.floor(sw.easting / step) * step)
    max_easting = int(math.ceil(ne.easting / step) * step)
    min_northing = int(math.floor(sw.northing / step) * step)
    max_northing = int(math.ceil(ne.northing / step) * step)

    overlay = GridOverlay(zone=zone, step=step)
    with_labels = show_labels and zoom > LABEL_MIN_ZOOM

    for easting in range(min_easting, max_easting + 1, step):
        start = _to_wgs84(zone, easting, min_northing)
        end = _to_wgs84(zone, easting, max_northing)
        if start is None or end is None:
            continue
        overlay.lines.append(GridLine(start, end, easting, "easting",
                                      major=easting % (step * MAJOR_LINE_FACTOR) == 0))
        if with_labels:
            top = _to_wgs84(zone, easting, ne.northing)
            bottom = _to_wgs84(zone, easting, sw.northing)
            if top is None or bottom is None:
                continue
            text = grid_label(easting)
            overlay.labels.append(GridLabel(GeoCoordinate(north, top.lng), text, "north"))
            overlay.labels.append(GridLabel(GeoCoordinate(south, bottom.lng), text, "south"))

    for northing in range(min_northing, max_northing + 1, step):
        start = _to_wgs84(zone, min_easting, northing)
        end = _to_wgs84(zone, max_easting, northing)
        if start is None or end is None:
            continue
        overlay.lines.append(GridLine(start, end, northing, "northing",
                                      major=northing % (step * MAJOR_LINE_FACTOR) == 0))
        if with_labels:
            left = _to_wgs84(zone, sw.easting, northing)
            right = _to_wgs84(zone, ne.easting, northing)
            if left is None or right is None:
                continue
            text = grid_label(northing)
            overlay.labels.append(GridLabel(GeoCoordinate(left.lat, west), text, "west"))
            overlay.labels.append(GridLabel(GeoCoordinate(right.lat, east), text, "east"))

    get_logger().trace("Computed grid overlay", category=LogCategory.GEODESY, zone=zone,
                       step=step, lines=len(overlay.lines), labels=len(overlay.labels))
    return overlay


__all__ = [
    "GridLabel",
    "GridLine",
    "GridOverlay",
    "compute_grid_overlay",
    "grid_label",
    "grid_step_for_zoom",
    "min_zoom_for_step",
]
