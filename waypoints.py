"""Waypoint book persistence and GPX export."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from coordinates import GeoCoordinate, is_valid_coordinate
from grid_reference import GridReference, format_grid_reference, parse_grid_reference
from logger import LogCategory, get_logger
from route import Route

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"


@dataclass
class Waypoint:
    """A named, user-saved location."""

    name: str
    coordinate: GeoCoordinate
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def grid_reference(self) -> Optional[GridReference]:
        return format_grid_reference(self.coordinate)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
            "created_at": self.created_at.isoformat(),
        }
        grid = self.grid_reference
        if grid is not None:
            data["grid"] = {"zone": grid.zone, "easting": grid.easting, "northing": grid.northing}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Waypoint":
        """Rebuild a waypoint; raises ``ValueError``/``KeyError`` on bad records."""
        name = str(data["name"])
        if "lat" in data and "lng" in data:
            coordinate = GeoCoordinate(float(data["lat"]), float(data["lng"]))
        else:
            grid = data["grid"]
            coordinate = parse_grid_reference(grid["zone"], grid["easting"], grid["northing"])
        if not is_valid_coordinate(coordinate):
            raise ValueError(f"Invalid coordinate for waypoint {name!r}")
        created = data.get("created_at")
        created_at = datetime.fromisoformat(created) if created else datetime.now()
        return cls(name=name, coordinate=coordinate, created_at=created_at)


PathLike = Union[str, Path]


def save_waypoints(path: PathLike, waypoints: Iterable[Waypoint]) -> None:
    """Save waypoints to file."""
    logger = get_logger()
    data = [waypoint.to_dict() for waypoint in waypoints]
    try:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved {len(data)} waypoints", category=LogCategory.DATA)
    except OSError as e:
        logger.error("Failed to save waypoints", exception=e, category=LogCategory.DATA)
        raise


def load_waypoints(path: PathLike) -> List[Waypoint]:
    """Load waypoints from file, skipping records that cannot be read."""
    logger = get_logger()
    path = Path(path)
    if not path.exists():
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load waypoints", exception=e, category=LogCategory.DATA)
        return []
    if not isinstance(data, list):
        logger.warning("Waypoint file is not a list", category=LogCategory.DATA, path=str(path))
        return []
    waypoints = []
    for waypoint_dict in data:
        try:
            waypoints.append(Waypoint.from_dict(waypoint_dict))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load waypoint: {e}", category=LogCategory.DATA,
                           waypoint_data=waypoint_dict)
    logger.info(f"Loaded {len(waypoints)} waypoints", category=LogCategory.DATA)
    return waypoints


def _gpx(tag: str) -> str:
    return f"{{{GPX_NAMESPACE}}}{tag}"


def _point(parent: ET.Element, tag: str, coordinate: GeoCoordinate) -> ET.Element:
    return ET.SubElement(parent, _gpx(tag), lat=f"{coordinate.lat:.7f}", lon=f"{coordinate.lng:.7f}")


def export_gpx(path: PathLike, waypoints: Iterable[Waypoint] = (), routes: Iterable[Route] = (),
               tracks: Iterable[Sequence[GeoCoordinate]] = ()) -> None:
    """Export waypoints, planned routes and breadcrumb tracks as GPX 1.1."""
    ET.register_namespace("", GPX_NAMESPACE)
    gpx = ET.Element(_gpx("gpx"), version="1.1", creator="GridNav")
    counts = {"waypoints": 0, "routes": 0, "tracks": 0}
    for waypoint in waypoints:
        wpt = _point(gpx, "wpt", waypoint.coordinate)
        ET.SubElement(wpt, _gpx("time")).text = waypoint.created_at.isoformat()
        ET.SubElement(wpt, _gpx("name")).text = waypoint.name
        grid = waypoint.grid_reference
        if grid is not None:
            ET.SubElement(wpt, _gpx("desc")).text = grid.as_text()
        counts["waypoints"] += 1
    for route in routes:
        rte = ET.SubElement(gpx, _gpx("rte"))
        ET.SubElement(rte, _gpx("name")).text = route.name
        for point in route.waypoints:
            ET.SubElement(_point(rte, "rtept", point.coordinate), _gpx("name")).text = point.name
        counts["routes"] += 1
    for index, track in enumerate(tracks, start=1):
        trk = ET.SubElement(gpx, _gpx("trk"))
        ET.SubElement(trk, _gpx("name")).text = f"Track {index}"
        segment = ET.SubElement(trk, _gpx("trkseg"))
        for coordinate in track:
            _point(segment, "trkpt", coordinate)
        counts["tracks"] += 1
    try:
        ET.ElementTree(gpx).write(str(path), encoding='utf-8', xml_declaration=True)
    except OSError as e:
        get_logger().error("Failed to export GPX", exception=e, category=LogCategory.DATA)
        raise
    get_logger().log_user_action("navigation_data_exported", {"format": "GPX", "file_path": str(path), **counts})


__all__ = ["Waypoint", "export_gpx", "load_waypoints", "save_waypoints"]
