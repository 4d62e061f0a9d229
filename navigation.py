"""Great-circle navigation math and readout formatting.

All functions are pure and operate on WGS 84 coordinates using a spherical
Earth of mean radius 6 371 km.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable, Optional

from coordinates import GeoCoordinate, is_valid_coordinate

if TYPE_CHECKING:
    from route import Route

EARTH_RADIUS_METERS = 6371000.0

_COMPASS_POINTS = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
                   "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]


def distance_meters(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """Haversine distance between two coordinates in metres."""
    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points.
    return EARTH_RADIUS_METERS * 2 * math.asin(math.sqrt(min(1.0, h)))


def initial_bearing_degrees(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """Forward azimuth from ``a`` to ``b`` in ``[0, 360)``; 0 when they coincide."""
    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)
    dlng = lng2 - lng1
    y = math.sin(dlng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    bearing = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # (tiny negative + 360) can round to exactly 360.0
    return 0.0 if bearing >= 360.0 else bearing


def path_length(points: Iterable[GeoCoordinate]) -> float:
    """Sum of consecutive segment lengths along ``points``."""
    total = 0.0
    previous: Optional[GeoCoordinate] = None
    for point in points:
        if previous is not None:
            total += distance_meters(previous, point)
        previous = point
    return total


def remaining_route_distance(route: "Route", leg_index: int, current: GeoCoordinate) -> float:
    """Distance still to travel: to waypoint ``leg_index`` then along the rest.

    Returns 0 once the route is exhausted or when ``current`` is not a valid
    coordinate.
    """
    waypoints = route.coordinates()
    if leg_index < 0 or leg_index >= len(waypoints) or not is_valid_coordinate(current):
        return 0.0
    return distance_meters(current, waypoints[leg_index]) + path_length(waypoints[leg_index:])


def bearing_to_compass(bearing: float) -> str:
    """Convert bearing degrees to a 16-point compass direction."""
    bearing = bearing % 360
    index = int((bearing + 11.25) / 22.5) % 16
    return _COMPASS_POINTS[index]


def format_distance(meters: Optional[float]) -> str:
    if meters is None:
        return "---"
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def format_speed(meters_per_second: float) -> str:
    return f"{meters_per_second * 3.6:.1f} km/h"


def estimate_time_enroute(distance: float, speed: float) -> str:
    """Time en route as ``HH:MM:SS``; placeholder when effectively stationary."""
    if speed <= 0.1:
        return "--:--:--"
    seconds = int(round(distance / speed))
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_degrees(coord: Optional[GeoCoordinate]) -> str:
    if not is_valid_coordinate(coord):
        return ""
    return f"Lat: {coord.lat:.5f}° Lng: {coord.lng:.5f}°"


__all__ = [
    "EARTH_RADIUS_METERS",
    "bearing_to_compass",
    "distance_meters",
    "estimate_time_enroute",
    "format_degrees",
    "format_distance",
    "format_speed",
    "initial_bearing_degrees",
    "path_length",
    "remaining_route_distance",
]
