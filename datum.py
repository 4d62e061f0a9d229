"""Datum transformation between WGS 84 and the Everest 1956 ellipsoid.

Coordinates are taken to 3D Cartesian space on their own ellipsoid (height is
always zero), shifted by a fixed three-parameter origin offset and brought
back to geodetic form on the other ellipsoid. The reverse conversion uses a
bounded five pass refinement of latitude rather than a convergence-checked
solver; five passes stay well inside a metre for terrestrial latitudes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from coordinates import GeoCoordinate


@dataclass(frozen=True)
class Ellipsoid:
    """Reference ellipsoid constants."""

    name: str
    semi_major_axis: float
    flattening: float
    semi_minor_axis: float
    eccentricity_squared: float


@dataclass(frozen=True)
class DatumShift:
    """Cartesian origin offset in metres from the local to the global datum."""

    dx: float
    dy: float
    dz: float


WGS84 = Ellipsoid(
    name="WGS 84",
    semi_major_axis=6378137.0,
    flattening=1 / 298.257223563,
    semi_minor_axis=6356752.314245,
    eccentricity_squared=0.00669437999014,
)

EVEREST_1956 = Ellipsoid(
    name="Everest 1956",
    semi_major_axis=6377301.243,
    flattening=1 / 300.8017,
    semi_minor_axis=6356100.228,
    eccentricity_squared=0.006637847,
)

# Applied additively for Everest -> WGS 84, subtractively for the reverse.
EVEREST_TO_WGS84 = DatumShift(dx=295.0, dy=736.0, dz=257.0)

LATITUDE_ITERATIONS = 5
POLAR_RADIUS_EPSILON = 1e-6
COS_LATITUDE_EPSILON = 1e-12


def geodetic_to_cartesian(coord: GeoCoordinate, ellipsoid: Ellipsoid) -> Tuple[float, float, float]:
    """Convert a zero-height geodetic coordinate to Earth-centred X, Y, Z."""

    lat_rad = math.radians(coord.lat)
    lng_rad = math.radians(coord.lng)
    e2 = ellipsoid.eccentricity_squared
    sin_lat = math.sin(lat_rad)
    n = ellipsoid.semi_major_axis / math.sqrt(1 - e2 * sin_lat * sin_lat)
    x = n * math.cos(lat_rad) * math.cos(lng_rad)
    y = n * math.cos(lat_rad) * math.sin(lng_rad)
    z = (1 - e2) * n * sin_lat
    return x, y, z


def cartesian_to_geodetic(x: float, y: float, z: float, ellipsoid: Ellipsoid) -> Tuple[float, float]:
    """Convert Earth-centred X, Y, Z to ``(lat, lng)`` degrees on ``ellipsoid``.

    Longitude is exact. Latitude starts from the closed-form guess and is
    refined a fixed number of times with the prime vertical radius of
    curvature recomputed on every pass.
    """

    a = ellipsoid.semi_major_axis
    e2 = ellipsoid.eccentricity_squared
    lng_rad = math.atan2(y, x)
    p = math.sqrt(x * x + y * y)

    if p < POLAR_RADIUS_EPSILON:
        return (90.0 if z > 0 else -90.0), 0.0

    lat_rad = math.atan(z / (p * (1 - e2)))
    for _ in range(LATITUDE_ITERATIONS):
        cos_lat = math.cos(lat_rad)
        if abs(cos_lat) < COS_LATITUDE_EPSILON:
            lat_rad = math.pi / 2 if z >= 0 else -math.pi / 2
            break
        sin_lat = math.sin(lat_rad)
        n = a / math.sqrt(1 - e2 * sin_lat * sin_lat)
        height = p / cos_lat - n
        lat_rad = math.atan(z / (p * (1 - e2 * n / (n + height))))

    return math.degrees(lat_rad), math.degrees(lng_rad)


def to_local(global_coord: GeoCoordinate) -> GeoCoordinate:
    """WGS 84 -> Everest 1956."""

    x, y, z = geodetic_to_cartesian(global_coord, WGS84)
    shift = EVEREST_TO_WGS84
    lat, lng = cartesian_to_geodetic(x - shift.dx, y - shift.dy, z - shift.dz, EVEREST_1956)
    return global_coord.moved_to(lat, lng)


def to_global(local_coord: GeoCoordinate) -> GeoCoordinate:
    """Everest 1956 -> WGS 84."""

    x, y, z = geodetic_to_cartesian(local_coord, EVEREST_1956)
    shift = EVEREST_TO_WGS84
    lat, lng = cartesian_to_geodetic(x + shift.dx, y + shift.dy, z + shift.dz, WGS84)
    return local_coord.moved_to(lat, lng)


__all__ = [
    "DatumShift",
    "Ellipsoid",
    "EVEREST_1956",
    "EVEREST_TO_WGS84",
    "WGS84",
    "cartesian_to_geodetic",
    "geodetic_to_cartesian",
    "to_global",
    "to_local",
]
