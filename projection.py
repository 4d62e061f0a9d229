"""Zoned Transverse Mercator projection on the Everest 1956 ellipsoid.

Zones are 6 degrees wide and numbered 1..60 from 180W. Every call infers its
zone from longitude; nothing is carried between calls. Forward and inverse
use the classic series expansions (Snyder, USGS PP 1395) with a central
meridian scale of 0.9996 and a 500 km false easting. No false northing is
applied, so northings are only meaningful north of the equator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from coordinates import GeoCoordinate
from datum import EVEREST_1956

SCALE_FACTOR = 0.9996
FALSE_EASTING = 500000.0
ZONE_WIDTH_DEGREES = 6


@dataclass(frozen=True)
class ProjectedPoint:
    """Easting/northing in metres within a numbered zone."""

    zone: int
    easting: float
    northing: float


def zone_for_longitude(lng: float) -> int:
    # lng == 180 belongs to zone 60, not a 61st zone.
    return min(int(math.floor((lng + 180.0) / ZONE_WIDTH_DEGREES)) + 1, 60)


def central_meridian(zone: int) -> float:
    return (zone - 1) * ZONE_WIDTH_DEGREES - 180 + 3


def _meridional_arc(lat_rad: float, a: float, e2: float) -> float:
    e4 = e2 * e2
    e6 = e4 * e2
    return a * (
        (1 - e2 / 4 - 3 * e4 / 64 - 5 * e6 / 256) * lat_rad
        - (3 * e2 / 8 + 3 * e4 / 32 + 45 * e6 / 1024) * math.sin(2 * lat_rad)
        + (15 * e4 / 256 + 45 * e6 / 1024) * math.sin(4 * lat_rad)
        - (35 * e6 / 3072) * math.sin(6 * lat_rad)
    )


def project(local_coord: GeoCoordinate, zone: Optional[int] = None) -> ProjectedPoint:
    """Project an Everest 1956 coordinate onto its zone's grid.

    ``zone`` defaults to the zone containing the longitude; passing a
    neighbouring zone extends that zone's grid past its edge. Callers must
    reject ``|lat| >= 90`` beforehand; at the poles the series degenerates
    and the result is not meaningful.
    """

    if zone is None:
        zone = zone_for_longitude(local_coord.lng)
    lat_rad = math.radians(local_coord.lat)
    lng_rad = math.radians(local_coord.lng)
    lng0_rad = math.radians(central_meridian(zone))

    a = EVEREST_1956.semi_major_axis
    e2 = EVEREST_1956.eccentricity_squared
    ep2 = e2 / (1 - e2)

    sin_lat = math.sin(lat_rad)
    cos_lat = math.cos(lat_rad)
    tan_lat = math.tan(lat_rad)

    n = a / math.sqrt(1 - e2 * sin_lat * sin_lat)
    t = tan_lat * tan_lat
    c = ep2 * cos_lat * cos_lat
    big_a = (lng_rad - lng0_rad) * cos_lat
    m = _meridional_arc(lat_rad, a, e2)

    easting = SCALE_FACTOR * n * (
        big_a
        + (1 - t + c) * big_a ** 3 / 6
        + (5 - 18 * t + t * t + 72 * c - 58 * ep2) * big_a ** 5 / 120
    ) + FALSE_EASTING

    northing = SCALE_FACTOR * (
        m
        + n * tan_lat * (
            big_a ** 2 / 2
            + (5 - t + 9 * c + 4 * c * c) * big_a ** 4 / 24
            + (61 - 58 * t + t * t + 600 * c - 330 * ep2) * big_a ** 6 / 720
        )
    )

    return ProjectedPoint(zone=zone, easting=easting, northing=northing)


def unproject(zone: int, easting: float, northing: float) -> GeoCoordinate:
    """Inverse projection back to an Everest 1956 coordinate.

    The zone cannot be recovered from easting/northing, so it is supplied by
    the caller. Out-of-domain input yields non-finite or out-of-range values
    rather than an exception.
    """

    lng0_rad = math.radians(central_meridian(zone))
    a = EVEREST_1956.semi_major_axis
    e2 = EVEREST_1956.eccentricity_squared
    ep2 = e2 / (1 - e2)
    e1 = (1 - math.sqrt(1 - e2)) / (1 + math.sqrt(1 - e2))

    x = easting - FALSE_EASTING
    m = northing / SCALE_FACTOR
    mu = m / (a * (1 - e2 / 4 - 3 * e2 ** 2 / 64 - 5 * e2 ** 3 / 256))

    # Footpoint latitude.
    lat1 = (
        mu
        + (3 * e1 / 2 - 27 * e1 ** 3 / 32) * math.sin(2 * mu)
        + (21 * e1 ** 2 / 16 - 55 * e1 ** 4 / 32) * math.sin(4 * mu)
        + (151 * e1 ** 3 / 96) * math.sin(6 * mu)
    )

    sin_lat1 = math.sin(lat1)
    cos_lat1 = math.cos(lat1)
    tan_lat1 = math.tan(lat1)
    c1 = ep2 * cos_lat1 ** 2
    t1 = tan_lat1 ** 2
    n1 = a / math.sqrt(1 - e2 * sin_lat1 ** 2)
    r1 = a * (1 - e2) / (1 - e2 * sin_lat1 ** 2) ** 1.5
    d = x / (n1 * SCALE_FACTOR)

    lat_rad = lat1 - (n1 * tan_lat1 / r1) * (
        d ** 2 / 2
        - (5 + 3 * t1 + 10 * c1 - 4 * c1 ** 2 - 9 * ep2) * d ** 4 / 24
        + (61 + 90 * t1 + 298 * c1 + 45 * t1 ** 2 - 252 * ep2 - 3 * c1 ** 2) * d ** 6 / 720
    )
    lng_rad = lng0_rad + (
        d
        - (1 + 2 * t1 + c1) * d ** 3 / 6
        + (5 - 2 * c1 + 28 * t1 - 3 * c1 ** 2 + 8 * ep2 + 24 * t1 ** 2) * d ** 5 / 120
    ) / cos_lat1

    return GeoCoordinate(math.degrees(lat_rad), math.degrees(lng_rad))


__all__ = [
    "FALSE_EASTING",
    "ProjectedPoint",
    "SCALE_FACTOR",
    "central_meridian",
    "project",
    "unproject",
    "zone_for_longitude",
]
