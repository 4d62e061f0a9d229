"""Geodetic coordinate value type shared by every GridNav component."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeoCoordinate:
    """Latitude/longitude in decimal degrees with optional fix accuracy.

    Instances are immutable; the datum a coordinate belongs to (WGS 84 or
    Everest 1956) is implied by the function that produced it.
    """

    lat: float
    lng: float
    horizontal_accuracy: Optional[float] = None
    vertical_accuracy: Optional[float] = None

    @property
    def latitude_dms(self) -> str:
        """Latitude in degrees, minutes, seconds format."""
        return _decimal_to_dms(self.lat, "NS")

    @property
    def longitude_dms(self) -> str:
        """Longitude in degrees, minutes, seconds format."""
        return _decimal_to_dms(self.lng, "EW")

    def moved_to(self, lat: float, lng: float) -> "GeoCoordinate":
        """Return a coordinate at a new position keeping the accuracy metadata."""
        return GeoCoordinate(lat, lng, self.horizontal_accuracy, self.vertical_accuracy)


def is_valid_coordinate(coord: Optional[GeoCoordinate]) -> bool:
    """Return ``True`` when ``coord`` holds finite, in-range latitude and longitude."""

    if coord is None:
        return False
    lat, lng = coord.lat, coord.lng
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def _decimal_to_dms(decimal: float, directions: str) -> str:
    direction = directions[0] if decimal >= 0 else directions[1]
    decimal = abs(decimal)
    degrees = int(decimal)
    minutes = int((decimal - degrees) * 60)
    seconds = ((decimal - degrees) * 60 - minutes) * 60
    return f"{degrees} deg {minutes}' {seconds:.2f}\" {direction}"


__all__ = ["GeoCoordinate", "is_valid_coordinate"]
