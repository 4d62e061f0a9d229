"""Grid reference codec: WGS 84 coordinates <-> zone/easting/northing text.

The external format is three fields: a zone number 1..60 and 7-digit,
zero-padded easting and northing in whole metres on the Everest 1956 grid.
Both directions return ``None`` instead of raising; every exit is gated by
:func:`coordinates.is_valid_coordinate`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from coordinates import GeoCoordinate, is_valid_coordinate
from datum import to_global, to_local
from logger import LogCategory, get_logger
from projection import project, unproject

GRID_DIGITS = 7
MIN_ZONE = 1
MAX_ZONE = 60

_INTEGER_FIELD = re.compile(r"\s*(\d+)\s*")


@dataclass(frozen=True)
class GridReference:
    """A formatted grid reference. Always derived, never stored as truth."""

    zone: int
    easting: str
    northing: str

    def as_text(self) -> str:
        return f"{self.zone} {self.easting} {self.northing}"

    def short_form(self, figures: int = 6) -> str:
        """Abbreviated reference, e.g. ``"160 681"`` for 6 figures.

        Drops the two leading (100 km) digits of each field and keeps
        ``figures // 2`` digits of easting and northing.
        """

        if figures not in (4, 6, 8, 10):
            raise ValueError(f"Unsupported grid reference precision: {figures}")
        digits = figures // 2
        return f"{self.easting[2:2 + digits]} {self.northing[2:2 + digits]}"


def format_grid_reference(global_coord: Optional[GeoCoordinate]) -> Optional[GridReference]:
    """Format a WGS 84 coordinate as a grid reference, or ``None``."""

    if not is_valid_coordinate(global_coord):
        return None

    local_coord = to_local(global_coord)
    # The projection series is not defined at the poles.
    if not is_valid_coordinate(local_coord) or abs(local_coord.lat) >= 90:
        get_logger().debug(
            "Grid formatting rejected near-polar coordinate",
            category=LogCategory.GEODESY,
            lat=global_coord.lat,
            lng=global_coord.lng,
        )
        return None

    point = project(local_coord)
    easting = round(point.easting)
    northing = round(point.northing)
    if easting < 0 or northing < 0:
        # Southern hemisphere northings have no false northing to keep them positive.
        get_logger().debug(
            "Grid formatting produced a negative grid value",
            category=LogCategory.GEODESY,
            zone=point.zone,
            easting=easting,
            northing=northing,
        )
        return None

    return GridReference(
        zone=point.zone,
        easting=str(easting).zfill(GRID_DIGITS),
        northing=str(northing).zfill(GRID_DIGITS),
    )


def _parse_integer(text: object) -> Optional[int]:
    if isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text
    match = _INTEGER_FIELD.fullmatch(str(text))
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # Digit strings beyond the interpreter limit for int conversion.
        return None


def parse_grid_reference(zone_text: object, easting_text: object, northing_text: object) -> Optional[GeoCoordinate]:
    """Parse the three grid fields into a WGS 84 coordinate, or ``None``."""

    logger = get_logger()
    zone = _parse_integer(zone_text)
    easting = _parse_integer(easting_text)
    northing = _parse_integer(northing_text)
    if zone is None or easting is None or northing is None:
        logger.debug(
            "Rejected non-numeric grid reference",
            category=LogCategory.GEODESY,
            zone=zone_text,
            easting=easting_text,
            northing=northing_text,
        )
        return None
    if not MIN_ZONE <= zone <= MAX_ZONE:
        logger.debug("Rejected grid zone outside 1..60", category=LogCategory.GEODESY, zone=zone)
        return None

    try:
        local_coord = unproject(zone, float(easting), float(northing))
    except (OverflowError, ValueError, ZeroDivisionError) as exc:
        logger.debug(
            "Inverse projection failed for grid reference",
            category=LogCategory.GEODESY,
            zone=zone,
            easting=easting,
            northing=northing,
            error=repr(exc),
        )
        return None

    if not is_valid_coordinate(local_coord) or abs(local_coord.lat) > 90:
        logger.debug(
            "Inverse projection left the valid domain",
            category=LogCategory.GEODESY,
            zone=zone,
            easting=easting,
            northing=northing,
        )
        return None

    global_coord = to_global(local_coord)
    if not is_valid_coordinate(global_coord):
        return None
    return global_coord


def parse_grid_text(text: str) -> Optional[GeoCoordinate]:
    """Parse the single-line ``"<zone> <easting> <northing>"`` form."""

    fields = str(text).split()
    if len(fields) != 3:
        return None
    return parse_grid_reference(*fields)


__all__ = [
    "GridReference",
    "format_grid_reference",
    "is_valid_coordinate",
    "parse_grid_reference",
    "parse_grid_text",
]
