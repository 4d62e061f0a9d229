"""Validation of raw position fixes.

Fixes arrive as ``{lat, lng, horizontalAccuracyMeters?, verticalAccuracyMeters?}``
mappings. Anything that is not a finite, in-range coordinate is turned into
``None`` so consumers can drop it silently.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from coordinates import GeoCoordinate, is_valid_coordinate

_LAT_KEYS = ("lat", "latitude")
_LNG_KEYS = ("lng", "lon", "longitude")
_HORIZONTAL_KEYS = ("horizontalAccuracyMeters", "horizontal_accuracy", "accuracy")
_VERTICAL_KEYS = ("verticalAccuracyMeters", "vertical_accuracy", "altitudeAccuracy")

FeedSource = Union[Sequence[GeoCoordinate], Sequence[Dict[str, Any]], Path, str]


def _first(payload: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _optional_accuracy(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) and number >= 0 else None


def coordinate_from_fix(payload: Union[GeoCoordinate, Mapping[str, Any], None]) -> Optional[GeoCoordinate]:
    """Validate one raw position fix; ``None`` for anything unusable."""

    if isinstance(payload, GeoCoordinate):
        return payload if is_valid_coordinate(payload) else None
    if not isinstance(payload, Mapping):
        return None
    lat = _first(payload, _LAT_KEYS)
    lng = _first(payload, _LNG_KEYS)
    if isinstance(lat, bool) or isinstance(lng, bool):
        return None
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return None
    coord = GeoCoordinate(
        float(lat),
        float(lng),
        _optional_accuracy(_first(payload, _HORIZONTAL_KEYS)),
        _optional_accuracy(_first(payload, _VERTICAL_KEYS)),
    )
    return coord if is_valid_coordinate(coord) else None


def coordinate_from_signal(lat: float, lng: float, horizontal: float, vertical: float) -> Optional[GeoCoordinate]:
    """Rebuild a coordinate from provider signal arguments (NaN means absent)."""
    return coordinate_from_fix({
        "lat": lat,
        "lng": lng,
        "horizontalAccuracyMeters": None if math.isnan(horizontal) else horizontal,
        "verticalAccuracyMeters": None if math.isnan(vertical) else vertical,
    })


def load_feed(feed_source: FeedSource) -> List[GeoCoordinate]:
    """Normalise recorded fixes from coordinates, dicts or a JSON file.

    Track dictionaries with a ``points`` list are flattened, and entries
    wrapped as ``{"coordinate": {...}}`` are unwrapped. Invalid fixes are
    dropped the same way live fixes are.
    """

    if isinstance(feed_source, (str, Path)):
        data = json.loads(Path(feed_source).read_text())
        return load_feed(data)
    coordinates: List[GeoCoordinate] = []
    for entry in feed_source:
        if isinstance(entry, dict) and "points" in entry:
            coordinates.extend(load_feed(entry["points"]))
            continue
        if isinstance(entry, dict):
            coord = coordinate_from_fix(entry.get("coordinate", entry))
        elif isinstance(entry, GeoCoordinate):
            coord = coordinate_from_fix(entry)
        else:
            raise TypeError(f"Unsupported feed entry type: {type(entry)!r}")
        if coord is not None:
            coordinates.append(coord)
    return coordinates


__all__ = ["coordinate_from_fix", "coordinate_from_signal", "load_feed"]
