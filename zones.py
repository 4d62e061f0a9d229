"""Catalog of navigation zones and base map layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from coordinates import GeoCoordinate, is_valid_coordinate


@dataclass(frozen=True)
class ZoneBounds:
    """Rectangle in WGS 84 degrees."""

    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float

    def contains(self, coord: GeoCoordinate) -> bool:
        return (self.min_lat <= coord.lat <= self.max_lat
                and self.min_lng <= coord.lng <= self.max_lng)


@dataclass(frozen=True)
class Zone:
    """A named region with a default view and a cacheable zoom range."""

    key: str
    name: str
    center: GeoCoordinate
    zoom: int
    bounds: Optional[ZoneBounds] = None
    min_zoom_for_cache: int = 0
    max_zoom_for_cache: int = 0

    @property
    def cacheable(self) -> bool:
        return self.bounds is not None and self.max_zoom_for_cache >= self.min_zoom_for_cache


@dataclass(frozen=True)
class MapLayer:
    """Base map tile source."""

    key: str
    name: str
    url_template: str
    attribution: str
    subdomains: Tuple[str, ...] = ()


def _zone(key, name, lat, lng, zoom, bounds=None, zooms=(0, 0)):
    return Zone(
        key=key,
        name=name,
        center=GeoCoordinate(lat, lng),
        zoom=zoom,
        bounds=ZoneBounds(*bounds) if bounds else None,
        min_zoom_for_cache=zooms[0],
        max_zoom_for_cache=zooms[1],
    )


ZONES: Dict[str, Zone] = {
    zone.key: zone
    for zone in (
        _zone("default", "Select a Zone to Navigate", 28.7, 77.1, 5),
        _zone("zone_0", "Zone 0: North of 35°35'N", 35.88, 76.51, 8,
              (35.58, 74.5, 37.0, 78.5), (9, 13)),
        _zone("zone_ia", "Zone IA: 28°N-35°35'N", 34.0, 74.5, 7,
              (28.0, 72.0, 35.58, 77.0), (9, 13)),
        _zone("zone_ib", "Zone IB: Tibet", 31.0, 88.0, 6,
              (28.0, 84.0, 33.0, 92.0), (8, 12)),
        _zone("zone_iia", "Zone IIA: 21°N-28°N (West)", 26.0, 72.0, 6,
              (21.0, 68.0, 28.0, 76.0), (8, 12)),
        _zone("zone_iib", "Zone IIB: 21°N-28°N (East)", 23.5, 90.0, 7,
              (21.0, 88.0, 28.0, 92.0), (9, 13)),
        _zone("zone_iiia", "Zone IIIA: 15°N-21°N (India)", 18.0, 79.0, 6,
              (15.0, 74.0, 21.0, 84.0), (8, 12)),
        _zone("zone_iiib", "Zone IIIB: 15°N-21°N (Myanmar)", 19.7, 96.1, 7,
              (15.0, 92.0, 21.0, 98.0), (9, 13)),
        _zone("zone_iva", "Zone IVA: South of 15°N (India)", 12.9, 77.5, 6,
              (8.0, 74.0, 15.0, 81.0), (8, 12)),
        _zone("zone_ivb", "Zone IVB: South of 15°N (Myanmar)", 16.8, 96.1, 7,
              (10.0, 95.0, 15.0, 99.0), (9, 13)),
    )
}

MAP_LAYERS: Dict[str, MapLayer] = {
    "dark": MapLayer(
        key="dark",
        name="Dark",
        url_template="https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}.png",
        attribution="&copy; OpenStreetMap contributors &copy; CARTO",
        subdomains=("a", "b", "c", "d"),
    ),
    "street": MapLayer(
        key="street",
        name="Street",
        url_template="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        attribution="&copy; OpenStreetMap contributors",
        subdomains=("a", "b", "c"),
    ),
    "satellite": MapLayer(
        key="satellite",
        name="Satellite",
        url_template="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attribution="Tiles &copy; Esri",
    ),
}

DEFAULT_ZONE_KEY = "default"
DEFAULT_LAYER_KEY = "dark"


def get_zone(key: str) -> Zone:
    try:
        return ZONES[key]
    except KeyError:
        raise KeyError(f"Unknown zone: {key!r}") from None


def get_layer(key: str) -> MapLayer:
    try:
        return MAP_LAYERS[key]
    except KeyError:
        raise KeyError(f"Unknown map layer: {key!r}") from None


def find_zone_for_position(coord: Optional[GeoCoordinate]) -> Optional[Zone]:
    """Return the first catalog zone whose bounds contain ``coord``."""
    if not is_valid_coordinate(coord):
        return None
    for zone in ZONES.values():
        if zone.bounds is not None and zone.bounds.contains(coord):
            return zone
    return None


def registry_key(zone_key: str, layer_key: str) -> str:
    """Cache registry key recording that a zone/layer pair is available offline."""
    return f"{zone_key}_{layer_key}"


__all__ = [
    "DEFAULT_LAYER_KEY",
    "DEFAULT_ZONE_KEY",
    "MAP_LAYERS",
    "MapLayer",
    "ZONES",
    "Zone",
    "ZoneBounds",
    "find_zone_for_position",
    "get_layer",
    "get_zone",
    "registry_key",
]
