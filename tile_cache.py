"""Slippy-map tile addressing, downloading and on-disk storage."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import urlopen

from logger import LoggableMixin


class TileFetchError(RuntimeError):
    """Raised when a tile cannot be downloaded from the network."""


@dataclass(frozen=True)
class TileAddress:
    """One tile of a layer at a zoom level, with its expanded download URL."""

    zoom: int
    x: int
    y: int
    url: str
    layer: str = ""

    @property
    def key(self) -> str:
        prefix = f"{self.layer}_" if self.layer else ""
        return f"{prefix}{self.zoom}_{self.x}_{self.y}"


TileFetcher = Callable[[TileAddress], Optional[bytes]]


def lon_to_tile_x(lng: float, zoom: int) -> int:
    return int(math.floor((lng + 180.0) / 360.0 * 2 ** zoom))


def lat_to_tile_y(lat: float, zoom: int) -> int:
    lat_rad = math.radians(lat)
    return int(math.floor(
        (1.0 - math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi) / 2.0 * 2 ** zoom
    ))


def coordinate_to_tile(latitude: float, longitude: float, zoom: int) -> Tuple[int, int]:
    """Convert WGS84 coordinates to the XYZ tile space."""
    return lon_to_tile_x(longitude, zoom), lat_to_tile_y(latitude, zoom)


def expand_template(template: str, zoom: int, x: int, y: int, subdomain: Optional[str] = None) -> str:
    """Substitute ``{z}``, ``{x}``, ``{y}`` and ``{s}`` in a tile URL template."""
    url = template.replace("{z}", str(zoom)).replace("{x}", str(x)).replace("{y}", str(y))
    if subdomain is not None:
        url = url.replace("{s}", subdomain)
    return url


class OfflineTileStore(LoggableMixin):
    """Tile images on disk with a JSON manifest of when each was stored."""

    def __init__(self, cache_dir: Optional[Path] = None) -> None:
        super().__init__()
        self.cache_dir = Path(cache_dir) if cache_dir else Path.home() / "GridNav" / "map_tiles"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._manifest_file = self.cache_dir / "manifest.json"
        self._manifest: Dict[str, Dict[str, str]] = {}
        self._load_manifest()

    # ------------------------------------------------------------------
    # Manifest handling
    # ------------------------------------------------------------------
    def _load_manifest(self) -> None:
        if not self._manifest_file.exists():
            self._manifest = {}
            return
        try:
            data = json.loads(self._manifest_file.read_text())
            self._manifest = data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, OSError) as exc:
            self.log_warning("Failed to read map tile manifest", exception=exc)
            self._manifest = {}

    def _save_manifest(self) -> None:
        try:
            self._manifest_file.write_text(json.dumps(self._manifest, indent=2))
        except OSError as exc:
            self.log_warning("Failed to persist map tile manifest", exception=exc)

    # ------------------------------------------------------------------
    # Tile operations
    # ------------------------------------------------------------------
    def _tile_path(self, tile: TileAddress) -> Path:
        return self.cache_dir / f"{tile.key}.png"

    def contains(self, tile: TileAddress) -> bool:
        return tile.key in self._manifest and self._tile_path(tile).exists()

    def read(self, tile: TileAddress) -> Optional[bytes]:
        if not self.contains(tile):
            return None
        try:
            return self._tile_path(tile).read_bytes()
        except OSError as exc:
            self.log_warning("Failed to read cached tile", exception=exc, tile=tile.key)
            return None

    def store(self, tile: TileAddress, payload: bytes) -> Path:
        """Write ``payload`` for ``tile``. ``OSError`` propagates to the caller."""
        path = self._tile_path(tile)
        path.write_bytes(payload)
        self._manifest[tile.key] = {
            "url": tile.url,
            "last_updated": datetime.now().isoformat(),
        }
        self._save_manifest()
        return path

    def last_updated(self, tile: TileAddress) -> Optional[datetime]:
        entry = self._manifest.get(tile.key)
        if not entry:
            return None
        try:
            return datetime.fromisoformat(entry["last_updated"])
        except (KeyError, ValueError):
            return None

    def __len__(self) -> int:
        return len(self._manifest)


class UrlTileFetcher(LoggableMixin):
    """Default network fetcher; any non-200 response is a failure."""

    def __init__(self, timeout: float = 3.0, store: Optional[OfflineTileStore] = None) -> None:
        super().__init__()
        self.timeout = timeout
        self.store = store

    def __call__(self, tile: TileAddress) -> bytes:
        if self.store is not None and self.store.contains(tile):
            payload = self.store.read(tile)
            if payload:
                return payload
        try:
            with urlopen(tile.url, timeout=self.timeout) as response:
                if response.status != 200:
                    raise TileFetchError(f"unexpected status code: {response.status}")
                payload = response.read()
        except (URLError, HTTPError, HTTPException, ValueError) as exc:
            raise TileFetchError(str(exc) or type(exc).__name__) from exc
        if not payload:
            raise TileFetchError("empty tile payload")
        self._logger.log_network_event("tile_downloaded", url=tile.url, status_code=200, size=len(payload))
        if self.store is not None:
            self.store.store(tile, payload)
        return payload


__all__ = [
    "OfflineTileStore",
    "TileAddress",
    "TileFetchError",
    "TileFetcher",
    "UrlTileFetcher",
    "coordinate_to_tile",
    "expand_template",
    "lat_to_tile_y",
    "lon_to_tile_x",
]
