"""Offline tile prefetch: plan the tiles covering a zone and download them.

``plan_zone`` is pure. ``TilePrefetcher.execute`` drives a chunked,
best-effort download and reports progress as a stream of
:class:`PrefetchEvent` values. Cancellation is cooperative: the token is
checked at the start of every chunk and once more before the zone is
recorded in the cache registry, so a cancelled run never marks a zone as
cached. Only one run is active per prefetcher; starting a new one cancels
the previous run first.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from logger import LoggableMixin
from tile_cache import (TileAddress, TileFetchError, TileFetcher, UrlTileFetcher,
                        expand_template, lat_to_tile_y, lon_to_tile_x)
from zones import MapLayer, Zone, registry_key

DEFAULT_CHUNK_SIZE = 50
DEFAULT_PAUSE_SECONDS = 0.05
DEFAULT_FAILURE_RATIO = 0.1


def plan_zone(zone: Zone, layer: MapLayer) -> List[TileAddress]:
    """Every tile covering ``zone.bounds`` for each cacheable zoom level.

    Tiles are ordered by zoom, then column, then row. When the layer
    template has a ``{s}`` placeholder the sub-host is picked from
    ``(x + y) % len(subdomains)``.
    """

    if zone.bounds is None:
        return []
    bounds = zone.bounds
    use_subdomain = "{s}" in layer.url_template and bool(layer.subdomains)
    tiles: List[TileAddress] = []
    for zoom in range(zone.min_zoom_for_cache, zone.max_zoom_for_cache + 1):
        min_x = lon_to_tile_x(bounds.min_lng, zoom)
        max_x = lon_to_tile_x(bounds.max_lng, zoom)
        # Tile rows grow southwards.
        min_y = lat_to_tile_y(bounds.max_lat, zoom)
        max_y = lat_to_tile_y(bounds.min_lat, zoom)
        for x in range(min_x, max_x + 1):
            for y in range(min_y, max_y + 1):
                subdomain = layer.subdomains[(x + y) % len(layer.subdomains)] if use_subdomain else None
                url = expand_template(layer.url_template, zoom, x, y, subdomain)
                tiles.append(TileAddress(zoom=zoom, x=x, y=y, url=url, layer=layer.key))
    return tiles


class CancellationToken:
    """Thread-safe, one-way cancellation flag owned by the caller."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, waking early on cancellation."""
        return self._event.wait(timeout)


class PrefetchEventKind(Enum):
    ALREADY_CACHED = "already_cached"
    STARTED = "started"
    PROGRESS = "progress"
    CANCELLED = "cancelled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self not in (PrefetchEventKind.STARTED, PrefetchEventKind.PROGRESS)


@dataclass(frozen=True)
class PrefetchEvent:
    kind: PrefetchEventKind
    zone_key: str
    layer_key: str
    completed: int = 0
    total: int = 0
    failed: int = 0
    message: str = ""


class TilePrefetcher(LoggableMixin):
    """Downloads a zone's tiles in throttled chunks and records success."""

    def __init__(self, registry, fetcher: Optional[TileFetcher] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 pause_seconds: float = DEFAULT_PAUSE_SECONDS,
                 failure_ratio: float = DEFAULT_FAILURE_RATIO,
                 max_workers: int = 8):
        super().__init__()
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.registry = registry
        self.fetcher: TileFetcher = fetcher or UrlTileFetcher()
        self.chunk_size = chunk_size
        self.pause_seconds = pause_seconds
        self.failure_ratio = failure_ratio
        self.max_workers = max_workers
        self._lock = threading.Lock()
        self._active_token: Optional[CancellationToken] = None

    def cancel(self) -> None:
        """Request cancellation of the active run, if any."""
        with self._lock:
            if self._active_token is not None:
                self._active_token.cancel()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._active_token is not None

    def execute(self, zone: Zone, layer: MapLayer,
                token: Optional[CancellationToken] = None) -> Iterator[PrefetchEvent]:
        """Start a run for ``zone``/``layer`` and return its event stream.

        Any previous run is cancelled before this call returns. Iterate the
        result to make progress; the last event is always terminal.
        """

        token = token or CancellationToken()
        with self._lock:
            if self._active_token is not None and self._active_token is not token:
                self._active_token.cancel()
            self._active_token = token
        return self._run(zone, layer, token)

    def _commit(self, token: CancellationToken, key: str) -> bool:
        """Record ``key`` unless the run was cancelled; serialised with :meth:`cancel`."""
        with self._lock:
            if token.cancelled:
                return False
            self.registry.add(key)
            return True

    def _release(self, token: CancellationToken) -> None:
        with self._lock:
            if self._active_token is token:
                self._active_token = None

    def _fetch_one(self, tile: TileAddress) -> bool:
        try:
            payload = self.fetcher(tile)
        except (TileFetchError, OSError) as exc:
            self.log_trace("Tile fetch failed", url=tile.url, error=str(exc))
            return False
        except Exception as exc:
            # Any fetcher error counts as one failed tile.
            self.log_warning("Tile fetcher raised unexpectedly", exception=exc, url=tile.url)
            return False
        return bool(payload)

    def _run(self, zone: Zone, layer: MapLayer, token: CancellationToken) -> Iterator[PrefetchEvent]:
        key = registry_key(zone.key, layer.key)

        def event(kind, **kwargs):
            return PrefetchEvent(kind=kind, zone_key=zone.key, layer_key=layer.key, **kwargs)

        try:
            if key in self.registry:
                self._logger.log_tile_event("already_cached", zone=zone.key, layer=layer.key)
                yield event(PrefetchEventKind.ALREADY_CACHED, message="Zone already cached")
                return

            if not zone.cacheable:
                self._logger.log_tile_event("not_cacheable", zone=zone.key, layer=layer.key)
                yield event(PrefetchEventKind.FAILED, message="Zone has no cacheable area")
                return

            tiles = plan_zone(zone, layer)
            total = len(tiles)
            completed = 0
            failed = 0
            self._logger.log_tile_event("started", zone=zone.key, layer=layer.key, total=total)
            yield event(PrefetchEventKind.STARTED, total=total)

            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix="tile-prefetch") as pool:
                for start in range(0, total, self.chunk_size):
                    if token.cancelled:
                        self._logger.log_tile_event("cancelled", zone=zone.key, layer=layer.key,
                                                    completed=completed, total=total)
                        yield event(PrefetchEventKind.CANCELLED, completed=completed,
                                    total=total, failed=failed, message="Download cancelled")
                        return
                    chunk = tiles[start:start + self.chunk_size]
                    results = list(pool.map(self._fetch_one, chunk))
                    completed += len(chunk)
                    failed += results.count(False)
                    yield event(PrefetchEventKind.PROGRESS, completed=completed,
                                total=total, failed=failed)
                    if completed < total and self.pause_seconds > 0:
                        token.wait(self.pause_seconds)

            if not token.cancelled and failed > total * self.failure_ratio:
                self.log_warning("Prefetch failed: too many tiles could not be downloaded",
                                 zone=zone.key, layer=layer.key, failed=failed, total=total)
                yield event(PrefetchEventKind.FAILED, completed=completed, total=total,
                            failed=failed,
                            message=f"Download failed: {failed} of {total} tiles could not be fetched")
                return

            if not self._commit(token, key):
                self._logger.log_tile_event("cancelled", zone=zone.key, layer=layer.key,
                                            completed=completed, total=total)
                yield event(PrefetchEventKind.CANCELLED, completed=completed, total=total,
                            failed=failed, message="Download cancelled")
                return
            self._logger.log_tile_event("succeeded", zone=zone.key, layer=layer.key,
                                        total=total, failed=failed)
            yield event(PrefetchEventKind.SUCCEEDED, completed=completed, total=total,
                        failed=failed, message=f"{zone.name} cached for offline use")
        finally:
            self._release(token)


def run_prefetch(prefetcher: TilePrefetcher, zone: Zone, layer: MapLayer,
                 token: Optional[CancellationToken] = None) -> PrefetchEvent:
    """Drain a run and return its terminal event."""
    last = None
    for last in prefetcher.execute(zone, layer, token):
        pass
    return last


__all__ = [
    "CancellationToken",
    "PrefetchEvent",
    "PrefetchEventKind",
    "TileAddress",
    "TilePrefetcher",
    "plan_zone",
    "run_prefetch",
]
