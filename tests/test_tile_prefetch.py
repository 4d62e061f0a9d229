"""Tests for tile planning and the cancellable prefetch run."""

import threading
from http.client import IncompleteRead

import pytest

from cache_registry import InMemoryCacheRegistry
from coordinates import GeoCoordinate
from tile_cache import TileFetchError
from tile_prefetch import (CancellationToken, PrefetchEventKind, TilePrefetcher, plan_zone,
                           run_prefetch)
from zones import MAP_LAYERS, MapLayer, Zone, ZoneBounds

LAYER = MapLayer(
    key="test",
    name="Test",
    url_template="https://{s}.tiles.example/{z}/{x}/{y}.png",
    attribution="",
    subdomains=("a", "b", "c"),
)

# One tile column at zoom 1 (x=1, rows 0-1) and zoom 2 (x=2, rows 1-2).
SMALL_ZONE = Zone(
    key="small",
    name="Small Zone",
    center=GeoCoordinate(0.5, 0.5),
    zoom=1,
    bounds=ZoneBounds(0.0, 0.0, 1.0, 1.0),
    min_zoom_for_cache=1,
    max_zoom_for_cache=1,
)
FOUR_TILE_ZONE = Zone(
    key="four",
    name="Four Tile Zone",
    center=GeoCoordinate(0.5, 0.5),
    zoom=1,
    bounds=ZoneBounds(0.0, 0.0, 1.0, 1.0),
    min_zoom_for_cache=1,
    max_zoom_for_cache=2,
)


class RecordingFetcher:
    def __init__(self, fail_urls=(), on_call=None):
        self.calls = []
        self.fail_urls = set(fail_urls)
        self.on_call = on_call
        self._lock = threading.Lock()

    def __call__(self, tile):
        with self._lock:
            self.calls.append(tile)
        if self.on_call is not None:
            self.on_call(tile)
        if tile.url in self.fail_urls:
            raise TileFetchError("HTTP 500")
        return b"png"


def make_prefetcher(registry=None, fetcher=None, **kwargs):
    kwargs.setdefault("chunk_size", 1)
    kwargs.setdefault("pause_seconds", 0)
    kwargs.setdefault("max_workers", 1)
    return TilePrefetcher(registry if registry is not None else InMemoryCacheRegistry(),
                          fetcher or RecordingFetcher(), **kwargs)


def test_plan_orders_by_zoom_column_row_and_rotates_subdomains():
    tiles = plan_zone(FOUR_TILE_ZONE, LAYER)
    assert [(t.zoom, t.x, t.y) for t in tiles] == [(1, 1, 0), (1, 1, 1), (2, 2, 1), (2, 2, 2)]
    assert tiles[0].url == "https://b.tiles.example/1/1/0.png"
    assert tiles[1].url == "https://c.tiles.example/1/1/1.png"
    assert tiles[2].url == "https://a.tiles.example/2/2/1.png"
    assert all(tile.layer == "test" for tile in tiles)


def test_plan_without_subdomain_placeholder():
    tiles = plan_zone(SMALL_ZONE, MAP_LAYERS["satellite"])
    assert tiles[0].url.endswith("/tile/1/0/1")


def test_plan_for_zone_without_bounds_is_empty():
    zone = Zone(key="default", name="Default", center=GeoCoordinate(0.0, 0.0), zoom=5)
    assert plan_zone(zone, LAYER) == []


def test_already_cached_zone_fetches_nothing():
    fetcher = RecordingFetcher()
    prefetcher = make_prefetcher(InMemoryCacheRegistry(["small_test"]), fetcher)

    events = list(prefetcher.execute(SMALL_ZONE, LAYER))

    assert [event.kind for event in events] == [PrefetchEventKind.ALREADY_CACHED]
    assert fetcher.calls == []


def test_successful_run_records_zone():
    registry = InMemoryCacheRegistry()
    fetcher = RecordingFetcher()
    prefetcher = make_prefetcher(registry, fetcher)

    events = list(prefetcher.execute(FOUR_TILE_ZONE, LAYER))

    kinds = [event.kind for event in events]
    assert kinds[0] is PrefetchEventKind.STARTED
    assert kinds[-1] is PrefetchEventKind.SUCCEEDED
    assert [e.completed for e in events if e.kind is PrefetchEventKind.PROGRESS] == [1, 2, 3, 4]
    assert events[0].total == 4
    assert len(fetcher.calls) == 4
    assert "four_test" in registry
    assert not prefetcher.is_running


def test_failures_within_tolerance_still_succeed():
    tiles = plan_zone(FOUR_TILE_ZONE, LAYER)
    registry = InMemoryCacheRegistry()
    prefetcher = make_prefetcher(registry, RecordingFetcher([tiles[0].url]), failure_ratio=0.25)

    final = run_prefetch(prefetcher, FOUR_TILE_ZONE, LAYER)

    assert final.kind is PrefetchEventKind.SUCCEEDED
    assert final.failed == 1
    assert "four_test" in registry


def test_too_many_failures_fail_the_run():
    tiles = plan_zone(FOUR_TILE_ZONE, LAYER)
    registry = InMemoryCacheRegistry()
    prefetcher = make_prefetcher(registry, RecordingFetcher([tiles[0].url]))

    final = run_prefetch(prefetcher, FOUR_TILE_ZONE, LAYER)

    assert final.kind is PrefetchEventKind.FAILED
    assert final.failed == 1
    assert "four_test" not in registry


def test_cancel_during_run_leaves_registry_untouched():
    registry = InMemoryCacheRegistry()
    token = CancellationToken()
    fetcher = RecordingFetcher(on_call=lambda tile: token.cancel())
    prefetcher = make_prefetcher(registry, fetcher)

    events = list(prefetcher.execute(FOUR_TILE_ZONE, LAYER, token))

    assert events[-1].kind is PrefetchEventKind.CANCELLED
    assert len(fetcher.calls) == 1
    assert "four_test" not in registry


def test_cancel_after_last_chunk_still_blocks_registry_write():
    registry = InMemoryCacheRegistry()
    token = CancellationToken()
    fetcher = RecordingFetcher(on_call=lambda tile: token.cancel())
    prefetcher = make_prefetcher(registry, fetcher, chunk_size=10)

    final = run_prefetch(prefetcher, FOUR_TILE_ZONE, LAYER, token)

    assert final.kind is PrefetchEventKind.CANCELLED
    assert final.completed == 4
    assert "four_test" not in registry


def test_new_run_cancels_previous_one():
    registry = InMemoryCacheRegistry()
    prefetcher = make_prefetcher(registry)
    first_token = CancellationToken()

    first = prefetcher.execute(FOUR_TILE_ZONE, LAYER, first_token)
    assert next(first).kind is PrefetchEventKind.STARTED

    second = prefetcher.execute(SMALL_ZONE, LAYER)
    assert first_token.cancelled
    assert list(first)[-1].kind is PrefetchEventKind.CANCELLED
    assert "four_test" not in registry

    assert list(second)[-1].kind is PrefetchEventKind.SUCCEEDED
    assert "small_test" in registry


def test_zone_without_bounds_fails_without_fetching():
    fetcher = RecordingFetcher()
    prefetcher = make_prefetcher(fetcher=fetcher)
    zone = Zone(key="default", name="Default", center=GeoCoordinate(0.0, 0.0), zoom=5)

    final = run_prefetch(prefetcher, zone, LAYER)

    assert final.kind is PrefetchEventKind.FAILED
    assert fetcher.calls == []


def test_chunk_size_must_be_positive():
    with pytest.raises(ValueError):
        TilePrefetcher(InMemoryCacheRegistry(), RecordingFetcher(), chunk_size=0)


def test_terminal_kinds():
    assert PrefetchEventKind.SUCCEEDED.is_terminal
    assert PrefetchEventKind.CANCELLED.is_terminal
    assert not PrefetchEventKind.PROGRESS.is_terminal


@pytest.mark.parametrize("error", [IncompleteRead(b""), ValueError("unknown url type"), RuntimeError("bug")])
def test_unexpected_fetcher_errors_count_as_failed_tiles(error):
    registry = InMemoryCacheRegistry()
    tiles = plan_zone(FOUR_TILE_ZONE, LAYER)

    def fetcher(tile):
        if tile == tiles[0]:
            raise error
        return b"png"

    final = run_prefetch(make_prefetcher(registry, fetcher), FOUR_TILE_ZONE, LAYER)

    assert final.kind is PrefetchEventKind.FAILED
    assert final.completed == 4
    assert final.failed == 1
    assert "four_test" not in registry


class LockCheckingRegistry(InMemoryCacheRegistry):
    """Registry that tries to cancel the owning prefetcher while a key is written."""

    def __init__(self):
        super().__init__()
        self.prefetcher = None
        self.cancel_blocked = None

    def add(self, key):
        canceller = threading.Thread(target=self.prefetcher.cancel)
        canceller.start()
        canceller.join(timeout=0.05)
        self.cancel_blocked = canceller.is_alive()
        super().add(key)


def test_cancel_waits_for_registry_write():
    registry = LockCheckingRegistry()
    prefetcher = make_prefetcher(registry)
    registry.prefetcher = prefetcher
    token = CancellationToken()

    final = run_prefetch(prefetcher, FOUR_TILE_ZONE, LAYER, token)

    assert final.kind is PrefetchEventKind.SUCCEEDED
    assert registry.cancel_blocked is True
    assert "four_test" in registry


def test_cancel_after_final_progress_reports_cancelled():
    registry = InMemoryCacheRegistry()
    token = CancellationToken()
    prefetcher = make_prefetcher(registry, failure_ratio=0.0)
    events = prefetcher.execute(FOUR_TILE_ZONE, LAYER, token)
    kinds = []
    for event in events:
        kinds.append(event.kind)
        if event.kind is PrefetchEventKind.PROGRESS and event.completed == event.total:
            prefetcher.cancel()

    assert kinds[-1] is PrefetchEventKind.CANCELLED
    assert "four_test" not in registry
