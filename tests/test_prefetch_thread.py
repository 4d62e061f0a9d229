import pytest

pytest.importorskip("PySide6")
from PySide6.QtCore import QCoreApplication

from cache_registry import InMemoryCacheRegistry
from coordinates import GeoCoordinate
from prefetch_thread import PrefetchThread
from tile_cache import TileFetchError
from tile_prefetch import TilePrefetcher
from zones import MapLayer, Zone, ZoneBounds

LAYER = MapLayer(key="test", name="Test", url_template="https://tiles.example/{z}/{x}/{y}.png",
                 attribution="")
ZONE = Zone(key="small", name="Small Zone", center=GeoCoordinate(0.5, 0.5), zoom=1,
            bounds=ZoneBounds(0.0, 0.0, 1.0, 1.0), min_zoom_for_cache=1, max_zoom_for_cache=1)


@pytest.fixture(scope="module")
def qt_app():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


def run_thread(thread):
    progress, finished = [], []
    thread.progress.connect(lambda *args: progress.append(args))
    thread.finished_with.connect(lambda kind, message: finished.append((kind, message)))
    thread.run()
    return progress, finished


def test_thread_reports_progress_and_success(qt_app):
    registry = InMemoryCacheRegistry()
    prefetcher = TilePrefetcher(registry, lambda tile: b"png", chunk_size=1, pause_seconds=0)

    progress, finished = run_thread(PrefetchThread(prefetcher, ZONE, LAYER))

    assert progress == [(0, 2, 0), (1, 2, 0), (2, 2, 0)]
    assert finished == [("succeeded", "Small Zone cached for offline use")]
    assert "small_test" in registry


def test_thread_reports_failure(qt_app):
    def failing(tile):
        raise TileFetchError("offline")

    prefetcher = TilePrefetcher(InMemoryCacheRegistry(), failing, pause_seconds=0)

    _, finished = run_thread(PrefetchThread(prefetcher, ZONE, LAYER))

    assert finished[0][0] == "failed"


def test_cancelled_thread_never_caches(qt_app):
    registry = InMemoryCacheRegistry()
    prefetcher = TilePrefetcher(registry, lambda tile: b"png", pause_seconds=0)
    thread = PrefetchThread(prefetcher, ZONE, LAYER)
    thread.cancel()

    _, finished = run_thread(thread)

    assert finished == [("cancelled", "Download cancelled")]
    assert len(registry) == 0
