"""Qt worker thread that runs a tile prefetch in the background."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QThread, Signal

from logger import LogCategory, get_logger
from tile_prefetch import CancellationToken, PrefetchEventKind, TilePrefetcher
from zones import MapLayer, Zone


class PrefetchThread(QThread):
    """Background thread for downloading a zone's tiles."""
    progress = Signal(int, int, int)  # completed, total, failed
    finished_with = Signal(str, str)  # event kind, message
    def __init__(self, prefetcher: TilePrefetcher, zone: Zone, layer: MapLayer,
                 token: Optional[CancellationToken] = None):
        super().__init__()
        self.prefetcher = prefetcher
        self.zone = zone
        self.layer = layer
        self.token = token or CancellationToken()
        self.logger = get_logger()
    def cancel(self):
        self.token.cancel()
    def run(self):
        """Run the prefetch and re-emit its events as signals."""
        try:
            for event in self.prefetcher.execute(self.zone, self.layer, self.token):
                if event.kind in (PrefetchEventKind.STARTED, PrefetchEventKind.PROGRESS):
                    self.progress.emit(event.completed, event.total, event.failed)
                else:
                    self.finished_with.emit(event.kind.value, event.message)
        except Exception as e:
            self.logger.error(f"Prefetch failed: {str(e)}", exception=e, category=LogCategory.TILES)
            self.finished_with.emit(PrefetchEventKind.FAILED.value, str(e))


__all__ = ["PrefetchThread"]
