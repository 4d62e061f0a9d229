"""Qt position providers emitting validated fixes."""

from __future__ import annotations

import itertools
import math
from typing import Iterator, Optional, Sequence, Tuple

from PySide6.QtCore import QObject, QTimer, Signal

from coordinates import GeoCoordinate
from logger import LoggableMixin
from position_feed import FeedSource, load_feed


def _nan_if_none(value: Optional[float]) -> float:
    return math.nan if value is None else float(value)


class BasePositionProvider(QObject, LoggableMixin):
    """Base class for position providers with common lifecycle management."""
    position_updated = Signal(float, float, float, float)  # lat, lng, horizontal acc, vertical acc
    def __init__(self):
        QObject.__init__(self)
        LoggableMixin.__init__(self)
        self._active = False
    @property
    def is_active(self) -> bool:
        """Return whether the provider is currently emitting updates."""
        return self._active
    def start(self):
        """Start emitting position updates."""
        if not self._active:
            self._active = True
            self._on_start()
    def stop(self):
        """Stop emitting position updates."""
        if self._active:
            self._active = False
            self._on_stop()
    def emit_fix(self, coordinate: GeoCoordinate):
        self.position_updated.emit(
            coordinate.lat,
            coordinate.lng,
            _nan_if_none(coordinate.horizontal_accuracy),
            _nan_if_none(coordinate.vertical_accuracy),
        )
    def _on_start(self):
        raise NotImplementedError
    def _on_stop(self):
        raise NotImplementedError


class ReplayPositionProvider(BasePositionProvider):
    """Replays a recorded track as live fixes.

    With ``interval_ms=None`` no timer is created and the caller drives the
    replay through :meth:`manual_step` or :meth:`replay`.
    """
    def __init__(
        self,
        samples: Sequence[GeoCoordinate],
        interval_ms: Optional[int] = 1000,
        loop: bool = False,
    ):
        super().__init__()
        self.samples: Tuple[GeoCoordinate, ...] = tuple(samples)
        self.loop = loop
        self.emitted = 0
        self._cursor: Iterator[GeoCoordinate] = iter(())
        self._timer: Optional[QTimer] = None
        if interval_ms is not None:
            self._timer = QTimer(self)
            self._timer.setInterval(interval_ms)
            self._timer.timeout.connect(self.manual_step)
    def _rewind(self):
        self._cursor = itertools.cycle(self.samples) if self.loop else iter(self.samples)
    def _on_start(self):
        if not self.samples:
            self.log_warning("Replay started with an empty track")
            return
        self._rewind()
        self.emitted = 0
        self._logger.log_gps_event("replay_started", samples=len(self.samples), loop=self.loop)
        if self._timer is not None:
            self._timer.start()
    def _on_stop(self):
        if self._timer is not None:
            self._timer.stop()
        self._logger.log_gps_event("replay_stopped", emitted=self.emitted)
    @property
    def remaining(self) -> int:
        """Fixes left before the replay stops on its own (-1 when looping)."""
        if self.loop:
            return -1
        return max(len(self.samples) - self.emitted, 0) if self.is_active else 0
    def manual_step(self) -> Optional[GeoCoordinate]:
        """Emit the next recorded fix and return it."""
        if not self.is_active:
            return None
        coordinate = next(self._cursor, None)
        if coordinate is None:
            self.stop()
            return None
        self.emitted += 1
        self.emit_fix(coordinate)
        if self.remaining == 0:
            self.stop()
        return coordinate
    def replay(self) -> Iterator[GeoCoordinate]:
        """Start if needed and step through every fix without a timer."""
        self.start()
        while self.is_active:
            coordinate = self.manual_step()
            if coordinate is None:
                break
            yield coordinate
    @classmethod
    def from_feed(
        cls,
        feed_source: FeedSource,
        interval_ms: Optional[int] = 1000,
        loop: bool = False,
    ) -> "ReplayPositionProvider":
        """Create a replay provider from coordinates, fix dicts or a JSON file."""
        return cls(load_feed(feed_source), interval_ms=interval_ms, loop=loop)


__all__ = ["BasePositionProvider", "ReplayPositionProvider"]
