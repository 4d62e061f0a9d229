"""Externally owned drawing state.

The navigation session writes what should be on the map (markers, lines,
text labels) into a :class:`RenderState` owned by the host. It never keeps
references to anything the host draws with. Each write replaces one named
layer wholesale and bumps ``revision`` so the host can redraw lazily.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from coordinates import GeoCoordinate

POSITION_LAYER = "position"
TARGET_LAYER = "target"
ROUTE_LAYER = "route"
TRACK_LAYER = "track"
WAYPOINT_LAYER = "waypoints"
PLAN_LAYER = "plan"
GRID_LAYER = "grid"

GRID_COLOR_PRESETS: Dict[str, str] = {
    "Tactical Red": "rgba(239, 68, 68, 0.8)",
    "NVG Green": "rgba(34, 197, 94, 0.8)",
    "Subdued White": "rgba(249, 250, 251, 0.7)",
    "Warning Yellow": "rgba(234, 179, 8, 0.8)",
}

_DASH_PATTERNS = {"solid": None, "dashed": "5, 10", "dotted": "1, 5"}
_RGBA = re.compile(r"rgba\((\d+,\s*\d+,\s*\d+),\s*[\d.]+\)")


@dataclass(frozen=True)
class LineStyle:
    color: str = "#22d3ee"
    weight: int = 3
    opacity: float = 1.0
    dash: Optional[str] = None


def grid_line_style(color: str, weight: int, line_style: str = "solid", major: bool = False) -> LineStyle:
    """Grid line appearance; major lines are drawn more opaque."""
    dash = _DASH_PATTERNS.get(line_style)
    if major:
        color = _RGBA.sub(r"rgba(\1, 0.8)", color)
        return LineStyle(color=color, weight=weight, opacity=1.0, dash=dash)
    return LineStyle(color=color, weight=weight, opacity=0.5, dash=dash)


def label_color(color: str) -> str:
    """Opaque ``rgb(...)`` for an ``rgba(...)`` grid colour."""
    match = _RGBA.fullmatch(color.strip())
    return f"rgb({match.group(1)})" if match else color


@dataclass(frozen=True)
class Marker:
    coordinate: GeoCoordinate
    label: str = ""
    kind: str = "point"
    heading: Optional[float] = None


@dataclass(frozen=True)
class Polyline:
    points: Tuple[GeoCoordinate, ...]
    style: LineStyle = LineStyle()


@dataclass(frozen=True)
class TextLabel:
    coordinate: GeoCoordinate
    text: str
    anchor: str = ""
    color: Optional[str] = None


@dataclass
class RenderState:
    markers: Dict[str, List[Marker]] = field(default_factory=dict)
    polylines: Dict[str, List[Polyline]] = field(default_factory=dict)
    labels: Dict[str, List[TextLabel]] = field(default_factory=dict)
    revision: int = 0

    def set_markers(self, layer: str, markers: Sequence[Marker]) -> None:
        self.markers[layer] = list(markers)
        self.revision += 1

    def set_polylines(self, layer: str, polylines: Sequence[Polyline]) -> None:
        self.polylines[layer] = list(polylines)
        self.revision += 1

    def set_labels(self, layer: str, labels: Sequence[TextLabel]) -> None:
        self.labels[layer] = list(labels)
        self.revision += 1

    def clear(self, layer: str) -> None:
        self.markers.pop(layer, None)
        self.polylines.pop(layer, None)
        self.labels.pop(layer, None)
        self.revision += 1

    def layer_is_empty(self, layer: str) -> bool:
        return not (self.markers.get(layer) or self.polylines.get(layer) or self.labels.get(layer))


__all__ = [
    "GRID_COLOR_PRESETS",
    "LineStyle",
    "Marker",
    "Polyline",
    "RenderState",
    "TextLabel",
    "grid_line_style",
    "label_color",
]
