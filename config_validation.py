"""Validation helpers for GridNav navigator settings."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List

from zones import MAP_LAYERS, ZONES

GRID_INTERVALS = ("auto", 1000, 5000, 10000)
GRID_LINE_STYLES = ("solid", "dashed", "dotted")

_COLOR_PATTERN = re.compile(
    r"rgba\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*(0|1|0?\.\d+|1\.0)\s*\)|#[0-9A-Fa-f]{6}"
)


@dataclass(frozen=True)
class ValidationIssue:
    """Represents a configuration validation problem."""

    field: str
    title: str
    message: str


def _coerce_int(value: Any) -> int | None:
    """Best-effort conversion to ``int`` returning ``None`` on failure."""

    if isinstance(value, bool):
        # ``bool`` is a subclass of ``int`` in Python, but we treat it as invalid
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if str(value).strip().lower() in ("true", "false"):
        return str(value).strip().lower() == "true"
    return None


def _check_range(issues: List[ValidationIssue], settings: Dict[str, Any], field: str,
                 label: str, low: float, high: float, unit: str = "", integer: bool = False) -> None:
    if field not in settings:
        return
    value = (_coerce_int if integer else _coerce_float)(settings[field])
    if value is None:
        issues.append(
            ValidationIssue(
                field=field,
                title=f"{label} Invalid",
                message=f"{label} must be a number between {low:g} and {high:g}{unit}.",
            )
        )
    elif not low <= value <= high:
        issues.append(
            ValidationIssue(
                field=field,
                title=f"{label} Out of Range",
                message=f"Choose a {label.lower()} between {low:g} and {high:g}{unit}.",
            )
        )


def validate_settings(settings: Dict[str, Any]) -> List[ValidationIssue]:
    """Validate a navigator settings payload.

    Only keys present in ``settings`` are checked; absent keys fall back to
    their defaults. Values may be strings, as read back from an INI store.

    Returns
    -------
    list[ValidationIssue]
        A collection of validation issues. An empty list denotes success.
    """

    issues: List[ValidationIssue] = []

    if "grid_color" in settings and not _COLOR_PATTERN.fullmatch(str(settings["grid_color"]).strip()):
        issues.append(
            ValidationIssue(
                field="grid_color",
                title="Grid Colour Invalid",
                message="Use an rgba(r, g, b, a) colour or a #RRGGBB hex value.",
            )
        )

    _check_range(issues, settings, "grid_weight", "Grid Weight", 1, 10, " px", integer=True)

    if "grid_interval" in settings:
        raw = settings["grid_interval"]
        interval = "auto" if str(raw).strip() == "auto" else _coerce_int(raw)
        if interval not in GRID_INTERVALS:
            issues.append(
                ValidationIssue(
                    field="grid_interval",
                    title="Grid Interval Unsupported",
                    message="Grid interval must be auto, 1000, 5000 or 10000 metres.",
                )
            )

    if "grid_line_style" in settings and settings["grid_line_style"] not in GRID_LINE_STYLES:
        issues.append(
            ValidationIssue(
                field="grid_line_style",
                title="Line Style Unsupported",
                message="Grid lines may be solid, dashed or dotted.",
            )
        )

    if "show_grid_labels" in settings and _coerce_bool(settings["show_grid_labels"]) is None:
        issues.append(
            ValidationIssue(
                field="show_grid_labels",
                title="Label Toggle Invalid",
                message="Grid label visibility must be true or false.",
            )
        )

    if "map_layer" in settings and settings["map_layer"] not in MAP_LAYERS:
        issues.append(
            ValidationIssue(
                field="map_layer",
                title="Unknown Map Layer",
                message=f"Choose one of: {', '.join(MAP_LAYERS)}.",
            )
        )

    if "zone" in settings and settings["zone"] not in ZONES:
        issues.append(
            ValidationIssue(
                field="zone",
                title="Unknown Zone",
                message="Select a zone from the zone catalog.",
            )
        )

    _check_range(issues, settings, "waypoint_radius_m", "Arrival Radius", 1, 500, " m")
    _check_range(issues, settings, "tracking_spacing_m", "Tracking Spacing", 0, 100, " m")
    _check_range(issues, settings, "prefetch_chunk_size", "Chunk Size", 1, 500, integer=True)
    _check_range(issues, settings, "prefetch_pause_s", "Chunk Pause", 0, 10, " s")
    _check_range(issues, settings, "prefetch_failure_ratio", "Failure Ratio", 0, 1)
    _check_range(issues, settings, "tile_timeout_s", "Tile Timeout", 0.1, 120, " s")

    return issues


__all__ = ["GRID_INTERVALS", "GRID_LINE_STYLES", "ValidationIssue", "validate_settings"]
