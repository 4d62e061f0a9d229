"""Tests for the host-owned drawing state."""

from coordinates import GeoCoordinate
from config_validation import validate_settings
from render_state import (GRID_COLOR_PRESETS, Marker, Polyline, RenderState, TextLabel,
                          grid_line_style, label_color)

POINT = GeoCoordinate(28.6, 77.2)


def test_presets_are_valid_grid_colours():
    for color in GRID_COLOR_PRESETS.values():
        assert validate_settings({"grid_color": color}) == []


def test_grid_line_style():
    minor = grid_line_style("rgba(34, 197, 94, 0.4)", 2, "dashed")
    major = grid_line_style("rgba(34, 197, 94, 0.4)", 2, "dashed", major=True)

    assert minor.opacity == 0.5 and minor.dash == "5, 10"
    assert major.color == "rgba(34, 197, 94, 0.8)"
    assert major.opacity == 1.0
    assert grid_line_style("#ffffff", 1, "solid").dash is None
    assert grid_line_style("#ffffff", 1, "dotted").dash == "1, 5"


def test_label_color_drops_alpha():
    assert label_color("rgba(239, 68, 68, 0.8)") == "rgb(239, 68, 68)"
    assert label_color("#22C55E") == "#22C55E"


def test_layers_are_replaced_and_revision_bumps():
    state = RenderState()
    assert state.layer_is_empty("route")

    state.set_markers("route", [Marker(POINT, "TGT")])
    state.set_polylines("route", [Polyline((POINT, POINT))])
    state.set_labels("route", [TextLabel(POINT, "72")])
    assert state.revision == 3
    assert not state.layer_is_empty("route")

    state.set_markers("route", [])
    assert state.markers["route"] == []

    state.clear("route")
    assert state.layer_is_empty("route")
    assert state.revision == 5
