"""Tests for the WGS 84 / Everest 1956 datum transform."""

import math

import pytest

from coordinates import GeoCoordinate, is_valid_coordinate
from datum import (EVEREST_1956, WGS84, cartesian_to_geodetic, geodetic_to_cartesian,
                   to_global, to_local)


@pytest.mark.parametrize(
    "lat,lng",
    [
        (28.6139, 77.2090),
        (35.88, 76.51),
        (8.5, 76.9),
        (19.7, 96.1),
        (15.0, 74.0),
        (33.0, 92.0),
        (21.0, 68.0),
    ],
)
def test_round_trip_stays_within_a_micro_degree(lat, lng):
    original = GeoCoordinate(lat, lng)
    restored = to_global(to_local(original))
    assert restored.lat == pytest.approx(lat, abs=1e-6)
    assert restored.lng == pytest.approx(lng, abs=1e-6)


def test_local_coordinate_is_shifted_by_a_few_hundred_metres():
    delhi = GeoCoordinate(28.6139, 77.2090)
    local = to_local(delhi)
    assert is_valid_coordinate(local)
    shift_deg = math.hypot(local.lat - delhi.lat, local.lng - delhi.lng)
    # The datum shift is under a kilometre on the ground.
    assert 0.0005 < shift_deg < 0.02


def test_accuracy_metadata_is_preserved():
    fix = GeoCoordinate(28.6, 77.2, horizontal_accuracy=4.0, vertical_accuracy=6.0)
    local = to_local(fix)
    assert local.horizontal_accuracy == 4.0
    assert local.vertical_accuracy == 6.0


@pytest.mark.parametrize("ellipsoid", [WGS84, EVEREST_1956])
def test_cartesian_round_trip(ellipsoid):
    coord = GeoCoordinate(31.25, 84.75)
    x, y, z = geodetic_to_cartesian(coord, ellipsoid)
    lat, lng = cartesian_to_geodetic(x, y, z, ellipsoid)
    assert lat == pytest.approx(coord.lat, abs=1e-9)
    assert lng == pytest.approx(coord.lng, abs=1e-9)


def test_pole_is_handled_without_division_by_zero():
    x, y, z = geodetic_to_cartesian(GeoCoordinate(90.0, 0.0), WGS84)
    lat, lng = cartesian_to_geodetic(0.0, 0.0, z, WGS84)
    assert lat == 90.0
    assert lng == 0.0
    lat, _ = cartesian_to_geodetic(0.0, 0.0, -z, WGS84)
    assert lat == -90.0
