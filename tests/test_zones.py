"""Tests for the zone and map layer catalog."""

import pytest

from coordinates import GeoCoordinate
from zones import (DEFAULT_LAYER_KEY, DEFAULT_ZONE_KEY, MAP_LAYERS, ZONES, ZoneBounds,
                   find_zone_for_position, get_layer, get_zone, registry_key)


def test_catalog_defaults_exist():
    assert DEFAULT_ZONE_KEY in ZONES
    assert DEFAULT_LAYER_KEY in MAP_LAYERS
    assert not ZONES[DEFAULT_ZONE_KEY].cacheable


def test_cacheable_zones_have_sane_ranges():
    for zone in ZONES.values():
        if zone.bounds is None:
            continue
        assert zone.cacheable
        assert zone.bounds.min_lat < zone.bounds.max_lat
        assert zone.bounds.min_lng < zone.bounds.max_lng
        assert zone.min_zoom_for_cache <= zone.max_zoom_for_cache


def test_lookup_raises_for_unknown_keys():
    assert get_zone("zone_ia").name.startswith("Zone IA")
    assert get_layer("satellite").subdomains == ()
    with pytest.raises(KeyError):
        get_zone("atlantis")
    with pytest.raises(KeyError):
        get_layer("infrared")


def test_bounds_contains_is_inclusive():
    bounds = ZoneBounds(10.0, 20.0, 11.0, 21.0)
    assert bounds.contains(GeoCoordinate(10.0, 20.0))
    assert bounds.contains(GeoCoordinate(11.0, 21.0))
    assert not bounds.contains(GeoCoordinate(11.01, 20.5))


def test_find_zone_for_position():
    assert find_zone_for_position(GeoCoordinate(30.0, 75.0)).key == "zone_ia"
    assert find_zone_for_position(GeoCoordinate(36.0, 76.0)).key == "zone_0"
    assert find_zone_for_position(GeoCoordinate(0.0, 0.0)) is None
    assert find_zone_for_position(None) is None


def test_registry_key():
    assert registry_key("zone_ia", "dark") == "zone_ia_dark"
