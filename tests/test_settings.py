import pytest

pytest.importorskip("PySide6")

from settings import NavigatorSettings, SettingsError, load_settings, open_settings, save_settings


@pytest.fixture()
def store(tmp_path):
    return open_settings(tmp_path / "navigator.ini")


def test_defaults_when_store_is_empty(store):
    assert load_settings(store) == NavigatorSettings()


def test_save_and_load_round_trip(store):
    settings = NavigatorSettings(grid_color="#22C55E", grid_weight=3, grid_interval=5000,
                                 show_grid_labels=False, grid_line_style="dashed",
                                 map_layer="satellite", zone="zone_ia", waypoint_radius_m=25.0,
                                 prefetch_chunk_size=20, prefetch_failure_ratio=0.2)
    save_settings(settings, store)

    loaded = load_settings(store)

    assert loaded == settings
    assert isinstance(loaded.grid_weight, int)
    assert loaded.grid_interval == 5000
    assert loaded.show_grid_labels is False


def test_invalid_stored_value_falls_back_to_default(store):
    save_settings(NavigatorSettings(map_layer="satellite", grid_weight=4), store)
    store.setValue("navigator/grid_weight", "99")
    store.setValue("navigator/grid_line_style", "wavy")
    store.sync()

    loaded = load_settings(store)

    assert loaded.grid_weight == NavigatorSettings().grid_weight
    assert loaded.grid_line_style == NavigatorSettings().grid_line_style
    assert loaded.map_layer == "satellite"


def test_stored_values_are_still_validated_on_save(store):
    store.setValue("navigator/grid_weight", "99")
    store.sync()
    loaded = load_settings(store)

    with pytest.raises(SettingsError) as excinfo:
        save_settings(NavigatorSettings(grid_weight=99), store)

    assert loaded.grid_weight == 2
    assert [issue.field for issue in excinfo.value.issues] == ["grid_weight"]


def test_invalid_settings_are_not_saved(store):
    with pytest.raises(SettingsError):
        save_settings(NavigatorSettings(map_layer="infrared"), store)
    assert load_settings(store).map_layer == "dark"


def test_from_dict_ignores_unknown_keys_and_coerces_strings():
    settings = NavigatorSettings.from_dict({"grid_weight": "4", "show_grid_labels": "true",
                                            "tile_timeout_s": "5", "theme": "night"})
    assert settings.grid_weight == 4
    assert settings.show_grid_labels is True
    assert settings.tile_timeout_s == 5.0


def test_cache_path_defaults_to_home(tmp_path):
    assert NavigatorSettings().cache_path.name == "GridNav"
    assert NavigatorSettings(cache_dir=str(tmp_path)).cache_path == tmp_path
