"""Navigator preferences persisted through ``QSettings``."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from PySide6.QtCore import QSettings

from config_validation import validate_settings
from logger import LogCategory, get_logger
from render_state import GRID_COLOR_PRESETS

ORGANIZATION = "GridNav"
APPLICATION = "navigator"


class SettingsError(ValueError):
    """Raised when stored or supplied settings fail validation."""

    def __init__(self, issues):
        self.issues = list(issues)
        summary = "; ".join(f"{issue.field}: {issue.title}" for issue in self.issues)
        super().__init__(f"Invalid navigator settings ({summary})")


@dataclass
class NavigatorSettings:
    grid_color: str = GRID_COLOR_PRESETS["Tactical Red"]
    grid_weight: int = 2
    grid_interval: Union[str, int] = "auto"
    show_grid_labels: bool = True
    grid_line_style: str = "solid"
    map_layer: str = "dark"
    zone: str = "default"
    waypoint_radius_m: float = 30.0
    tracking_spacing_m: float = 5.0
    prefetch_chunk_size: int = 50
    prefetch_pause_s: float = 0.05
    prefetch_failure_ratio: float = 0.1
    tile_timeout_s: float = 3.0
    cache_dir: str = ""

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir) if self.cache_dir else Path.home() / "GridNav"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NavigatorSettings":
        """Build validated settings; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        issues = validate_settings(values)
        if issues:
            raise SettingsError(issues)
        settings = cls(**values)
        # Coerce stringly-typed values coming back from QSettings.
        defaults = cls()
        for f in fields(cls):
            value = getattr(settings, f.name)
            default = getattr(defaults, f.name)
            if f.name == "grid_interval":
                settings.grid_interval = "auto" if str(value) == "auto" else int(value)
            elif isinstance(default, bool):
                setattr(settings, f.name, value if isinstance(value, bool) else str(value).lower() == "true")
            elif isinstance(default, int):
                setattr(settings, f.name, int(value))
            elif isinstance(default, float):
                setattr(settings, f.name, float(value))
        return settings


def open_settings(path: Optional[Path] = None) -> QSettings:
    """Native settings store, or an INI file when ``path`` is given."""
    if path is not None:
        return QSettings(str(path), QSettings.IniFormat)
    return QSettings(ORGANIZATION, APPLICATION)


def load_settings(store: Optional[QSettings] = None) -> NavigatorSettings:
    """Read stored settings; invalid stored values fall back to their defaults."""
    store = store or open_settings()
    values = {}
    for f in fields(NavigatorSettings):
        value = store.value(f"navigator/{f.name}")
        if value is not None:
            values[f.name] = value
    for issue in validate_settings(values):
        if values.pop(issue.field, None) is not None:
            get_logger().warning(f"Ignoring stored setting: {issue.title}", category=LogCategory.SYSTEM,
                                 field=issue.field, detail=issue.message)
    settings = NavigatorSettings.from_dict(values)
    get_logger().debug("Loaded navigator settings", category=LogCategory.SYSTEM, keys=sorted(values))
    return settings


def save_settings(settings: NavigatorSettings, store: Optional[QSettings] = None) -> None:
    issues = validate_settings(settings.to_dict())
    if issues:
        raise SettingsError(issues)
    store = store or open_settings()
    for key, value in settings.to_dict().items():
        store.setValue(f"navigator/{key}", value)
    store.sync()
    get_logger().debug("Saved navigator settings", category=LogCategory.SYSTEM)


__all__ = [
    "NavigatorSettings",
    "SettingsError",
    "load_settings",
    "open_settings",
    "save_settings",
]
