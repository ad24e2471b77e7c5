"""
Settings Module for MH Grid Solver

Provides persistent storage for user preferences using JSON and the
immutable GridConfig value each solver session snapshots at start.
Settings are stored in config.json in the project root.
"""

import json
import logging
import threading
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Settings file location (project root)
SETTINGS_FILE = Path("config.json")

# Default settings
DEFAULT_SETTINGS: Dict[str, Any] = {
    "debug_enabled": False,
    "resolution_profile": "auto",
    "classifier_strategy": "heuristic",
    "offset_x": None,
    "offset_y": None,
    "base_delay_ms": 150,
    "delay_variance_ms": 50,
    "template_dir": "assets/templates",
}


@dataclass(frozen=True)
class GridConfig:
    """
    Immutable solver configuration.

    Geometry fields left as None are taken from the resolution profile
    (see mhsolver.geometry.RESOLUTION_PROFILES).

    Attributes:
        resolution_profile: Profile key ("1920x1080", ...) or "auto" to match the display
        cell_size: Cell edge in pixels
        cell_spacing: Gap between adjacent cells in pixels
        offset_x: Horizontal offset of the top-left cell from the centred cell
        offset_y: Vertical offset of the top-left cell from the centred cell
        edge_padding: Pixels trimmed from every cell edge to skip grid lines
        classifier_strategy: Registered classifier name ("heuristic", "template")
        base_delay_ms: Mean delay between key presses
        delay_variance_ms: Half-width of the uniform jitter around base_delay_ms
        min_delay_ms: Floor applied to every jittered delay
        max_unknown: Unknown cells tolerated before detection is rejected
        cooldown_seconds: Time a terminal status stays displayed before reset
        template_dir: Directory holding one reference image per symbol
    """
    resolution_profile: str = "auto"
    cell_size: Optional[int] = None
    cell_spacing: Optional[int] = None
    offset_x: Optional[int] = None
    offset_y: Optional[int] = None
    edge_padding: int = 4
    classifier_strategy: str = "heuristic"
    base_delay_ms: float = 150.0
    delay_variance_ms: float = 50.0
    min_delay_ms: float = 50.0
    max_unknown: int = 5
    cooldown_seconds: float = 3.0
    template_dir: str = "assets/templates"

    def __post_init__(self):
        if self.edge_padding < 0:
            raise ValueError(f"edge_padding must be >= 0, got {self.edge_padding}")
        if self.delay_variance_ms < 0:
            raise ValueError(f"delay_variance_ms must be >= 0, got {self.delay_variance_ms}")
        if not 0 <= self.max_unknown <= 9:
            raise ValueError(f"max_unknown must be within 0-9, got {self.max_unknown}")


_CONFIG_FIELDS = {f.name for f in fields(GridConfig)}


def config_from_settings(settings: Dict[str, Any]) -> GridConfig:
    """
    Build a GridConfig from a settings dictionary.

    Unknown keys (UI-only preferences such as debug_enabled) are ignored.

    Args:
        settings: Settings dictionary, typically from load_settings()

    Returns:
        GridConfig instance
    """
    values = {k: v for k, v in settings.items() if k in _CONFIG_FIELDS}
    return GridConfig(**values)


class ConfigStore:
    """
    Process-wide holder of the current GridConfig.

    Sessions call snapshot() once at start; update() swaps in a new
    immutable value and never touches snapshots already handed out.
    """

    def __init__(self, config: Optional[GridConfig] = None):
        self._config = config or GridConfig()
        self._lock = threading.Lock()

    def snapshot(self) -> GridConfig:
        """Get the current configuration value."""
        with self._lock:
            return self._config

    def update(self, **changes) -> GridConfig:
        """
        Replace configuration fields for future sessions.

        Selecting a new resolution profile clears geometry overrides that
        are not part of the same update, so the profile's values apply.

        Args:
            **changes: GridConfig field values

        Returns:
            The new configuration

        Raises:
            ValueError: If a key is not a GridConfig field
        """
        unknown = set(changes) - _CONFIG_FIELDS
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")

        with self._lock:
            if "resolution_profile" in changes:
                for key in ("cell_size", "cell_spacing", "offset_x", "offset_y"):
                    changes.setdefault(key, None)
            self._config = replace(self._config, **changes)
            logger.debug(f"Config updated: {changes}")
            return self._config


def load_settings() -> Dict[str, Any]:
    """
    Load settings from config.json.

    Returns:
        Settings dictionary. Returns defaults if file missing or invalid.
    """
    if not SETTINGS_FILE.exists():
        logger.debug("Settings file not found, using defaults")
        return DEFAULT_SETTINGS.copy()

    try:
        with open(SETTINGS_FILE, 'r', encoding='utf-8') as f:
            settings = json.load(f)

        # Merge with defaults to handle missing keys
        result = DEFAULT_SETTINGS.copy()
        result.update(settings)
        logger.debug(f"Settings loaded: {result}")
        return result

    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Failed to load settings: {e}, using defaults")
        return DEFAULT_SETTINGS.copy()


def save_settings(settings: Dict[str, Any]) -> None:
    """
    Save settings to config.json.

    Args:
        settings: Settings dictionary to save
    """
    try:
        with open(SETTINGS_FILE, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        logger.debug(f"Settings saved: {settings}")
    except IOError as e:
        logger.error(f"Failed to save settings: {e}")
