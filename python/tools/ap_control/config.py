#!/usr/bin/env python3
"""
Settings for the access point controller.

Settings come from a JSON file (``~/.config/ap-control/settings.json`` by
default). Missing keys keep their defaults; unknown keys are reported and
ignored.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from loguru import logger

from .interfaces import FALLBACK_WIFI_DEVICE, MIN_RESOLVE_VERSION
from .neighbor_table import NEIGHBOR_TABLE_PATH
from .reachability import DEFAULT_MAX_BATCH, DEFAULT_MAX_WORKERS

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ap-control"
DEFAULT_SETTINGS_FILE = DEFAULT_CONFIG_DIR / "settings.json"


@dataclass
class ApControlSettings:
    """
    Tunables for the controller and the nmcli platform adapter.
    """

    connection_name: str = "Hotspot"  # NetworkManager profile of the AP
    interface: Optional[str] = None  # let NetworkManager pick when None
    fallback_device: str = FALLBACK_WIFI_DEVICE
    neighbor_table_path: Path = NEIGHBOR_TABLE_PATH
    probe_timeout_ms: int = 300
    max_probe_workers: int = DEFAULT_MAX_WORKERS
    max_probe_batch: int = DEFAULT_MAX_BATCH
    state_poll_interval: float = 1.0
    command_timeout: float = 15.0
    min_platform_version: Tuple[int, ...] = field(
        default_factory=lambda: tuple(MIN_RESOLVE_VERSION)
    )

    def __post_init__(self) -> None:
        self.neighbor_table_path = Path(self.neighbor_table_path)
        self.min_platform_version = tuple(int(v) for v in self.min_platform_version)
        if self.probe_timeout_ms <= 0:
            raise ValueError("probe_timeout_ms must be positive")
        if self.max_probe_workers < 1 or self.max_probe_batch < 1:
            raise ValueError("probe pool and batch sizes must be at least 1")
        if self.state_poll_interval <= 0:
            raise ValueError("state_poll_interval must be positive")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary for serialization."""
        result = asdict(self)
        result["neighbor_table_path"] = str(self.neighbor_table_path)
        result["min_platform_version"] = list(self.min_platform_version)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApControlSettings":
        """Create settings from a dictionary, skipping unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key in known:
                values[key] = value
            else:
                logger.warning(f"Unknown settings parameter: {key}")
        return cls(**values)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ApControlSettings":
        """
        Load settings from a JSON file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not valid JSON or holds bad values
        """
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a JSON object")
        return cls.from_dict(data)


def load_settings(path: Optional[Union[str, Path]] = None) -> ApControlSettings:
    """
    Load settings, falling back to defaults.

    Args:
        path: Settings file. If None, uses ~/.config/ap-control/settings.json

    Returns:
        Settings read from the file, or the defaults if the file is absent
        or cannot be loaded
    """
    settings_file = Path(path) if path is not None else DEFAULT_SETTINGS_FILE
    if not settings_file.exists():
        if path is not None:
            logger.warning(f"Settings file not found: {settings_file}")
        return ApControlSettings()

    try:
        settings = ApControlSettings.from_file(settings_file)
        logger.debug(f"Loaded settings from {settings_file}")
        return settings
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Failed to load settings from {settings_file}: {e}")
        return ApControlSettings()
