"""
finder_config.py
================
Settings for runtime discovery, read from the ``java_finder`` section of
config.json::

    {
      "java_finder": {
        "app_dir_name": ".FoxFord",
        "extra_search_paths": ["D:/tools/jdk-21"],
        "max_workers": 4,
        "scan_timeout": 30
      }
    }

A missing file or section means defaults; a broken file is logged and
also falls back to defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

CONFIG_SECTION = "java_finder"


@dataclass
class FinderConfig:
    """Discovery settings."""

    app_dir_name: str = ".FoxFord"       # %APPDATA%\<name>\java holds private runtimes
    extra_search_paths: List[str] = field(default_factory=list)
    extra_launcher_dirs: List[str] = field(default_factory=list)
    max_workers: int = 4
    scan_timeout: float = 30.0           # Seconds per discovery source
    subprocess_timeout: float = 10.0     # java_home / update-alternatives
    scan_slow_drives: bool = False       # Network, optical and removable mounts
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FinderConfig":
        """
        Build a config from a dict, ignoring unknown keys.

        Raises:
            TypeError: If a value has the wrong type
        """
        defaults = cls()
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            expected = type(getattr(defaults, f.name))
            if expected is float and isinstance(value, int) and not isinstance(value, bool):
                value = float(value)
            if expected is list:
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise TypeError(f"{f.name} must be a list of strings")
            elif not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                raise TypeError(f"{f.name} must be {expected.__name__}, got {type(value).__name__}")
            kwargs[f.name] = value

        config = cls(**kwargs)
        if config.max_workers < 1:
            raise TypeError("max_workers must be at least 1")
        return config


def load_config(config_path: str | Path = "config.json") -> FinderConfig:
    """Load the ``java_finder`` section of config.json."""
    config_path = Path(config_path)
    if not config_path.exists():
        logger.info("Config file not found, using defaults")
        return FinderConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        section = data.get(CONFIG_SECTION, {}) if isinstance(data, dict) else {}
        if not isinstance(section, dict):
            raise TypeError(f"'{CONFIG_SECTION}' must be an object")
        config = FinderConfig.from_dict(section)
        logger.debug("Config loaded from %s", config_path)
        return config
    except (OSError, json.JSONDecodeError, TypeError) as exc:
        logger.error("Failed to load config: %s", exc)
        return FinderConfig()
