"""Configuration loader for task bins and their reporters."""

import json
import logging
from pathlib import Path
from typing import Any

BIN_DEFAULTS: dict[str, Any] = {
    "name": "bin",
    "log_level": "INFO",
    "log_file": None,
}

REPORTER_DEFAULTS: dict[str, Any] = {
    "redis_url": "redis://localhost:6379",
    "status_channel": "taskbin/status",
}


def load_bin_config(config_path: str, defaults: dict[str, Any] | None = None) -> dict[str, Any]:
    """Read a JSON bin config and lay it over ``defaults``.

    A ``log_level`` entry, if present, is upper-cased and must name a
    standard logging level, so a typo fails here rather than when the
    bin's logger is built.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file is not a JSON object or ``log_level`` is unknown.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    config = json.loads(path.read_text())
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must hold a JSON object")

    merged = {**(defaults or {}), **config}

    if merged.get("log_level") is not None:
        level = str(merged["log_level"]).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log_level {merged['log_level']!r} in {config_path}")
        merged["log_level"] = level

    return merged
