"""Shared utilities for task bins."""

from taskbin.shared.bus import RedisBus
from taskbin.shared.logger import get_bin_logger
from taskbin.shared.config import load_bin_config

__all__ = ["RedisBus", "get_bin_logger", "load_bin_config"]
