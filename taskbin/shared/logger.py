"""Structured JSON logging for task bins."""

import json
import logging
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "bin": record.name.replace("taskbin.", "", 1),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if hasattr(record, "bin_data"):
            entry["data"] = record.bin_data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=repr)


def get_bin_logger(
    bin_name: str,
    log_file: str | None = None,
    level: int | str = logging.INFO,
) -> logging.Logger:
    """Return a named logger that emits structured JSON.

    Args:
        bin_name: Short name for the bin (e.g. "uploads").
        log_file: Optional path; writes JSON lines to this file instead of stderr.
        level: Logging level or level name, defaults to INFO.

    Returns:
        A ``logging.Logger`` instance named ``taskbin.<bin_name>``.
    """
    logger = logging.getLogger(f"taskbin.{bin_name}")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not logger.handlers:
        if log_file:
            handler = logging.FileHandler(log_file)
        else:
            handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    return logger
