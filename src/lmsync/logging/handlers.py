# src/lmsync/logging/handlers.py
"""Rotating file handlers for the optional log file.

LOG_ROTATION accepts either a size ("10MB", "512KB") or a schedule
("hourly", "daily", "weekly"). LOG_RETENTION is the number of rotated files
kept in both cases.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"^(\d+)\s*(KB|MB|GB)$", re.IGNORECASE)
_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}

# schedule name -> TimedRotatingFileHandler "when"
_SCHEDULES = {"hourly": "H", "daily": "midnight", "weekly": "W0"}


def parse_size(size_str: str) -> int:
    """Return the byte count for a size such as "10MB" (case-insensitive)."""
    match = _SIZE_PATTERN.match(size_str.strip())
    if match is None:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).upper()]


def create_file_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Handler:
    """Build a size- or time-rotated UTF-8 file handler.

    Raises:
        ValueError: If rotation is neither a size nor a known schedule.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    schedule = _SCHEDULES.get(rotation.strip().lower())
    if schedule is not None:
        return TimedRotatingFileHandler(
            filename=str(path), when=schedule, backupCount=retention,
            encoding="utf-8", utc=True,
        )
    return RotatingFileHandler(
        filename=str(path), maxBytes=parse_size(rotation),
        backupCount=retention, encoding="utf-8",
    )
