# src/lmsync/logging/logger.py
"""Log formatting and setup for the lmsync logger tree.

Every record carries the sync context of the task that emitted it (job id,
batch label, locator; see logging/context.py). The JSON formatter merges
that context into the top level of each line so log shippers can filter on
job_id directly.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lmsync.logging.context import get_context

if TYPE_CHECKING:
    from lmsync.config.settings import Settings

ROOT_LOGGER = "lmsync"


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **get_context().as_dict(),
        }
        # logger.info(..., extra={"data": {...}})
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line console format: time, level, logger, job tag, message."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        tag = ""
        if ctx.job_id:
            tag = f" [job {ctx.job_id}" + (f" batch {ctx.batch}" if ctx.batch else "") + "]"
        line = (
            f"{_timestamp(record):%Y-%m-%d %H:%M:%S} {record.levelname:<8s} "
            f"{record.name}{tag}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": JsonFormatter,
    "text": TextFormatter,
}


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the lmsync tree, e.g. get_logger("sync")."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Install console (stderr) and optional file handlers on the lmsync logger.

    Safe to call repeatedly; previous handlers are closed and replaced.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Optional log file path.
        rotation: Size ("10MB") or schedule ("daily") for the log file.
        retention: Rotated log files to keep.

    Returns:
        The configured lmsync root logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = _FORMATTERS.get(log_format, TextFormatter)()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from lmsync.logging.handlers import create_file_handler

        handlers.append(create_file_handler(log_file, rotation, retention))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return root


def setup_logging_from_settings(settings: Settings, verbose: bool = False) -> logging.Logger:
    """Apply the LOG_* settings; verbose forces DEBUG."""
    return setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
