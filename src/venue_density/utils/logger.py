"""
Venue Density Logger Module
-------------------------------------------

This module configures a rotating, JSON-formatted logger for the
venue density pipeline. Each run produces its own timestamped log file,
and log records are written as one-line JSON entries with the following
core fields:

  - timestamp: ISO-formatted datetime string when the event occurred
  - level:     logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
  - logger:    the name of the logger that emitted the record
  - message:   the formatted log message

Any extra attributes you attach to log calls (via the `extra=` argument)
are automatically included in the JSON payload under their own keys.

It also provides the fetch fault log: a plain, append-only text file with one
line per sampling point whose Places search failed. That file is meant for a
human operator and is never read back by the pipeline.

Classes:
    JsonFormatter: Custom formatter that introspects a LogRecord and serializes
                   its data to JSON, omitting the standard logging attributes.

Globals:
    logger (logging.Logger): Package-level logger. Handlers are attached by
                             `configure_logging`, never at import time.

Usage:
        from venue_density.utils.logger import logger

        logger.info("Fetched places", extra={"operation": "nearby_search", "point_index": 12})
        logger.error("API request failed", exc_info=True)
"""

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


class JsonFormatter(logging.Formatter):
    builtins = {
        "name", "msg", "args", "levelname", "levelno",
        "pathname", "filename", "module", "exc_info",
        "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread",
        "threadName", "processName", "process", "taskName",
        "message", "asctime"
    }

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level":     record.levelname,
            "logger":    record.name,
            "message":   record.getMessage(),
        }
        # Pick up any extra attributes
        for key, value in record.__dict__.items():
            if key not in self.builtins:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

# ----------------------------------------------------------------------------------------------------------

logger = logging.getLogger("venue_density")
logger.setLevel(logging.DEBUG)
logger.addHandler(logging.NullHandler())

# ----------------------------------------------------------------------------------------------------------

def configure_logging(
    log_dir: Union[str, Path],
    level: int = logging.INFO,
    console: bool = True
) -> Path:
    """
    Attach the JSON rotating file handler (and a plain console handler) to the package logger.

    Args:
        log_dir: Directory for the timestamped log file
        level: Minimum level for the console handler (the file always gets DEBUG)
        console: Whether to mirror records to stdout

    Returns:
        Path of the JSON log file for this run
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"venue_density_{ts}.log"

    # Calling twice replaces the previous handlers instead of duplicating records
    for existing in list(logger.handlers):
        if not isinstance(existing, logging.NullHandler):
            logger.removeHandler(existing)
            existing.close()

    handler = RotatingFileHandler(
        filename=log_filename,
        maxBytes=10_000_000,
        backupCount=5
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logger.addHandler(console_handler)

    return log_filename

# ----------------------------------------------------------------------------------------------------------

def setup_fault_log(path: Union[str, Path], name: Optional[str] = None) -> logging.Logger:
    """
    Set up the append-only fetch fault log.

    Args:
        path: Text file receiving one line per failed sampling point
        name: Logger name (default: derived from the path)

    Returns:
        Logger whose records go to `path` only
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fault_logger = logging.getLogger(name or f"venue_density.faults.{path.stem}")
    fault_logger.setLevel(logging.INFO)
    fault_logger.propagate = False

    target = os.path.abspath(path)
    for existing in list(fault_logger.handlers):
        if getattr(existing, "baseFilename", None) == target:
            return fault_logger
        fault_logger.removeHandler(existing)
        existing.close()

    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter('%(asctime)s\t%(message)s'))
    fault_logger.addHandler(file_handler)

    return fault_logger

# ----------------------------------------------------------------------------------------------------------
