"""
Intake Review – Logging Utilities
==================================
Configures logging for the intake and review workflow and provides a helper
for structured workflow events (submission stored, decision recorded, cycle
paid, ...).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Configure the root logger.

    Parameters
    ----------
    level : str, optional
        Logging level name. Falls back to ``LOG_LEVEL`` then INFO.
    log_file : str, optional
        Also write to this file. If None, logs to stderr only.
    json_format : bool
        If True, emit one JSON object per line.
    """
    level = level or os.environ.get("LOG_LEVEL", "INFO")
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root_logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


class JsonFormatter(logging.Formatter):
    """JSON-structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        stage = getattr(record, "stage", None)
        if stage:
            log_entry["stage"] = stage
            log_entry["event"] = getattr(record, "event", None)
            log_entry["details"] = getattr(record, "details", None)
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])
        return json.dumps(log_entry, default=str)


def log_pipeline_event(
    logger: logging.Logger,
    stage: str,
    event: str,
    details: Optional[dict] = None,
):
    """Log a structured workflow event."""
    msg = f"[{stage}] {event}"
    if details:
        msg += f" | {json.dumps(details, default=str)}"
    logger.info(msg, extra={"stage": stage, "event": event, "details": details})
