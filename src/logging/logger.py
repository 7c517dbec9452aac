# src/logging/logger.py - v2
"""Logger setup with JSON and text formatters and optional file rotation."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from pmdesigner.logging.context import get_context

ROOT_LOGGER = "pmdesigner"

_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the current log context attached."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context_dict = get_context().as_dict()
        if context_dict:
            log_entry["context"] = context_dict

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.stage:
            parts.append(f"[{ctx.stage}]")
        if ctx.run_id:
            parts.append(f"({ctx.run_id})")
        parts.append(f"- {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def parse_size(size_str: str) -> int:
    """Parse a size such as '10MB' into bytes (KB, MB, GB)."""
    match = re.match(r"^(\d+)\s*(KB|MB|GB)$", size_str.strip(), re.IGNORECASE)
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).upper()]


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Configure the package root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: Output format ("json" or "text").
        log_file: Path to log file (None = stdout only).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.

    Returns:
        The configured root package logger.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-initialization must not duplicate handlers.
    root_logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(path),
            maxBytes=parse_size(rotation),
            backupCount=retention,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger
