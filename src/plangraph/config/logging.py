# plangraph/config/logging.py
"""
Logging setup for the plangraph CLI and for applications embedding it.

Library modules only call ``logging.getLogger(__name__)``; nothing here
runs on import. ``setup_logging`` installs one stderr handler and,
optionally, a rotating file that always receives the DEBUG trace of the
``plangraph`` loggers, whatever the console level is.
"""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from plangraph.config.defaults import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_MAX_BYTES
from plangraph.config.enums import LogFormat

ROOT_LOGGER_NAME = "plangraph"

_CONSOLE_FORMATS: dict[LogFormat, str] = {
    LogFormat.SIMPLE: "%(levelname)-8s %(message)s",
    LogFormat.DETAILED: "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d - %(message)s",
}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, safe for messages containing quotes."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(level: str, quiet: bool, verbose: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {level}")
    return numeric


def _console_formatter(format_style: str) -> logging.Formatter:
    style = LogFormat(format_style)
    if style == LogFormat.JSON:
        return JsonLineFormatter()
    return logging.Formatter(_CONSOLE_FORMATS[style])


def setup_logging(
    level: str = "WARNING",
    quiet: bool = False,
    verbose: bool = False,
    format_style: str = LogFormat.SIMPLE.value,
    log_file: str | None = None,
) -> None:
    """
    Configure console (and optional file) logging.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        quiet: Only errors reach the console; wins over ``verbose``
        verbose: DEBUG on the console
        format_style: "simple", "detailed", or "json"
        log_file: Rotating JSON-lines file at DEBUG level. ``~`` is
                  expanded and parent directories are created.

    Raises:
        ValueError: unknown level name or format style.
    """
    console_level = _resolve_level(level, quiet, verbose)
    formatter = _console_formatter(format_style)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    # The file wants the DEBUG trace, so loggers must pass it through and
    # the console handler does the filtering.
    logger_level = console_level
    if log_file:
        root.addHandler(_file_handler(log_file))
        logger_level = logging.DEBUG

    root.setLevel(logger_level)
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(logger_level)


def _file_handler(log_file: str) -> logging.Handler:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        path,
        maxBytes=DEFAULT_LOG_MAX_BYTES,
        backupCount=DEFAULT_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JsonLineFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``plangraph`` namespace."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
