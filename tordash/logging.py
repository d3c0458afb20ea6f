"""Logging for tordash.

Textual owns the terminal while the dashboard runs, so records go to a file
by default. Every ``tordash.*`` logger writes through one rotating handler
attached to the package logger.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


ROOT_LOGGER = "tordash"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LEVEL = os.environ.get("TORDASH_LOG_LEVEL", "INFO").upper()
DEFAULT_LOG_PATH = Path(os.environ.get("TORDASH_LOG_FILE", "") or (Path.home() / ".cache" / "tordash" / "debug.log"))
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUPS = 3


def _build_handler(to_stdout: bool, path: Optional[Path]) -> logging.Handler:
    if to_stdout:
        handler: logging.Handler = logging.StreamHandler()
    else:
        target = path or DEFAULT_LOG_PATH
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(target, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    return handler


def configure_logging(
    *,
    level: str | int | None = None,
    to_stdout: bool | None = None,
    path: Optional[Path] = None,
) -> logging.Logger:
    """Attach the shared handler to the package logger, once."""
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    resolved_stdout = to_stdout if to_stdout is not None else _env_bool("TORDASH_LOG_TO_STDOUT", False)
    root.setLevel(level or DEFAULT_LEVEL)
    root.addHandler(_build_handler(resolved_stdout, path))
    root.propagate = _env_bool("TORDASH_LOG_PROPAGATE", False)
    return root


def set_level(level: str | int) -> None:
    logging.getLogger(ROOT_LOGGER).setLevel(level.upper() if isinstance(level, str) else level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def _env_bool(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() not in {"", "0", "false", "no", "off"}
