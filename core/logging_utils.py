"""
Logging setup for drivers and scripts.

Library modules only create `logging.getLogger(__name__)` loggers; entry points
call setup_logging once. The level comes from the command line or the
environment:

    INTERFACE_LOG_LEVEL=DEBUG     explicit level name or number
    INTERFACE_DEBUG=1             shorthand for DEBUG
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

ENV_LEVEL = "INTERFACE_LOG_LEVEL"
ENV_DEBUG = "INTERFACE_DEBUG"


def parse_log_level(value, fallback: int) -> int:
    """Level number for a name ('info'), a numeric string ('15') or an int."""
    if isinstance(value, int):
        return value
    text = str(value or "").strip().upper()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text) if text else None
    return level if isinstance(level, int) else fallback


def get_log_level_from_env(default: str | int = "INFO") -> int:
    """Resolve the log level: INTERFACE_LOG_LEVEL, then INTERFACE_DEBUG, then `default`."""
    level = parse_log_level(default, logging.INFO)
    explicit = os.environ.get(ENV_LEVEL)
    if explicit:
        return parse_log_level(explicit, level)
    if os.environ.get(ENV_DEBUG, "").strip().lower() in {"1", "true", "yes", "on"}:
        return logging.DEBUG
    return level


def setup_logging(level: int = logging.INFO, *, log_file: Optional[str | Path] = None) -> None:
    """
    Configure the root logger.

    Console handlers follow `level`. With `log_file`, a file handler records
    everything from DEBUG up so a quiet console run still leaves a full trace.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    for handler in root.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)

    if log_file is not None:
        path = Path(log_file).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        already = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == path for h in root.handlers
        )
        if not already:
            file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(level)
