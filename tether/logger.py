# tether/logger.py
"""
tether.logger
=============
File  : <TETHER_HOME>/logs/tether.log
Rotates at 1 MB × 5 backups.
"""

from __future__ import annotations

import logging
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict

from tether import env

# ─────────────────────────── internals
_LOCK = threading.RLock()
_LOGGERS: Dict[str, logging.Logger] = {}
_LOG_PATH: Path | None = None

_MAX_BYTES = 1_000_000
_BACKUP_COUNT = 5

# ─────────────────────────── helpers


def _log_path() -> Path:
    """Cache the path **once** per process."""
    global _LOG_PATH
    if _LOG_PATH is None:
        _LOG_PATH = env.get_logs_root() / "tether.log"
    return _LOG_PATH


def _make_handler() -> RotatingFileHandler:
    h = RotatingFileHandler(
        _log_path(),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
        delay=True,  # open on first emit
    )
    h.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return h


# ─────────────────────────── public API
def get_logger(name: str = "tether") -> logging.Logger:
    """Thread-safe, idempotent logger getter."""
    with _LOCK:
        if name in _LOGGERS:
            return _LOGGERS[name]

        lg = logging.getLogger(name)
        lg.setLevel(logging.DEBUG)
        lg.propagate = False
        if not lg.handlers:
            lg.addHandler(_make_handler())

        _LOGGERS[name] = lg
        return lg


def get_current_log_file() -> Path:
    return _log_path()
