# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-02
# Description: logging_utils.py
# -----------------------------------------------------------------------------
"""
Connector logging.

Handlers live on one base logger ("cb_vector"); every module and class
logger is a child of it and propagates there, so each record is emitted
once however many classes ask for a logger.

Env vars:
  CBV_LOG_LEVEL         DEBUG / INFO / WARNING / ... (default INFO)
  CBV_LOG_COLOR         colour console output (default 1)
  CBV_LOG_TO_FILE       also write a rotating file (default 0)
  CBV_LOG_FILE          file path (default ./logs/cb_vector.log)
  CBV_LOG_MAX_BYTES     rotate after this size (default 5MB)
  CBV_LOG_BACKUP_COUNT  rotated files kept (default 5)
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

BASE_LOGGER_NAME = "cb_vector"

_DATEFMT = "%Y-%m-%d %H:%M:%S"
_PLAIN_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    if not _flag("CBV_LOG_COLOR", "1"):
        handler.setFormatter(logging.Formatter(_PLAIN_FMT, datefmt=_DATEFMT))
        return handler

    handler.setFormatter(colorlog.ColoredFormatter(
        fmt=(
            "%(log_color)s%(asctime)s [%(levelname)s] "
            "%(name)s:%(lineno)d:%(reset)s %(message_log_color)s%(message)s"
        ),
        datefmt=_DATEFMT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
        secondary_log_colors={
            "message": {
                "WARNING": "yellow",
                "ERROR": "light_red",
                "CRITICAL": "red",
            }
        },
        style="%",
    ))
    return handler


def _file_handler() -> logging.Handler:
    path = Path(os.getenv("CBV_LOG_FILE", "./logs/cb_vector.log"))
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=int(os.getenv("CBV_LOG_MAX_BYTES", str(5 * 1024 * 1024))),
        backupCount=int(os.getenv("CBV_LOG_BACKUP_COUNT", "5")),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_PLAIN_FMT, datefmt=_DATEFMT))
    return handler


def _base_logger() -> logging.Logger:
    base = logging.getLogger(BASE_LOGGER_NAME)
    if base.handlers:
        return base

    base.addHandler(_console_handler())
    # off by default: a library should not write files unless asked
    if _flag("CBV_LOG_TO_FILE", "0"):
        base.addHandler(_file_handler())

    level_name = os.getenv("CBV_LOG_LEVEL", "INFO").upper()
    base.setLevel(getattr(logging, level_name, logging.INFO))
    base.propagate = False
    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """Module-level logger, e.g. get_logger("api") -> cb_vector.api"""
    base = _base_logger()
    return base.getChild(name) if name else base


def get_class_logger(cls: type) -> logging.Logger:
    """
    Logger named after module + class, e.g.:

      cb_vector.query.VectorQueryCompiler.VectorQueryCompiler
      cb_vector.store.CollectionManager.CollectionManager
    """
    module = getattr(cls, "__module__", "unknown_module")
    classname = getattr(cls, "__name__", "UnknownClass")
    return get_logger(f"{module}.{classname}")
