"""Logging setup for texture synthesis.

Everything the package logs lives under the ``texture_brew`` logger. A host
application that already configured the root logger keeps its handlers; we
only adjust our own hierarchy in that case.
"""

import logging
import logging.handlers
import os
import threading

PACKAGE_LOGGER = "texture_brew"

logger = logging.getLogger(PACKAGE_LOGGER)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [T%(thread)d]: %(message)s"
_LOG_MAX_BYTES = 10 * 1024 * 1024
_LOG_BACKUP_COUNT = 3

# Codec plugins that dump per-chunk details at DEBUG.
_CHATTY_LOGGERS = ("PIL",)

_setup_lock = threading.Lock()


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        logger.warning("Invalid log level '%s', defaulting to INFO", level)
        return logging.INFO
    return numeric


def _file_handler(log_file: str) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=_LOG_MAX_BYTES, backupCount=_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    return handler


def setup_logging(level="INFO", log_file: str = None, force: bool = False):
    """Configure console (and optional rotating file) logging.

    Args:
        level: Level name or number for the ``texture_brew`` hierarchy.
        log_file: Optional path for a rotating log file.
        force: Replace existing root handlers instead of attaching to
            the package logger only.

    """
    with _setup_lock:
        numeric_level = _resolve_level(level)
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))

        root = logging.getLogger()
        if force or not root.handlers:
            handlers = [logging.StreamHandler()]
            if log_file:
                handlers.append(_file_handler(log_file))
            logging.basicConfig(level=numeric_level, format=_LOG_FORMAT,
                                handlers=handlers, force=force)
            return

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(numeric_level)
        if not log_file:
            return
        target = os.path.abspath(log_file)
        for handler in package_logger.handlers:
            if getattr(handler, "baseFilename", None) == target:
                return
        logger.info("Adding file handler: %s", target)
        package_logger.addHandler(_file_handler(log_file))
