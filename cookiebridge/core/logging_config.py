"""Logging configuration for cookiebridge."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    AUDIT_LOG_FILE,
    DEBUG_LOG_BACKUP_COUNT,
    DEBUG_LOG_FILE,
    DEBUG_LOG_MAX_BYTES,
    LOGS_DIR,
)

AUDIT_LOGGER_NAME = f"{APP_NAME}.audit"

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
AUDIT_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

# Origins listed per audit line before truncating
AUDIT_MAX_ORIGINS = 10


def setup_logging(debug_mode: bool = False, log_dir: Optional[Path] = None) -> None:
    """
    Attach cookiebridge's handlers to its own logger tree.

    The package logger writes everything at DEBUG to a rotating file and,
    in debug mode, echoes to stderr. Extraction summaries go to a separate
    non-propagating audit logger backed by an append-only file. The root
    logger is left alone so embedding applications keep their setup.

    Calling this again replaces the previous handlers.

    Args:
        debug_mode: Mirror debug output to the console
        log_dir: Directory for log files (defaults to ~/.cookiebridge/logs)
    """
    target_dir = log_dir or LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(APP_NAME)
    package_logger.setLevel(logging.DEBUG)
    _reset_handlers(package_logger)
    package_logger.addHandler(_rotating_debug_handler(target_dir / DEBUG_LOG_FILE.name))
    if debug_mode:
        package_logger.addHandler(_formatted(logging.StreamHandler(), logging.DEBUG, DEBUG_FORMAT))

    audit_logger = get_audit_logger()
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    _reset_handlers(audit_logger)
    audit_logger.addHandler(
        _formatted(
            logging.FileHandler(target_dir / AUDIT_LOG_FILE.name, mode="a", encoding="utf-8"),
            logging.INFO,
            AUDIT_FORMAT,
        )
    )


def get_audit_logger() -> logging.Logger:
    """Return the audit logger instance."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


def log_extraction(
    browsers: list[str],
    mode: str,
    cookie_count: int,
    warning_count: int,
    origins: list[str],
    inline: bool = False,
) -> None:
    """
    Write one summary line for a finished extraction.

    Only counts and targets are recorded, never cookie names or values.

    Args:
        browsers: Providers consulted, in order
        mode: "merge" or "first"
        cookie_count: Number of cookies returned
        warning_count: Number of warnings returned
        origins: Normalized origins the request targeted
        inline: Whether an inline payload satisfied the request
    """
    shown = ",".join(origins[:AUDIT_MAX_ORIGINS])
    if len(origins) > AUDIT_MAX_ORIGINS:
        shown += "..."

    get_audit_logger().info(
        "%s | cookies=%d | warnings=%d | browsers=%s | origins=%s",
        "INLINE" if inline else mode.upper(),
        cookie_count,
        warning_count,
        ",".join(browsers),
        shown,
    )


def _rotating_debug_handler(path: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        path,
        maxBytes=DEBUG_LOG_MAX_BYTES,
        backupCount=DEBUG_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    return _formatted(handler, logging.DEBUG, DEBUG_FORMAT)


def _formatted(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _reset_handlers(target: logging.Logger) -> None:
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()
