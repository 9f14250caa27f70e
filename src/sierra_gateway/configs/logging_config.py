from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

STDOUT = "stdout"

# error < warn < info < debug < trace; trace has no stdlib level of its own
LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def parse_level(level: str) -> int:
    return LEVELS.get(level.strip().lower(), logging.WARNING)


def setup_logging(
    level: str = "warn",
    log_file: str = STDOUT,
    max_size_mb: int = 100,
    max_backups: int = 0,
) -> None:
    """
    Route log records to stdout, or to a size-rotated file.

    Replaces existing root handlers so repeated startups under reload do not
    duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(parse_level(level))

    if log_file and log_file.lower() != STDOUT:
        handler: logging.Handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=max_backups,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
