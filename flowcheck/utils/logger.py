# flowcheck/utils/logger.py
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler


_LEVEL_MAP = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARN,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _env_level(default: str = "INFO") -> int:
    """Read LOG_LEVEL from env, fallback to default."""
    lvl = os.getenv("LOG_LEVEL", default).upper()
    return _LEVEL_MAP.get(lvl, logging.INFO)


def _colorize(level: int, msg: str) -> str:
    """ANSI colorization by level, only when stderr is a terminal."""
    if not sys.stderr.isatty():
        return msg
    if level >= logging.ERROR:
        return f"\033[91m{msg}\033[0m"   # red
    if level >= logging.WARNING:
        return f"\033[93m{msg}\033[0m"   # yellow
    if level >= logging.INFO:
        return f"\033[92m{msg}\033[0m"   # green
    return msg


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        return _colorize(record.levelno, base)


_FMT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def init_logger(name: str = "flowcheck", level: int | None = None) -> logging.Logger:
    """
    Initialize the project logger with a colored stream handler on stderr.
    stdout is reserved for reports.
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level if level is not None else _env_level("INFO"))

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(logger.level)
    sh.setFormatter(_ColorFormatter(fmt=_FMT, datefmt=_DATEFMT))
    logger.addHandler(sh)
    return logger


def add_file_handler(
    log_dir: str | Path,
    name: str = "flowcheck",
    file_name: str = "flowcheck.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> Path:
    """
    Attach a rotating file handler to the project logger, replacing any
    previous one. Returns the log file path.
    """
    logger = logging.getLogger(name)
    for h in [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]:
        logger.removeHandler(h)
        h.close()

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    path = log_dir / file_name
    fh = RotatingFileHandler(
        filename=str(path),
        maxBytes=file_max_mb * 1024 * 1024,
        backupCount=file_backup,
        encoding="utf-8",
    )
    fh.setLevel(logger.level)
    fh.setFormatter(logging.Formatter(fmt=_FMT, datefmt=_DATEFMT))
    logger.addHandler(fh)
    return path


# Convenience default logger
log = init_logger()


def get_logger(child: str) -> logging.Logger:
    """Create/get a child logger under the root project logger."""
    base = logging.getLogger("flowcheck")
    return base.getChild(child)
