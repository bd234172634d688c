"""Logging setup: console plus rotating files under the configured log dir."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

BACKEND_LOGGER = "tools.backend_client"

# httpx logs every request at INFO; the backend client already records them
NOISY_LOGGERS = ("httpx", "httpcore")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Configure application-wide logging.

    Writes ``chaptersmith.log`` for everything at ``level`` and
    ``backend_calls.log`` with every backend request at DEBUG, whatever
    the main level is. Calling it again replaces the handlers.

    Args:
        level: Logging level for the console and main log file.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Whether to also log to stderr.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating_handler(log_dir / "chaptersmith.log", level, formatter))

    backend_logger = logging.getLogger(BACKEND_LOGGER)
    backend_logger.handlers.clear()
    backend_logger.setLevel(logging.DEBUG)
    backend_logger.addHandler(_rotating_handler(log_dir / "backend_calls.log", logging.DEBUG, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
