"""
Logging configuration for Scout.

All logs go to file: .scout/logs/scout-YYYY-MM-DD.log (new file each day).
Console logging is opt-in via console=True; library callers that embed the
index service in another process usually want file-only output.

Every module logs through a child of the "scout" logger
(``scout.workspace``, ``scout.watcher``, ...), so one call here covers the
whole package.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "scout"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class FlushingHandler(logging.handlers.TimedRotatingFileHandler):
    """Daily rotating file handler that flushes after every record."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def _is_stderr_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is sys.stderr


def log_file_for(log_dir: Union[str, Path], day: Optional[datetime] = None) -> Path:
    """Path of the log file for the given day (default: today)."""
    day = day or datetime.now()
    return Path(log_dir) / f"scout-{day.strftime('%Y-%m-%d')}.log"


def setup_logging(
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    backup_count: int = 30,  # days
    console: bool = False,
) -> logging.Logger:
    """
    Attach file (and optionally stderr) handlers to the "scout" logger.

    Calling this more than once is safe; each kind of handler is added once.

    Args:
        log_dir: Directory for log files (default: ./.scout/logs)
        level: Logging level (default: INFO)
        backup_count: Number of daily files to keep
        console: If True, also log to stderr

    Returns:
        The configured "scout" logger
    """
    log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / ".scout" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    has_file_handler = any(isinstance(h, FlushingHandler) for h in logger.handlers)
    has_console_handler = any(_is_stderr_handler(h) for h in logger.handlers)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not has_file_handler:
        log_file = log_file_for(log_dir)
        file_handler = FlushingHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info("=" * 60)
        logger.info("Scout index service - logging initialized")
        logger.info(f"Log file: {log_file} (level {logging.getLevelName(level)}, {backup_count} days kept)")
        logger.info("=" * 60)

    if console and not has_console_handler:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
