import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_size: int = 10485760,
    backup_count: int = 5,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Configure logging for the application.

    Console output always goes to stderr so command output on stdout stays
    clean; a rotating log file is added when ``log_file`` is set.
    """
    if log_level is None:
        log_level = os.getenv("SORTD_LOG_LEVEL", "INFO")

    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_path, maxBytes=max_size, backupCount=backup_count)
        )

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=fmt,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    if log_file:
        logger.debug(f"Logging initialized. Log file: {log_file}")

    return logger
