"""
Centralized logging configuration for trialdata.

Modules log through ``get_logger(__name__)`` and never install handlers
themselves. ``convert`` turns on file output when ``ConversionParams.log_dir``
is set; the chosen path is exported through an environment variable so later
conversions (and child processes of a batch script) append to the same file.

Key Functions:
    - configure_file_logging(): Console + rotating file output
    - get_logger(): Module logger accessor
"""

import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from trialdata import DATA_DIR

# Environment variable name for sharing log file path
ENV_LOG_FILE = "TRIALDATA_LOG_FILE"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

_current_log_file = None


def get_active_log_file() -> str | None:
    """Log file in use by this process or inherited from its parent."""
    return _current_log_file or os.environ.get(ENV_LOG_FILE)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


def configure_file_logging(
    file_identifier: str | None = None,
    log_dir: str | Path | None = None,
    level: int = logging.DEBUG,
) -> str | None:
    """
    Send log records to the console and a rotating file.

    An already active log file is reused, so repeated conversions in one
    session share a file.

    Args:
        file_identifier: Log file stem (default: ``conversion_<timestamp>``)
        log_dir: Directory for the log file (default: ``DATA_DIR/logger``)
        level: Root logger level

    Returns:
        Path of the log file, or None if it could not be created
    """
    global _current_log_file

    existing_log = get_active_log_file()
    if existing_log and os.path.exists(existing_log):
        _current_log_file = existing_log
        return existing_log

    if file_identifier is None:
        file_identifier = f"conversion_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    if log_dir is None:
        log_dir = DATA_DIR / "logger"

    log_file = f"{log_dir}/{file_identifier}.log"
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            handlers=[
                logging.StreamHandler(),
                RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5),  # 10MB
            ],
            force=True,
        )
    except OSError:
        logging.exception("Error setting up file logging")
        return None

    _current_log_file = log_file
    os.environ[ENV_LOG_FILE] = log_file
    logging.info(f"File logging configured to {log_file}")
    return log_file
