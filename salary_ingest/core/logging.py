"""
Structured Logging Configuration for the salary ingestion pipeline

This module provides centralized logging configuration with:
- Console and file output
- Configurable log levels
- Structured log formatting
- Per-module loggers
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime


# Default log level from environment or INFO
DEFAULT_LOG_LEVEL = "INFO"

# Log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str] = None,
    console: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file (default: <log_dir>/ingest_YYYYMMDD.log)
        console: Whether to log to console (default: True)
        log_dir: Directory for the dated log file (default: logs)

    Returns:
        Configured root logger

    Example:
        >>> logger = setup_logging(level="DEBUG")
        >>> logger.info("Import started")
    """
    # Get root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
    else:
        # Default: logs/ingest_YYYYMMDD.log
        directory = log_dir or Path("logs")
        directory.mkdir(exist_ok=True, parents=True)

        date_str = datetime.now().strftime("%Y%m%d")
        log_path = directory / f"ingest_{date_str}.log"

    log_path.parent.mkdir(exist_ok=True, parents=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(getattr(logging, level.upper()))
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    root_logger.info(f"Logging initialized - Level: {level}, File: {log_path}")

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Name of the logger (typically __name__)

    Returns:
        Logger instance for the module
    """
    return logging.getLogger(name)


def init_ingest_logging(
    verbose: bool = False,
    level: str = DEFAULT_LOG_LEVEL,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Initialize logging for a CLI run.

    Args:
        verbose: If True, force DEBUG regardless of level
        level: Configured level (LOG_LEVEL)
        log_dir: Optional directory for the dated log file

    Returns:
        Configured logger
    """
    return setup_logging(level="DEBUG" if verbose else level, log_dir=log_dir)
