"""
Logging configuration for Job Automation.
Provides structured logging with proper formatting.
"""

import os
import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Log directory
LOG_DIR = Path(os.getenv("LOG_DIR", "./logs"))

# Log level from environment
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Copy so file handlers sharing the record keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(name: str = "job_automation", log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Setup and return a configured logger.

    Args:
        name: Logger name (default: job_automation). Pass "" for the root logger
            so every module logger created with logging.getLogger(__name__)
            shares the handlers.
        log_dir: Directory for the rotating log files (default: LOG_DIR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    directory = Path(log_dir or LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    file_stem = name or "job_automation"

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_format = ColoredFormatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler with rotation
    file_handler = RotatingFileHandler(
        directory / f"{file_stem}.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(logging.DEBUG)
    file_format = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    # Error file handler (errors and above)
    error_handler = RotatingFileHandler(
        directory / f"{file_stem}_errors.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(file_format)
    logger.addHandler(error_handler)

    return logger


event_logger = logging.getLogger("job_automation.events")


def log_application(job_id: str, platform: str, status: str, error: str = None):
    """Log an application outcome."""
    if error:
        event_logger.error(f"Application for job {job_id} on {platform} failed: {error}")
    else:
        event_logger.info(f"Application for job {job_id} on {platform} -> {status}")


def log_browser_event(platform: str, event: str, details: str = None):
    """Log a browser lifecycle event."""
    event_logger.debug(f"Browser [{platform}] {event}: {details}" if details else f"Browser [{platform}] {event}")


def log_scrape(platform: str, total: int, new: int, duplicates: int, elapsed: float):
    """Log a finished scrape run."""
    event_logger.info(
        f"Scrape [{platform}] total={total} new={new} duplicates={duplicates} ({elapsed:.1f}s)"
    )
