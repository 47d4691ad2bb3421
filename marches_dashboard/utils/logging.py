"""
Logging configuration for the marchés dashboard.

Provides a standardized logging setup with both console and file output.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# Default logger name
LOGGER_NAME = "marches_dashboard"

# Cached logger instance
_logger: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Get the dashboard logger instance."""
    global _logger
    if _logger is None:
        _logger = logging.getLogger(LOGGER_NAME)
    return _logger


def setup_logging(log_dir: Path, verbose: bool = False) -> logging.Logger:
    """
    Configure logging with console and file handlers.

    Args:
        log_dir: Directory where the log file will be created
        verbose: If True, set console log level to DEBUG

    Returns:
        Configured logger instance
    """
    logger = get_logger()
    console_level = logging.DEBUG if verbose else logging.WARNING

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console output goes to stderr so it never mixes with command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dashboard.log"
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)  # Always log debug to file
    file_handler.setFormatter(formatter)

    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    logger.debug(f"Logging initialized. Log file: {log_file}")

    return logger
