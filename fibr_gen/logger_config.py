# fibr_gen/logger_config.py
"""
Centralized logging configuration for the report generator.

Call setup_logging() ONCE at application startup.

Usage:
    from fibr_gen.logger_config import setup_logging
    from fibr_gen.system_config import sys_config

    setup_logging(log_dir=sys_config.run_log_dir)
"""
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Track if logging has been configured to prevent double-init
_logging_initialized = False

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_filename: str = "fibr_gen.log",
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3
) -> None:
    """
    Configure logging for the entire application.

    Args:
        log_dir: Directory for the rotating log file; console only when None
        level: Console logging level (DEBUG, INFO, WARNING, etc.)
        log_filename: Name of the log file
        max_bytes: Maximum size per log file before rotation
        backup_count: Number of backup files to keep

    Note:
        - The file handler always captures DEBUG
        - This function is idempotent; calling it multiple times has no effect
    """
    global _logging_initialized

    if _logging_initialized:
        logging.debug("Logging already initialized, skipping.")
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Allow all; handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    log_file = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / log_filename
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    # openpyxl is chatty at DEBUG
    logging.getLogger("openpyxl").setLevel(logging.WARNING)

    _logging_initialized = True
    logging.info(f"Logging initialized. File: {log_file or 'console only'}")
