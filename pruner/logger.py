"""Centralized logging with rotation and retention management.

This module provides a standardized logging setup with:
- Rotating file handlers (10MB max per file)
- 30-day log retention
- Console and file output

Library modules log through ``logging.getLogger(__name__)``; setup_logging
attaches the handlers to the ``pruner`` package logger as well, so their
records end up in the same file as the script's.

Example:
    >>> from pruner.logger import setup_logging
    >>> logger = setup_logging('tv_prune.log')
    >>> logger.info('Run started')
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime, timedelta
from typing import Optional


def cleanup_old_logs(log_dir: str, retention_days: int = 30) -> int:
    """Remove log files older than retention period.

    Args:
        log_dir: Directory containing log files
        retention_days: Number of days to keep logs (default: 30)

    Returns:
        Number of log files deleted
    """
    if not os.path.exists(log_dir):
        return 0

    cutoff_date = datetime.now() - timedelta(days=retention_days)
    deleted_count = 0

    try:
        for filename in os.listdir(log_dir):
            if not filename.endswith('.log'):
                continue

            filepath = os.path.join(log_dir, filename)
            mtime = datetime.fromtimestamp(os.path.getmtime(filepath))

            if mtime < cutoff_date:
                try:
                    os.remove(filepath)
                    deleted_count += 1
                except OSError as e:
                    print(f"Warning: Could not delete {filename}: {e}")

    except OSError as e:
        print(f"Warning: Error during log cleanup: {e}")

    return deleted_count


def setup_logging(
    log_file: str,
    level: str = 'INFO',
    log_dir: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 10,
    retention_days: int = 30,
    console: bool = True
) -> logging.Logger:
    """Setup logging with file rotation and retention.

    Args:
        log_file: Name of the log file (e.g., 'tv_prune.log')
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_dir: Directory for log files (default: logs/ next to the package)
        max_bytes: Maximum size per log file before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 10)
        retention_days: Days to keep log files (default: 30)
        console: Whether to also log to console (default: True)

    Returns:
        Configured logger instance named after the log file
    """
    if log_dir is None:
        log_dir = Path(__file__).parent.parent / 'logs'
    else:
        log_dir = Path(log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / log_file

    cleanup_old_logs(str(log_dir), retention_days)

    log_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handlers = []

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    handlers.append(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    logger = logging.getLogger(Path(log_file).stem)

    # The script logger plus the loggers used by the pruner modules
    for name in (logger.name, 'pruner', 'PlexAPI'):
        target = logging.getLogger(name)
        target.handlers.clear()
        target.setLevel(log_level)
        for handler in handlers:
            target.addHandler(handler)
        target.propagate = False

    return logger
