"""Logging infrastructure for aptsync.

Provides centralized logging configuration with file, console and
system log output, log rotation, and ISO 8601 timestamps.
"""

import logging
import logging.handlers
import os
from typing import Optional

SYSLOG_SOCKET = "/dev/log"


def setup_logger(
    name: str = "aptsync",
    log_dir: str = "/var/log/aptsync",
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    file_logging: bool = True,
    console_logging: bool = True,
    syslog: bool = True,
    syslog_address: str = SYSLOG_SOCKET,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up a logger with file, console and syslog handlers.

    Child loggers (``aptsync.index``, ``aptsync.monitor``...) propagate to
    the logger configured here, so this is called once at process start.

    Args:
        name: Logger name (typically the package name)
        log_dir: Directory for log files
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        date_format: Custom date format string (ISO 8601 by default)
        file_logging: Enable file logging
        console_logging: Enable console logging
        syslog: Mirror records to the system log when its socket exists
        syslog_address: Path of the system log socket
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    level_upper = level.upper()
    if not hasattr(logging, level_upper):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    if log_format is None:
        log_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
    if date_format is None:
        date_format = "%Y-%m-%dT%H:%M:%S"

    formatter = logging.Formatter(log_format, datefmt=date_format)

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{name}.log")
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if syslog and os.path.exists(syslog_address):
        syslog_handler = logging.handlers.SysLogHandler(address=syslog_address)
        syslog_handler.setFormatter(
            logging.Formatter(f"{name}[%(process)d]: [%(levelname)s] %(message)s")
        )
        logger.addHandler(syslog_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a component logger below the ``aptsync`` hierarchy.

    Args:
        name: Component name, e.g. ``"index"``

    Returns:
        Logger instance
    """
    if name == "aptsync" or name.startswith("aptsync."):
        return logging.getLogger(name)
    return logging.getLogger(f"aptsync.{name}")
