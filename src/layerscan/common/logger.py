"""Logging for layerscan.

Every module logs through a child of the ``layerscan`` logger
(``layerscan.featurefmt.apk``, ``layerscan.imagefmt.driver``, ...), so the
CLI configures output once on the package logger. Skipped package records
and failed layer downloads are reported at WARNING; per-layer counts at
INFO and DEBUG.
"""

import logging
import logging.handlers
import os
import sys
from typing import Optional

ROOT_LOGGER = "layerscan"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logger(
    name: str = ROOT_LOGGER,
    log_dir: Optional[str] = None,
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    console_logging: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Attach handlers to a layerscan logger.

    Usually called once for the package logger, which the component
    loggers propagate to. Nothing is written to disk unless ``log_dir``
    is configured; the log file is then ``<log_dir>/<name>.log``.

    Args:
        name: Logger name, normally the package logger
        log_dir: Directory for rotated log files, or None for console only
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string
        date_format: Custom date format string (ISO 8601 by default)
        console_logging: Enable console logging
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Level names come from the YAML "logging.level" setting
    level_upper = level.upper()
    if level_upper not in LEVELS:
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    logger.setLevel(getattr(logging, level_upper))

    # Handlers are added on the first call only
    if logger.handlers:
        return logger

    if log_format is None:
        log_format = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
    if date_format is None:
        date_format = "%Y-%m-%dT%H:%M:%S"

    formatter = logging.Formatter(log_format, datefmt=date_format)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{name}.log")
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        # stdout carries the CLI package listing
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the layerscan root logger.

    Args:
        name: Component name (e.g. "featurefmt.apk")

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
