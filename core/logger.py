"""
Service logger setup

Usage:
    from core.logger import setup_service_logger
    logger = setup_service_logger("fulfillment_service")
"""

import logging
import sys
from typing import Optional

from core.config import get_settings


def setup_service_logger(service_name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root handlers once and return the service's logger.

    Level, format, optional log file and console output come from
    LoggingConfig unless `level` overrides it.
    """
    log_config = get_settings().logging
    log_level = getattr(logging, (level or log_config.log_level).upper(), logging.INFO)
    formatter = logging.Formatter(log_config.log_format)

    root = logging.getLogger()
    root.setLevel(log_level)

    if not getattr(root, "_fulfillment_configured", False):
        if log_config.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            root.addHandler(console)
        if log_config.log_file:
            file_handler = logging.FileHandler(log_config.log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        root._fulfillment_configured = True

    library_level = getattr(logging, log_config.library_log_level.upper(), logging.WARNING)
    for name in log_config.library_loggers:
        logging.getLogger(name).setLevel(library_level)

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)
    return logger
