#!/usr/bin/env python3
"""Logging configuration"""
import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _bool(val: str) -> bool:
    return val.lower() in ("true", "1", "yes")


def _names(val: str) -> List[str]:
    return [name.strip() for name in val.split(",") if name.strip()]


@dataclass
class LoggingConfig:
    """Log level, format and destinations for the service"""
    log_level: str = "INFO"
    log_format: str = DEFAULT_FORMAT
    log_file: str = ""
    enable_console: bool = True

    # httpx, asyncpg and nats log every request/reconnect at INFO
    library_log_level: str = "WARNING"
    library_loggers: List[str] = field(default_factory=lambda: ["httpx", "httpcore", "asyncpg", "nats"])

    service_name: str = "fulfillment"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        config = cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if env == "development" else "INFO"),
            log_format=os.getenv("LOG_FORMAT", DEFAULT_FORMAT),
            log_file=os.getenv("LOG_FILE", ""),
            enable_console=_bool(os.getenv("LOG_CONSOLE", "true")),
            library_log_level=os.getenv("LIBRARY_LOG_LEVEL", "WARNING"),
            service_name=os.getenv("SERVICE_NAME", "fulfillment"),
            environment=env,
        )
        if os.getenv("LIBRARY_LOGGERS"):
            config.library_loggers = _names(os.getenv("LIBRARY_LOGGERS"))
        return config
