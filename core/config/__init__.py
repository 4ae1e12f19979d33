#!/usr/bin/env python3
"""Configuration for the fulfillment service

- infra_config: PostgreSQL pool and NATS
- carrier_config: outbound carrier API calls
- logging_config: log level, format, destinations
- app_config: everything above plus service identity
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .carrier_config import CarrierConfig
from .app_config import AppConfig

ENV_DIR = "deployment/environments"
ENV_ALIASES = {
    "development": "dev",
    "testing": "test",
}


def env_file_for(env: str) -> str:
    """deployment/environments/<env>.env, ENV_FILE wins when set"""
    if os.getenv("ENV_FILE"):
        return os.getenv("ENV_FILE")
    name = ENV_ALIASES.get(env, env or "dev")
    return os.path.join(ENV_DIR, f"{name}.env")


# Real environment variables take precedence over the file
load_dotenv(env_file_for(os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")), override=False)

_settings = AppConfig.from_env()


def get_settings() -> AppConfig:
    return _settings


__all__ = [
    'AppConfig',
    'CarrierConfig',
    'InfraConfig',
    'LoggingConfig',
    'env_file_for',
    'get_settings',
]
