#!/usr/bin/env python3
"""Fulfillment platform main configuration

Combines all sub-configs for the Ribh fulfillment microservice.
"""
import os
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .carrier_config import CarrierConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class AppConfig:
    """Main configuration with all sub-configs"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Service settings
    service_name: str = "fulfillment_service"
    host: str = "0.0.0.0"
    port: int = 8254

    # Internal service authentication
    internal_service_secret: str = "dev-internal-secret-change-in-production"

    # Sub-configurations
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    carrier: CarrierConfig = field(default_factory=CarrierConfig)

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "true" if env == "development" else "false")),

            service_name=os.getenv("SERVICE_NAME", "fulfillment_service"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int(os.getenv("PORT", "8254"), 8254),

            internal_service_secret=os.getenv(
                "INTERNAL_SERVICE_SECRET", "dev-internal-secret-change-in-production"
            ),

            logging=LoggingConfig.from_env(),
            infrastructure=InfraConfig.from_env(),
            carrier=CarrierConfig.from_env(),
        )
