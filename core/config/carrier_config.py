#!/usr/bin/env python3
"""Shipping carrier configuration

Settings for outbound calls to external shipping company APIs.
Per-carrier endpoints and tokens live in the external_companies table,
not here.
"""
import os
from dataclasses import dataclass


def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class CarrierConfig:
    """Outbound carrier API settings"""

    # Upper bound for one dispatch call; a timeout counts as a transport failure
    timeout_seconds: float = 15.0
    connect_timeout_seconds: float = 5.0

    default_package_type: str = "normal"
    user_agent: str = "Ribh-Fulfillment/1.0"

    @classmethod
    def from_env(cls) -> 'CarrierConfig':
        """Load carrier settings from environment variables"""
        return cls(
            timeout_seconds=_float(os.getenv("CARRIER_TIMEOUT_SECONDS", "15"), 15.0),
            connect_timeout_seconds=_float(os.getenv("CARRIER_CONNECT_TIMEOUT_SECONDS", "5"), 5.0),
            default_package_type=os.getenv("CARRIER_DEFAULT_PACKAGE_TYPE", "normal"),
            user_agent=os.getenv("CARRIER_USER_AGENT", "Ribh-Fulfillment/1.0"),
        )
