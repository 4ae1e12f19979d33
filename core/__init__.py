#!/usr/bin/env python3
"""
Core Module for the Fulfillment Service

Shared infrastructure components:
    - config/: dataclass configuration loaded from environment / .env files
    - logger.py: service logger setup
    - postgres_client.py: asyncpg pool wrapper
    - nats_client.py: NATS JetStream event bus
    - auth_dependencies.py: FastAPI header-based auth dependencies

USAGE:
    from core.config import get_settings
    from core.postgres_client import get_postgres_client
"""

__version__ = "2.0.0"
