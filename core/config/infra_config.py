#!/usr/bin/env python3
"""Infrastructure configuration: PostgreSQL pool and NATS"""
import os
from dataclasses import dataclass
from typing import Optional


def _bool(val: str) -> bool:
    return val.lower() in ("true", "1", "yes")


def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class InfraConfig:
    """Connection settings for the fulfillment database and event bus"""

    # PostgreSQL (asyncpg pool)
    database_url: Optional[str] = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "ribh"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_pool_min: int = 1
    postgres_pool_max: int = 10
    postgres_command_timeout: float = 30.0

    # NATS JetStream
    nats_enabled: bool = True
    nats_url: Optional[str] = None
    nats_host: str = "localhost"
    nats_port: int = 4222
    nats_connect_timeout: float = 5.0

    @property
    def postgres_dsn(self) -> str:
        """DATABASE_URL when given, otherwise built from the POSTGRES_* parts"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_target(self) -> str:
        """host:port/db for log lines (never includes credentials)"""
        if self.database_url:
            return self.database_url.rsplit("@", 1)[-1]
        return f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @property
    def nats_servers(self) -> str:
        return self.nats_url or f"nats://{self.nats_host}:{self.nats_port}"

    @classmethod
    def from_env(cls) -> 'InfraConfig':
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            postgres_host=os.getenv("POSTGRES_HOST", "localhost"),
            postgres_port=_int(os.getenv("POSTGRES_PORT", ""), 5432),
            postgres_db=os.getenv("POSTGRES_DB", "ribh"),
            postgres_user=os.getenv("POSTGRES_USER", "postgres"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            postgres_pool_min=_int(os.getenv("POSTGRES_POOL_MIN", ""), 1),
            postgres_pool_max=_int(os.getenv("POSTGRES_POOL_MAX", ""), 10),
            postgres_command_timeout=_float(os.getenv("POSTGRES_COMMAND_TIMEOUT", ""), 30.0),
            nats_enabled=_bool(os.getenv("NATS_ENABLED", "true")),
            nats_url=os.getenv("NATS_URL"),
            nats_host=os.getenv("NATS_HOST", "localhost"),
            nats_port=_int(os.getenv("NATS_PORT", ""), 4222),
            nats_connect_timeout=_float(os.getenv("NATS_CONNECT_TIMEOUT", ""), 5.0),
        )
