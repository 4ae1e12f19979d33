"""
Unit tests for configuration loading and the NATS event envelope.
"""
import json

import pytest

import core.config
from core.config import CarrierConfig, InfraConfig, LoggingConfig, env_file_for, get_settings
from core.nats_client import Event, EventType, ServiceSource, stream_for
from core.postgres_client import PostgresClientWrapper

pytestmark = pytest.mark.unit


class TestInfraConfig:

    def test_dsn_from_parts(self, monkeypatch):
        for name in ("DATABASE_URL", "POSTGRES_USER", "POSTGRES_DB"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("POSTGRES_HOST", "db.internal")
        monkeypatch.setenv("POSTGRES_PORT", "6543")
        monkeypatch.setenv("POSTGRES_PASSWORD", "pw")

        config = InfraConfig.from_env()

        assert config.postgres_dsn == "postgresql://postgres:pw@db.internal:6543/ribh"
        assert config.postgres_target == "db.internal:6543/ribh"

    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:secret@pg:5432/shop")

        config = InfraConfig.from_env()

        assert config.postgres_dsn == "postgresql://u:secret@pg:5432/shop"
        assert "secret" not in config.postgres_target

    def test_bad_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("POSTGRES_POOL_MAX", "many")
        monkeypatch.setenv("NATS_CONNECT_TIMEOUT", "soon")

        config = InfraConfig.from_env()

        assert config.postgres_pool_max == 10
        assert config.nats_connect_timeout == 5.0

    def test_nats_url(self, monkeypatch):
        monkeypatch.delenv("NATS_URL", raising=False)
        monkeypatch.setenv("NATS_HOST", "bus")
        assert InfraConfig.from_env().nats_servers == "nats://bus:4222"


class TestOtherConfigs:

    def test_carrier_timeout_default(self, monkeypatch):
        monkeypatch.delenv("CARRIER_TIMEOUT_SECONDS", raising=False)
        assert CarrierConfig.from_env().timeout_seconds == 15.0

    def test_library_loggers_override(self, monkeypatch):
        monkeypatch.setenv("LIBRARY_LOGGERS", "httpx, nats")
        assert LoggingConfig.from_env().library_loggers == ["httpx", "nats"]

    def test_env_file_for(self, monkeypatch):
        monkeypatch.delenv("ENV_FILE", raising=False)
        assert env_file_for("testing") == "deployment/environments/test.env"
        assert env_file_for("staging") == "deployment/environments/staging.env"
        monkeypatch.setenv("ENV_FILE", "/etc/ribh/fulfillment.env")
        assert env_file_for("production") == "/etc/ribh/fulfillment.env"

    def test_settings_loaded_once_at_import(self):
        assert get_settings() is get_settings()
        assert "reload_settings" not in core.config.__all__


class TestPostgresClientSurface:

    def test_pool_queries_only(self):
        for name in ("query", "query_row", "execute", "close"):
            assert callable(getattr(PostgresClientWrapper, name))
        assert not hasattr(PostgresClientWrapper, "transaction")


class TestEventEnvelope:

    def test_stream_per_subject_family(self):
        assert stream_for("order.created") == "order-stream"
        assert stream_for("fulfillment.package.dispatched") == "fulfillment-stream"

    def test_envelope_keeps_arabic_text(self):
        event = Event(
            event_type=EventType.PACKAGE_CREATED,
            source=ServiceSource.FULFILLMENT_SERVICE,
            data={"village_name": "البيرة", "package_id": 7},
            subject="ORD-1001",
        )

        body = json.loads(event.to_bytes().decode("utf-8"))

        assert body["type"] == "fulfillment.package.created"
        assert body["source"] == "fulfillment_service"
        assert body["data"]["village_name"] == "البيرة"
        assert "البيرة".encode("utf-8") in event.to_bytes()
