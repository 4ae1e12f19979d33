"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── fulfillment_service/   Service, builder, client and repository tests
    └── mocks/                 Shared mock implementations

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("NATS_ENABLED", "false")

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.mocks import MockEventBus, MockPostgresClient


@pytest.fixture
def mock_event_bus():
    """Create a fresh MockEventBus"""
    return MockEventBus()


@pytest.fixture
def mock_db():
    """Create a fresh MockPostgresClient"""
    return MockPostgresClient()
