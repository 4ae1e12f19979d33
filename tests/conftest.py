"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - api/        : HTTP contract tests (FastAPI TestClient, mocked service deps)
    - component/  : Service tests (in-memory repositories, mocked carrier)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Set testing environment BEFORE any project imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("NATS_ENABLED", "false")
os.environ.setdefault("INTERNAL_SERVICE_SECRET", "test-internal-secret")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from tests.fixtures import (
    make_company,
    make_order,
    make_village,
)


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line("markers", "unit: pure logic tests")
    config.addinivalue_line("markers", "component: service tests with mocked dependencies")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")


@pytest.fixture
def village():
    """Active village 55"""
    return make_village()


@pytest.fixture
def carrier():
    """Active carrier with an API endpoint"""
    return make_company()


@pytest.fixture
def order():
    """Order ORD-1001 assigned to Ultra Pal / village 55"""
    return make_order()
