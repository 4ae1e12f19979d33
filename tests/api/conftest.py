"""
API Test Layer Configuration

HTTP contract tests against the FastAPI app through TestClient. The app's
lifespan is not run; tests install a FulfillmentService built on
in-memory repositories into the global microservice instance.

Usage:
    pytest tests/api -v
"""

import os
import sys
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("INTERNAL_SERVICE_SECRET", "test-internal-secret")

# Add project root
sys.path.insert(
    0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
)

from microservices.fulfillment_service import main
from microservices.fulfillment_service.fulfillment_service import FulfillmentService
from tests.component.fulfillment_service.mocks import (
    MockCarrierClient,
    MockDirectoryRepository,
    MockOrderRepository,
    MockPackageRepository,
)
from tests.component.mocks import MockEventBus
from tests.fixtures import make_company, make_village


class APITestConfig:
    """API test configuration"""

    BASE_PATH = "/api/v1/fulfillment"
    INTERNAL_SECRET = os.environ["INTERNAL_SERVICE_SECRET"]


class ServiceDeps:
    """Mocks behind the installed FulfillmentService"""

    def __init__(self):
        self.orders = MockOrderRepository()
        self.packages = MockPackageRepository()
        self.directory = MockDirectoryRepository()
        self.carrier = MockCarrierClient()
        self.event_bus = MockEventBus()

        self.directory.add_village(make_village(55, "رام الله-البيرة", Decimal("20"), area_id=1))
        self.directory.add_village(make_village(70, "نابلس-عصيرة", Decimal("30"), area_id=2))
        self.directory.add_company(make_company(1, "Ultra Pal"))

    def build(self) -> FulfillmentService:
        return FulfillmentService(
            order_repo=self.orders,
            package_repo=self.packages,
            directory_repo=self.directory,
            carrier_client=self.carrier,
            event_bus=self.event_bus,
        )


@pytest.fixture
def deps(monkeypatch) -> ServiceDeps:
    """Install a mock-backed service for the duration of a test"""
    service_deps = ServiceDeps()
    monkeypatch.setattr(main.fulfillment_microservice, "fulfillment_service", service_deps.build())
    return service_deps


@pytest.fixture
def client() -> TestClient:
    """Test client without lifespan (no database, no NATS)"""
    return TestClient(main.app)


@pytest.fixture
def user_headers():
    return {"X-User-Id": "usr_api_1", "X-User-Role": "marketer"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "adm_api_1", "X-User-Role": "admin"}


@pytest.fixture
def internal_headers():
    return {
        "X-Internal-Service": "true",
        "X-Internal-Service-Secret": APITestConfig.INTERNAL_SECRET,
    }
