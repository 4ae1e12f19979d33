"""
Fulfillment Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_fulfillment_service
    service = create_fulfillment_service(db, event_bus, carrier_client)
"""
from typing import Optional

from core.config import AppConfig, get_settings

from .fulfillment_service import FulfillmentService


def create_fulfillment_service(
    db=None,
    event_bus=None,
    carrier_client=None,
    settings: Optional[AppConfig] = None,
) -> FulfillmentService:
    """
    Create FulfillmentService with real dependencies.

    This function imports the real repositories (which have I/O dependencies).
    Use this in production, NOT in tests.

    Args:
        db: Shared PostgresClientWrapper; one is created from settings if omitted
        event_bus: Event bus for publishing events
        carrier_client: Carrier API client; one is created from settings if omitted
        settings: Application settings

    Returns:
        Configured FulfillmentService instance
    """
    # Import real repositories here (not at module level)
    from core.postgres_client import PostgresClientWrapper
    from .clients import CarrierClient
    from .directory_repository import DirectoryRepository
    from .order_repository import OrderRepository
    from .package_repository import PackageRepository

    settings = settings or get_settings()
    if db is None:
        infra = settings.infrastructure
        db = PostgresClientWrapper(
            settings.service_name,
            dsn=infra.postgres_dsn,
            min_size=infra.postgres_pool_min,
            max_size=infra.postgres_pool_max,
        )

    return FulfillmentService(
        order_repo=OrderRepository(db),
        package_repo=PackageRepository(db),
        directory_repo=DirectoryRepository(db),
        carrier_client=carrier_client or CarrierClient(settings.carrier),
        event_bus=event_bus,
        package_type=settings.carrier.default_package_type,
    )
