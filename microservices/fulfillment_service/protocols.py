"""
Fulfillment Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from decimal import Decimal
from typing import List, Optional, Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from .models import (
    CarrierPackagePayload,
    CarrierSettings,
    DispatchOutcome,
    DispatchStatus,
    ExternalCompany,
    Order,
    OrderCreateRequest,
    OrderItem,
    Package,
    PackageDraft,
    PackageStatus,
    ShippingAddress,
    ShippingRegion,
    Village,
)


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class FulfillmentServiceError(Exception):
    """Base exception for fulfillment service errors"""
    pass


class DuplicatePackageError(FulfillmentServiceError):
    """A package already exists for the order (unique order_id)"""

    def __init__(self, order_id: str):
        super().__init__(f"Package already exists for order {order_id}")
        self.order_id = order_id


class DuplicateOrderNumberError(FulfillmentServiceError):
    """Generated order number collided with an existing one"""
    pass


# ============================================================================
# Repository Protocols
# ============================================================================

@runtime_checkable
class OrderRepositoryProtocol(Protocol):
    """Interface for Order Repository."""

    async def create_order(
        self,
        customer_id: str,
        customer_role: str,
        request: OrderCreateRequest,
        items: List[OrderItem],
        subtotal: Decimal,
        total: Decimal,
    ) -> Order:
        """Create a new order with a freshly generated order number"""
        ...

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        ...

    async def update_shipping(
        self,
        order_id: str,
        shipping_company: str,
        shipping_address: ShippingAddress,
    ) -> Optional[Order]:
        """Set carrier name and the merged shipping address"""
        ...

    async def set_package_id(self, order_id: str, package_id: int) -> bool:
        """Link the order to its package"""
        ...


@runtime_checkable
class PackageRepositoryProtocol(Protocol):
    """Interface for Package Repository."""

    async def create_package(self, draft: PackageDraft) -> Package:
        """
        Insert a package.

        Raises DuplicatePackageError when one already exists for the order.
        """
        ...

    async def get_package(self, package_id: int) -> Optional[Package]:
        """Get package by ID"""
        ...

    async def get_package_by_order(self, order_id: str) -> Optional[Package]:
        """Get the package for an order"""
        ...

    async def record_dispatch(
        self,
        package_id: int,
        dispatch_status: DispatchStatus,
        error: Optional[str] = None,
        status: Optional[PackageStatus] = None,
    ) -> Optional[Package]:
        """Record a dispatch attempt (and optionally advance status)"""
        ...


@runtime_checkable
class DirectoryRepositoryProtocol(Protocol):
    """Interface for village / region / carrier reference data."""

    async def get_village(self, village_id: int) -> Optional[Village]:
        """Get village by ID regardless of active flag"""
        ...

    async def list_villages(self, active_only: bool = False) -> List[Village]:
        """All villages ordered by village_id"""
        ...

    async def list_regions(self) -> List[ShippingRegion]:
        """Shipping regions ordered by name"""
        ...

    async def get_region(self, region_name: str) -> Optional[ShippingRegion]:
        """Get region by name"""
        ...

    async def get_active_company_by_name(self, company_name: str) -> Optional[ExternalCompany]:
        """Active carrier with this exact name"""
        ...

    async def get_company(self, company_id: int) -> Optional[ExternalCompany]:
        """Carrier by ID regardless of active flag"""
        ...

    async def list_active_companies(self) -> List[ExternalCompany]:
        """Active carriers in creation order"""
        ...

    async def get_carrier_settings(self) -> CarrierSettings:
        """System carrier settings"""
        ...


@runtime_checkable
class CarrierClientProtocol(Protocol):
    """Interface for the outbound carrier API client."""

    async def send_package(self, company: ExternalCompany, payload: CarrierPackagePayload) -> DispatchOutcome:
        """POST a package to the carrier; never raises for carrier failures"""
        ...


@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus - no I/O imports"""

    async def publish_event(self, event) -> bool:
        """Publish event to the bus"""
        ...
