"""
Fulfillment Service - Mock Dependencies

In-memory implementations of the repository and carrier protocols for
component testing. Return model objects as the real repositories do.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
import uuid

from microservices.fulfillment_service.models import (
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
from microservices.fulfillment_service.protocols import DuplicatePackageError


class _CallLog:

    def __init__(self):
        self._call_log: List[Dict[str, Any]] = []
        self._error: Optional[Exception] = None

    def _log_call(self, method: str, **kwargs):
        self._call_log.append({"method": method, **kwargs})
        if self._error:
            raise self._error

    def set_error(self, error: Exception):
        """Set an error to be raised on the next operations"""
        self._error = error

    def calls(self, method: str) -> List[Dict[str, Any]]:
        return [c for c in self._call_log if c["method"] == method]


class MockOrderRepository(_CallLog):
    """Mock order repository implementing OrderRepositoryProtocol"""

    def __init__(self):
        super().__init__()
        self._data: Dict[str, Order] = {}
        self._counter = 1000

    def add_order(self, order: Order) -> Order:
        self._data[order.order_id] = order
        return order

    async def create_order(
        self,
        customer_id: str,
        customer_role: str,
        request: OrderCreateRequest,
        items: List[OrderItem],
        subtotal: Decimal,
        total: Decimal,
    ) -> Order:
        self._log_call("create_order", customer_id=customer_id, customer_role=customer_role)
        self._counter += 1
        order = Order(
            order_id=str(uuid.uuid4()),
            order_number=f"ORD-20240101-{self._counter:04d}",
            customer_id=customer_id,
            customer_role=customer_role,
            supplier_id=request.supplier_id,
            items=items,
            subtotal=subtotal,
            shipping_cost=request.shipping_cost,
            commission=request.commission,
            total=total,
            marketer_profit=request.marketer_profit,
            shipping_address=request.shipping_address,
            shipping_company=request.shipping_company,
            delivery_notes=request.delivery_notes,
            created_at=datetime.now(timezone.utc),
        )
        self._data[order.order_id] = order
        return order.model_copy(deep=True)

    async def get_order(self, order_id: str) -> Optional[Order]:
        self._log_call("get_order", order_id=order_id)
        order = self._data.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def update_shipping(
        self,
        order_id: str,
        shipping_company: str,
        shipping_address: ShippingAddress,
    ) -> Optional[Order]:
        self._log_call("update_shipping", order_id=order_id, shipping_company=shipping_company)
        order = self._data.get(order_id)
        if not order or order.package_id is not None:
            return None
        order = order.model_copy(update={
            "shipping_company": shipping_company,
            "shipping_address": shipping_address,
            "updated_at": datetime.now(timezone.utc),
        })
        self._data[order_id] = order
        return order.model_copy(deep=True)

    async def set_package_id(self, order_id: str, package_id: int) -> bool:
        self._log_call("set_package_id", order_id=order_id, package_id=package_id)
        order = self._data.get(order_id)
        if not order:
            return False
        self._data[order_id] = order.model_copy(update={"package_id": package_id})
        return True

    def stored(self, order_id: str) -> Optional[Order]:
        return self._data.get(order_id)


class MockPackageRepository(_CallLog):
    """Mock package repository; enforces one package per order"""

    def __init__(self):
        super().__init__()
        self._data: Dict[int, Package] = {}
        self._next_id = 1
        self._hide_from_lookup_once: set = set()

    def add_package(self, package: Package) -> Package:
        self._data[package.package_id] = package
        self._next_id = max(self._next_id, package.package_id + 1)
        return package

    def simulate_concurrent_insert(self, package: Package):
        """
        Store a package that the next get_package_by_order call will not see,
        mimicking a concurrent builder that inserts between check and insert.
        """
        self.add_package(package)
        self._hide_from_lookup_once.add(package.order_id)

    async def create_package(self, draft: PackageDraft) -> Package:
        self._log_call("create_package", order_id=draft.order_id)
        if any(p.order_id == draft.order_id for p in self._data.values()):
            raise DuplicatePackageError(draft.order_id)
        now = datetime.now(timezone.utc)
        package = Package(
            **draft.model_dump(),
            package_id=self._next_id,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self._data[package.package_id] = package
        return package.model_copy(deep=True)

    async def get_package(self, package_id: int) -> Optional[Package]:
        self._log_call("get_package", package_id=package_id)
        package = self._data.get(package_id)
        return package.model_copy(deep=True) if package else None

    async def get_package_by_order(self, order_id: str) -> Optional[Package]:
        self._log_call("get_package_by_order", order_id=order_id)
        if order_id in self._hide_from_lookup_once:
            self._hide_from_lookup_once.discard(order_id)
            return None
        for package in self._data.values():
            if package.order_id == order_id:
                return package.model_copy(deep=True)
        return None

    async def record_dispatch(
        self,
        package_id: int,
        dispatch_status: DispatchStatus,
        error: Optional[str] = None,
        status: Optional[PackageStatus] = None,
    ) -> Optional[Package]:
        self._log_call("record_dispatch", package_id=package_id, dispatch_status=dispatch_status)
        package = self._data.get(package_id)
        if not package:
            return None
        attempted = dispatch_status in (DispatchStatus.SUCCEEDED, DispatchStatus.FAILED)
        now = datetime.now(timezone.utc)
        update: Dict[str, Any] = {
            "dispatch_status": dispatch_status,
            "last_dispatch_error": error,
            "updated_at": now,
        }
        if status:
            update["status"] = status
        if attempted:
            update["dispatch_attempts"] = package.dispatch_attempts + 1
            update["last_dispatched_at"] = now
        package = package.model_copy(update=update)
        self._data[package_id] = package
        return package.model_copy(deep=True)

    def all_for_order(self, order_id: str) -> List[Package]:
        return [p for p in self._data.values() if p.order_id == order_id]


class MockDirectoryRepository(_CallLog):
    """Mock directory repository (villages, regions, carriers)"""

    def __init__(self):
        super().__init__()
        self._villages: Dict[int, Village] = {}
        self._regions: Dict[str, ShippingRegion] = {}
        self._companies: Dict[int, ExternalCompany] = {}
        self._settings = CarrierSettings()

    def add_village(self, village: Village):
        self._villages[village.village_id] = village

    def add_region(self, region: ShippingRegion):
        self._regions[region.region_name] = region

    def add_company(self, company: ExternalCompany):
        self._companies[company.company_id] = company

    def set_default_company(self, company_id: Optional[int]):
        self._settings = CarrierSettings(default_external_company_id=company_id)

    async def get_village(self, village_id: int) -> Optional[Village]:
        self._log_call("get_village", village_id=village_id)
        return self._villages.get(village_id)

    async def list_villages(self, active_only: bool = False) -> List[Village]:
        self._log_call("list_villages", active_only=active_only)
        villages = sorted(self._villages.values(), key=lambda v: v.village_id)
        return [v for v in villages if v.is_active] if active_only else villages

    async def list_regions(self) -> List[ShippingRegion]:
        self._log_call("list_regions")
        return sorted(self._regions.values(), key=lambda r: r.region_name)

    async def get_region(self, region_name: str) -> Optional[ShippingRegion]:
        self._log_call("get_region", region_name=region_name)
        return self._regions.get(region_name)

    async def get_active_company_by_name(self, company_name: str) -> Optional[ExternalCompany]:
        self._log_call("get_active_company_by_name", company_name=company_name)
        for company in self._companies.values():
            if company.company_name == company_name and company.is_active:
                return company
        return None

    async def get_company(self, company_id: int) -> Optional[ExternalCompany]:
        self._log_call("get_company", company_id=company_id)
        return self._companies.get(company_id)

    async def list_active_companies(self) -> List[ExternalCompany]:
        self._log_call("list_active_companies")
        active = [c for c in self._companies.values() if c.is_active]
        return sorted(active, key=lambda c: (c.created_at, c.company_id))

    async def get_carrier_settings(self) -> CarrierSettings:
        self._log_call("get_carrier_settings")
        return self._settings


class MockCarrierClient:
    """Scripted carrier client; records every payload it is asked to send"""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self._outcomes: List[DispatchOutcome] = []
        self._raise: Optional[Exception] = None

    def queue(self, *outcomes: DispatchOutcome):
        self._outcomes.extend(outcomes)

    def set_error(self, error: Exception):
        self._raise = error

    async def send_package(self, company: ExternalCompany, payload: CarrierPackagePayload) -> DispatchOutcome:
        if not company.has_api:
            return DispatchOutcome.skipped()
        self.sent.append({"company": company.company_name, "payload": payload})
        if self._raise:
            raise self._raise
        if self._outcomes:
            return self._outcomes.pop(0)
        return DispatchOutcome.success("EXT-1")
