"""
Fulfillment Service Business Logic

Order intake, admin shipping assignment, package creation / re-dispatch
and the read-only directory lookups behind the API.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from . import messages
from .events.publishers import publish_order_created, publish_shipping_assigned
from .models import (
    AreaSummary,
    CarrierSummary,
    CustomerRole,
    DispatchStatus,
    FulfillmentErrorCode,
    FulfillmentState,
    FulfillmentStatusResponse,
    OrderCreateRequest,
    OrderItem,
    OrderResponse,
    PackageBuildResult,
    PackageResponse,
    PriceType,
    RegionVillages,
    ShippingAssignmentRequest,
    ShippingRegion,
    Village,
    VillageListResponse,
)
from .package_builder import PackageBuilder
from .protocols import (
    CarrierClientProtocol,
    DirectoryRepositoryProtocol,
    EventBusProtocol,
    FulfillmentServiceError,
    OrderRepositoryProtocol,
    PackageRepositoryProtocol,
)
from .village_directory import VillageDirectory

logger = logging.getLogger(__name__)


def _order_error(code: FulfillmentErrorCode, message: Optional[str] = None) -> OrderResponse:
    return OrderResponse(
        success=False,
        message=message or messages.error_message(code),
        error_code=code,
    )


class FulfillmentService:
    """
    Fulfillment business logic service

    Expected failures come back as response models with an error_code;
    anything unexpected is logged and raised as FulfillmentServiceError.
    """

    def __init__(
        self,
        order_repo: OrderRepositoryProtocol,
        package_repo: PackageRepositoryProtocol,
        directory_repo: DirectoryRepositoryProtocol,
        carrier_client: CarrierClientProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        package_type: str = "normal",
    ):
        """
        Initialize Fulfillment Service

        Args:
            order_repo: Order persistence
            package_repo: Package persistence (unique per order)
            directory_repo: Villages, regions, carriers and carrier settings
            carrier_client: Outbound carrier API client
            event_bus: NATS event bus (optional)
            package_type: Package type sent to carriers
        """
        self.order_repo = order_repo
        self.package_repo = package_repo
        self.directory_repo = directory_repo
        self.directory = VillageDirectory(directory_repo)
        self.event_bus = event_bus
        self.builder = PackageBuilder(
            order_repo=order_repo,
            package_repo=package_repo,
            directory_repo=directory_repo,
            carrier_client=carrier_client,
            event_bus=event_bus,
            package_type=package_type,
        )

        logger.info("FulfillmentService initialized")

    # Order Operations

    async def create_order(
        self,
        request: OrderCreateRequest,
        customer_id: str,
        customer_role: str,
    ) -> OrderResponse:
        """
        Create an order from checkout data.

        Non-admin orders always start without a carrier or village; only a
        free-text manual_village_name survives for the admin to act on.
        """
        try:
            try:
                role = CustomerRole((customer_role or "").lower())
            except ValueError:
                return _order_error(
                    FulfillmentErrorCode.VALIDATION_ERROR,
                    f"Role '{customer_role}' cannot place orders",
                )

            price_type = PriceType.WHOLESALE if role == CustomerRole.WHOLESALER else PriceType.MARKETER
            items = [
                OrderItem(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.unit_price * item.quantity,
                    price_type=price_type,
                )
                for item in request.items
            ]
            subtotal = sum((item.total_price for item in items), Decimal("0"))
            total = subtotal + request.shipping_cost

            address = request.shipping_address
            shipping_company = request.shipping_company
            if role != CustomerRole.ADMIN:
                address = address.model_copy(update={"village_id": None, "village_name": None})
                shipping_company = None
            elif address.village_id is not None:
                village = await self.directory.get_active_village(address.village_id)
                if not village:
                    return _order_error(FulfillmentErrorCode.INVALID_OR_STALE_VILLAGE)
                address = address.model_copy(
                    update={"village_name": village.local_name, "city": village.local_name}
                )

            request = request.model_copy(
                update={"shipping_address": address, "shipping_company": shipping_company}
            )
            order = await self.order_repo.create_order(
                customer_id=customer_id,
                customer_role=role.value,
                request=request,
                items=items,
                subtotal=subtotal,
                total=total,
            )

            await publish_order_created(self.event_bus, order)
            logger.info(f"Order created: {order.order_number} ({order.order_id}) by {role.value} {customer_id}")

            return OrderResponse(success=True, order=order, message=messages.ORDER_CREATED)

        except Exception as e:
            logger.error(f"Failed to create order for {customer_id}: {e}")
            raise FulfillmentServiceError(f"Failed to create order: {e}") from e

    async def get_order(self, order_id: str) -> OrderResponse:
        """Get order by ID"""
        try:
            order = await self.order_repo.get_order(order_id)
        except Exception as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise FulfillmentServiceError(f"Failed to get order: {e}") from e

        if not order:
            return _order_error(FulfillmentErrorCode.ORDER_NOT_FOUND)
        return OrderResponse(success=True, order=order, message="OK")

    async def assign_shipping(
        self,
        order_id: str,
        request: ShippingAssignmentRequest,
        assigned_by: Optional[str] = None,
    ) -> OrderResponse:
        """
        Set carrier name and destination village on an order.

        The village fields are merged into the existing address. Rejected,
        with the order untouched, when the village is not active or the
        order already has a package.
        """
        try:
            order = await self.order_repo.get_order(order_id)
            if not order:
                return _order_error(FulfillmentErrorCode.ORDER_NOT_FOUND)

            if order.package_id is not None or await self.package_repo.get_package_by_order(order.order_id):
                return _order_error(FulfillmentErrorCode.ORDER_ALREADY_PACKAGED)

            village = await self.directory.get_active_village(request.village_id)
            if not village:
                return _order_error(FulfillmentErrorCode.INVALID_OR_STALE_VILLAGE)

            carrier = await self.directory_repo.get_active_company_by_name(request.shipping_company_name)
            if not carrier:
                logger.warning(
                    f"Order {order.order_number} assigned to unknown/inactive carrier "
                    f"'{request.shipping_company_name}'; package build will fall back"
                )

            address = order.shipping_address.model_copy(update={
                "village_id": village.village_id,
                "village_name": village.local_name,
                "city": village.local_name,
            })
            updated = await self.order_repo.update_shipping(
                order.order_id,
                shipping_company=request.shipping_company_name,
                shipping_address=address,
            )
            if not updated:
                return _order_error(FulfillmentErrorCode.ORDER_NOT_FOUND)

            await publish_shipping_assigned(self.event_bus, updated, assigned_by=assigned_by)
            logger.info(
                f"Shipping assigned for order {updated.order_number}: "
                f"carrier={request.shipping_company_name}, village={village.village_id}"
            )
            return OrderResponse(success=True, order=updated, message=messages.SHIPPING_ASSIGNED)

        except Exception as e:
            logger.error(f"Failed to assign shipping for order {order_id}: {e}")
            raise FulfillmentServiceError(f"Failed to assign shipping: {e}") from e

    # Package Operations

    async def create_package(self, order_id: str) -> PackageBuildResult:
        """Build the order's package and dispatch it"""
        try:
            return await self.builder.build_and_dispatch(order_id)
        except Exception as e:
            logger.error(f"Failed to create package for order {order_id}: {e}")
            raise FulfillmentServiceError(f"Failed to create package: {e}") from e

    async def resend_package(self, order_id: str) -> PackageBuildResult:
        """Re-dispatch the order's existing package"""
        try:
            return await self.builder.resend(order_id)
        except Exception as e:
            logger.error(f"Failed to resend package for order {order_id}: {e}")
            raise FulfillmentServiceError(f"Failed to resend package: {e}") from e

    async def get_package(self, package_id: int) -> PackageResponse:
        """Get package by ID"""
        try:
            package = await self.package_repo.get_package(package_id)
        except Exception as e:
            logger.error(f"Failed to get package {package_id}: {e}")
            raise FulfillmentServiceError(f"Failed to get package: {e}") from e

        if not package:
            return PackageResponse(
                success=False,
                message=messages.error_message(FulfillmentErrorCode.PACKAGE_NOT_FOUND),
                error_code=FulfillmentErrorCode.PACKAGE_NOT_FOUND,
            )
        return PackageResponse(success=True, package=package, message="OK")

    async def get_fulfillment_status(self, order_id: str) -> FulfillmentStatusResponse:
        """Not packaged / packaged pending carrier / packaged carrier confirmed"""
        try:
            order = await self.order_repo.get_order(order_id)
            if not order:
                return FulfillmentStatusResponse(
                    success=False,
                    message=messages.error_message(FulfillmentErrorCode.ORDER_NOT_FOUND),
                    error_code=FulfillmentErrorCode.ORDER_NOT_FOUND,
                )

            package = await self.package_repo.get_package_by_order(order.order_id)
            if not package:
                state = FulfillmentState.NOT_PACKAGED
            elif package.dispatch_status == DispatchStatus.SUCCEEDED:
                state = FulfillmentState.PACKAGED_CARRIER_CONFIRMED
            else:
                state = FulfillmentState.PACKAGED_PENDING_CARRIER

            return FulfillmentStatusResponse(
                success=True,
                message=messages.FULFILLMENT_STATE_MESSAGES[state.value],
                order_id=order.order_id,
                order_number=order.order_number,
                state=state,
                package_id=package.package_id if package else None,
                dispatch_status=package.dispatch_status if package else None,
                last_dispatch_error=package.last_dispatch_error if package else None,
            )

        except Exception as e:
            logger.error(f"Failed to get fulfillment status for order {order_id}: {e}")
            raise FulfillmentServiceError(f"Failed to get fulfillment status: {e}") from e

    # Directory Operations

    async def list_villages(
        self,
        area_id: Optional[int] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = True,
        page: int = 1,
        limit: int = 100,
    ) -> VillageListResponse:
        return await self.directory.list_villages(
            area_id=area_id, search=search, is_active=is_active, page=page, limit=limit
        )

    async def get_village(self, village_id: int) -> Optional[Village]:
        return await self.directory.get_active_village(village_id)

    async def list_areas(self) -> List[AreaSummary]:
        return await self.directory.list_areas()

    async def list_regions(self) -> List[ShippingRegion]:
        return await self.directory.list_regions()

    async def get_region_villages(self, region_name: str) -> RegionVillages:
        return await self.directory.villages_for_region(region_name)

    async def list_carriers(self) -> List[CarrierSummary]:
        """Active carriers without credentials, default flagged"""
        companies = await self.directory_repo.list_active_companies()
        settings = await self.directory_repo.get_carrier_settings()
        return [
            CarrierSummary(
                company_id=c.company_id,
                company_name=c.company_name,
                is_active=c.is_active,
                has_api=c.has_api,
                is_default=c.company_id == settings.default_external_company_id,
            )
            for c in companies
        ]

    async def health_check(self) -> Dict[str, Any]:
        """Health check for the service"""
        try:
            await self.directory_repo.get_carrier_settings()
            return {
                "status": "healthy",
                "database": "connected",
                "timestamp": datetime.now(timezone.utc),
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
                "timestamp": datetime.now(timezone.utc),
            }
