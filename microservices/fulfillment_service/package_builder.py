"""
Package Builder

Turns an order with an assigned carrier and village into exactly one
persisted Package, then hands it to the carrier API.

The package row is written (and linked from the order) before the carrier
is called; a failed or ambiguous dispatch never removes it. Re-sending is
a separate, explicit action.
"""

import logging
from typing import List, Optional, Tuple

from . import messages
from .events.publishers import publish_dispatch_outcome, publish_package_created
from .models import (
    CarrierPackagePayload,
    DispatchOutcome,
    DispatchOutcomeKind,
    DispatchStatus,
    ExternalCompany,
    FulfillmentErrorCode,
    Order,
    OrderItem,
    Package,
    PackageBuildResult,
    PackageDraft,
    PackageStatus,
)
from .protocols import (
    CarrierClientProtocol,
    DirectoryRepositoryProtocol,
    DuplicatePackageError,
    EventBusProtocol,
    FulfillmentServiceError,
    OrderRepositoryProtocol,
    PackageRepositoryProtocol,
)
from .village_directory import VillageDirectory

logger = logging.getLogger(__name__)


# ============================================================================
# Package composition (pure)
# ============================================================================

def compose_description(items: List[OrderItem]) -> str:
    """Join item snapshots as "<name> x<qty>" separated by commas"""
    parts = [
        f"{(item.product_name or '').strip() or messages.UNNAMED_PRODUCT} x{item.quantity}"
        for item in items
    ]
    return ", ".join(parts) if parts else messages.EMPTY_ORDER_DESCRIPTION


def compute_barcode(order: Order) -> str:
    return order.order_number


def compose_note(order: Order) -> str:
    for candidate in (order.delivery_notes, order.shipping_address.notes):
        if candidate and candidate.strip():
            return candidate
    return messages.ORDER_NOTE_TEMPLATE.format(order_number=order.order_number)


def compose_package(order: Order, company: ExternalCompany, package_type: str = "normal") -> PackageDraft:
    """Package fields for an order whose village has already been validated"""
    address = order.shipping_address
    phone = address.phone.strip()
    return PackageDraft(
        external_company_id=company.company_id,
        order_id=order.order_id,
        to_name=address.full_name.strip() or messages.UNSPECIFIED,
        to_phone=phone,
        alter_phone=phone,
        description=compose_description(order.items),
        package_type=package_type,
        village_id=address.village_id,
        street=address.street.strip(),
        total_cost=order.total,
        note=compose_note(order),
        barcode=compute_barcode(order),
    )


def _failure(code: FulfillmentErrorCode, **kwargs) -> PackageBuildResult:
    return PackageBuildResult(
        success=False,
        message=messages.error_message(code),
        error_code=code,
        **kwargs,
    )


def _failure_code(outcome: DispatchOutcome) -> FulfillmentErrorCode:
    if outcome.kind == DispatchOutcomeKind.BUSINESS_FAILURE:
        return FulfillmentErrorCode.CARRIER_BUSINESS_FAILURE
    return FulfillmentErrorCode.CARRIER_TRANSPORT_FAILURE


# ============================================================================
# Builder
# ============================================================================

class PackageBuilder:
    """Builds, persists and dispatches packages for orders"""

    def __init__(
        self,
        order_repo: OrderRepositoryProtocol,
        package_repo: PackageRepositoryProtocol,
        directory_repo: DirectoryRepositoryProtocol,
        carrier_client: CarrierClientProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        package_type: str = "normal",
    ):
        self.order_repo = order_repo
        self.package_repo = package_repo
        self.directory_repo = directory_repo
        self.directory = VillageDirectory(directory_repo)
        self.carrier_client = carrier_client
        self.event_bus = event_bus
        self.package_type = package_type

    async def resolve_carrier(self, order: Order) -> Optional[ExternalCompany]:
        """
        Carrier for an order: the active company named on the order, then
        the system default (if active), then the oldest active company.
        """
        if order.shipping_company:
            company = await self.directory_repo.get_active_company_by_name(order.shipping_company)
            if company:
                return company
            logger.warning(
                f"Carrier '{order.shipping_company}' on order {order.order_number} "
                f"is unknown or inactive, falling back"
            )

        settings = await self.directory_repo.get_carrier_settings()
        if settings.default_external_company_id is not None:
            default = await self.directory_repo.get_company(settings.default_external_company_id)
            if default and default.is_active:
                return default
            logger.warning(
                f"Default carrier {settings.default_external_company_id} is missing or inactive"
            )

        active = await self.directory_repo.list_active_companies()
        return active[0] if active else None

    async def build_and_dispatch(self, order_id: str) -> PackageBuildResult:
        """Create the order's package (once) and send it to the carrier"""
        order = await self.order_repo.get_order(order_id)
        if not order:
            return _failure(FulfillmentErrorCode.ORDER_NOT_FOUND)

        existing = await self.package_repo.get_package_by_order(order.order_id)
        if existing:
            return await self._already_exists(order, existing)

        company = await self.resolve_carrier(order)
        if not company:
            logger.warning(f"No carrier available for order {order.order_number}")
            return _failure(FulfillmentErrorCode.NO_CARRIER_CONFIGURED)

        if order.shipping_address.village_id is None:
            return _failure(FulfillmentErrorCode.MISSING_VILLAGE_ASSIGNMENT)

        village = await self.directory.get_active_village(order.shipping_address.village_id)
        if not village:
            logger.warning(
                f"Order {order.order_number} references missing/inactive village "
                f"{order.shipping_address.village_id}"
            )
            return _failure(FulfillmentErrorCode.INVALID_OR_STALE_VILLAGE)

        draft = compose_package(order, company, self.package_type)
        try:
            package = await self.package_repo.create_package(draft)
        except DuplicatePackageError:
            # Lost a race with a concurrent build for the same order
            existing = await self.package_repo.get_package_by_order(order.order_id)
            if existing is None:
                raise FulfillmentServiceError(
                    f"Package insert for order {order.order_id} conflicted but no package was found"
                )
            logger.info(f"Concurrent package build detected for order {order.order_number}")
            return await self._already_exists(order, existing)

        await self.order_repo.set_package_id(order.order_id, package.package_id)
        logger.info(
            f"Package {package.package_id} created for order {order.order_number} "
            f"(carrier={company.company_name}, village={package.village_id})"
        )
        await publish_package_created(self.event_bus, order, package, company)

        if not company.has_api:
            package = await self.package_repo.record_dispatch(
                package.package_id, DispatchStatus.SKIPPED_NO_ENDPOINT
            ) or package
            logger.info(f"Carrier {company.company_name} has no API configured, package {package.package_id} not sent")
            return PackageBuildResult(
                success=True,
                message=messages.PACKAGE_CREATED_NO_ENDPOINT,
                package_id=package.package_id,
                no_api_endpoint=True,
                carrier_name=company.company_name,
                package=package,
            )

        outcome, package = await self._dispatch(package, company, resend=False)
        if outcome.succeeded:
            return PackageBuildResult(
                success=True,
                message=messages.PACKAGE_CREATED_AND_SENT,
                package_id=package.package_id,
                api_call_succeeded=True,
                external_package_id=outcome.external_package_id,
                carrier_name=company.company_name,
                package=package,
            )

        return PackageBuildResult(
            success=True,
            message=messages.PACKAGE_CREATED_NOT_SENT,
            error_code=_failure_code(outcome),
            package_id=package.package_id,
            carrier_name=company.company_name,
            error=outcome.error,
            can_retry=outcome.retryable,
            package=package,
        )

    async def resend(self, order_id: str) -> PackageBuildResult:
        """Dispatch an existing package again; never creates one"""
        order = await self.order_repo.get_order(order_id)
        if not order:
            return _failure(FulfillmentErrorCode.ORDER_NOT_FOUND)

        package = await self.package_repo.get_package_by_order(order.order_id)
        if not package:
            return _failure(FulfillmentErrorCode.PACKAGE_NOT_FOUND)
        await self._link_order(order, package)

        company = await self.directory_repo.get_company(package.external_company_id)
        if not company or not company.is_active:
            company = await self.resolve_carrier(order)
        if not company or not company.has_api:
            return _failure(FulfillmentErrorCode.NO_CARRIER_CONFIGURED, package_id=package.package_id)

        outcome, package = await self._dispatch(package, company, resend=True)
        if outcome.succeeded:
            return PackageBuildResult(
                success=True,
                message=messages.PACKAGE_RESENT,
                package_id=package.package_id,
                already_exists=True,
                api_call_succeeded=True,
                external_package_id=outcome.external_package_id,
                carrier_name=company.company_name,
                package=package,
            )

        reason = messages.dispatch_failure_message(outcome.error, outcome.http_status)
        return PackageBuildResult(
            success=False,
            message=messages.PACKAGE_RESEND_FAILED.format(reason=reason),
            error_code=_failure_code(outcome),
            package_id=package.package_id,
            already_exists=True,
            carrier_name=company.company_name,
            error=outcome.error,
            can_retry=outcome.retryable,
            package=package,
        )

    async def _already_exists(self, order: Order, package: Package) -> PackageBuildResult:
        await self._link_order(order, package)
        logger.info(f"Package {package.package_id} already exists for order {order.order_number}")
        return PackageBuildResult(
            success=True,
            message=messages.error_message(FulfillmentErrorCode.PACKAGE_ALREADY_EXISTS),
            error_code=FulfillmentErrorCode.PACKAGE_ALREADY_EXISTS,
            package_id=package.package_id,
            already_exists=True,
            package=package,
        )

    async def _link_order(self, order: Order, package: Package):
        """Repair the order -> package link if a previous build stopped short"""
        if order.package_id == package.package_id:
            return
        logger.warning(
            f"Order {order.order_number} was missing package_id {package.package_id}, repairing link"
        )
        await self.order_repo.set_package_id(order.order_id, package.package_id)
        order.package_id = package.package_id

    async def _dispatch(
        self, package: Package, company: ExternalCompany, resend: bool
    ) -> Tuple[DispatchOutcome, Package]:
        payload = CarrierPackagePayload.from_package(package)
        try:
            outcome = await self.carrier_client.send_package(company, payload)
        except Exception as e:
            logger.exception(f"Unexpected error dispatching package {package.package_id}: {e}")
            outcome = DispatchOutcome.transport_failure(f"Dispatch error: {e}")

        if outcome.succeeded:
            updated = await self.package_repo.record_dispatch(
                package.package_id, DispatchStatus.SUCCEEDED, status=PackageStatus.CONFIRMED
            )
            logger.info(
                f"Package {package.package_id} accepted by {company.company_name} "
                f"(external id {outcome.external_package_id})"
            )
        else:
            updated = await self.package_repo.record_dispatch(
                package.package_id, DispatchStatus.FAILED, error=outcome.error
            )
            logger.warning(
                f"Package {package.package_id} dispatch to {company.company_name} failed: "
                f"{outcome.kind.value} {outcome.error}"
            )

        await publish_dispatch_outcome(self.event_bus, updated or package, company, outcome, resend=resend)
        return outcome, updated or package
