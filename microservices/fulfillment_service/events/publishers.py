"""
Fulfillment Service Event Publishers

Functions to publish events from fulfillment service. Each returns False
(and logs) instead of raising, so the business operation never fails
because the bus is down.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from core.nats_client import Event, EventType, ServiceSource
from ..models import DispatchOutcome, ExternalCompany, Order, Package
from .models import (
    OrderCreatedEvent,
    ShippingAssignedEvent,
    PackageCreatedEvent,
    PackageDispatchedEvent,
    PackageDispatchFailedEvent,
)

logger = logging.getLogger(__name__)


async def _publish(event_bus, event_type: EventType, payload: BaseModel, subject: str) -> bool:
    if not event_bus:
        logger.warning(f"Event bus not available, skipping {event_type.value} event")
        return False

    try:
        event = Event(
            event_type=event_type,
            source=ServiceSource.FULFILLMENT_SERVICE,
            data=payload.model_dump(mode='json'),
            subject=subject,
        )
        published = await event_bus.publish_event(event)
        if published:
            logger.info(f"Published {event_type.value} event for {subject}")
        return bool(published)

    except Exception as e:
        logger.error(f"Failed to publish {event_type.value} event: {e}")
        return False


async def publish_order_created(event_bus, order: Order) -> bool:
    """Publish order.created event"""
    return await _publish(
        event_bus,
        EventType.ORDER_CREATED,
        OrderCreatedEvent(
            order_id=order.order_id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            customer_role=order.customer_role.value,
            total=float(order.total),
            item_count=len(order.items),
        ),
        order.order_id,
    )


async def publish_shipping_assigned(event_bus, order: Order, assigned_by: Optional[str] = None) -> bool:
    """Publish order.shipping_assigned event"""
    address = order.shipping_address
    return await _publish(
        event_bus,
        EventType.ORDER_SHIPPING_ASSIGNED,
        ShippingAssignedEvent(
            order_id=order.order_id,
            order_number=order.order_number,
            shipping_company=order.shipping_company or "",
            village_id=address.village_id,
            village_name=address.village_name or "",
            assigned_by=assigned_by,
        ),
        order.order_id,
    )


async def publish_package_created(event_bus, order: Order, package: Package, company: ExternalCompany) -> bool:
    """Publish fulfillment.package.created event"""
    return await _publish(
        event_bus,
        EventType.PACKAGE_CREATED,
        PackageCreatedEvent(
            order_id=order.order_id,
            order_number=order.order_number,
            package_id=package.package_id,
            external_company_id=company.company_id,
            carrier_name=company.company_name,
            village_id=package.village_id,
            total_cost=float(package.total_cost),
        ),
        order.order_id,
    )


async def publish_dispatch_outcome(
    event_bus,
    package: Package,
    company: ExternalCompany,
    outcome: DispatchOutcome,
    resend: bool = False,
) -> bool:
    """Publish fulfillment.package.dispatched or .dispatch_failed"""
    if outcome.succeeded:
        return await _publish(
            event_bus,
            EventType.PACKAGE_DISPATCHED,
            PackageDispatchedEvent(
                order_id=package.order_id,
                package_id=package.package_id,
                carrier_name=company.company_name,
                external_package_id=outcome.external_package_id,
                resend=resend,
            ),
            package.order_id,
        )

    return await _publish(
        event_bus,
        EventType.PACKAGE_DISPATCH_FAILED,
        PackageDispatchFailedEvent(
            order_id=package.order_id,
            package_id=package.package_id,
            carrier_name=company.company_name,
            failure_kind=outcome.kind.value,
            http_status=outcome.http_status,
            error_message=outcome.error,
            retryable=outcome.retryable,
            resend=resend,
        ),
        package.order_id,
    )
