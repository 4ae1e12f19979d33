"""
Fulfillment Service Events Module

Exports all event-related functionality for fulfillment service
"""

from .models import (
    OrderCreatedEvent,
    ShippingAssignedEvent,
    PackageCreatedEvent,
    PackageDispatchedEvent,
    PackageDispatchFailedEvent,
)

from .publishers import (
    publish_order_created,
    publish_shipping_assigned,
    publish_package_created,
    publish_dispatch_outcome,
)

__all__ = [
    # Event Models
    "OrderCreatedEvent",
    "ShippingAssignedEvent",
    "PackageCreatedEvent",
    "PackageDispatchedEvent",
    "PackageDispatchFailedEvent",
    # Publishers
    "publish_order_created",
    "publish_shipping_assigned",
    "publish_package_created",
    "publish_dispatch_outcome",
]
