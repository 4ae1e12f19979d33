"""
Fulfillment Service Event Models

Pydantic models for events published by fulfillment service
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Event Data Models
# =============================================================================

class OrderCreatedEvent(BaseModel):
    """Event published when a marketer/admin places an order"""
    order_id: str
    order_number: str
    customer_id: str
    customer_role: str
    total: float
    item_count: int
    timestamp: datetime = Field(default_factory=_now)


class ShippingAssignedEvent(BaseModel):
    """Event published when an admin sets carrier + village"""
    order_id: str
    order_number: str
    shipping_company: str
    village_id: int
    village_name: str
    assigned_by: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)


class PackageCreatedEvent(BaseModel):
    """Event published when a package row is persisted"""
    order_id: str
    order_number: str
    package_id: int
    external_company_id: int
    carrier_name: str
    village_id: int
    total_cost: float
    timestamp: datetime = Field(default_factory=_now)


class PackageDispatchedEvent(BaseModel):
    """Event published when the carrier acknowledges a package"""
    order_id: str
    package_id: int
    carrier_name: str
    external_package_id: Optional[str] = None
    resend: bool = False
    timestamp: datetime = Field(default_factory=_now)


class PackageDispatchFailedEvent(BaseModel):
    """Event published when a dispatch attempt fails"""
    order_id: str
    package_id: int
    carrier_name: str
    failure_kind: str
    http_status: Optional[int] = None
    error_message: Optional[str] = None
    retryable: bool = False
    resend: bool = False
    timestamp: datetime = Field(default_factory=_now)
