"""
Fulfillment Service Data Models

Orders, packages, the village/region directory and carrier records for the
order-to-package pipeline, plus request/response models for the API.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Tuple

from pydantic import BaseModel, Field, field_validator


class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentMethod(str, Enum):
    """Payment method (cash on delivery only)"""
    COD = "cod"


class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class CustomerRole(str, Enum):
    """Role of the user who placed the order"""
    MARKETER = "marketer"
    WHOLESALER = "wholesaler"
    ADMIN = "admin"


class PriceType(str, Enum):
    """Which price list an item was charged from"""
    MARKETER = "marketer"
    WHOLESALE = "wholesale"


class PackageStatus(str, Enum):
    """Package status; states after confirmed are carrier driven"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DispatchStatus(str, Enum):
    """Outcome of the most recent carrier dispatch, kept apart from status"""
    NOT_ATTEMPTED = "not_attempted"
    SKIPPED_NO_ENDPOINT = "skipped_no_endpoint"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FulfillmentState(str, Enum):
    """Admin-facing fulfillment state of an order"""
    NOT_PACKAGED = "not_packaged"
    PACKAGED_PENDING_CARRIER = "packaged_pending_carrier"
    PACKAGED_CARRIER_CONFIRMED = "packaged_carrier_confirmed"


class RegionMatch(str, Enum):
    """Which rule produced a region's village list"""
    EXPLICIT_IDS = "explicit_ids"
    GOVERNORATE = "governorate"
    REGION_NAME = "region_name"
    ALL_ACTIVE = "all_active"


class FulfillmentErrorCode(str, Enum):
    """Error codes reported to callers"""
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    NO_CARRIER_CONFIGURED = "NO_CARRIER_CONFIGURED"
    MISSING_VILLAGE_ASSIGNMENT = "MISSING_VILLAGE_ASSIGNMENT"
    INVALID_OR_STALE_VILLAGE = "INVALID_OR_STALE_VILLAGE"
    PACKAGE_ALREADY_EXISTS = "PACKAGE_ALREADY_EXISTS"
    CARRIER_TRANSPORT_FAILURE = "CARRIER_TRANSPORT_FAILURE"
    CARRIER_BUSINESS_FAILURE = "CARRIER_BUSINESS_FAILURE"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    ORDER_ALREADY_PACKAGED = "ORDER_ALREADY_PACKAGED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class DispatchOutcomeKind(str, Enum):
    """Closed set of carrier dispatch results"""
    SUCCESS = "success"
    BUSINESS_FAILURE = "business_failure"
    TRANSPORT_FAILURE = "transport_failure"
    SKIPPED = "skipped"


# Directory Models

def split_village_name(village_name: str) -> Tuple[str, str]:
    """
    Split "<Governorate>-<LocalName>" on the first "-".

    Names without a delimiter are their own governorate and local name.
    """
    name = (village_name or "").strip()
    if "-" not in name:
        return name, name
    governorate, local = name.split("-", 1)
    return governorate.strip(), local.strip() or name


class Village(BaseModel):
    """Delivery destination with its own delivery cost"""
    village_id: int
    village_name: str
    delivery_cost: Decimal = Field(default=Decimal("0"), ge=0)
    area_id: int
    is_active: bool = True

    @property
    def governorate_name(self) -> str:
        return split_village_name(self.village_name)[0]

    @property
    def local_name(self) -> str:
        return split_village_name(self.village_name)[1]

    @property
    def governorate_segment(self) -> Optional[str]:
        """First "-" segment, None when the name has no delimiter"""
        parts = (self.village_name or "").split("-")
        if len(parts) < 2:
            return None
        return parts[0].strip()


class ShippingRegion(BaseModel):
    """Admin-facing named grouping of villages"""
    region_name: str
    governorate_name: Optional[str] = None
    village_ids: List[int] = Field(default_factory=list)
    description: Optional[str] = None
    shipping_cost: Decimal = Decimal("0")
    is_active: bool = True


class RegionVillages(BaseModel):
    """Resolved village set for a region"""
    region_name: str
    resolved_by: RegionMatch
    villages: List[Village] = Field(default_factory=list)
    orphaned_village_ids: List[int] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class AreaSummary(BaseModel):
    """Active villages grouped by area"""
    area_id: int
    village_count: int
    min_delivery_cost: Decimal
    max_delivery_cost: Decimal


# Carrier Models

class ExternalCompany(BaseModel):
    """Shipping carrier configuration"""
    company_id: int
    company_name: str
    api_endpoint_url: Optional[str] = None
    api_token: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def has_api(self) -> bool:
        return bool(self.api_endpoint_url and self.api_token)


class CarrierSettings(BaseModel):
    """System-wide carrier settings"""
    default_external_company_id: Optional[int] = None


class CarrierSummary(BaseModel):
    """Carrier as shown to admins (no credentials)"""
    company_id: int
    company_name: str
    is_active: bool
    has_api: bool
    is_default: bool = False


# Core Order Models

class OrderItem(BaseModel):
    """Line item snapshot taken at order creation"""
    product_id: str
    product_name: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    total_price: Decimal = Field(..., ge=0)
    price_type: PriceType = PriceType.MARKETER


class ShippingAddress(BaseModel):
    """Structured + free-form shipping address"""
    full_name: str = ""
    phone: str = ""
    street: str = ""
    city: Optional[str] = None
    governorate: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None
    village_id: Optional[int] = None
    village_name: Optional[str] = None
    manual_village_name: Optional[str] = None


class Order(BaseModel):
    """Core order model"""
    order_id: str
    order_number: str
    customer_id: str
    customer_role: CustomerRole = CustomerRole.MARKETER
    supplier_id: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    marketer_profit: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.COD
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_address: ShippingAddress = Field(default_factory=ShippingAddress)
    shipping_company: Optional[str] = None
    package_id: Optional[int] = None
    delivery_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PackageDraft(BaseModel):
    """Package fields computed before the row exists"""
    external_company_id: int
    order_id: str
    to_name: str
    to_phone: str
    alter_phone: str
    description: str
    package_type: str = "normal"
    village_id: int
    street: str
    total_cost: Decimal
    note: str
    barcode: str


class Package(PackageDraft):
    """Persisted shipment record, one per order"""
    package_id: int
    status: PackageStatus = PackageStatus.PENDING
    dispatch_status: DispatchStatus = DispatchStatus.NOT_ATTEMPTED
    dispatch_attempts: int = 0
    last_dispatch_error: Optional[str] = None
    last_dispatched_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Carrier Wire Models

class CarrierPackagePayload(BaseModel):
    """Outbound carrier request body; numeric fields travel as strings"""
    to_name: str
    to_phone: str
    alter_phone: str
    description: str
    package_type: str
    village_id: str
    street: str
    total_cost: str
    note: str
    barcode: str

    @classmethod
    def from_package(cls, package: PackageDraft) -> "CarrierPackagePayload":
        return cls(
            to_name=package.to_name,
            to_phone=package.to_phone,
            alter_phone=package.alter_phone,
            description=package.description,
            package_type=package.package_type,
            village_id=str(package.village_id),
            street=package.street,
            total_cost=format_amount(package.total_cost),
            note=package.note,
            barcode=package.barcode,
        )


def format_amount(amount: Decimal) -> str:
    """Render an amount without a trailing ".0" for whole values"""
    value = Decimal(amount)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return str(value.normalize())


RETRYABLE_HTTP_STATUSES = frozenset({502, 503, 504})


class DispatchOutcome(BaseModel):
    """Result of one carrier dispatch attempt"""
    kind: DispatchOutcomeKind
    external_package_id: Optional[str] = None
    http_status: Optional[int] = None
    error: Optional[str] = None
    retryable: bool = False

    @property
    def succeeded(self) -> bool:
        return self.kind == DispatchOutcomeKind.SUCCESS

    @classmethod
    def success(cls, external_package_id: Optional[str], http_status: int = 200) -> "DispatchOutcome":
        return cls(
            kind=DispatchOutcomeKind.SUCCESS,
            external_package_id=external_package_id,
            http_status=http_status,
        )

    @classmethod
    def business_failure(cls, message: str, http_status: Optional[int] = None) -> "DispatchOutcome":
        return cls(
            kind=DispatchOutcomeKind.BUSINESS_FAILURE,
            error=message,
            http_status=http_status,
            retryable=http_status in RETRYABLE_HTTP_STATUSES,
        )

    @classmethod
    def transport_failure(cls, error: str, http_status: Optional[int] = None) -> "DispatchOutcome":
        # No status means the request never got an answer (timeout, network)
        return cls(
            kind=DispatchOutcomeKind.TRANSPORT_FAILURE,
            error=error,
            http_status=http_status,
            retryable=http_status is None or http_status in RETRYABLE_HTTP_STATUSES,
        )

    @classmethod
    def skipped(cls) -> "DispatchOutcome":
        return cls(kind=DispatchOutcomeKind.SKIPPED)


# Request Models

class OrderItemInput(BaseModel):
    """Line item as submitted at checkout"""
    product_id: str = Field(..., min_length=1)
    product_name: Optional[str] = None
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)


class OrderCreateRequest(BaseModel):
    """Create order request"""
    supplier_id: Optional[str] = Field(None, description="Supplier fulfilling the items")
    items: List[OrderItemInput] = Field(..., min_length=1, description="Order items")
    shipping_address: ShippingAddress = Field(..., description="Recipient address")
    shipping_company: Optional[str] = Field(None, description="Carrier name (admin only)")
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0)
    commission: Decimal = Field(default=Decimal("0"), ge=0)
    marketer_profit: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_notes: Optional[str] = None

    @field_validator('shipping_address')
    @classmethod
    def validate_recipient(cls, v: ShippingAddress) -> ShippingAddress:
        if not v.full_name.strip() or not v.phone.strip():
            raise ValueError('Recipient name and phone are required')
        return v


class ShippingAssignmentRequest(BaseModel):
    """Admin shipping assignment"""
    shipping_company_name: str = Field(..., min_length=1, description="Carrier name")
    village_id: int = Field(..., description="Destination village")

    @field_validator('shipping_company_name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Carrier name must not be blank')
        return v


# Response Models

class OrderResponse(BaseModel):
    """Order response model"""
    success: bool
    order: Optional[Order] = None
    message: str
    error_code: Optional[FulfillmentErrorCode] = None


class PackageResponse(BaseModel):
    """Package lookup response"""
    success: bool
    package: Optional[Package] = None
    message: str
    error_code: Optional[FulfillmentErrorCode] = None


class PackageBuildResult(BaseModel):
    """
    Outcome of building and/or dispatching a package.

    success=False means no package was created (or, for resend, none
    exists). success=True with api_call_succeeded=False means the package
    exists locally but the carrier has not acknowledged it.
    """
    success: bool
    message: str
    error_code: Optional[FulfillmentErrorCode] = None
    package_id: Optional[int] = None
    already_exists: bool = False
    api_call_succeeded: bool = False
    no_api_endpoint: bool = False
    external_package_id: Optional[str] = None
    carrier_name: Optional[str] = None
    error: Optional[str] = None
    can_retry: bool = False
    package: Optional[Package] = None


class FulfillmentStatusResponse(BaseModel):
    """Three-state fulfillment view of an order"""
    success: bool
    message: str
    error_code: Optional[FulfillmentErrorCode] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    state: Optional[FulfillmentState] = None
    package_id: Optional[int] = None
    dispatch_status: Optional[DispatchStatus] = None
    last_dispatch_error: Optional[str] = None


class VillageListResponse(BaseModel):
    """Village list response"""
    villages: List[Village]
    total_count: int
    page: int
    limit: int
    has_next: bool


class AreaListResponse(BaseModel):
    """Area list response"""
    areas: List[AreaSummary]
    count: int
