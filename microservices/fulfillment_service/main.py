"""
Fulfillment Microservice

Responsibilities:
- Order intake (cash on delivery)
- Admin shipping assignment (carrier + village)
- Package creation and dispatch to external carriers
- Village / shipping region / carrier directory
"""

from fastapi import FastAPI, HTTPException, Depends, status, Query, Path, Body
from fastapi.responses import JSONResponse
import uvicorn
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from core.auth_dependencies import (
    Caller,
    require_admin_or_internal_service,
    require_auth_or_internal_service,
)
from core.config import get_settings
from core.logger import setup_service_logger
from core.nats_client import get_event_bus
from . import messages
from .factory import create_fulfillment_service
from .fulfillment_service import FulfillmentService
from .models import (
    AreaListResponse,
    FulfillmentErrorCode,
    FulfillmentStatusResponse,
    OrderCreateRequest,
    OrderResponse,
    PackageBuildResult,
    PackageResponse,
    RegionVillages,
    ShippingAssignmentRequest,
    Village,
    VillageListResponse,
)
from .protocols import FulfillmentServiceError
from .routes_registry import BASE_PATH, SERVICE_METADATA

# Initialize configuration
settings = get_settings()

# Setup loggers (use actual service name)
app_logger = setup_service_logger("fulfillment_service")
logger = app_logger

ERROR_STATUS = {
    FulfillmentErrorCode.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FulfillmentErrorCode.PACKAGE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FulfillmentErrorCode.NO_CARRIER_CONFIGURED: status.HTTP_400_BAD_REQUEST,
    FulfillmentErrorCode.MISSING_VILLAGE_ASSIGNMENT: status.HTTP_400_BAD_REQUEST,
    FulfillmentErrorCode.INVALID_OR_STALE_VILLAGE: status.HTTP_400_BAD_REQUEST,
    FulfillmentErrorCode.ORDER_ALREADY_PACKAGED: status.HTTP_400_BAD_REQUEST,
    FulfillmentErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    FulfillmentErrorCode.CARRIER_TRANSPORT_FAILURE: status.HTTP_502_BAD_GATEWAY,
    FulfillmentErrorCode.CARRIER_BUSINESS_FAILURE: status.HTTP_502_BAD_GATEWAY,
}


def error_response(result) -> JSONResponse:
    """Failed service result as JSON with the status for its error code"""
    code = ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=result.model_dump(mode="json"))


class FulfillmentMicroservice:
    """Fulfillment microservice core class"""

    def __init__(self):
        self.fulfillment_service: Optional[FulfillmentService] = None
        self.event_bus = None
        self.db = None
        self.carrier_client = None

    async def initialize(self, event_bus=None, db=None, carrier_client=None):
        """Initialize the microservice"""
        try:
            self.event_bus = event_bus
            self.db = db
            self.carrier_client = carrier_client
            self.fulfillment_service = create_fulfillment_service(
                db=db,
                event_bus=event_bus,
                carrier_client=carrier_client,
                settings=settings,
            )
            logger.info("Fulfillment microservice initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize fulfillment microservice: {e}")
            raise

    async def shutdown(self):
        """Shutdown the microservice"""
        try:
            if self.carrier_client:
                await self.carrier_client.close()
            if self.event_bus:
                await self.event_bus.close()
                logger.info("Event bus closed")
            if self.db:
                await self.db.close()
            logger.info("Fulfillment microservice shutdown completed")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")


# Global microservice instance
fulfillment_microservice = FulfillmentMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    from core.postgres_client import get_postgres_client
    from .clients import CarrierClient

    event_bus = None
    if settings.infrastructure.nats_enabled:
        try:
            event_bus = await get_event_bus("fulfillment_service", settings.infrastructure.nats_servers)
            logger.info("Event bus initialized successfully")
        except Exception as e:
            logger.warning(f"Failed to initialize event bus: {e}. Continuing without event publishing.")
            event_bus = None

    infra = settings.infrastructure
    db = await get_postgres_client(
        settings.service_name,
        dsn=infra.postgres_dsn,
        min_size=infra.postgres_pool_min,
        max_size=infra.postgres_pool_max,
    )
    carrier_client = CarrierClient(settings.carrier)

    await fulfillment_microservice.initialize(event_bus=event_bus, db=db, carrier_client=carrier_client)

    yield

    await fulfillment_microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Fulfillment Service",
    description="Order intake, shipping assignment and carrier package dispatch",
    version=SERVICE_METADATA["version"],
    lifespan=lifespan
)

# CORS handled by Gateway


# Dependency injection
def get_fulfillment_service() -> FulfillmentService:
    """Get fulfillment service instance"""
    if not fulfillment_microservice.fulfillment_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Fulfillment service not initialized"
        )
    return fulfillment_microservice.fulfillment_service


# Health check endpoints
@app.get("/health")
async def health_check():
    """Service health check"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "port": settings.port,
        "version": SERVICE_METADATA["version"],
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get(f"{BASE_PATH}/health")
async def detailed_health_check(
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Detailed health check with database connectivity"""
    health_data = await service.health_check()
    health_data["service"] = settings.service_name
    health_data["event_bus"] = "connected" if service.event_bus else "disabled"
    return health_data


# Orders

@app.post(f"{BASE_PATH}/orders", response_model=OrderResponse)
async def create_order(
    request: OrderCreateRequest,
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Create a new order"""
    try:
        result = await service.create_order(request, customer_id=caller.user_id, customer_role=caller.role)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not result.success:
        return error_response(result)
    return result


@app.get(f"{BASE_PATH}/orders/{{order_id}}", response_model=OrderResponse)
async def get_order(
    order_id: str = Path(..., description="Order ID"),
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Get order details; non-admins only see their own orders"""
    try:
        result = await service.get_order(order_id)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if result.success and not caller.is_admin and result.order.customer_id != caller.user_id:
        result = OrderResponse(
            success=False,
            message=messages.error_message(FulfillmentErrorCode.ORDER_NOT_FOUND),
            error_code=FulfillmentErrorCode.ORDER_NOT_FOUND,
        )
    if not result.success:
        return error_response(result)
    return result


@app.put(f"{BASE_PATH}/orders/{{order_id}}/shipping", response_model=OrderResponse)
async def assign_shipping(
    order_id: str = Path(..., description="Order ID"),
    request: ShippingAssignmentRequest = Body(...),
    caller: Caller = Depends(require_admin_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Assign carrier and destination village"""
    try:
        result = await service.assign_shipping(order_id, request, assigned_by=caller.user_id)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not result.success:
        return error_response(result)
    return result


@app.get(f"{BASE_PATH}/orders/{{order_id}}/fulfillment", response_model=FulfillmentStatusResponse)
async def get_fulfillment_status(
    order_id: str = Path(..., description="Order ID"),
    caller: Caller = Depends(require_admin_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Not packaged / packaged pending carrier / carrier confirmed"""
    try:
        result = await service.get_fulfillment_status(order_id)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not result.success:
        return error_response(result)
    return result


# Packages

@app.post(f"{BASE_PATH}/orders/{{order_id}}/package", response_model=PackageBuildResult)
async def create_package(
    order_id: str = Path(..., description="Order ID"),
    caller: Caller = Depends(require_admin_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """
    Build the order's package and dispatch it to the carrier.

    200 whenever a package exists afterwards (new or already existing); the
    dispatch outcome is in the body.
    """
    try:
        result = await service.create_package(order_id)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not result.success:
        return error_response(result)
    return result


@app.post(f"{BASE_PATH}/orders/{{order_id}}/package/resend", response_model=PackageBuildResult)
async def resend_package(
    order_id: str = Path(..., description="Order ID"),
    caller: Caller = Depends(require_admin_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Re-dispatch the existing package; 502 when the carrier fails again"""
    try:
        result = await service.resend_package(order_id)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not result.success:
        return error_response(result)
    return result


@app.get(f"{BASE_PATH}/packages/{{package_id}}", response_model=PackageResponse)
async def get_package(
    package_id: int = Path(..., description="Package ID"),
    caller: Caller = Depends(require_admin_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Get package details"""
    try:
        result = await service.get_package(package_id)
    except FulfillmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not result.success:
        return error_response(result)
    return result


# Directory

@app.get(f"{BASE_PATH}/villages", response_model=VillageListResponse)
async def list_villages(
    area_id: Optional[int] = Query(None, description="Filter by area"),
    search: Optional[str] = Query(None, description="Substring match on village name"),
    is_active: Optional[bool] = Query(True, description="Filter by active flag"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(100, ge=1, le=1000, description="Items per page"),
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """List villages with filtering and pagination"""
    try:
        return await service.list_villages(
            area_id=area_id, search=search, is_active=is_active, page=page, limit=limit
        )
    except Exception as e:
        logger.error(f"Failed to list villages: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get(f"{BASE_PATH}/villages/{{village_id}}", response_model=Village)
async def get_village(
    village_id: int = Path(..., description="Village ID"),
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Get an active village"""
    try:
        village = await service.get_village(village_id)
    except Exception as e:
        logger.error(f"Failed to get village {village_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not village:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Village not found")
    return village


@app.get(f"{BASE_PATH}/areas", response_model=AreaListResponse)
async def list_areas(
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Active villages grouped by area"""
    try:
        areas = await service.list_areas()
        return AreaListResponse(areas=areas, count=len(areas))
    except Exception as e:
        logger.error(f"Failed to list areas: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get(f"{BASE_PATH}/regions")
async def list_regions(
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Active shipping regions"""
    try:
        regions = await service.list_regions()
        return {"regions": regions, "count": len(regions)}
    except Exception as e:
        logger.error(f"Failed to list regions: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get(f"{BASE_PATH}/regions/{{region_name}}/villages", response_model=RegionVillages)
async def get_region_villages(
    region_name: str = Path(..., description="Region display name"),
    caller: Caller = Depends(require_auth_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Villages for a region, with resolution warnings"""
    try:
        return await service.get_region_villages(region_name)
    except Exception as e:
        logger.error(f"Failed to resolve region {region_name}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@app.get(f"{BASE_PATH}/carriers")
async def list_carriers(
    caller: Caller = Depends(require_admin_or_internal_service),
    service: FulfillmentService = Depends(get_fulfillment_service)
):
    """Active carriers; API tokens are never returned"""
    try:
        carriers = await service.list_carriers()
        return {"carriers": carriers, "count": len(carriers)}
    except Exception as e:
        logger.error(f"Failed to list carriers: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


if __name__ == "__main__":
    uvicorn.run(
        "microservices.fulfillment_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.logging.log_level.lower()
    )
