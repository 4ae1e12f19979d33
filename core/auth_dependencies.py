"""
FastAPI Authentication Dependencies

Identity is established upstream by the gateway, which forwards the caller
as X-User-Id / X-User-Role headers. Internal callers authenticate with the
shared internal-service secret.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Header, HTTPException, status, Request

from core.config import get_settings

logger = logging.getLogger(__name__)

INTERNAL_SERVICE_ID = "internal-service"
ADMIN_ROLE = "admin"


@dataclass
class Caller:
    """Authenticated caller identity"""
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def is_internal(self) -> bool:
        return self.user_id == INTERNAL_SERVICE_ID


def _internal_secret_ok(x_internal_service: Optional[str], secret: Optional[str]) -> bool:
    return x_internal_service == "true" and bool(secret) and secret == get_settings().internal_service_secret


async def require_auth_or_internal_service(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    x_internal_service: Optional[str] = Header(None, alias="X-Internal-Service"),
    x_internal_service_secret: Optional[str] = Header(None, alias="X-Internal-Service-Secret"),
) -> Caller:
    """
    Authenticate a user or an internal service.

    Order:
    1. Internal service (X-Internal-Service + X-Internal-Service-Secret),
       treated as admin
    2. User (X-User-Id, role from X-User-Role, defaulting to marketer)

    Raises:
        HTTPException 401: no usable identity
    """
    if _internal_secret_ok(x_internal_service, x_internal_service_secret):
        logger.debug(f"Internal service request to {request.url.path}")
        return Caller(user_id=INTERNAL_SERVICE_ID, role=ADMIN_ROLE)
    if x_internal_service == "true":
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"Invalid internal service secret from {client_host}")

    if x_user_id:
        return Caller(user_id=x_user_id, role=(x_user_role or "marketer").lower())

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="User authentication required"
    )


async def require_admin_or_internal_service(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    x_internal_service: Optional[str] = Header(None, alias="X-Internal-Service"),
    x_internal_service_secret: Optional[str] = Header(None, alias="X-Internal-Service-Secret"),
) -> Caller:
    """Same as require_auth_or_internal_service, but only admins pass (403 otherwise)"""
    caller = await require_auth_or_internal_service(
        request, x_user_id, x_user_role, x_internal_service, x_internal_service_secret
    )
    if not caller.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return caller


__all__ = [
    "Caller",
    "require_auth_or_internal_service",
    "require_admin_or_internal_service",
]
