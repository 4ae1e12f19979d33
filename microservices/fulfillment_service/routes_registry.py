"""
Fulfillment Service Routes Registry
Defines all API routes exposed by the service
"""

from typing import List, Dict, Any

BASE_PATH = "/api/v1/fulfillment"

SERVICE_ROUTES: List[Dict[str, Any]] = [
    {
        "path": "/health",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Service health check"
    },
    {
        "path": f"{BASE_PATH}/health",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Detailed health check"
    },
    # Orders
    {
        "path": f"{BASE_PATH}/orders",
        "methods": ["POST"],
        "auth_required": True,
        "description": "Create order"
    },
    {
        "path": f"{BASE_PATH}/orders/{{order_id}}",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Get order"
    },
    {
        "path": f"{BASE_PATH}/orders/{{order_id}}/shipping",
        "methods": ["PUT"],
        "auth_required": True,
        "admin_only": True,
        "description": "Assign carrier and village"
    },
    {
        "path": f"{BASE_PATH}/orders/{{order_id}}/fulfillment",
        "methods": ["GET"],
        "auth_required": True,
        "admin_only": True,
        "description": "Fulfillment state"
    },
    # Packages
    {
        "path": f"{BASE_PATH}/orders/{{order_id}}/package",
        "methods": ["POST"],
        "auth_required": True,
        "admin_only": True,
        "description": "Build package and dispatch to carrier"
    },
    {
        "path": f"{BASE_PATH}/orders/{{order_id}}/package/resend",
        "methods": ["POST"],
        "auth_required": True,
        "admin_only": True,
        "description": "Re-dispatch existing package"
    },
    {
        "path": f"{BASE_PATH}/packages/{{package_id}}",
        "methods": ["GET"],
        "auth_required": True,
        "admin_only": True,
        "description": "Get package"
    },
    # Directory
    {
        "path": f"{BASE_PATH}/villages",
        "methods": ["GET"],
        "auth_required": True,
        "description": "List villages"
    },
    {
        "path": f"{BASE_PATH}/villages/{{village_id}}",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Get active village"
    },
    {
        "path": f"{BASE_PATH}/areas",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Villages grouped by area"
    },
    {
        "path": f"{BASE_PATH}/regions",
        "methods": ["GET"],
        "auth_required": True,
        "description": "List shipping regions"
    },
    {
        "path": f"{BASE_PATH}/regions/{{region_name}}/villages",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Villages for a shipping region"
    },
    {
        "path": f"{BASE_PATH}/carriers",
        "methods": ["GET"],
        "auth_required": True,
        "admin_only": True,
        "description": "Active carriers"
    },
]


def get_route_metadata() -> Dict[str, Any]:
    """
    Compact route metadata for service registration.
    Values are strings so they fit key/value metadata stores.
    """
    package_routes = [r for r in SERVICE_ROUTES if "/package" in r["path"]]
    directory_routes = [
        r for r in SERVICE_ROUTES
        if any(seg in r["path"] for seg in ("/villages", "/areas", "/regions", "/carriers"))
    ]

    return {
        "route_count": str(len(SERVICE_ROUTES)),
        "base_path": BASE_PATH,
        "health": "/health," + f"{BASE_PATH}/health",
        "packages": str(len(package_routes)),
        "directory": str(len(directory_routes)),
        "methods": "GET,POST,PUT",
        "public_count": str(sum(1 for r in SERVICE_ROUTES if not r["auth_required"])),
        "protected_count": str(sum(1 for r in SERVICE_ROUTES if r["auth_required"])),
        "admin_count": str(sum(1 for r in SERVICE_ROUTES if r.get("admin_only"))),
    }


SERVICE_METADATA = {
    "service_name": "fulfillment_service",
    "version": "1.0.0",
    "tags": ["v1", "ribh", "fulfillment", "shipping"],
    "capabilities": [
        "order_intake",
        "shipping_assignment",
        "package_creation",
        "carrier_dispatch",
        "village_directory",
        "shipping_regions",
    ]
}
