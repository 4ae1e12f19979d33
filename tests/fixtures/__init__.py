"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - common.py: Base ID generators, timestamps
    - fulfillment_fixtures.py: Fulfillment model factories
"""

from .common import (
    make_user_id,
    make_order_id,
    make_order_number,
    make_timestamp,
)

from .fulfillment_fixtures import (
    ULTRA_PAL_ENDPOINT,
    make_village,
    make_region,
    make_company,
    make_item,
    make_address,
    make_order,
    make_package,
    make_order_create_request,
    carrier_success_body,
)

__all__ = [
    "make_user_id",
    "make_order_id",
    "make_order_number",
    "make_timestamp",
    "ULTRA_PAL_ENDPOINT",
    "make_village",
    "make_region",
    "make_company",
    "make_item",
    "make_address",
    "make_order",
    "make_package",
    "make_order_create_request",
    "carrier_success_body",
]
