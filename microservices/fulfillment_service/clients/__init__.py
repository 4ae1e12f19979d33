"""
Fulfillment Service Clients

HTTP clients for external systems called by this service
"""

from .carrier_client import CarrierClient, interpret_carrier_response, normalize_token

__all__ = [
    "CarrierClient",
    "interpret_carrier_response",
    "normalize_token",
]
