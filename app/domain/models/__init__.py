"""
Domain models for business entities.

These models represent core business concepts and contain
business logic and invariants.
"""

from .fulfillment import Fulfillment, PickupFulfillment, Recipient, ShipmentFulfillment
from .order_request import (
    CustomerInfo,
    FulfillmentType,
    LineItem,
    OrderRequest,
    PickupDetails,
    ShippingAddress,
)

__all__ = [
    "CustomerInfo",
    "Fulfillment",
    "FulfillmentType",
    "LineItem",
    "OrderRequest",
    "PickupDetails",
    "PickupFulfillment",
    "Recipient",
    "ShipmentFulfillment",
    "ShippingAddress",
]
