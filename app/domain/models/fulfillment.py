"""
Fulfillment domain model.

A fulfillment is either a pickup or a shipment; each variant renders exactly
one of the provider's `pickup_details` / `shipment_details` blocks.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from .order_request import FulfillmentType, ShippingAddress


@dataclass(frozen=True)
class Recipient:
    """Person receiving the goods."""

    display_name: str
    email_address: str | None = None
    phone_number: str | None = None

    def to_square(self, address: ShippingAddress | None = None) -> dict[str, Any]:
        recipient: dict[str, Any] = {"display_name": self.display_name}
        if self.email_address:
            recipient["email_address"] = self.email_address
        if self.phone_number:
            recipient["phone_number"] = self.phone_number
        if address is not None:
            recipient["address"] = address.to_square()
        return recipient


@dataclass(frozen=True)
class PickupFulfillment:
    """Pickup at the store at a scheduled local time."""

    recipient: Recipient
    pickup_at: datetime
    note: str | None = None

    type = FulfillmentType.PICKUP

    def to_square(self) -> dict[str, Any]:
        details: dict[str, Any] = {
            "recipient": self.recipient.to_square(),
            "pickup_at": self.pickup_at.isoformat(),
        }
        if self.note:
            details["note"] = self.note
        return {"type": self.type.value, "state": "PROPOSED", "pickup_details": details}


@dataclass(frozen=True)
class ShipmentFulfillment:
    """Shipment to the recipient's address."""

    recipient: Recipient
    address: ShippingAddress

    type = FulfillmentType.SHIPMENT

    def to_square(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "state": "PROPOSED",
            "shipment_details": {"recipient": self.recipient.to_square(self.address)},
        }


Fulfillment = Union[PickupFulfillment, ShipmentFulfillment]
