"""
OrderConverter service for turning checkout requests into remote order
payloads and remote orders into API responses.

This service follows SRP by focusing only on data transformation.
"""

import logging
from datetime import datetime
from typing import Any

from app.core.config import get_settings
from app.domain.models import (
    Fulfillment,
    FulfillmentType,
    LineItem,
    OrderRequest,
    PickupFulfillment,
    Recipient,
    ShipmentFulfillment,
)
from app.domain.value_objects import Money

logger = logging.getLogger(__name__)
settings = get_settings()


class OrderConverter:
    """
    Converts between checkout requests, remote orders and response bodies.
    """

    def __init__(self, pickup_note: str | None = None, default_currency: str = "USD"):
        """
        Args:
            pickup_note: Note attached to pickup fulfillments. Defaults to PICKUP_NOTE
            default_currency: Currency used when a remote money object has none
        """
        self.pickup_note = settings.PICKUP_NOTE if pickup_note is None else pickup_note
        self.default_currency = default_currency

    @staticmethod
    def line_items_to_square(line_items: list[LineItem]) -> list[dict[str, Any]]:
        return [item.to_square() for item in line_items]

    @staticmethod
    def build_recipient(request: OrderRequest) -> Recipient:
        """Recipient named 'Given Family', falling back to the customer email."""
        info = request.customer_info
        return Recipient(
            display_name=info.display_name,
            email_address=info.email,
            phone_number=info.phone_number,
        )

    def build_fulfillment(self, request: OrderRequest, pickup_at: datetime | None = None) -> Fulfillment:
        """
        Build the single fulfillment of a validated request.

        Args:
            request: Validated checkout request
            pickup_at: Localized pickup time (pickup requests only)

        Returns:
            Fulfillment: Pickup or shipment variant
        """
        recipient = self.build_recipient(request)
        if request.fulfillment is FulfillmentType.SHIPMENT:
            return ShipmentFulfillment(recipient=recipient, address=request.shipping_address)

        note = (request.pickup_details.note if request.pickup_details else None) or self.pickup_note
        return PickupFulfillment(recipient=recipient, pickup_at=pickup_at, note=note)

    def order_total(self, order: dict[str, Any]) -> Money:
        """Total of a created order; currency defaults when absent."""
        return Money.from_square(order.get("total_money"), default_currency=self.default_currency)

    def format_calculated_order(
        self, order: dict[str, Any], fulfillment_type: FulfillmentType | None = None
    ) -> dict[str, Any]:
        """
        Response body for an order calculation.

        The subtotal is the sum of line totals. For pickup, shipping is forced
        to zero and the total is recomputed locally instead of trusting the
        remote total.

        Returns:
            dict: subtotal, taxes, shipping, total (minor units) and line items
        """
        line_items = order.get("line_items") or []

        subtotal = sum(Money.from_square(item.get("total_money")).amount for item in line_items)
        taxes = Money.from_square(order.get("total_tax_money")).amount
        shipping = Money.from_square(order.get("total_service_charge_money")).amount
        total = Money.from_square(order.get("total_money")).amount

        if fulfillment_type is FulfillmentType.PICKUP:
            if shipping:
                logger.debug(f"Dropping remote shipping charge of {shipping} for pickup order")
            shipping = 0
            total = subtotal + taxes + shipping

        return {
            "subtotal": subtotal,
            "taxes": taxes,
            "shipping": shipping,
            "total": total,
            "line_items": [
                {
                    "catalog_object_id": item.get("catalog_object_id"),
                    "quantity": item.get("quantity"),
                    "name": item.get("name"),
                    "total_money": item.get("total_money"),
                }
                for item in line_items
            ],
        }
