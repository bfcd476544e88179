"""OrderCalculator service - prices a cart without creating anything."""

import logging
from typing import Any

from app.domain.models import OrderRequest
from app.services.orders.converters import OrderConverter
from app.services.orders.interfaces import ICommerceGateway, IFulfillmentValidator

logger = logging.getLogger(__name__)


class OrderCalculator:
    """
    Read-only sibling of checkout: one remote calculation plus local arithmetic.
    """

    def __init__(self, gateway: ICommerceGateway, validator: IFulfillmentValidator, converter: OrderConverter):
        """
        Initialize with SOLID dependencies (DIP).

        Args:
            gateway: Commerce gateway
            validator: Validates line items and the optional fulfillment type
            converter: Builds line items and formats the result
        """
        self.gateway = gateway
        self.validator = validator
        self.converter = converter

    async def calculate(self, request: OrderRequest) -> dict[str, Any]:
        """
        Calculate totals for a cart.

        Args:
            request: Request with line items and an optional fulfillment type

        Returns:
            dict: subtotal, taxes, shipping, total and line item detail

        Raises:
            ValidationException: If line items are missing or the fulfillment type is unknown
            SquareAPIException: If the remote calculation fails
        """
        self.validator.validate_calculation(request)

        order = {
            "location_id": self.gateway.location_id,
            "line_items": self.converter.line_items_to_square(request.line_items),
        }
        calculated = await self.gateway.calculate_order(order)
        result = self.converter.format_calculated_order(calculated, request.fulfillment)

        logger.info(
            f"Calculated order: {len(request.line_items)} items, total {result['total']} "
            f"({request.fulfillment.value if request.fulfillment else 'no fulfillment'})"
        )
        return result
