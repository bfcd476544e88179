"""
Square client for order and payment operations.

This module handles order calculation, order creation, order search and
payment capture. Every mutating call carries a fresh idempotency key.
"""

import logging
from typing import Any, Dict, List, Optional

from app.utils.id_utils import generate_idempotency_key

from .base_client import BaseSquareClient

logger = logging.getLogger(__name__)


class SquareOrderClient(BaseSquareClient):
    """
    Specialized client for Square orders and payments.
    """

    async def calculate_order(self, order: Dict[str, Any]) -> Dict[str, Any]:
        """
        Price an order skeleton without creating it.

        Args:
            order: Order object ({"location_id", "line_items", ...})

        Returns:
            Dict: Calculated order with line item and total money fields
        """
        result = await self._call("POST", "/orders/calculate", json={"order": order}, operation="calculate_order")
        return result.get("order") or {}

    async def create_order(
        self,
        line_items: List[Dict[str, Any]],
        customer_id: Optional[str] = None,
        fulfillments: Optional[List[Dict[str, Any]]] = None,
        location_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Create an order at the configured location.

        Args:
            line_items: Provider line items
            customer_id: Customer the order belongs to
            fulfillments: Fulfillment blocks
            location_id: Overrides the configured location

        Returns:
            The created order, or None when the response carries none
        """
        order: Dict[str, Any] = {"location_id": location_id or self.location_id, "line_items": line_items}
        if customer_id:
            order["customer_id"] = customer_id
        if fulfillments:
            order["fulfillments"] = fulfillments

        body = {"idempotency_key": generate_idempotency_key(), "order": order}
        result = await self._call("POST", "/orders", json=body, operation="create_order")
        return result.get("order")

    async def create_payment(
        self,
        source_id: str,
        amount_money: Dict[str, Any],
        order_id: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Capture a payment from a tokenized card.

        The idempotency key is generated once here, so retries of this
        capture can never charge twice.

        Returns:
            The payment, or None when the response carries none
        """
        body: Dict[str, Any] = {
            "idempotency_key": generate_idempotency_key(),
            "source_id": source_id,
            "amount_money": amount_money,
        }
        if order_id:
            body["order_id"] = order_id
        if customer_id:
            body["customer_id"] = customer_id
        if self.location_id:
            body["location_id"] = self.location_id

        result = await self._call("POST", "/payments", json=body, operation="create_payment")
        return result.get("payment")

    async def search_orders(self, query: Optional[Dict[str, Any]] = None, limit: int = 100) -> List[Dict[str, Any]]:
        """Search orders at the configured location."""
        body: Dict[str, Any] = {"limit": limit, "location_ids": [self.location_id]}
        if query:
            body["query"] = query
        result = await self._call("POST", "/orders/search", json=body, operation="search_orders")
        return result.get("orders") or []

    async def get_customer_orders(self, customer_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Completed and open orders of one customer, newest first.
        """
        query = {
            "filter": {
                "customer_filter": {"customer_ids": [customer_id]},
                "state_filter": {"states": ["COMPLETED", "OPEN"]},
            },
            "sort": {"sort_field": "CREATED_AT", "sort_order": "DESC"},
        }
        return await self.search_orders(query=query, limit=limit)
