"""
Square client for customer operations.

This module handles customer search, creation, retrieval and updates,
plus the cards customers keep on file.
"""

import logging
from typing import Any, Dict, List, Optional

from app.utils.id_utils import generate_idempotency_key

from .base_client import BaseSquareClient

logger = logging.getLogger(__name__)


class SquareCustomerClient(BaseSquareClient):
    """
    Specialized client for Square customer operations.
    """

    async def search_customers(self, email: str, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Search customers by exact email address.

        Args:
            email: Email to match exactly
            limit: Maximum number of results

        Returns:
            List of customers in provider order (possibly empty)
        """
        body = {"limit": limit, "query": {"filter": {"email_address": {"exact": email}}}}
        result = await self._call("POST", "/customers/search", json=body, operation="search_customers")
        return result.get("customers") or []

    async def create_customer(
        self,
        email: str,
        given_name: Optional[str] = None,
        family_name: Optional[str] = None,
        phone_number: Optional[str] = None,
        address: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Create a customer. Blank optional fields are omitted.

        Returns:
            Dict: The created customer
        """
        body: Dict[str, Any] = {"idempotency_key": generate_idempotency_key(), "email_address": email}
        if given_name:
            body["given_name"] = given_name
        if family_name:
            body["family_name"] = family_name
        if phone_number:
            body["phone_number"] = phone_number
        if address:
            body["address"] = address

        result = await self._call("POST", "/customers", json=body, operation="create_customer")
        customer = result.get("customer") or {}
        logger.info(f"Created Square customer {customer.get('id')}")
        return customer

    async def get_customer(self, customer_id: str) -> Dict[str, Any]:
        """Retrieve a customer by id."""
        result = await self._call("GET", f"/customers/{customer_id}", operation="get_customer")
        return result.get("customer") or {}

    async def update_customer(self, customer_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update to a customer.

        Args:
            customer_id: Square customer id
            attributes: Fields to change (e.g. {"address": {...}})

        Returns:
            Dict: The updated customer
        """
        result = await self._call("PUT", f"/customers/{customer_id}", json=attributes, operation="update_customer")
        return result.get("customer") or {}

    async def create_card(
        self,
        customer_id: str,
        source_id: str,
        billing_address: Optional[Dict[str, Any]] = None,
        cardholder_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store a card on file for a customer.

        Args:
            customer_id: Square customer id
            source_id: Web Payments SDK token or id of a recent payment
            billing_address: Optional billing address
            cardholder_name: Optional name on the card

        Returns:
            Dict: The created card
        """
        card: Dict[str, Any] = {"customer_id": customer_id}
        if billing_address:
            card["billing_address"] = billing_address
        if cardholder_name:
            card["cardholder_name"] = cardholder_name

        body = {"idempotency_key": generate_idempotency_key(), "source_id": source_id, "card": card}
        result = await self._call("POST", "/cards", json=body, operation="create_card")
        created = result.get("card") or {}
        logger.info(f"Stored card {created.get('id')} for customer {customer_id}")
        return created

    async def list_customer_cards(
        self,
        customer_id: str,
        cursor: Optional[str] = None,
        include_disabled: bool = False,
    ) -> Dict[str, Any]:
        """
        List the cards on file of a customer, one page at a time.

        Returns:
            Dict: {"cards": [...], "cursor": next page cursor or None}
        """
        params = {"customer_id": customer_id, "include_disabled": "true" if include_disabled else "false"}
        if cursor:
            params["cursor"] = cursor

        result = await self._call("GET", "/cards", params=params, operation="list_customer_cards")
        return {"cards": result.get("cards") or [], "cursor": result.get("cursor")}

    async def get_card(self, card_id: str) -> Dict[str, Any]:
        """Retrieve a card on file by id."""
        result = await self._call("GET", f"/cards/{card_id}", operation="get_card")
        return result.get("card") or {}

    async def disable_card(self, card_id: str) -> Dict[str, Any]:
        """Disable a card on file. Square keeps the record with `enabled: false`."""
        result = await self._call("POST", f"/cards/{card_id}/disable", operation="disable_card")
        card = result.get("card") or {}
        logger.info(f"Disabled card {card_id}")
        return card
