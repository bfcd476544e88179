"""
Interfaces/Protocols for checkout services (Dependency Inversion Principle).

These protocols define contracts that services must implement,
allowing for loose coupling and easy testing.
"""

from datetime import datetime
from typing import Any, Protocol

from app.db.models import User
from app.domain.models import CustomerInfo, OrderRequest, PickupDetails


class ICommerceGateway(Protocol):
    """Protocol for the remote commerce platform used during checkout."""

    location_id: str

    async def search_customers(self, email: str, limit: int = 100) -> list[dict[str, Any]]:
        """Search customers by exact email."""
        ...

    async def create_customer(
        self,
        email: str,
        given_name: str | None = None,
        family_name: str | None = None,
        phone_number: str | None = None,
        address: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a customer."""
        ...

    async def update_customer(self, customer_id: str, attributes: dict[str, Any]) -> dict[str, Any]:
        """Partially update a customer."""
        ...

    async def calculate_order(self, order: dict[str, Any]) -> dict[str, Any]:
        """Price an order without creating it."""
        ...

    async def create_order(
        self,
        line_items: list[dict[str, Any]],
        customer_id: str | None = None,
        fulfillments: list[dict[str, Any]] | None = None,
        location_id: str | None = None,
    ) -> dict[str, Any] | None:
        """Create an order, return it."""
        ...

    async def create_payment(
        self,
        source_id: str,
        amount_money: dict[str, Any],
        order_id: str | None = None,
        customer_id: str | None = None,
    ) -> dict[str, Any] | None:
        """Capture a payment, return it."""
        ...


class IUserStore(Protocol):
    """Protocol for local user persistence."""

    async def update_profile(
        self, user_id: int, fields: dict[str, Any], square_customer_id: str | None = None
    ) -> User:
        """Persist profile fields and the sticky customer link."""
        ...


class INotificationSender(Protocol):
    """Protocol for order confirmation delivery."""

    async def send_order_confirmation(
        self,
        order: dict[str, Any],
        payment: dict[str, Any] | None,
        customer: dict[str, Any],
        fulfillment_type: str = "PICKUP",
    ) -> bool:
        """Send a confirmation, return whether it was accepted."""
        ...


class IFulfillmentValidator(Protocol):
    """Protocol for checkout validation services."""

    def validate(self, request: OrderRequest) -> OrderRequest:
        """Validate a checkout request."""
        ...

    def validate_calculation(self, request: OrderRequest) -> OrderRequest:
        """Validate a calculation request."""
        ...

    def pickup_datetime(self, details: PickupDetails) -> datetime:
        """Localized pickup timestamp of a validated request."""
        ...


class ICustomerResolver(Protocol):
    """Protocol for customer resolution services."""

    async def resolve(self, customer_info: CustomerInfo) -> dict[str, Any]:
        """Find or create the remote customer."""
        ...


class IProfileSynchronizer(Protocol):
    """Protocol for local/remote profile synchronization."""

    async def sync(self, user: User | None, customer_id: str, request: OrderRequest) -> User | None:
        """Synchronize the local profile and remote address."""
        ...


class ICustomerDirectory(ICommerceGateway, Protocol):
    """Gateway operations used by the customer profile endpoints."""

    async def get_customer(self, customer_id: str) -> dict[str, Any]:
        """Retrieve one customer."""
        ...

    async def get_customer_orders(self, customer_id: str, limit: int = 100) -> list[dict[str, Any]]:
        """Open and completed orders of a customer, newest first."""
        ...

    async def list_customer_cards(
        self, customer_id: str, cursor: str | None = None, include_disabled: bool = False
    ) -> dict[str, Any]:
        """Cards on file of a customer: {"cards": [...], "cursor": ...}."""
        ...

    async def get_card(self, card_id: str) -> dict[str, Any]:
        """Retrieve one card on file."""
        ...

    async def disable_card(self, card_id: str) -> dict[str, Any]:
        """Disable a card on file; returns the disabled card."""
        ...
