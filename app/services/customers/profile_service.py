"""CustomerProfileService - local profile plus its linked remote customer."""

import logging
from typing import Any

from app.db.models import User
from app.domain.models import CustomerInfo
from app.services.orders.interfaces import ICustomerDirectory, IUserStore
from app.services.orders.resolvers import CustomerResolver
from app.utils.error_handler import (
    NotFoundException,
    PersistenceException,
    SquareAPIException,
    ValidationException,
)
from app.utils.id_utils import local_customer_id

logger = logging.getLogger(__name__)


def user_to_customer_format(user: User) -> dict[str, Any]:
    """
    Local user shaped like a remote customer.

    Used when the user has no link or the gateway cannot be reached.
    """
    return {
        "id": user.square_customer_id or local_customer_id(user.id),
        "email_address": user.email,
        "given_name": user.given_name,
        "family_name": user.family_name,
        "phone_number": user.phone_number,
        "address": user.address_to_square(),
        "local_user_id": user.id,
        "has_square_customer": False,
    }


class CustomerProfileService:
    """Reads and updates a customer profile across the user store and the gateway."""

    def __init__(
        self,
        gateway: ICustomerDirectory,
        user_repository: IUserStore,
        customer_resolver: CustomerResolver | None = None,
    ):
        self.gateway = gateway
        self.user_repository = user_repository
        self.customer_resolver = customer_resolver or CustomerResolver(gateway)

    async def get_profile(self, user: User) -> dict[str, Any]:
        """Remote customer merged with the local id, or the local fallback."""
        if not user.square_customer_id:
            return user_to_customer_format(user)

        try:
            customer = await self.gateway.get_customer(user.square_customer_id)
        except SquareAPIException as e:
            logger.warning(f"⚠️ Could not fetch customer {user.square_customer_id}: {e.message}")
            return user_to_customer_format(user)

        if not customer:
            return user_to_customer_format(user)
        return {**customer, "local_user_id": user.id, "has_square_customer": True}

    async def update_profile(
        self, user: User, local_fields: dict[str, Any], remote_attributes: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Update the local user, then the remote customer.

        A linked user gets a partial remote update and gateway errors
        propagate. An unlinked user is matched or created by email and
        linked; if that fails the local representation is returned.

        Raises:
            ValidationException: If the new email is already taken (422)
            PersistenceException: If the local write fails
            SquareAPIException: If updating an already linked customer fails
        """
        if local_fields:
            user = await self.user_repository.update_profile(user.id, local_fields)

        if user.square_customer_id:
            customer = await self.gateway.update_customer(user.square_customer_id, remote_attributes)
            return {**customer, "local_user_id": user.id, "has_square_customer": True}

        info = CustomerInfo(
            email=user.email,
            given_name=user.given_name,
            family_name=user.family_name,
            phone_number=user.phone_number,
        )
        try:
            customer = await self.customer_resolver.resolve(info)
            user = await self.user_repository.update_profile(user.id, {}, square_customer_id=customer["id"])
        except (SquareAPIException, PersistenceException) as e:
            logger.warning(f"⚠️ Could not link user {user.id} to a customer: {e.message}")
            return user_to_customer_format(user)

        logger.info(f"🔗 Linked user {user.id} to customer {customer['id']}")
        return {**customer, "local_user_id": user.id, "has_square_customer": True}

    async def list_orders(self, user: User) -> list[dict[str, Any]]:
        """Orders of the linked customer; empty when there is no link."""
        if not user.square_customer_id:
            return []
        return await self.gateway.get_customer_orders(user.square_customer_id)

    async def list_cards(self, user: User) -> list[dict[str, Any]]:
        """Enabled cards on file of the linked customer; empty when there is no link."""
        if not user.square_customer_id:
            return []
        result = await self.gateway.list_customer_cards(user.square_customer_id)
        return result.get("cards") or []

    async def remove_card(self, user: User, card_id: str) -> dict[str, Any]:
        """
        Disable one of the user's cards on file.

        The card must belong to the user's linked customer; a card of any
        other customer is reported as not found.

        Raises:
            ValidationException: If card_id is blank
            NotFoundException: If the user has no link or the card is not theirs
            SquareAPIException: If Square refuses to disable the card
        """
        card_id = (card_id or "").strip()
        if not card_id:
            raise ValidationException("Card ID is required", field="card_id")
        if not user.square_customer_id:
            raise NotFoundException("No Square customer found", resource="customer")

        try:
            card = await self.gateway.get_card(card_id)
        except SquareAPIException as e:
            if e.api_response_code == 404:
                raise NotFoundException("Card not found", resource="card") from e
            raise
        if card.get("customer_id") != user.square_customer_id:
            logger.warning(f"🚫 User {user.id} tried to remove card {card_id} of another customer")
            raise NotFoundException("Card not found", resource="card")

        try:
            disabled = await self.gateway.disable_card(card_id)
        except SquareAPIException as e:
            if e.is_transport_error:
                raise
            raise SquareAPIException(
                "Failed to delete card",
                errors=e.errors,
                api_response_code=e.api_response_code,
                endpoint=e.endpoint,
            ) from e

        logger.info(f"💳 Disabled card {card_id} of user {user.id}")
        return disabled
