"""ProfileSynchronizer service - keeps the local user and remote customer in step."""

import logging
from typing import Any

from app.db.models import User
from app.domain.models import OrderRequest
from app.services.orders.interfaces import ICommerceGateway, IUserStore
from app.utils.error_handler import PersistenceException, SquareAPIException

logger = logging.getLogger(__name__)


class ProfileSynchronizer:
    """
    Copies checkout contact data into the local profile and pushes shipping
    addresses to the remote customer. Neither side effect can fail a checkout.
    """

    def __init__(self, user_repository: IUserStore, gateway: ICommerceGateway):
        """
        Initialize with SOLID dependencies (DIP).

        Args:
            user_repository: Local user store
            gateway: Commerce gateway for remote customer updates
        """
        self.user_repository = user_repository
        self.gateway = gateway

    @staticmethod
    def profile_fields(request: OrderRequest) -> dict[str, Any]:
        """Non-blank profile values carried by the request."""
        fields: dict[str, Any] = {}
        if request.customer_info:
            fields.update(request.customer_info.to_profile_fields())
        if request.is_shipment and request.shipping_address:
            fields.update(request.shipping_address.to_profile_fields())
        return fields

    async def sync(self, user: User | None, customer_id: str, request: OrderRequest) -> User | None:
        """
        Synchronize the profile for one checkout.

        Args:
            user: Authenticated local user, or None for anonymous checkout
            customer_id: Resolved remote customer id
            request: Validated checkout request

        Returns:
            User | None: The updated user, or the given one if the local write failed
        """
        updated = user
        if user is not None:
            updated = await self._update_local(user, customer_id, request)

        if request.is_shipment and request.shipping_address:
            await self._push_address(customer_id, request)

        return updated

    async def _update_local(self, user: User, customer_id: str, request: OrderRequest) -> User:
        try:
            return await self.user_repository.update_profile(
                user.id, self.profile_fields(request), square_customer_id=customer_id
            )
        except PersistenceException as e:
            logger.warning(f"⚠️ Could not update local profile for user {user.id}, continuing checkout: {e}")
            return user

    async def _push_address(self, customer_id: str, request: OrderRequest) -> None:
        try:
            await self.gateway.update_customer(customer_id, {"address": request.shipping_address.to_square()})
            logger.debug(f"Pushed shipping address to customer {customer_id}")
        except SquareAPIException as e:
            logger.warning(f"⚠️ Could not update address of customer {customer_id}, continuing checkout: {e}")
