"""CustomerResolver service - SRP compliance."""

import logging
from typing import Any

from app.domain.models import CustomerInfo
from app.services.orders.interfaces import ICommerceGateway
from app.utils.error_handler import ValidationException

logger = logging.getLogger(__name__)


class CustomerResolver:
    """Finds or creates the remote customer for a checkout (SRP: customer lookup only)."""

    def __init__(self, gateway: ICommerceGateway):
        """
        Initialize with SOLID dependencies (DIP).

        Args:
            gateway: Commerce gateway used for customer search and creation
        """
        self.gateway = gateway

    async def resolve(self, customer_info: CustomerInfo) -> dict[str, Any]:
        """
        Resolve or create the remote customer, return it.

        The first exact email match wins; order among duplicates is whatever
        the gateway returns. Search and create are not atomic, so two
        concurrent checkouts for a new email can each create a customer.

        Returns:
            dict: Remote customer (always carries an `id`)

        Raises:
            ValidationException: If the customer info has no email
            SquareAPIException: If the gateway search or create fails
        """
        email = customer_info.email
        if not email:
            raise ValidationException(message="Customer email is required", field="customer_info.email")

        matches = await self.gateway.search_customers(email)
        if matches:
            customer = matches[0]
            logger.debug(f"Found existing customer: {customer.get('id')} for {email}")
            if len(matches) > 1:
                logger.warning(f"{len(matches)} customers share {email}, using {customer.get('id')}")
            return customer

        logger.info(f"No customer found for {email}, creating one")
        return await self.gateway.create_customer(
            email=email,
            given_name=customer_info.given_name,
            family_name=customer_info.family_name,
            phone_number=customer_info.phone_number,
        )
