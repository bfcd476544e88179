"""
Unified Square client that combines all specialized clients.

One instance owns one HTTP session; it is created at startup and injected
wherever a commerce gateway is needed.
"""

import logging

from .catalog_client import SquareCatalogClient
from .customer_client import SquareCustomerClient
from .order_client import SquareOrderClient

logger = logging.getLogger(__name__)


class SquareClient(SquareCustomerClient, SquareOrderClient, SquareCatalogClient):
    """
    Unified Square client exposing customer, order, payment and catalog operations.
    """

    async def test_connection(self) -> bool:
        """
        Check credentials by retrieving the configured location.

        Returns:
            bool: True if the location is reachable
        """
        result = await self._call("GET", f"/locations/{self.location_id}", operation="test_connection")
        return bool(result.get("location"))
