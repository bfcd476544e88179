"""
Square REST clients organized by responsibility.

This module contains specialized clients for different Square resources,
combined into a single SquareClient.
"""

from .base_client import BaseSquareClient, SquareClientConfig
from .catalog_client import SquareCatalogClient
from .customer_client import SquareCustomerClient
from .order_client import SquareOrderClient
from .unified_client import SquareClient

__all__ = [
    "BaseSquareClient",
    "SquareCatalogClient",
    "SquareClient",
    "SquareClientConfig",
    "SquareCustomerClient",
    "SquareOrderClient",
]
