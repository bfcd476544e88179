"""
Order services package for checkout and order calculation.

This package contains all services related to order processing,
following SOLID principles for better maintainability.
"""

from .orchestrator import (
    CheckoutContext,
    CheckoutOrchestrator,
    CheckoutState,
    create_calculator,
    create_orchestrator,
)

__all__ = [
    "CheckoutContext",
    "CheckoutOrchestrator",
    "CheckoutState",
    "create_calculator",
    "create_orchestrator",
]
