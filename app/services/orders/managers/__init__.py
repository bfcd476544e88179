"""Manager services for business operations."""

from .order_calculator import OrderCalculator
from .profile_synchronizer import ProfileSynchronizer

__all__ = ["OrderCalculator", "ProfileSynchronizer"]
