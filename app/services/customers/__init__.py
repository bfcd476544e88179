"""Customer profile services."""

from .profile_service import CustomerProfileService, user_to_customer_format

__all__ = ["CustomerProfileService", "user_to_customer_format"]
