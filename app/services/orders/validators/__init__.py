"""
Validator services for validating business rules and data integrity.
"""

from .fulfillment_validator import FulfillmentValidator

__all__ = ["FulfillmentValidator"]
