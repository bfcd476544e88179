"""Resolver services for mapping checkout data to remote records."""

from .customer_resolver import CustomerResolver

__all__ = ["CustomerResolver"]
