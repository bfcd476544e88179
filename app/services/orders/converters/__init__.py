"""
Converter services for transforming checkout data to remote order format.
"""

from .order_converter import OrderConverter

__all__ = ["OrderConverter"]
