"""
Customer notifications.

Currently a single channel: order confirmation emails through SendGrid.
"""

from .email_templates import OrderConfirmation, format_money, format_order_date, format_pickup_time
from .sendgrid_service import SENDGRID_API_URL, SendGridNotifier

__all__ = [
    "OrderConfirmation",
    "SENDGRID_API_URL",
    "SendGridNotifier",
    "format_money",
    "format_order_date",
    "format_pickup_time",
]
