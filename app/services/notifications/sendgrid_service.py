"""
SendGrid notifier for order confirmation emails.

Sending is best effort: every failure is logged and reported as False,
never raised, so a checkout is not affected by email delivery.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp

from app.core.config import Settings, get_settings
from app.core.logging_config import log_api_call
from app.domain.models import FulfillmentType
from app.utils.error_handler import NotificationException, log_error

from .email_templates import OrderConfirmation

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridNotifier:
    """
    Sends transactional email through the SendGrid v3 API.
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[aiohttp.ClientSession] = None):
        """
        Args:
            settings: Application settings (defaults to the cached instance)
            session: Shared HTTP session; a short-lived one is opened per send otherwise
        """
        self.settings = settings or get_settings()
        self._session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.SENDGRID_API_KEY)

    async def close(self):
        """Close the shared session, if one was given."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def build_confirmation(
        self,
        order: Dict[str, Any],
        payment: Optional[Dict[str, Any]],
        customer: Dict[str, Any],
        fulfillment_type: str = FulfillmentType.PICKUP.value,
    ) -> OrderConfirmation:
        return OrderConfirmation(
            order=order,
            payment=payment,
            customer=customer,
            fulfillment_type=fulfillment_type,
            pickup_location=self.settings.pickup_location_lines,
            support_email=self.settings.SUPPORT_EMAIL,
            company_name=self.settings.SENDGRID_FROM_NAME,
        )

    def build_payload(self, to_email: str, confirmation: OrderConfirmation) -> Dict[str, Any]:
        """Mail send body with plain text and HTML alternatives."""
        return {
            "personalizations": [{"to": [{"email": to_email}], "subject": confirmation.subject}],
            "from": {"email": self.settings.SENDGRID_FROM_EMAIL, "name": self.settings.SENDGRID_FROM_NAME},
            "subject": confirmation.subject,
            "content": [
                {"type": "text/plain", "value": confirmation.render_text()},
                {"type": "text/html", "value": confirmation.render_html()},
            ],
        }

    async def send_order_confirmation(
        self,
        order: Dict[str, Any],
        payment: Optional[Dict[str, Any]],
        customer: Dict[str, Any],
        fulfillment_type: str = FulfillmentType.PICKUP.value,
    ) -> bool:
        """
        Email an order confirmation to the customer.

        Args:
            order: Created Square order
            payment: Captured Square payment
            customer: Square customer (its email_address is the recipient)
            fulfillment_type: PICKUP or SHIPMENT

        Returns:
            bool: True if SendGrid accepted the message
        """
        if not self.is_configured:
            logger.warning("SendGrid API key not configured - skipping email")
            return False

        to_email = (customer or {}).get("email_address")
        if not to_email:
            logger.warning(f"No customer email for order {order.get('id')} - skipping email")
            return False

        try:
            confirmation = self.build_confirmation(order, payment, customer, fulfillment_type)
            payload = self.build_payload(to_email, confirmation)
            status, body = await self._post(payload)

            if not 200 <= status < 300:
                raise NotificationException(f"SendGrid error: {status} - {body}", provider_status=status)

            logger.info(f"📧 Order confirmation email sent to {to_email} for order {confirmation.order_id}")
            return True

        except Exception as e:
            log_error(e, {"order_id": order.get("id"), "provider": "sendgrid"})
            return False

    async def _post(self, payload: Dict[str, Any]) -> tuple:
        headers = {
            "Authorization": f"Bearer {self.settings.SENDGRID_API_KEY}",
            "Content-Type": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=self.settings.SENDGRID_TIMEOUT_SECONDS)
        start_time = time.time()

        if self._session is not None:
            status, body = await self._send(self._session, payload, headers, timeout)
        else:
            async with aiohttp.ClientSession() as session:
                status, body = await self._send(session, payload, headers, timeout)

        log_api_call("POST", SENDGRID_API_URL, status, time.time() - start_time, provider="sendgrid")
        return status, body

    @staticmethod
    async def _send(
        session: aiohttp.ClientSession,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        timeout: aiohttp.ClientTimeout,
    ) -> tuple:
        try:
            async with session.post(SENDGRID_API_URL, json=payload, headers=headers, timeout=timeout) as response:
                return response.status, await response.text()
        except asyncio.TimeoutError:
            return 504, "timeout"
