"""
Order confirmation email bodies.

Plain text and HTML renderings of a Square order, payment and customer,
rendered from the Jinja2 templates in `templates/`. The HTML template is
autoescaped; the text template is not.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from app.domain.models import FulfillmentType
from app.domain.value_objects import Money

TEXT_TEMPLATE = "order_confirmation.txt.j2"
HTML_TEMPLATE = "order_confirmation.html.j2"


def format_money(money: dict[str, Any] | None) -> str:
    """Square money object to '$12.34'; missing money renders as '$0.00'."""
    return Money.from_square(money).formatted


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_order_date(value: str | None) -> str:
    """'January 15, 2025 at 10:30 AM'; unparseable values are returned as-is."""
    if not value:
        return ""
    try:
        return _parse_timestamp(value).strftime("%B %d, %Y at %I:%M %p")
    except ValueError:
        return value


def format_pickup_time(value: str | None) -> str:
    """'Thursday, January 16, 2025 at 02:00 PM'; unparseable values are returned as-is."""
    if not value:
        return ""
    try:
        return _parse_timestamp(value).strftime("%A, %B %d, %Y at %I:%M %p")
    except ValueError:
        return value


def customer_display_name(customer: dict[str, Any]) -> str:
    name = f"{customer.get('given_name') or ''} {customer.get('family_name') or ''}".strip()
    return name or customer.get("email_address") or ""


def payment_summary(payment: dict[str, Any] | None) -> str:
    """'VISA ending in 1234', or 'Card on file' when no card details are present."""
    card = ((payment or {}).get("card_details") or {}).get("card")
    if not card:
        return "Card on file"
    return f"{card.get('card_brand')} ending in {card.get('last_4')}"


def _address_lines(address: dict[str, Any] | None) -> list[str]:
    if not address:
        return ["Address not provided"]
    lines = [line for line in (address.get("address_line_1"), address.get("address_line_2")) if line]
    city_state_zip = ", ".join(
        part
        for part in (
            address.get("locality"),
            address.get("administrative_district_level_1"),
            address.get("postal_code"),
        )
        if part
    )
    return lines + [city_state_zip]


templates = Environment(
    loader=PackageLoader("app.services.notifications", "templates"),
    autoescape=select_autoescape(enabled_extensions=("html", "html.j2"), default_for_string=False),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
templates.filters.update(
    {
        "money": format_money,
        "order_date": format_order_date,
        "pickup_time": format_pickup_time,
        "payment_summary": payment_summary,
    }
)


@dataclass
class OrderConfirmation:
    """
    Everything needed to render an order confirmation.

    Attributes:
        order: Square order
        payment: Square payment
        customer: Square customer
        fulfillment_type: PICKUP or SHIPMENT
        pickup_location: Store address lines
        support_email: Reply address shown in the footer
        company_name: Name used in the footer
    """

    order: dict[str, Any]
    payment: dict[str, Any] | None
    customer: dict[str, Any]
    fulfillment_type: str
    pickup_location: list[str]
    support_email: str
    company_name: str

    @property
    def order_id(self) -> str:
        return str(self.order.get("id", ""))

    @property
    def subject(self) -> str:
        return f"Order Confirmation #{self.order_id}"

    @property
    def is_pickup(self) -> bool:
        return self.fulfillment_type == FulfillmentType.PICKUP.value

    @property
    def _fulfillment(self) -> dict[str, Any]:
        fulfillments = self.order.get("fulfillments") or []
        return fulfillments[0] if fulfillments else {}

    @property
    def _next_step(self) -> str:
        return "prepared for pickup" if self.is_pickup else "shipped"

    def _location_lines(self) -> list[str]:
        # The company name is already in the footer
        return [line for line in self.pickup_location if line != self.company_name]

    def template_context(self) -> dict[str, Any]:
        """Values shared by the text and HTML templates."""
        fulfillment = self._fulfillment
        pickup = fulfillment.get("pickup_details") if self.is_pickup else None
        shipment = None if self.is_pickup else fulfillment.get("shipment_details")

        ship_to = None
        if shipment:
            recipient = shipment.get("recipient") or {}
            ship_to = [recipient.get("display_name") or ""] + _address_lines(recipient.get("address"))

        return {
            "order": self.order,
            "order_id": self.order_id,
            "payment": self.payment,
            "customer_name": customer_display_name(self.customer),
            "next_step": self._next_step,
            "pickup": pickup,
            "location_lines": self._location_lines(),
            "ship_to": ship_to,
            "line_items": self.order.get("line_items") or [],
            "support_email": self.support_email,
            "company_name": self.company_name,
            "year": datetime.now().year,
        }

    def render_text(self) -> str:
        return templates.get_template(TEXT_TEMPLATE).render(self.template_context())

    def render_html(self) -> str:
        return templates.get_template(HTML_TEMPLATE).render(self.template_context())
