"""
Checkout request domain model.

Represents the order a customer submits at checkout, before any validation
or provider call has happened. Values are kept as received so the
validator can report exactly which rule they break.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FulfillmentType(str, Enum):
    """How purchased goods reach the customer."""

    PICKUP = "PICKUP"
    SHIPMENT = "SHIPMENT"

    @classmethod
    def parse(cls, value: Any) -> "FulfillmentType | None":
        """Return the matching member, or None for anything else."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


def _clean(value: Any) -> str | None:
    """Strip strings and collapse blanks to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class LineItem:
    """
    A single requested line.

    Attributes:
        catalog_object_id: Provider catalog variation id
        quantity: Requested quantity as received (validated later)
    """

    catalog_object_id: str | None
    quantity: Any

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineItem":
        """Accept both `catalog_object_id` and the `variation_id` alias."""
        return cls(
            catalog_object_id=_clean(data.get("catalog_object_id") or data.get("variation_id")),
            quantity=data.get("quantity"),
        )

    @property
    def quantity_value(self) -> int | None:
        """Quantity as a positive integer, or None when it is not one."""
        quantity = self.quantity
        if isinstance(quantity, bool):
            return None
        if isinstance(quantity, str) and quantity.strip().isdigit():
            quantity = int(quantity.strip())
        if isinstance(quantity, float) and quantity.is_integer():
            quantity = int(quantity)
        if isinstance(quantity, int) and quantity >= 1:
            return quantity
        return None

    def to_square(self) -> dict[str, Any]:
        """Provider line item; quantities travel as strings."""
        return {"catalog_object_id": self.catalog_object_id, "quantity": str(self.quantity_value or self.quantity)}


@dataclass
class PickupDetails:
    """Requested pickup slot as raw strings (date `YYYY-MM-DD`, time `HH:MM`)."""

    date: str | None = None
    time: str | None = None
    note: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "PickupDetails | None":
        if not data:
            return None
        return cls(date=_clean(data.get("date")), time=_clean(data.get("time")), note=_clean(data.get("note")))


@dataclass
class ShippingAddress:
    """
    Ship-to address in the provider's field naming.

    `locality` is the city and `administrative_district_level_1` the state.
    """

    REQUIRED_FIELDS = ("address_line_1", "locality", "administrative_district_level_1", "postal_code")

    address_line_1: str | None = None
    address_line_2: str | None = None
    locality: str | None = None
    administrative_district_level_1: str | None = None
    postal_code: str | None = None
    country: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ShippingAddress | None":
        if not data:
            return None
        return cls(
            address_line_1=_clean(data.get("address_line_1")),
            address_line_2=_clean(data.get("address_line_2")),
            locality=_clean(data.get("locality")),
            administrative_district_level_1=_clean(data.get("administrative_district_level_1")),
            postal_code=_clean(data.get("postal_code")),
            country=_clean(data.get("country")),
        )

    def missing_fields(self) -> list[str]:
        """Required fields that are blank."""
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]

    def to_square(self) -> dict[str, Any]:
        """Provider address object, without blank fields."""
        address = {
            "address_line_1": self.address_line_1,
            "address_line_2": self.address_line_2,
            "locality": self.locality,
            "administrative_district_level_1": self.administrative_district_level_1,
            "postal_code": self.postal_code,
            "country": self.country or "US",
        }
        return {key: value for key, value in address.items() if value}

    def to_profile_fields(self) -> dict[str, Any]:
        """Local user column names for the non-blank parts of this address."""
        fields = {
            "address_line_1": self.address_line_1,
            "address_line_2": self.address_line_2,
            "city": self.locality,
            "state": self.administrative_district_level_1,
            "postal_code": self.postal_code,
            "country": self.country,
        }
        return {key: value for key, value in fields.items() if value}


@dataclass
class CustomerInfo:
    """Buyer identity supplied at checkout."""

    email: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    phone_number: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "CustomerInfo | None":
        if not data:
            return None
        return cls(
            email=_clean(data.get("email") or data.get("email_address")),
            given_name=_clean(data.get("given_name")),
            family_name=_clean(data.get("family_name")),
            phone_number=_clean(data.get("phone_number") or data.get("phone")),
        )

    @property
    def display_name(self) -> str:
        """'Given Family', or the email when both name parts are blank."""
        name = f"{self.given_name or ''} {self.family_name or ''}".strip()
        return name or (self.email or "")

    def to_profile_fields(self) -> dict[str, Any]:
        """Local user column names for the non-blank identity fields."""
        fields = {
            "given_name": self.given_name,
            "family_name": self.family_name,
            "phone_number": self.phone_number,
        }
        return {key: value for key, value in fields.items() if value}


@dataclass
class OrderRequest:
    """
    Transient checkout request.

    Exactly one of `pickup_details` / `shipping_address` is used, chosen by
    `fulfillment_type`; the other is ignored.
    """

    line_items: list[LineItem] = field(default_factory=list)
    fulfillment_type: Any = None
    pickup_details: PickupDetails | None = None
    shipping_address: ShippingAddress | None = None
    customer_info: CustomerInfo | None = None
    payment_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderRequest":
        """Build a request from a decoded JSON body."""
        raw_items = data.get("line_items") or []
        return cls(
            line_items=[LineItem.from_dict(item) for item in raw_items if isinstance(item, dict)],
            fulfillment_type=data.get("fulfillment_type"),
            pickup_details=PickupDetails.from_dict(data.get("pickup_details")),
            shipping_address=ShippingAddress.from_dict(data.get("shipping_address")),
            customer_info=CustomerInfo.from_dict(data.get("customer_info")),
            payment_token=_clean(data.get("payment_token")),
        )

    @property
    def fulfillment(self) -> FulfillmentType | None:
        return FulfillmentType.parse(self.fulfillment_type)

    @property
    def is_shipment(self) -> bool:
        return self.fulfillment is FulfillmentType.SHIPMENT

    @property
    def customer_email(self) -> str | None:
        return self.customer_info.email if self.customer_info else None
