"""
FulfillmentValidator service for validating checkout requests before any
remote call is made.

This service follows SRP (Single Responsibility Principle) by focusing only on
validation logic for checkout and calculation requests.
"""

import logging
from datetime import date, datetime, time
from typing import Callable

import pytz

from app.core.config import get_settings
from app.domain.models import FulfillmentType, LineItem, OrderRequest, PickupDetails, ShippingAddress
from app.utils.error_handler import ValidationException

logger = logging.getLogger(__name__)
settings = get_settings()

PICKUP_DATE_FORMAT = "%Y-%m-%d"
PICKUP_TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p")


def _format_hour(hour: int) -> str:
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:00 {suffix}"


class FulfillmentValidator:
    """
    Validates checkout requests against business rules.

    Responsibilities:
    - Validate required top-level fields
    - Validate line items
    - Validate fulfillment type
    - Validate shipping address for shipments
    - Validate pickup date and time for pickups
    """

    def __init__(
        self,
        timezone: str | None = None,
        open_hour: int | None = None,
        close_hour: int | None = None,
        today_provider: Callable[[], date] | None = None,
    ):
        """
        Initialize validator with business hours configuration.

        Args:
            timezone: Business timezone name. Defaults to BUSINESS_TIMEZONE
            open_hour: First hour a pickup may start. Defaults to PICKUP_OPEN_HOUR
            close_hour: Hour pickups close (exclusive). Defaults to PICKUP_CLOSE_HOUR
            today_provider: Returns the business "today"; injectable for tests
        """
        self.timezone = pytz.timezone(timezone or settings.BUSINESS_TIMEZONE)
        self.open_hour = settings.PICKUP_OPEN_HOUR if open_hour is None else open_hour
        self.close_hour = settings.PICKUP_CLOSE_HOUR if close_hour is None else close_hour
        self._today_provider = today_provider

    def today(self) -> date:
        """Current date in the business timezone."""
        if self._today_provider is not None:
            return self._today_provider()
        return datetime.now(self.timezone).date()

    def validate(self, request: OrderRequest) -> OrderRequest:
        """
        Validates a checkout request and returns it unchanged.

        Args:
            request: Checkout request

        Returns:
            OrderRequest: The same request if valid

        Raises:
            ValidationException: On the first rule that fails
        """
        self._validate_required_fields(request)
        self._validate_line_items(request.line_items)
        self._validate_customer(request)
        self._validate_fulfillment(request)

        logger.info(f"Checkout validation passed for {request.customer_email} ({request.fulfillment.value})")
        return request

    def validate_calculation(self, request: OrderRequest) -> OrderRequest:
        """
        Validates a calculation request. The fulfillment type is optional here,
        but an unknown value is still rejected.
        """
        if not request.line_items:
            raise ValidationException(message="Line items are required", field="line_items")
        self._validate_line_items(request.line_items)

        if request.fulfillment_type is not None and request.fulfillment is None:
            raise ValidationException(
                message="Invalid fulfillment type",
                field="fulfillment_type",
                invalid_value=request.fulfillment_type,
                expected_format="PICKUP | SHIPMENT",
            )
        return request

    def pickup_datetime(self, details: PickupDetails) -> datetime:
        """
        Localized pickup timestamp for already validated pickup details.

        Returns:
            datetime: Aware datetime in the business timezone
        """
        pickup_date = self._parse_date(details.date)
        pickup_time = self._parse_time(details.time)
        return self.timezone.localize(datetime.combine(pickup_date, pickup_time))

    def _validate_required_fields(self, request: OrderRequest) -> None:
        """Validate presence of line items, payment token and customer info."""
        missing = [
            name
            for name, value in (
                ("line_items", request.line_items),
                ("payment_token", request.payment_token),
                ("customer_info", request.customer_info),
            )
            if not value
        ]
        if missing:
            raise ValidationException(
                message="Line items, payment token, and customer info are required", field=missing[0]
            )

    def _validate_line_items(self, line_items: list[LineItem]) -> None:
        for index, item in enumerate(line_items):
            if not item.catalog_object_id:
                raise ValidationException(
                    message="Each line item requires a catalog_object_id",
                    field=f"line_items[{index}].catalog_object_id",
                )
            if item.quantity_value is None:
                raise ValidationException(
                    message="Line item quantity must be a positive integer",
                    field=f"line_items[{index}].quantity",
                    invalid_value=item.quantity,
                    expected_format="integer >= 1",
                )

    def _validate_customer(self, request: OrderRequest) -> None:
        if not request.customer_email:
            raise ValidationException(message="Customer email is required", field="customer_info.email")

    def _validate_fulfillment(self, request: OrderRequest) -> None:
        fulfillment = request.fulfillment
        if fulfillment is None:
            raise ValidationException(
                message="Invalid fulfillment type",
                field="fulfillment_type",
                invalid_value=request.fulfillment_type,
                expected_format="PICKUP | SHIPMENT",
            )

        if fulfillment is FulfillmentType.SHIPMENT:
            self._validate_shipping_address(request)
        else:
            self._validate_pickup(request.pickup_details)

    def _validate_shipping_address(self, request: OrderRequest) -> None:
        address = request.shipping_address
        missing = address.missing_fields() if address else list(ShippingAddress.REQUIRED_FIELDS)
        if missing:
            raise ValidationException(
                message=f"Shipping address is required for shipment orders (missing: {', '.join(missing)})",
                field="shipping_address",
                expected_format="address_line_1, locality, administrative_district_level_1, postal_code",
            )

    def _validate_pickup(self, details: PickupDetails | None) -> None:
        if details is None or not details.date or not details.time:
            raise ValidationException(
                message="Pickup date and time are required for pickup orders", field="pickup_details"
            )

        pickup_date = self._parse_date(details.date)
        if pickup_date < self.today():
            raise ValidationException(
                message="Pickup date cannot be in the past", field="pickup_details.date", invalid_value=details.date
            )
        # Monday = 0 ... Saturday = 5, Sunday = 6
        if pickup_date.weekday() >= 5:
            raise ValidationException(
                message="Pickup not available on weekends", field="pickup_details.date", invalid_value=details.date
            )

        pickup_time = self._parse_time(details.time)
        if not self.open_hour <= pickup_time.hour < self.close_hour:
            raise ValidationException(
                message=(
                    f"Pickup time must be between {_format_hour(self.open_hour)} "
                    f"and {_format_hour(self.close_hour)}"
                ),
                field="pickup_details.time",
                invalid_value=details.time,
            )

    @staticmethod
    def _parse_date(value: str | None) -> date:
        try:
            return datetime.strptime(value or "", PICKUP_DATE_FORMAT).date()
        except ValueError as e:
            raise ValidationException(
                message="Invalid pickup date format",
                field="pickup_details.date",
                invalid_value=value,
                expected_format="YYYY-MM-DD",
            ) from e

    @staticmethod
    def _parse_time(value: str | None) -> time:
        for fmt in PICKUP_TIME_FORMATS:
            try:
                return datetime.strptime((value or "").strip(), fmt).time()
            except ValueError:
                continue
        raise ValidationException(
            message="Invalid pickup time format",
            field="pickup_details.time",
            invalid_value=value,
            expected_format="HH:MM",
        )
