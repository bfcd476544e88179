"""
CheckoutOrchestrator - Main coordinator (SOLID compliant).

This orchestrator follows:
- SRP: Only coordinates the checkout flow
- OCP: Open for extension via new services
- LSP: Works with any implementations of service interfaces
- ISP: Uses specific service interfaces
- DIP: Depends on abstractions (interfaces), not concrete implementations
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.core.logging_config import log_checkout_transition
from app.db.models import User
from app.domain.models import OrderRequest
from app.services.orders.converters import OrderConverter
from app.services.orders.interfaces import (
    ICommerceGateway,
    ICustomerResolver,
    IFulfillmentValidator,
    INotificationSender,
    IProfileSynchronizer,
    IUserStore,
)
from app.services.orders.managers import OrderCalculator, ProfileSynchronizer
from app.services.orders.resolvers import CustomerResolver
from app.services.orders.validators import FulfillmentValidator
from app.utils.error_handler import ErrorCode, OrderProcessingException, SquareAPIException

logger = logging.getLogger(__name__)


class CheckoutState(str, Enum):
    """Checkout states, in the order they are entered."""

    VALIDATING = "validating"
    RESOLVING_CUSTOMER = "resolving_customer"
    BUILDING_ORDER = "building_order"
    CAPTURING_PAYMENT = "capturing_payment"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CheckoutContext:
    """
    State of one checkout flow. Never shared between requests.
    """

    request: OrderRequest
    user: User | None = None
    flow_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: CheckoutState = CheckoutState.VALIDATING
    customer: dict[str, Any] | None = None
    order: dict[str, Any] | None = None
    payment: dict[str, Any] | None = None
    failure_reason: str | None = None

    def advance(self, state: CheckoutState) -> None:
        log_checkout_transition(self.flow_id, self.state.value, state.value)
        self.state = state

    def fail(self, reason: str) -> None:
        self.failure_reason = reason
        log_checkout_transition(self.flow_id, self.state.value, CheckoutState.FAILED.value, reason=reason)
        self.state = CheckoutState.FAILED

    @property
    def customer_id(self) -> str | None:
        return (self.customer or {}).get("id")

    @property
    def order_id(self) -> str | None:
        return (self.order or {}).get("id")


class CheckoutOrchestrator:
    """
    Orchestrates checkout: validate, resolve customer, create order,
    capture payment, notify.

    This class coordinates all services following the SOLID principles.
    Each service has a single responsibility and is injected via constructor.
    """

    def __init__(
        self,
        gateway: ICommerceGateway,
        validator: IFulfillmentValidator,
        converter: OrderConverter,
        customer_resolver: ICustomerResolver,
        profile_synchronizer: IProfileSynchronizer,
        notifier: INotificationSender,
    ):
        """
        Initialize orchestrator with service dependencies (DIP).

        Args:
            gateway: Commerce gateway for order and payment calls
            validator: Service for checkout validation
            converter: Service for request → remote order conversion
            customer_resolver: Service for customer find-or-create
            profile_synchronizer: Service for local profile and remote address updates
            notifier: Confirmation email sender
        """
        self.gateway = gateway
        self.validator = validator
        self.converter = converter
        self.customer_resolver = customer_resolver
        self.profile_synchronizer = profile_synchronizer
        self.notifier = notifier

    async def create_order(self, request: OrderRequest, user: User | None = None) -> dict[str, Any]:
        """
        Run a checkout from validation to confirmation.

        This method orchestrates the complete flow:
        1. Validate request (no remote calls before this passes)
        2. Resolve the remote customer and synchronize the local profile
        3. Create the order with exactly one fulfillment
        4. Capture the payment for the order total
        5. Send the confirmation email (result never changes the outcome)

        Args:
            request: Checkout request
            user: Authenticated user, None for anonymous checkout

        Returns:
            dict: {"order", "payment", "customer"}

        Raises:
            ValidationException: If the request breaks a business rule
            SquareAPIException: If customer resolution fails, or on transport failures
            OrderProcessingException: If the order or payment is rejected
        """
        ctx = CheckoutContext(request=request, user=user)

        try:
            # Step 1: Validate
            self.validator.validate(request)
            pickup_at = None
            if not request.is_shipment:
                pickup_at = self.validator.pickup_datetime(request.pickup_details)

            # Step 2: Resolve customer
            ctx.advance(CheckoutState.RESOLVING_CUSTOMER)
            ctx.customer = await self.customer_resolver.resolve(request.customer_info)
            ctx.user = await self.profile_synchronizer.sync(user, ctx.customer_id, request)

            # Step 3: Create order
            ctx.advance(CheckoutState.BUILDING_ORDER)
            fulfillment = self.converter.build_fulfillment(request, pickup_at)
            ctx.order = await self._create_remote_order(ctx, [fulfillment.to_square()])

            # Step 4: Capture payment
            ctx.advance(CheckoutState.CAPTURING_PAYMENT)
            ctx.payment = await self._capture_payment(ctx)

        except Exception as e:
            ctx.fail(str(e))
            raise

        # Step 5: Notify
        ctx.advance(CheckoutState.NOTIFYING)
        await self._notify(ctx)

        ctx.advance(CheckoutState.DONE)
        logger.info(
            f"✅ Checkout completed: order {ctx.order_id}, payment {ctx.payment.get('id')}, "
            f"customer {ctx.customer_id}"
        )
        return {"order": ctx.order, "payment": ctx.payment, "customer": ctx.customer}

    async def _create_remote_order(self, ctx: CheckoutContext, fulfillments: list[dict[str, Any]]) -> dict[str, Any]:
        try:
            order = await self.gateway.create_order(
                line_items=self.converter.line_items_to_square(ctx.request.line_items),
                customer_id=ctx.customer_id,
                fulfillments=fulfillments,
            )
        except SquareAPIException as e:
            if e.is_transport_error:
                raise
            raise OrderProcessingException(
                message="Failed to create order", error_code=ErrorCode.ORDER_CREATION_FAILED, errors=e.errors
            ) from e

        if not order:
            raise OrderProcessingException(message="Failed to create order", error_code=ErrorCode.ORDER_CREATION_FAILED)
        return order

    async def _capture_payment(self, ctx: CheckoutContext) -> dict[str, Any]:
        total = self.converter.order_total(ctx.order)
        try:
            payment = await self.gateway.create_payment(
                source_id=ctx.request.payment_token,
                amount_money=total.to_square(),
                order_id=ctx.order_id,
                customer_id=ctx.customer_id,
            )
        except SquareAPIException as e:
            # The remote order already exists and is not cancelled
            logger.warning(f"⚠️ Payment failed for order {ctx.order_id}; the unpaid order is left in place")
            if e.is_transport_error:
                raise
            raise OrderProcessingException(
                message="Payment failed",
                error_code=ErrorCode.PAYMENT_FAILED,
                errors=e.errors,
                order_id=ctx.order_id,
            ) from e

        if not payment:
            logger.warning(f"⚠️ No payment returned for order {ctx.order_id}; the unpaid order is left in place")
            raise OrderProcessingException(
                message="Payment failed", error_code=ErrorCode.PAYMENT_FAILED, order_id=ctx.order_id
            )
        return payment

    async def _notify(self, ctx: CheckoutContext) -> None:
        try:
            sent = await self.notifier.send_order_confirmation(
                order=ctx.order,
                payment=ctx.payment,
                customer=ctx.customer,
                fulfillment_type=ctx.request.fulfillment.value,
            )
        except Exception as e:
            logger.error(f"Confirmation email raised for order {ctx.order_id}: {e}")
            return

        if sent:
            logger.info(f"Confirmation email sent for order {ctx.order_id}")
        else:
            logger.warning(f"Confirmation email not sent for order {ctx.order_id}")


# Factory functions to create services with all dependencies
def create_orchestrator(
    gateway: ICommerceGateway,
    user_repository: IUserStore,
    notifier: INotificationSender,
    validator: IFulfillmentValidator | None = None,
) -> CheckoutOrchestrator:
    """
    Factory function to create a fully initialized orchestrator.

    This function encapsulates dependency creation and injection following DIP.

    Args:
        gateway: Commerce gateway (Square client)
        user_repository: Local user store
        notifier: Confirmation email sender
        validator: Validator override (defaults to configured business hours)

    Returns:
        CheckoutOrchestrator: Fully configured orchestrator
    """
    return CheckoutOrchestrator(
        gateway=gateway,
        validator=validator or FulfillmentValidator(),
        converter=OrderConverter(),
        customer_resolver=CustomerResolver(gateway=gateway),
        profile_synchronizer=ProfileSynchronizer(user_repository=user_repository, gateway=gateway),
        notifier=notifier,
    )


def create_calculator(gateway: ICommerceGateway, validator: IFulfillmentValidator | None = None) -> OrderCalculator:
    """Factory function for the read-only order calculator."""
    return OrderCalculator(gateway=gateway, validator=validator or FulfillmentValidator(), converter=OrderConverter())
