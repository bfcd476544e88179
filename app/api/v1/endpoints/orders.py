"""
Checkout and order calculation endpoints.

Errors are not caught here: validation, gateway and order processing
exceptions are turned into responses by the handlers in
`app.core.exception_handlers`.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status

from app.api.v1.dependencies import get_optional_current_user, get_order_calculator, get_orchestrator
from app.api.v1.schemas.order_schemas import (
    CalculateOrderRequest,
    CalculateOrderResponse,
    CreateOrderRequest,
    CreateOrderResponse,
)
from app.db.models import User
from app.domain.models.order_request import OrderRequest
from app.services.orders import CheckoutOrchestrator
from app.services.orders.managers import OrderCalculator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/calculate", response_model=CalculateOrderResponse, summary="Preview order totals")
async def calculate_order(
    body: CalculateOrderRequest,
    calculator: OrderCalculator = Depends(get_order_calculator),
) -> Dict[str, Any]:
    """
    Price a cart without creating anything.

    Pickup orders always report `shipping = 0`.
    """
    order_request = OrderRequest.from_dict(body.to_domain_dict())
    return await calculator.calculate(order_request)


@router.post(
    "",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create and pay an order",
)
async def create_order(
    body: CreateOrderRequest,
    user: Optional[User] = Depends(get_optional_current_user),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """
    Full checkout: validate, resolve the customer, create the order, capture
    the payment and send the confirmation email.

    A bearer token is optional; with one, the caller's local profile is
    updated and linked to the resolved customer.
    """
    order_request = OrderRequest.from_dict(body.to_domain_dict())
    if user is not None:
        logger.info(f"🛒 Checkout for user {user.id}")
    return await orchestrator.create_order(order_request, user)
