"""
FastAPI dependencies shared by the v1 routers.

Shared clients live on `app.state` (opened by the lifespan); tests replace
any of these through `app.dependency_overrides`.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from app.core.security import decode_access_token, extract_bearer_token
from app.db.models import User
from app.db.square_clients import SquareClient
from app.db.user_repository import UserRepository
from app.services.customers import CustomerProfileService
from app.services.notifications import SendGridNotifier
from app.services.orders import CheckoutOrchestrator, create_calculator, create_orchestrator
from app.services.orders.managers import OrderCalculator
from app.utils.error_handler import AuthenticationException

logger = logging.getLogger(__name__)


def get_square_client(request: Request) -> SquareClient:
    """Shared Square client; created lazily when the lifespan did not run."""
    client = getattr(request.app.state, "square_client", None)
    if client is None:
        client = SquareClient()
        request.app.state.square_client = client
    return client


def get_notifier(request: Request) -> SendGridNotifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = SendGridNotifier()
        request.app.state.notifier = notifier
    return notifier


def get_user_repository() -> UserRepository:
    return UserRepository()


async def get_optional_current_user(
    authorization: Optional[str] = Header(default=None),
    user_repository: UserRepository = Depends(get_user_repository),
) -> Optional[User]:
    """
    Caller identified by a bearer token, or None when no token is sent.

    Raises:
        AuthenticationException: If a token is sent but is invalid or its user is gone
    """
    token = extract_bearer_token(authorization)
    if token is None:
        return None

    payload = decode_access_token(token)
    user = await user_repository.get_by_id(payload["user_id"])
    if user is None:
        logger.debug(f"User {payload['user_id']} from token not found")
        raise AuthenticationException("Unauthorized - User not found")
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_current_user)) -> User:
    """Authenticated caller; 401 when anonymous."""
    if user is None:
        raise AuthenticationException("Unauthorized")
    return user


def get_orchestrator(
    gateway: SquareClient = Depends(get_square_client),
    user_repository: UserRepository = Depends(get_user_repository),
    notifier: SendGridNotifier = Depends(get_notifier),
) -> CheckoutOrchestrator:
    return create_orchestrator(gateway=gateway, user_repository=user_repository, notifier=notifier)


def get_order_calculator(gateway: SquareClient = Depends(get_square_client)) -> OrderCalculator:
    return create_calculator(gateway=gateway)


def get_profile_service(
    gateway: SquareClient = Depends(get_square_client),
    user_repository: UserRepository = Depends(get_user_repository),
) -> CustomerProfileService:
    return CustomerProfileService(gateway=gateway, user_repository=user_repository)
