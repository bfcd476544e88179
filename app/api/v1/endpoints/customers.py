"""
Endpoints de perfil de cliente.

`{customer_id}` es el id de cliente de Square del usuario, o `me` para el
usuario autenticado. Solo un admin o el propio usuario pueden acceder.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.v1.dependencies import get_current_user, get_profile_service, get_user_repository
from app.api.v1.schemas.customer_schemas import CustomerUpdateRequest
from app.db.models import User
from app.db.user_repository import UserRepository
from app.services.customers import CustomerProfileService
from app.utils.error_handler import AuthorizationException, NotFoundException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


async def get_target_user(
    customer_id: str,
    current_user: User = Depends(get_current_user),
    user_repository: UserRepository = Depends(get_user_repository),
) -> User:
    """
    Resuelve el usuario objetivo y verifica el acceso.

    Raises:
        NotFoundException: Si ningún usuario está vinculado a ese cliente
        AuthorizationException: Si el usuario autenticado no es admin ni el dueño
    """
    if customer_id == "me":
        return current_user

    user = await user_repository.get_by_square_customer_id(customer_id)
    if user is None:
        raise NotFoundException("User not found", resource="user")

    if not (current_user.admin or current_user.id == user.id):
        logger.warning(f"🚫 User {current_user.id} denied access to customer {customer_id}")
        raise AuthorizationException()
    return user


@router.get("/{customer_id}", summary="Get customer profile")
async def get_customer(
    user: User = Depends(get_target_user),
    profile_service: CustomerProfileService = Depends(get_profile_service),
) -> Dict[str, Any]:
    """
    Perfil del cliente.

    Con vínculo a Square devuelve el cliente remoto con `local_user_id`;
    sin vínculo (o si Square falla) devuelve el usuario local en el mismo
    formato con `has_square_customer: false`.
    """
    return await profile_service.get_profile(user)


@router.patch("/{customer_id}", summary="Update customer profile")
async def update_customer(
    body: CustomerUpdateRequest,
    user: User = Depends(get_target_user),
    profile_service: CustomerProfileService = Depends(get_profile_service),
) -> Dict[str, Any]:
    """
    Actualiza los campos enviados en local y en Square.

    Un usuario sin vínculo queda vinculado al cliente encontrado o creado
    por su email.
    """
    return await profile_service.update_profile(user, body.local_fields(), body.square_attributes())


@router.get("/{customer_id}/orders", summary="List customer orders")
async def list_customer_orders(
    user: User = Depends(get_target_user),
    profile_service: CustomerProfileService = Depends(get_profile_service),
) -> Dict[str, Any]:
    """Pedidos abiertos y completados, del más reciente al más antiguo."""
    orders = await profile_service.list_orders(user)
    return {"orders": orders}


@router.get("/{customer_id}/cards", summary="List saved cards")
async def list_customer_cards(
    user: User = Depends(get_target_user),
    profile_service: CustomerProfileService = Depends(get_profile_service),
) -> Dict[str, Any]:
    """Tarjetas guardadas en Square; lista vacía si el usuario no tiene vínculo."""
    cards = await profile_service.list_cards(user)
    return {"cards": cards}


@router.delete("/{customer_id}/cards/{card_id}", summary="Remove a saved card")
async def delete_customer_card(
    card_id: str,
    user: User = Depends(get_target_user),
    profile_service: CustomerProfileService = Depends(get_profile_service),
) -> Dict[str, Any]:
    """
    Deshabilita una tarjeta guardada del cliente.

    Returns:
        Dict: {"message": "Card deleted successfully"}

    Raises:
        ValidationException: Si card_id está vacío (422)
        NotFoundException: Sin cliente de Square o tarjeta ajena (404)
        SquareAPIException: Si Square rechaza la operación (422 con details)
    """
    await profile_service.remove_card(user, card_id)
    return {"message": "Card deleted successfully"}
