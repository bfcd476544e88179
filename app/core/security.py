"""
Verificación de tokens JWT de acceso.

Los tokens los emite otro servicio; aquí solo se decodifican (HS256 con
SECRET_KEY) y se extrae `user_id`.
"""

import logging
from typing import Any, Dict, Optional

import jwt

from app.core.config import get_settings
from app.utils.error_handler import AuthenticationException

settings = get_settings()
logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extrae el token del header Authorization.

    Acepta "Bearer <token>" y también el token solo, tomando siempre el
    último segmento.

    Args:
        authorization: Valor del header

    Returns:
        Optional[str]: Token o None si no hay header
    """
    if not authorization or not authorization.strip():
        return None
    return authorization.split(" ")[-1].strip() or None


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida un token de acceso.

    Args:
        token: JWT firmado

    Returns:
        Dict: Payload con al menos `user_id`

    Raises:
        AuthenticationException: Si el token expiró, es inválido o no trae user_id
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        logger.debug(f"JWT token has expired: {e}")
        raise AuthenticationException() from e
    except jwt.InvalidTokenError as e:
        logger.debug(f"JWT decode error: {e}")
        raise AuthenticationException() from e

    if payload.get("user_id") is None:
        raise AuthenticationException("Unauthorized - Invalid token")
    try:
        payload["user_id"] = int(payload["user_id"])
    except (TypeError, ValueError) as e:
        raise AuthenticationException("Unauthorized - Invalid token") from e
    return payload
