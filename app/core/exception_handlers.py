"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Este módulo define todos los manejadores de excepciones personalizados y globales,
proporcionando respuestas consistentes y logging apropiado para diferentes tipos de errores.
Todas las respuestas de error llevan la clave `error` con un mensaje legible.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.utils.error_handler import (
    AppException,
    OrderProcessingException,
    SquareAPIException,
    ValidationException,
    create_error_response,
)

settings = get_settings()
logger = logging.getLogger(__name__)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _error_content(request: Request, body: Dict[str, Any]) -> Dict[str, Any]:
    """Agrega el contexto de la request al cuerpo de error."""
    return {
        **body,
        "path": str(request.url.path),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": _request_id(request),
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para excepciones personalizadas de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"App Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"URL: {request.url} - "
        f"Details: {exc.details}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, create_error_response(exc)),
    )


async def validation_exception_handler(request: Request, exc: ValidationException) -> JSONResponse:
    """
    Manejador para errores de validación de datos.

    Args:
        request: Request de FastAPI
        exc: Excepción de validación

    Returns:
        JSONResponse: Respuesta JSON con el campo inválido
    """
    logger.warning(
        f"Validation Exception: {exc.message} - "
        f"Field: {exc.field} - "
        f"Value: {exc.invalid_value} - "
        f"URL: {request.url}"
    )

    return JSONResponse(status_code=422, content=_error_content(request, create_error_response(exc)))


async def square_api_exception_handler(request: Request, exc: SquareAPIException) -> JSONResponse:
    """
    Manejador específico para errores de la API de Square.

    Los errores de transporte se responden con 500 y un mensaje genérico;
    los errores de negocio con 422 y los detalles de Square.

    Args:
        request: Request de FastAPI
        exc: Excepción de Square API

    Returns:
        JSONResponse: Respuesta JSON con información del error de Square
    """
    logger.error(
        f"Square API Exception: {exc.message} - "
        f"API Code: {exc.api_response_code} - "
        f"Transport: {exc.is_transport_error} - "
        f"Endpoint: {exc.endpoint} - "
        f"URL: {request.url}"
    )

    return JSONResponse(status_code=exc.status_code, content=_error_content(request, create_error_response(exc)))


async def order_processing_exception_handler(request: Request, exc: OrderProcessingException) -> JSONResponse:
    """
    Manejador para fallos de checkout (pedido o pago rechazado).

    Nunca expone el pedido creado aunque exista en Square.
    """
    logger.error(
        f"Order Processing Exception: {exc.message} - "
        f"Code: {exc.error_code.value} - "
        f"Order: {exc.order_id} - "
        f"URL: {request.url}"
    )

    return JSONResponse(status_code=exc.status_code, content=_error_content(request, create_error_response(exc)))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Manejador para cuerpos de request que no cumplen el esquema.

    Args:
        request: Request de FastAPI
        exc: Error de validación de FastAPI

    Returns:
        JSONResponse: 422 con el primer error en `error`
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {location} {first.get('msg', '')}".strip() if first else "Invalid request"

    logger.warning(f"Request Validation Error: {message} - URL: {request.url}")

    return JSONResponse(
        status_code=422,
        content=_error_content(request, {"error": message, "error_code": "VALIDATION_ERROR"}),
    )


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de Starlette y FastAPI.

    Args:
        request: Request de FastAPI
        exc: StarletteHTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, {"error": exc.detail, "error_code": f"HTTP_{exc.status_code}"}),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    # Log completo del error con traceback
    logger.error(
        f"Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url} - "
        f"Traceback: {traceback.format_exc()}"
    )

    # Respuesta genérica (sin exponer detalles internos)
    return JSONResponse(
        status_code=500,
        content=_error_content(request, create_error_response(exc, include_traceback=settings.DEBUG)),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(ValidationException, validation_exception_handler)
    app.add_exception_handler(SquareAPIException, square_api_exception_handler)
    app.add_exception_handler(OrderProcessingException, order_processing_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    # Manejadores HTTP estándar
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")
