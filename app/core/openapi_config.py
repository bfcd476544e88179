"""
Configuración personalizada de OpenAPI/Swagger para la aplicación FastAPI.

Agrega al esquema generado los tags del API, el esquema de seguridad
Bearer (JWT) y las respuestas de error comunes.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def get_custom_openapi_schema(app: FastAPI) -> Dict[str, Any]:
    """
    Genera esquema OpenAPI personalizado con información adicional.

    Args:
        app: Instancia de FastAPI

    Returns:
        Dict: Esquema OpenAPI personalizado
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema["tags"] = get_custom_tags()

    # Se combinan con los esquemas generados por los modelos Pydantic
    components = openapi_schema.setdefault("components", {})
    components.setdefault("securitySchemes", {}).update(get_security_schemes())
    components.setdefault("schemas", {}).update(get_custom_schemas())
    components.setdefault("responses", {}).update(get_common_responses())

    openapi_schema["x-app-info"] = {
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "features": {
            "square_environment": settings.SQUARE_ENVIRONMENT,
            "email_notifications": bool(settings.SENDGRID_API_KEY),
        },
    }

    app.openapi_schema = openapi_schema
    return openapi_schema


def get_custom_tags() -> list:
    """
    Define tags personalizados para organizar los endpoints.

    Returns:
        List: Lista de tags con descripciones
    """
    return [
        {"name": "Root", "description": "Endpoints básicos de información y estado"},
        {"name": "Health", "description": "Salud de la base de datos y de Square"},
        {"name": "Orders", "description": "Cálculo de totales y checkout con pago"},
        {"name": "Customers", "description": "Perfil del cliente y su historial de pedidos"},
        {"name": "Catalog", "description": "Productos y categorías del catálogo de Square"},
        {"name": "Config", "description": "Configuración pública para el cliente web"},
    ]


def get_security_schemes() -> Dict[str, Any]:
    return {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Token JWT con `user_id`; opcional en checkout",
        },
    }


def get_custom_schemas() -> Dict[str, Any]:
    """
    Esquemas de error reutilizables.

    Returns:
        Dict: Esquemas personalizados
    """
    return {
        "ErrorResponse": {
            "type": "object",
            "required": ["error"],
            "properties": {
                "error": {"type": "string", "description": "Mensaje legible"},
                "error_code": {"type": "string"},
                "field": {"type": "string", "description": "Campo inválido (validación)"},
                "details": {"type": "array", "items": {"type": "object"}, "description": "Errores de Square"},
                "path": {"type": "string"},
                "timestamp": {"type": "string", "format": "date-time"},
                "request_id": {"type": "string"},
            },
        },
    }


def get_common_responses() -> Dict[str, Any]:
    """
    Define respuestas comunes reutilizables.

    Returns:
        Dict: Respuestas comunes
    """

    def _response(description: str, example: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "description": description,
            "content": {
                "application/json": {
                    "schema": {"$ref": "#/components/schemas/ErrorResponse"},
                    "example": example,
                }
            },
        }

    return {
        "Unauthorized": _response("No autorizado", {"error": "Unauthorized", "error_code": "AUTHENTICATION_FAILED"}),
        "Forbidden": _response("Acceso denegado", {"error": "Forbidden", "error_code": "FORBIDDEN"}),
        "ValidationFailed": _response(
            "Solicitud inválida",
            {"error": "Pickup not available on weekends", "field": "pickup_details.date"},
        ),
        "ProviderUnavailable": _response(
            "Square no disponible", {"error": "Payment provider unavailable", "error_code": "SQUARE_CONNECTION_FAILED"}
        ),
    }


def configure_openapi(app: FastAPI) -> None:
    """
    Configura OpenAPI personalizado para la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando documentación OpenAPI...")

    def custom_openapi():
        return get_custom_openapi_schema(app)

    if settings.DEBUG or settings.ENABLE_DOCS:
        app.openapi = custom_openapi
        logger.info("✅ Documentación OpenAPI configurada y habilitada")
    else:
        logger.info("🔒 Documentación OpenAPI deshabilitada (producción)")
