"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo registra los endpoints base (raíz, ping, health) y los
routers de la API bajo el prefijo `/api`.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.endpoints.catalog import router as catalog_router
from app.api.v1.endpoints.config import router as config_router
from app.api.v1.endpoints.customers import router as customers_router
from app.api.v1.endpoints.orders import router as orders_router
from app.core.config import get_settings
from app.core.health import get_health_status

settings = get_settings()
logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        """
        Endpoint raíz que proporciona información básica de la API.

        Returns:
            Dict con información de la API
        """
        return {
            "message": settings.APP_NAME,
            "description": "Checkout, pagos y catálogo sobre Square",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if (settings.DEBUG or settings.ENABLE_DOCS) else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "health": "/health",
                "orders": f"{API_PREFIX}/orders",
                "customers": f"{API_PREFIX}/customers",
                "products": f"{API_PREFIX}/products",
                "categories": f"{API_PREFIX}/categories",
                "config": f"{API_PREFIX}/config/square",
            },
        }

    @app.get("/ping", tags=["Root"], summary="Simple Ping")
    async def ping():
        """
        Endpoint simple para verificar que la API responde.

        Returns:
            Dict con pong y timestamp
        """
        return {"message": "pong", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints de health check.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check(request: Request):
        """
        Verifica la base de datos local y, si está configurado, Square.

        Returns:
            200 si la base de datos responde, 503 en otro caso
        """
        try:
            square_client = getattr(request.app.state, "square_client", None)
            health_status = await get_health_status(square_client=square_client)

            status_code = 200 if health_status["overall"] else 503

            return JSONResponse(
                status_code=status_code,
                content={
                    "status": "healthy" if health_status["overall"] else "unhealthy",
                    "version": settings.APP_VERSION,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "uptime": health_status.get("uptime"),
                    "services": health_status["services"],
                    "square_retries": health_status.get("square_retries"),
                    "environment": settings.ENVIRONMENT,
                },
            )

        except Exception as e:
            logger.error(f"Error en health check: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "error": str(e),
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "version": settings.APP_VERSION,
                },
            )


def configure_api_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la API.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de API...")

    app.include_router(
        orders_router,
        prefix=API_PREFIX,
        responses={
            422: {"description": "Validation or payment error"},
            500: {"description": "Payment provider unavailable"},
        },
    )
    logger.info("✅ Router de pedidos configurado")

    app.include_router(
        customers_router,
        prefix=API_PREFIX,
        responses={
            401: {"description": "Authentication required"},
            403: {"description": "Access forbidden"},
            404: {"description": "User not found"},
        },
    )
    logger.info("✅ Router de clientes configurado")

    app.include_router(
        catalog_router,
        prefix=API_PREFIX,
        responses={
            400: {"description": "Catalog provider error"},
            404: {"description": "Catalog object not found"},
        },
    )
    logger.info("✅ Router de catálogo configurado")

    app.include_router(config_router, prefix=API_PREFIX)
    logger.info("✅ Router de configuración configurado")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    configure_api_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")
