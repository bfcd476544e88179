"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown de la aplicación,
incluyendo inicialización de servicios, verificación de conexiones y limpieza.

Los clientes compartidos quedan en `app.state`:
- square_client: SquareClient con su sesión aiohttp
- notifier: SendGridNotifier con su propia sesión
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict

import aiohttp
from fastapi import FastAPI

from app.core.config import get_settings, validate_required_settings
from app.core.logging_config import setup_logging
from app.db.connection import get_db_connection
from app.db.square_clients import SquareClient
from app.services.notifications import SendGridNotifier

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.
    Maneja eventos de startup y shutdown de manera ordenada.

    Args:
        app: Instancia de FastAPI
    """
    # === STARTUP ===
    logger.info(f"🚀 Iniciando {settings.APP_NAME}...")

    try:
        # 1. Configurar logging
        await startup_configure_logging()

        # 2. Verificar configuración
        await startup_verify_configuration()

        # 3. Inicializar base de datos local
        await startup_initialize_database()

        # 4. Inicializar clientes externos
        await startup_initialize_services(app)

        # 5. Verificaciones finales
        await startup_final_checks(app)

        logger.info(f"🎉 Aplicación iniciada correctamente: {get_startup_info()['services']}")

    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await cleanup_on_startup_failure(app)
        sys.exit(1)

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")

    try:
        # 1. Cerrar clientes externos
        await shutdown_cleanup_services(app)

        # 2. Cerrar base de datos
        await shutdown_close_connections()

        # 3. Finalizar logging
        await shutdown_finalize_logging()

        logger.info("👋 Aplicación cerrada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el shutdown: {e}")


# === FUNCIONES DE STARTUP ===


async def startup_configure_logging():
    """Configura el sistema de logging."""
    try:
        setup_logging()
        logger.info("✅ Sistema de logging configurado")
    except Exception as e:
        print(f"Error configurando logging: {e}")
        raise


async def startup_verify_configuration():
    """
    Verifica que la configuración sea válida.

    En producción la falta de credenciales de Square detiene el arranque;
    en otros entornos solo se advierte.
    """
    try:
        validate_required_settings()
        logger.info("✅ Configuración verificada")
    except ValueError as e:
        if settings.is_production:
            logger.error(f"Error en configuración: {e}")
            raise
        logger.warning(f"⚠️ {e} (no crítico fuera de producción)")

    if not settings.SENDGRID_API_KEY:
        logger.warning("⚠️ SENDGRID_API_KEY no configurada - no se enviarán correos de confirmación")


async def startup_initialize_database():
    """Inicializa la base de datos local de usuarios."""
    try:
        conn_db = get_db_connection()
        if not conn_db.is_initialized():
            await conn_db.initialize()

        health_info = await conn_db.health_check()
        logger.info(f"✅ Base de datos inicializada ({health_info['response_time_ms']}ms)")

    except Exception as e:
        logger.error(f"Error inicializando base de datos: {e}")
        raise


async def startup_initialize_services(app: FastAPI):
    """Inicializa clientes HTTP compartidos."""
    try:
        square_client = SquareClient()
        await square_client.initialize()
        app.state.square_client = square_client
        logger.info(f"✅ Cliente Square inicializado ({settings.SQUARE_ENVIRONMENT})")

        app.state.notifier = SendGridNotifier(settings=settings, session=aiohttp.ClientSession())
        logger.info("✅ Notificador SendGrid inicializado")

        logger.info("✅ Servicios asíncronos inicializados")

    except Exception as e:
        logger.error(f"Error inicializando servicios: {e}")
        raise


async def startup_final_checks(app: FastAPI):
    """Ejecuta verificaciones finales antes de completar el startup."""
    try:
        if settings.SQUARE_ACCESS_TOKEN and settings.SQUARE_LOCATION_ID:
            if await app.state.square_client.test_connection():
                logger.info("✅ Conexión a Square verificada")
            else:
                logger.warning("⚠️ Conexión a Square falló (no crítico en startup)")

        logger.info("🔧 Configuración activa:")
        logger.info(f"   - Entorno: {settings.ENVIRONMENT}")
        logger.info(f"   - Debug: {settings.DEBUG}")
        logger.info(f"   - Square: {settings.SQUARE_ENVIRONMENT}")
        logger.info(f"   - Zona horaria: {settings.BUSINESS_TIMEZONE}")

    except Exception as e:
        logger.warning(f"⚠️ Error en verificaciones finales: {e}")


async def cleanup_on_startup_failure(app: FastAPI):
    """Limpia recursos en caso de fallo durante startup."""
    try:
        logger.info("🧹 Limpiando recursos tras fallo en startup...")
        await shutdown_cleanup_services(app)
        await shutdown_close_connections()

    except Exception as e:
        logger.error(f"Error durante limpieza de startup: {e}")


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_cleanup_services(app: FastAPI):
    """Cierra los clientes HTTP compartidos."""
    square_client = getattr(app.state, "square_client", None)
    if square_client is not None:
        try:
            await square_client.close()
            logger.info("✅ Cliente Square cerrado")
        except Exception as e:
            logger.error(f"Error cerrando cliente Square: {e}")

    notifier = getattr(app.state, "notifier", None)
    if notifier is not None:
        try:
            await notifier.close()
            logger.info("✅ Notificador SendGrid cerrado")
        except Exception as e:
            logger.error(f"Error cerrando notificador: {e}")


async def shutdown_close_connections():
    """Cierra la conexión a la base de datos."""
    try:
        await get_db_connection().close()
        logger.info("✅ Conexión a base de datos cerrada")
    except Exception as e:
        logger.error(f"Error cerrando base de datos: {e}")


async def shutdown_finalize_logging():
    """Finaliza el sistema de logging."""
    try:
        for handler in logging.getLogger().handlers:
            handler.flush()
        logger.info("✅ Sistema de logging finalizado")

    except Exception as e:
        print(f"Error finalizando logging: {e}")


def get_startup_info() -> Dict[str, Any]:
    """
    Obtiene información sobre la configuración de arranque.

    Returns:
        Dict: Información del startup
    """
    return {
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "services": {
            "square_configured": bool(settings.SQUARE_ACCESS_TOKEN and settings.SQUARE_LOCATION_ID),
            "square_environment": settings.SQUARE_ENVIRONMENT,
            "sendgrid_configured": bool(settings.SENDGRID_API_KEY),
        },
    }
