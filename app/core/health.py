"""
Sistema de health checks para monitoreo de servicios.

Este módulo proporciona funciones para verificar el estado de la base de
datos local y de la API de Square.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.config import get_settings
from app.db.connection import get_db_connection

settings = get_settings()
logger = logging.getLogger(__name__)

# Variable global para tracking de uptime
_app_start_time = datetime.now(timezone.utc)

HealthCheck = Callable[[], Awaitable[bool]]


async def get_health_status(square_client: Optional[Any] = None, timeout: float = 5.0) -> Dict[str, Any]:
    """
    Obtiene el estado de salud de todos los servicios.

    La base de datos es crítica; Square solo se verifica si hay cliente
    configurado y su caída degrada el estado sin marcarlo como no saludable.

    Args:
        square_client: Cliente de Square compartido (app.state.square_client)
        timeout: Timeout por verificación en segundos

    Returns:
        Dict: {"overall": bool, "services": {...}, "uptime": {...}} y métricas de reintentos de Square
    """
    checks: Dict[str, HealthCheck] = {"database": check_database_health}
    if square_client is not None and settings.SQUARE_ACCESS_TOKEN:
        checks["square"] = square_client.test_connection

    results = await asyncio.gather(
        *(run_health_check_with_timeout(name, check, timeout) for name, check in checks.items())
    )
    services = dict(zip(checks.keys(), results))

    status = {
        "overall": services["database"]["status"] == "healthy",
        "services": services,
        "uptime": get_uptime_info(),
    }
    if square_client is not None:
        status["square_retries"] = square_client.retry_handler.get_metrics()
    return status


async def run_health_check_with_timeout(service_name: str, check_func: HealthCheck, timeout: float) -> Dict[str, Any]:
    """
    Ejecuta una verificación de salud individual con timeout específico.

    Args:
        service_name: Nombre del servicio
        check_func: Función de verificación
        timeout: Timeout en segundos

    Returns:
        Dict: Resultado de la verificación
    """
    start_time = time.time()

    try:
        result = await asyncio.wait_for(check_func(), timeout=timeout)
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if result else "unhealthy",
            "latency_ms": round(latency_ms, 2),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    except asyncio.TimeoutError:
        latency_ms = (time.time() - start_time) * 1000
        logger.warning(f"Health check timeout for {service_name} after {timeout}s")

        return {
            "status": "timeout",
            "error": f"Health check timeout after {timeout}s",
            "latency_ms": round(latency_ms, 2),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    except Exception as e:
        latency_ms = (time.time() - start_time) * 1000
        logger.error(f"Health check failed for {service_name}: {e}")

        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": round(latency_ms, 2),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


async def check_database_health() -> bool:
    """
    Verifica la base de datos local de usuarios.

    Returns:
        bool: True si responde a SELECT 1
    """
    return await get_db_connection().test_connection()


def get_uptime_info() -> Dict[str, Any]:
    """
    Obtiene información de uptime de la aplicación.

    Returns:
        Dict: Información de uptime
    """
    uptime_delta = datetime.now(timezone.utc) - _app_start_time
    return {
        "started_at": _app_start_time.isoformat(),
        "uptime_seconds": int(uptime_delta.total_seconds()),
        "uptime_human": format_uptime(uptime_delta),
    }


def format_uptime(uptime_delta: timedelta) -> str:
    """
    Formatea el uptime en formato legible.

    Args:
        uptime_delta: Delta de tiempo de uptime

    Returns:
        str: Uptime formateado ("2d 3h 15m")
    """
    days = uptime_delta.days
    hours, remainder = divmod(uptime_delta.seconds, 3600)
    minutes, _ = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")
    return " ".join(parts)
