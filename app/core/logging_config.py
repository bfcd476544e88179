"""
Configuración del sistema de logging.

- Consola con colores en desarrollo y archivos rotativos
- JSON estructurado en producción
- ID de request en cada línea (lo fija el middleware)
- Helpers para llamadas a Square/SendGrid y transiciones de checkout
"""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.config import get_settings

settings = get_settings()

# Fijado por el middleware de requests; "-" fuera de un request
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

LINE_FORMAT = "%(asctime)s - [%(request_id)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET_COLOR = "\033[0m"

# Atributos propios de LogRecord; el resto viene de `extra`
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "request_id"}


class RequestIdFilter(logging.Filter):
    """Agrega `request_id` a cada record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


class ColoredFormatter(logging.Formatter):
    """
    Colorea el nivel cuando la salida es una terminal.
    """

    def format(self, record):
        formatted = super().format(record)
        if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
            return formatted

        color = LEVEL_COLORS.get(record.levelname)
        if color is None:
            return formatted
        return formatted.replace(record.levelname, f"{color}{record.levelname}{RESET_COLOR}", 1)


class StructuredFormatter(logging.Formatter):
    """
    Un objeto JSON por línea, con los campos de `extra` agrupados.
    """

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", request_id_var.get()),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging() -> None:
    """
    Configura el logging de la aplicación.
    """
    if settings.LOG_FILE_PATH:
        Path(settings.LOG_FILE_PATH).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(get_logging_configuration())
    configure_specific_loggers()

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configurado - Nivel: {settings.LOG_LEVEL} - Archivo: {settings.LOG_FILE_PATH or 'ninguno'}")


def _rotating_file_handler(filename: str, level: str, formatter: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": formatter,
        "filters": ["request_id"],
        "filename": filename,
        "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
    }


def get_logging_configuration() -> Dict[str, Any]:
    """
    Genera la configuración para `logging.config.dictConfig`.

    En producción la consola escribe JSON; en otros entornos texto (con
    colores si DEBUG). Con LOG_FILE_PATH se agregan archivo general y de
    errores.

    Returns:
        Dict: Configuración de logging
    """
    console_formatter = "json" if settings.is_production else ("colored" if settings.DEBUG else "standard")

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            "standard": {"format": LINE_FORMAT, "datefmt": DATE_FORMAT},
            "colored": {"()": ColoredFormatter, "format": LINE_FORMAT, "datefmt": DATE_FORMAT},
            "detailed": {
                "format": "%(asctime)s - [%(request_id)s] %(name)s - %(levelname)s - "
                "%(module)s.%(funcName)s:%(lineno)d - %(message)s",
                "datefmt": DATE_FORMAT,
            },
            "json": {"()": StructuredFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.LOG_LEVEL,
                "formatter": console_formatter,
                "filters": ["request_id"],
                "stream": "ext://sys.stdout",
            }
        },
        "loggers": {
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
        "root": {"level": settings.LOG_LEVEL, "handlers": ["console"]},
    }

    if settings.LOG_FILE_PATH:
        log_path = Path(settings.LOG_FILE_PATH)
        error_path = log_path.with_name(f"{log_path.stem}_errors{log_path.suffix or '.log'}")
        file_formatter = "json" if settings.is_production else "detailed"

        config["handlers"]["file"] = _rotating_file_handler(str(log_path), settings.LOG_LEVEL, file_formatter)
        config["handlers"]["error_file"] = _rotating_file_handler(str(error_path), "ERROR", "detailed")
        config["root"]["handlers"].extend(["file", "error_file"])

    return config


def configure_specific_loggers() -> None:
    """
    Ajusta niveles por módulo.
    """
    # Checkout con más detalle en desarrollo
    logging.getLogger("app.services.orders").setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    logging.getLogger("app.api").setLevel(logging.INFO)
    logging.getLogger("app.db").setLevel(logging.INFO)

    # SQL solo con DATABASE_ECHO
    if not settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    for logger_name in ("aiosqlite", "aiohttp.access", "aiohttp.client"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def log_api_call(method: str, url: str, status_code: int, duration: float, **kwargs):
    """
    Registra una llamada a un proveedor externo (Square, SendGrid).

    Los 4xx son WARNING: un pago rechazado no es un error del servicio.

    Args:
        method: Método HTTP
        url: URL llamada, sin query string en el mensaje
        status_code: Código de respuesta
        duration: Duración en segundos
        **kwargs: Datos adicionales (provider, ...)
    """
    logger = logging.getLogger("app.api.call")

    if status_code < 400:
        level = logging.INFO
    elif status_code < 500:
        level = logging.WARNING
    else:
        level = logging.ERROR

    path = url.split("?", 1)[0]
    logger.log(
        level,
        f"API call: {method} {path} -> {status_code} ({duration * 1000:.1f}ms)",
        extra={
            "method": method,
            "url": path,
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 2),
            **kwargs,
        },
    )


def log_checkout_transition(flow_id: str, from_state: str, to_state: str, reason: Optional[str] = None) -> None:
    """
    Registra un cambio de estado del checkout.

    Args:
        flow_id: ID del flujo de checkout
        from_state: Estado anterior
        to_state: Estado nuevo
        reason: Motivo, solo en fallos
    """
    logger = logging.getLogger("app.services.orders.checkout")
    extra = {"checkout_flow": flow_id, "from_state": from_state, "to_state": to_state}

    if reason is None:
        logger.info(f"[checkout {flow_id}] {from_state} → {to_state}", extra=extra)
    else:
        logger.warning(f"[checkout {flow_id}] {from_state} → {to_state}: {reason}", extra={**extra, "reason": reason})
