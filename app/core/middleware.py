"""
Middleware HTTP de la API de comercio.

- CORS para el frontend de la tienda (Web Payments SDK en el navegador)
- TrustedHost en producción
- Request ID propagado a los logs y a la respuesta
- Headers de seguridad; las rutas de pedidos y clientes nunca se cachean
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from app.core.config import get_settings
from app.core.logging_config import request_id_var

settings = get_settings()
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Respuestas con datos de pago o de perfil
NO_STORE_PREFIXES = ("/api/orders", "/api/customers")

STATUS_EMOJIS = {2: "✅", 3: "↩️", 4: "⚠️", 5: "❌"}


def configure_cors_middleware(app: FastAPI) -> None:
    """
    Configura CORS para el frontend.

    Los orígenes salen de CORS_ORIGINS; sin configuración se permite
    cualquier origen, sin credenciales.

    Args:
        app: Instancia de FastAPI
    """
    allowed_origins = settings.cors_origin_list
    allow_any = "*" in allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=not allow_any,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "Authorization", REQUEST_ID_HEADER],
        expose_headers=["X-Process-Time", REQUEST_ID_HEADER],
    )

    logger.info(f"✅ CORS configurado - Origins: {allowed_origins}")


def configure_trusted_host_middleware(app: FastAPI) -> None:
    """
    Restringe los hosts aceptados en producción.

    Args:
        app: Instancia de FastAPI
    """
    if not settings.is_production or not settings.ALLOWED_HOSTS or "*" in settings.ALLOWED_HOSTS:
        return

    allowed_hosts = [*settings.ALLOWED_HOSTS, "localhost", "127.0.0.1"]
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)
    logger.info(f"✅ TrustedHost configurado - Hosts: {allowed_hosts}")


def configure_request_logging_middleware(app: FastAPI) -> None:
    """
    Registra cada request y propaga su ID.

    El ID (recibido en X-Request-ID o generado) queda en `request.state`,
    en el contexto de logging y en la respuesta.

    Args:
        app: Instancia de FastAPI
    """

    @app.middleware("http")
    async def log_requests_middleware(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        route = f"{request.method} {request.url.path}"
        logger.info(f"📨 {route} - Client: {get_client_ip(request)}")

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info(
                f"{get_status_emoji(response.status_code)} {route} - "
                f"Status: {response.status_code} - Time: {process_time:.3f}s"
            )
            if process_time > settings.SLOW_REQUEST_THRESHOLD:
                logger.warning(f"🐌 Slow request: {route} took {process_time:.3f}s")

            response.headers["X-Process-Time"] = f"{process_time:.3f}"
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as e:
            logger.error(f"❌ {route} - Error: {e} - Time: {time.time() - start_time:.3f}s")
            raise
        finally:
            request_id_var.reset(token)


def configure_security_headers_middleware(app: FastAPI) -> None:
    """
    Agrega headers de seguridad a todas las respuestas.

    Args:
        app: Instancia de FastAPI
    """

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        response = await call_next(request)

        response.headers.update(security_headers_for(request.url.path, request.url.scheme))
        return response


def configure_all_middleware(app: FastAPI) -> None:
    """
    Configura todos los middlewares.
    Se ejecutan en orden inverso al que se agregan: CORS queda primero.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando middlewares...")

    configure_security_headers_middleware(app)
    configure_request_logging_middleware(app)
    configure_trusted_host_middleware(app)
    configure_cors_middleware(app)

    logger.info("✅ Middlewares configurados")


# Funciones auxiliares


def generate_request_id() -> str:
    """ID corto para correlacionar logs de un request."""
    return uuid.uuid4().hex[:12]


def security_headers_for(path: str, scheme: str) -> dict:
    """
    Headers de seguridad para una respuesta.

    Args:
        path: Ruta del request
        scheme: http o https

    Returns:
        dict: Headers a agregar
    """
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    }
    if path.startswith(NO_STORE_PREFIXES):
        headers["Cache-Control"] = "no-store"
    if settings.is_production and scheme == "https":
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


def get_client_ip(request: Request) -> str:
    """
    IP del cliente, considerando proxies.

    Args:
        request: Request de FastAPI

    Returns:
        str: Primera IP de X-Forwarded-For, X-Real-IP o la del socket
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def get_status_emoji(status_code: int) -> str:
    return STATUS_EMOJIS.get(status_code // 100, "📤")

