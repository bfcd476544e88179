"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones personalizadas de la aplicación
y proporciona utilidades para manejo consistente de errores.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandardizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Errores de Square
    SQUARE_API_ERROR = "SQUARE_API_ERROR"
    SQUARE_CONNECTION_FAILED = "SQUARE_CONNECTION_FAILED"

    # Errores de pedidos
    ORDER_CREATION_FAILED = "ORDER_CREATION_FAILED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    ORDER_PROCESSING_FAILED = "ORDER_PROCESSING_FAILED"

    # Errores de persistencia y notificaciones
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"

    # Errores de acceso
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
        is_critical: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandardizado
            details: Información adicional del error
            status_code: Código HTTP asociado
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
            is_critical: Si requiere alerta inmediata
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.is_critical = is_critical
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = traceback.format_exc()

    def public_body(self) -> Dict[str, Any]:
        """
        Cuerpo de error expuesto al cliente HTTP.

        Returns:
            Dict: {"error": mensaje} más datos públicos de la subclase
        """
        return {"error": self.message}

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationException(AppException):
    """
    Excepción para errores de validación de datos.
    """

    def __init__(
        self,
        message: str,
        field: str,
        invalid_value: Any = None,
        expected_format: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            expected_format: Formato esperado
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            status_code=422,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.field = field
        self.invalid_value = invalid_value
        self.expected_format = expected_format

        # Agregar detalles específicos
        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
                "expected_format": expected_format,
            }
        )

    def public_body(self) -> Dict[str, Any]:
        return {"error": self.message, "field": self.field}


class SquareAPIException(AppException):
    """
    Excepción para errores de la API de Square.

    Los errores de negocio (tarjeta rechazada, datos inválidos) llegan con
    `errors` poblado; los de transporte (timeout, conexión) con
    `is_transport_error=True`.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        api_response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        is_transport_error: bool = False,
        retry_after: Optional[float] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de Square API.

        Args:
            message: Mensaje de error
            errors: Lista de errores devuelta por Square (category, code, detail)
            api_response_code: Código de respuesta HTTP de Square
            endpoint: Endpoint que falló
            is_transport_error: Si falló el transporte y no la regla de negocio
            retry_after: Segundos indicados por Square en Retry-After (429)
            **kwargs: Argumentos adicionales para AppException
        """
        retryable = is_transport_error or api_response_code == 429 or (api_response_code or 0) >= 500
        if is_transport_error:
            error_code = ErrorCode.SQUARE_CONNECTION_FAILED
            status_code = 500
            severity = ErrorSeverity.HIGH
        else:
            error_code = ErrorCode.SQUARE_API_ERROR
            status_code = 422
            severity = ErrorSeverity.MEDIUM

        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            severity=severity,
            is_retryable=retryable,
            **kwargs,
        )

        self.errors = errors or []
        self.api_response_code = api_response_code
        self.endpoint = endpoint
        self.is_transport_error = is_transport_error
        self.retry_after = retry_after

        self.details.update(
            {
                "errors": self.errors,
                "api_response_code": api_response_code,
                "endpoint": endpoint,
                "retry_after": retry_after,
            }
        )

    @classmethod
    def from_errors(
        cls,
        errors: List[Dict[str, Any]],
        api_response_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        retry_after: Optional[float] = None,
    ) -> "SquareAPIException":
        """
        Construye la excepción a partir de la lista de errores de Square.

        El mensaje sigue el formato "CATEGORY: detail, CATEGORY: detail".
        """
        parts = []
        for error in errors or []:
            category = error.get("category", "API_ERROR")
            detail = error.get("detail") or error.get("code") or "Unknown error"
            parts.append(f"{category}: {detail}")
        message = ", ".join(parts) or f"Square API error (HTTP {api_response_code})"
        return cls(
            message=message,
            errors=errors,
            api_response_code=api_response_code,
            endpoint=endpoint,
            retry_after=retry_after,
        )

    def public_body(self) -> Dict[str, Any]:
        if self.is_transport_error:
            return {"error": "Payment provider unavailable"}
        return {"error": self.message, "details": self.errors}


class OrderProcessingException(AppException):
    """
    Excepción para fallos del flujo de checkout después de la validación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.ORDER_PROCESSING_FAILED,
        errors: Optional[List[Dict[str, Any]]] = None,
        order_id: Optional[str] = None,
        **kwargs,
    ):
        """
        Inicializa la excepción de procesamiento de pedido.

        Args:
            message: Mensaje de error ("Failed to create order", "Payment failed")
            error_code: Código de error estandardizado
            errors: Errores del proveedor que causaron el fallo
            order_id: Pedido remoto ya creado, si existe
            **kwargs: Argumentos adicionales para AppException
        """
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=422,
            severity=ErrorSeverity.MEDIUM,
            **kwargs,
        )
        self.errors = errors or []
        self.order_id = order_id
        self.details.update({"errors": self.errors, "order_id": order_id})

    def public_body(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.errors}


class PersistenceException(AppException):
    """
    Excepción para errores de la base de datos local.
    """

    def __init__(self, message: str, operation: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.PERSISTENCE_ERROR,
            status_code=500,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.operation = operation
        self.details.update({"operation": operation})

    def public_body(self) -> Dict[str, Any]:
        return {"error": "Internal server error"}


class NotificationException(AppException):
    """
    Excepción para fallos de envío de correo. Nunca sale del notificador.
    """

    def __init__(self, message: str, provider_status: Optional[int] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.NOTIFICATION_FAILED,
            status_code=502,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.provider_status = provider_status
        self.details.update({"provider_status": provider_status})


class AuthenticationException(AppException):
    """
    Excepción para tokens ausentes, vencidos o inválidos.
    """

    def __init__(self, message: str = "Unauthorized - Token expired or invalid", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.AUTHENTICATION_FAILED,
            status_code=401,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class AuthorizationException(AppException):
    """
    Excepción para accesos a recursos de otro usuario.
    """

    def __init__(self, message: str = "Forbidden", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.FORBIDDEN,
            status_code=403,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )


class NotFoundException(AppException):
    """
    Excepción para recursos inexistentes.
    """

    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
            severity=ErrorSeverity.LOW,
            **kwargs,
        )
        self.details.update({"resource": resource})


# === FUNCIONES DE UTILIDAD ===


def create_error_response(exception: Union[AppException, Exception], include_traceback: bool = False) -> Dict[str, Any]:
    """
    Crea respuesta de error estandardizada.

    Los errores no controlados nunca exponen su mensaje interno.

    Args:
        exception: Excepción a convertir
        include_traceback: Si incluir traceback

    Returns:
        Dict: Respuesta de error
    """
    if isinstance(exception, AppException):
        body = exception.public_body()
        body["error_code"] = exception.error_code.value
        if include_traceback:
            body["traceback"] = exception.traceback_str
        return body

    body = {"error": "Internal server error", "error_code": ErrorCode.UNKNOWN_ERROR.value}
    if include_traceback:
        body["traceback"] = traceback.format_exc()
    return body


def log_error(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    # Preparar datos para log
    log_data = {
        "exception_type": type(exception).__name__,
        "exception_message": str(exception),
        **context,
    }

    # Determinar mensaje
    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
                "is_critical": exception.is_critical,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    # Log con nivel apropiado
    logger.log(level, message, extra={"error_context": log_data})
