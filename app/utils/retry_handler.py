"""
Sistema de manejo de reintentos.

Este módulo implementa reintentos con backoff exponencial, jitter y timeout
por intento. El llamador decide qué errores son reintentables a través de
`AppException.is_retryable`.
"""

import asyncio
import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, Type

from app.core.config import get_settings
from app.utils.error_handler import AppException, SquareAPIException

settings = get_settings()
logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Política de reintentos configurable.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retry_on: Optional[List[Type[Exception]]] = None,
    ):
        """
        Inicializa la política de reintentos.

        Args:
            max_attempts: Número máximo de intentos
            base_delay: Delay base en segundos
            max_delay: Delay máximo en segundos
            exponential_base: Base para backoff exponencial
            jitter: Si agregar jitter aleatorio
            retry_on: Excepciones ajenas a AppException en las que reintentar
        """
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retry_on = retry_on or [AppException]

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """
        Determina si debe reintentar la operación.

        Args:
            exception: Excepción que ocurrió
            attempt: Número de intento actual

        Returns:
            bool: True si debe reintentar
        """
        if attempt >= self.max_attempts:
            return False

        if isinstance(exception, AppException):
            return exception.is_retryable

        for retry_exc in self.retry_on:
            if isinstance(exception, retry_exc):
                return True

        return False

    def calculate_delay(self, attempt: int, exception: Optional[Exception] = None) -> float:
        """
        Calcula el delay antes del siguiente intento.

        Si la excepción trae `retry_after` (Retry-After de un 429) se respeta,
        acotado a max_delay.

        Args:
            attempt: Número de intento
            exception: Excepción del intento fallido

        Returns:
            float: Segundos a esperar
        """
        retry_after = getattr(exception, "retry_after", None)
        if retry_after is not None:
            return min(max(retry_after, 0), self.max_delay)

        delay = self.base_delay * (self.exponential_base ** (attempt - 1))

        if self.jitter:
            jitter_range = delay * 0.1
            delay += random.uniform(-jitter_range, jitter_range)

        delay = min(delay, self.max_delay)

        return max(delay, 0)


class RetryHandler:
    """
    Manejador de reintentos con timeout por intento.
    """

    def __init__(
        self,
        name: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        on_timeout: Optional[Callable[[str], Exception]] = None,
    ):
        """
        Inicializa el manejador de reintentos.

        Args:
            name: Nombre identificativo del handler
            retry_policy: Política de reintentos
            timeout: Segundos máximos por intento (None = sin límite)
            on_timeout: Fábrica de la excepción a usar cuando un intento vence
        """
        self.name = name
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.on_timeout = on_timeout or (
            lambda message: AppException(message=message, is_retryable=True, details={"timeout": self.timeout})
        )

        self.metrics = {
            "total_attempts": 0,
            "total_successes": 0,
            "total_failures": 0,
            "total_retries": 0,
        }

    async def execute(self, func: Callable, *args, context: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        """
        Ejecuta una función asíncrona con reintentos.

        Los argumentos se pasan idénticos en cada intento, de modo que una
        misma clave de idempotencia acompaña todos los reintentos.

        Args:
            func: Función a ejecutar
            *args: Argumentos posicionales
            context: Contexto adicional para logging
            **kwargs: Argumentos con nombre

        Returns:
            Any: Resultado de la función

        Raises:
            Exception: La última excepción si todos los reintentos fallan
        """
        context = context or {}
        start_time = time.time()
        last_exception: Optional[Exception] = None

        for attempt in range(1, self.retry_policy.max_attempts + 1):
            self.metrics["total_attempts"] += 1

            try:
                logger.debug(
                    f"Executing {self.name} - Attempt {attempt}/{self.retry_policy.max_attempts}",
                    extra={"context": context},
                )

                if self.timeout:
                    result = await asyncio.wait_for(func(*args, **kwargs), timeout=self.timeout)
                else:
                    result = await func(*args, **kwargs)

                self.metrics["total_successes"] += 1
                logger.debug(
                    f"Successfully executed {self.name} in {time.time() - start_time:.2f}s",
                    extra={"attempt": attempt, "context": context},
                )
                return result

            except asyncio.TimeoutError:
                last_exception = self.on_timeout(f"Operation {self.name} timed out after {self.timeout}s")

            except Exception as e:
                last_exception = e

            self.metrics["total_failures"] += 1

            if not self.retry_policy.should_retry(last_exception, attempt):
                if attempt < self.retry_policy.max_attempts:
                    logger.warning(
                        f"Not retrying {self.name} - Exception: {type(last_exception).__name__}: {last_exception}",
                        extra={"attempt": attempt, "context": context},
                    )
                break

            delay = self.retry_policy.calculate_delay(attempt, last_exception)
            self.metrics["total_retries"] += 1
            logger.info(
                f"Retrying {self.name} in {delay:.2f}s - Attempt {attempt + 1}/{self.retry_policy.max_attempts}",
                extra={"error": str(last_exception), "delay": delay, "context": context},
            )
            await asyncio.sleep(delay)

        logger.error(
            f"Retry attempts exhausted for {self.name}",
            extra={"last_exception": str(last_exception), "context": context},
        )
        raise last_exception  # type: ignore

    def get_metrics(self) -> Dict[str, Any]:
        """
        Obtiene métricas del handler.

        Returns:
            Dict: Métricas actuales
        """
        total = self.metrics["total_attempts"]
        success_rate = (self.metrics["total_successes"] / total * 100) if total > 0 else 0
        return {**self.metrics, "success_rate": round(success_rate, 2), "handler_name": self.name}


# === FACTORY FUNCTIONS ===


def create_square_retry_handler(max_attempts: Optional[int] = None, timeout: Optional[float] = None) -> RetryHandler:
    """
    Crea un handler específico para operaciones de Square.

    Reintenta errores de transporte, 429 y 5xx; los errores de negocio
    (tarjeta rechazada, datos inválidos) se propagan al primer intento.

    Returns:
        RetryHandler: Handler configurado para Square
    """
    retry_policy = RetryPolicy(
        max_attempts=max_attempts if max_attempts is not None else settings.SQUARE_MAX_RETRIES,
        base_delay=0.5,
        max_delay=8.0,
        exponential_base=2.0,
        jitter=True,
        retry_on=[SquareAPIException],
    )

    return RetryHandler(
        name="square_api",
        retry_policy=retry_policy,
        timeout=timeout if timeout is not None else settings.SQUARE_TIMEOUT_SECONDS,
        on_timeout=lambda message: SquareAPIException(message=message, is_transport_error=True),
    )
