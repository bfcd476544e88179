"""
Base Square REST client with common functionality.

This module provides the foundation for all Square clients, including
connection management, retries with idempotent bodies, and uniform error
mapping to SquareAPIException.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import SQUARE_BASE_URLS, Settings, get_settings
from app.core.logging_config import log_api_call
from app.utils.error_handler import SquareAPIException
from app.utils.retry_handler import RetryHandler, create_square_retry_handler

logger = logging.getLogger(__name__)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


@dataclass(frozen=True)
class SquareClientConfig:
    """
    Explicit connection settings for one Square account/location.

    Attributes:
        access_token: Square access token
        environment: "sandbox" or "production"
        location_id: Location orders and payments are scoped to
        application_id: Public Web Payments application id
        api_version: Square-Version header value
        timeout_seconds: Per-attempt timeout
        max_retries: Attempts per logical operation
    """

    access_token: str
    environment: str = "sandbox"
    location_id: str = ""
    application_id: str = ""
    api_version: str = "2024-10-17"
    timeout_seconds: float = 30.0
    max_retries: int = 3

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SquareClientConfig":
        """Build the config from application settings."""
        settings = settings or get_settings()
        return cls(
            access_token=settings.SQUARE_ACCESS_TOKEN,
            environment=settings.SQUARE_ENVIRONMENT,
            location_id=settings.SQUARE_LOCATION_ID,
            application_id=settings.SQUARE_APPLICATION_ID,
            api_version=settings.SQUARE_API_VERSION,
            timeout_seconds=settings.SQUARE_TIMEOUT_SECONDS,
            max_retries=settings.SQUARE_MAX_RETRIES,
        )

    @property
    def base_url(self) -> str:
        return f"{SQUARE_BASE_URLS.get(self.environment, SQUARE_BASE_URLS['sandbox'])}/v2"


class BaseSquareClient:
    """
    Base client for Square REST API operations.

    Provides session management and a single `_call` entry point that all
    specialized clients use. Each call runs through the retry handler with
    the exact same body, so an idempotency key embedded in that body is
    reused across retries of the same logical operation.
    """

    def __init__(self, config: Optional[SquareClientConfig] = None, retry_handler: Optional[RetryHandler] = None):
        """
        Initialize the base Square client.

        Args:
            config: Connection settings (defaults to application settings)
            retry_handler: Retry strategy (defaults to the Square handler)
        """
        self.config = config or SquareClientConfig.from_settings()
        self.base_url = self.config.base_url
        self.location_id = self.config.location_id
        self.retry_handler = retry_handler or create_square_retry_handler(
            max_attempts=self.config.max_retries, timeout=self.config.timeout_seconds
        )
        self.session: Optional[aiohttp.ClientSession] = None

        logger.info(f"Initialized Square client for {self.base_url} ({self.config.environment})")

    async def initialize(self):
        """
        Open the shared HTTP session.
        """
        if self.session and not self.session.closed:
            return

        timeout = ClientTimeout(total=self.config.timeout_seconds, connect=10)
        connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)

        self.session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={
                "Authorization": f"Bearer {self.config.access_token}",
                "Square-Version": self.config.api_version,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        logger.info("✅ Square client session opened")

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Square client closed")

    async def _call(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        operation: str = "",
    ) -> Dict[str, Any]:
        """
        Execute one logical Square operation with retries.

        Args:
            method: HTTP method
            path: Path below /v2 (e.g. "/customers/search")
            json: Request body, built once by the caller
            params: Query string parameters
            operation: Operation name for logs

        Returns:
            Dict: Decoded response body

        Raises:
            SquareAPIException: On API or transport failure
        """
        return await self.retry_handler.execute(
            self._request,
            method,
            path,
            json=json,
            params=params,
            context={"operation": operation or path},
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Perform a single HTTP attempt and map failures to SquareAPIException.
        """
        if not self.session or self.session.closed:
            await self.initialize()

        url = f"{self.base_url}{path}"
        start_time = time.time()

        try:
            async with self.session.request(method, url, json=json, params=params) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = None
                data = data or {}
                log_api_call(method, url, response.status, time.time() - start_time, provider="square")

                if 200 <= response.status < 300:
                    return data

                errors = data.get("errors") or [
                    {"category": "API_ERROR", "code": str(response.status), "detail": response.reason}
                ]

                if response.status >= 500:
                    raise SquareAPIException(
                        message=f"Square service error (HTTP {response.status})",
                        errors=errors,
                        api_response_code=response.status,
                        endpoint=path,
                        is_transport_error=True,
                    )

                retry_after = None
                if response.status == 429:
                    retry_after = parse_retry_after(response.headers.get("Retry-After"))

                raise SquareAPIException.from_errors(
                    errors, api_response_code=response.status, endpoint=path, retry_after=retry_after
                )

        except SquareAPIException:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Network error calling Square {method} {path}: {type(e).__name__}: {e}")
            raise SquareAPIException(
                message=f"Network error calling Square: {type(e).__name__}",
                endpoint=path,
                is_transport_error=True,
            ) from e
