# app/db/connection.py
"""
Clase ConnDB para gestión exclusiva de conexiones a la base de datos local.

Esta clase maneja únicamente el engine, la fábrica de sesiones y el ciclo
de vida de las conexiones a la base de datos de usuarios.
"""

import logging
import time
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.db.models import Base
from app.utils.error_handler import PersistenceException

settings = get_settings()
logger = logging.getLogger(__name__)


class ConnDB:
    """
    Gestión de conexiones a la base de datos local.

    Una instancia por proceso se obtiene con `get_db_connection()`; los tests
    pueden construir instancias propias con otra URL.
    """

    def __init__(self, connection_string: Optional[str] = None):
        """
        Inicializa la clase ConnDB.

        Args:
            connection_string: URL SQLAlchemy asíncrona (por defecto DATABASE_URL)
        """
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self.connection_string = connection_string or settings.DATABASE_URL
        self._connection_tested = False

    async def initialize(self, create_tables: bool = True):
        """
        Inicializa el engine de base de datos y crea las tablas faltantes.

        Args:
            create_tables: Si crear las tablas declaradas en los modelos

        Raises:
            PersistenceException: Si falla la inicialización
        """
        if self.engine is not None:
            logger.info("Database connection already initialized")
            return

        try:
            logger.info("Initializing database connection...")

            self.engine = create_async_engine(
                self.connection_string,
                pool_pre_ping=True,
                echo=settings.DATABASE_ECHO,
                future=True,
            )
            self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

            if create_tables:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)

            await self._test_connection()
            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            await self._cleanup_failed_initialization()
            raise PersistenceException(
                message=f"Failed to initialize database connection: {str(e)}",
                operation="initialize",
            ) from e

    async def _test_connection(self):
        """
        Prueba la conexión a la base de datos.
        """
        async with self.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            if result.scalar() != 1:
                raise PersistenceException(message="Connection test returned unexpected value", operation="test")
        self._connection_tested = True

    async def _cleanup_failed_initialization(self):
        """Limpia recursos en caso de fallo de inicialización."""
        if self.engine:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        self._connection_tested = False

    def get_session(self) -> AsyncSession:
        """
        Obtiene una nueva sesión de base de datos.

        Returns:
            AsyncSession: Sesión asíncrona de SQLAlchemy

        Raises:
            PersistenceException: Si no hay conexión inicializada
        """
        if self.session_factory is None:
            raise PersistenceException(
                message="Database connection not initialized. Call initialize() first.",
                operation="session_creation",
            )
        return self.session_factory()

    def is_initialized(self) -> bool:
        """
        Verifica si la conexión está inicializada.

        Returns:
            bool: True si está inicializada y probada
        """
        return self.engine is not None and self.session_factory is not None and self._connection_tested

    async def test_connection(self) -> bool:
        """
        Prueba la conexión a la base de datos de forma no destructiva.

        Returns:
            bool: True si la conexión funciona correctamente
        """
        if not self.is_initialized():
            return False
        try:
            async with self.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False

    async def close(self):
        """
        Cierra la conexión y limpia todos los recursos.
        """
        logger.info("Closing database connection...")
        if self.engine:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        self._connection_tested = False
        logger.info("Database connection closed successfully")

    async def health_check(self) -> dict:
        """
        Realiza un health check de la conexión.

        Returns:
            dict: Estado de salud de la conexión
        """
        start_time = time.time()
        test_passed = await self.test_connection()
        return {
            "connection_initialized": self.is_initialized(),
            "test_passed": test_passed,
            "response_time_ms": round((time.time() - start_time) * 1000, 2),
        }

    def __repr__(self) -> str:
        return f"ConnDB(initialized={self.is_initialized()}, engine={self.engine is not None})"


# Instancia global
_conn_db_instance: Optional[ConnDB] = None


def get_db_connection() -> ConnDB:
    """
    Obtiene la instancia compartida de ConnDB.

    Returns:
        ConnDB: Instancia de conexión a base de datos
    """
    global _conn_db_instance

    if _conn_db_instance is None:
        _conn_db_instance = ConnDB()

    return _conn_db_instance


async def initialize_database():
    """
    Función de conveniencia para inicializar la base de datos.
    """
    await get_db_connection().initialize()


async def close_database():
    """
    Función de conveniencia para cerrar la base de datos.
    """
    await get_db_connection().close()
