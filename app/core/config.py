"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de la aplicación usando Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

SQUARE_BASE_URLS = {
    "production": "https://connect.squareup.com",
    "sandbox": "https://connect.squareupsandbox.com",
}


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "Jobsite Commerce API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field(default="development", env="ENV")
    DEBUG: bool = Field(default=True, env="DEBUG")

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8080, env="PORT")
    WORKERS: int = Field(default=1, env="WORKERS")
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")

    # === CONFIGURACIÓN DE SEGURIDAD ===
    ALLOWED_HOSTS: Optional[List[str]] = Field(default=None, env="ALLOWED_HOSTS")
    SECRET_KEY: str = Field(default="your-secret-key-change-in-production", env="SECRET_KEY")
    JWT_ALGORITHM: str = Field(default="HS256", env="JWT_ALGORITHM")
    # Orígenes del frontend separados por comas
    CORS_ORIGINS: str = Field(default="*", env="CORS_ORIGINS")

    # === CONFIGURACIÓN DE BASE DE DATOS LOCAL ===
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./commerce.db", env="DATABASE_URL")
    DATABASE_ECHO: bool = Field(default=False, env="DATABASE_ECHO")

    # === CONFIGURACIÓN DE SQUARE ===
    SQUARE_ACCESS_TOKEN: str = Field(default="", env="SQUARE_ACCESS_TOKEN")
    SQUARE_ENVIRONMENT: str = Field(default="sandbox", env="SQUARE_ENVIRONMENT")
    SQUARE_LOCATION_ID: str = Field(default="", env="SQUARE_LOCATION_ID")
    SQUARE_APPLICATION_ID: str = Field(default="", env="SQUARE_APPLICATION_ID")
    SQUARE_API_VERSION: str = Field(default="2024-10-17", env="SQUARE_API_VERSION")
    SQUARE_TIMEOUT_SECONDS: float = Field(default=30.0, env="SQUARE_TIMEOUT_SECONDS")
    SQUARE_MAX_RETRIES: int = Field(default=3, env="SQUARE_MAX_RETRIES")

    # === CONFIGURACIÓN DE SENDGRID ===
    SENDGRID_API_KEY: Optional[str] = Field(default=None, env="SENDGRID_API_KEY")
    SENDGRID_FROM_EMAIL: str = Field(default="orders@rmjobsites.com", env="SENDGRID_FROM_EMAIL")
    SENDGRID_FROM_NAME: str = Field(default="RM Jobsites", env="SENDGRID_FROM_NAME")
    SENDGRID_TIMEOUT_SECONDS: float = Field(default=15.0, env="SENDGRID_TIMEOUT_SECONDS")
    SUPPORT_EMAIL: str = Field(default="support@rmjobsites.com", env="SUPPORT_EMAIL")

    # === CONFIGURACIÓN DE RETIRO EN TIENDA ===
    BUSINESS_TIMEZONE: str = Field(default="America/Denver", env="BUSINESS_TIMEZONE")
    # Ventana [apertura, cierre) en horas locales
    PICKUP_OPEN_HOUR: int = Field(default=8, env="PICKUP_OPEN_HOUR")
    PICKUP_CLOSE_HOUR: int = Field(default=17, env="PICKUP_CLOSE_HOUR")
    PICKUP_NOTE: str = Field(default="Please bring a valid ID for pickup.", env="PICKUP_NOTE")
    # Líneas separadas por '|'
    PICKUP_LOCATION: str = Field(
        default="RM Jobsites|7204 E 53rd Pl|Commerce City, CO 80022",
        env="PICKUP_LOCATION",
    )

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = Field(default="logs/app.log", env="LOG_FILE_PATH")
    LOG_MAX_SIZE_MB: int = Field(default=10, env="LOG_MAX_SIZE_MB")
    LOG_BACKUP_COUNT: int = Field(default=5, env="LOG_BACKUP_COUNT")

    # === CONFIGURACIÓN DE MONITOREO ===
    SLOW_REQUEST_THRESHOLD: float = Field(default=5.0, env="SLOW_REQUEST_THRESHOLD")

    # === CONFIGURACIÓN DE DOCUMENTACIÓN ===
    ENABLE_DOCS: bool = Field(default=True, env="ENABLE_DOCS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "allow",  # Permitir valores extra para flexibilidad futura
    }

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v):
        """Parsea ALLOWED_HOSTS como lista separada por comas."""
        if isinstance(v, str):
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("PICKUP_OPEN_HOUR", "PICKUP_CLOSE_HOUR")
    @classmethod
    def validate_pickup_hour(cls, v):
        """Valida que la hora esté en rango válido (0-24)."""
        if not 0 <= v <= 24:
            raise ValueError("Las horas de retiro deben estar entre 0 y 24")
        return v

    @field_validator("SQUARE_ENVIRONMENT")
    @classmethod
    def validate_square_environment(cls, v):
        """Valida que el entorno de Square sea válido."""
        if v.lower() not in SQUARE_BASE_URLS:
            raise ValueError(f"SQUARE_ENVIRONMENT debe ser uno de: {list(SQUARE_BASE_URLS)}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def cors_origin_list(self) -> List[str]:
        """Orígenes CORS como lista; vacío equivale a cualquier origen."""
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        return origins or ["*"]

    @property
    def pickup_location_lines(self) -> List[str]:
        """Dirección de retiro como lista de líneas."""
        return [line.strip() for line in self.PICKUP_LOCATION.split("|") if line.strip()]

    @property
    def square_api_base_url(self) -> str:
        """Genera URL base de la API de Square según el entorno."""
        return f"{SQUARE_BASE_URLS[self.SQUARE_ENVIRONMENT]}/v2"

    def get_square_headers(self) -> dict:
        """
        Obtiene headers para requests a Square.

        Returns:
            dict: Headers de autenticación
        """
        return {
            "Authorization": f"Bearer {self.SQUARE_ACCESS_TOKEN}",
            "Square-Version": self.SQUARE_API_VERSION,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"{self.APP_NAME}/{self.APP_VERSION}",
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


# Instancia global para uso directo
settings = get_settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


def validate_required_settings() -> bool:
    """
    Valida que todas las configuraciones requeridas estén presentes.

    Returns:
        bool: True si todas las configuraciones están presentes

    Raises:
        ValueError: Si alguna configuración requerida falta
    """
    settings = get_settings()

    required_fields = [
        "SQUARE_ACCESS_TOKEN",
        "SQUARE_LOCATION_ID",
        "DATABASE_URL",
    ]

    missing_fields = []
    for field in required_fields:
        value = getattr(settings, field, None)
        if not value or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)

    if missing_fields:
        raise ValueError(f"Configuraciones requeridas faltantes: {missing_fields}")

    return True
