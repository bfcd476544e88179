"""Tests unitarios para la configuración (pydantic-settings)."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings, reload_settings


class TestSettings:
    """Tests para validadores y propiedades de Settings."""

    def test_square_environment_is_normalized(self):
        """Debe normalizar el entorno de Square y derivar la URL base."""
        settings = Settings(SQUARE_ENVIRONMENT="Production")

        assert settings.SQUARE_ENVIRONMENT == "production"
        assert settings.square_api_base_url == "https://connect.squareup.com/v2"

    def test_unknown_square_environment(self):
        with pytest.raises(ValidationError):
            Settings(SQUARE_ENVIRONMENT="staging")

    def test_pickup_hours_in_range(self):
        """Debe rechazar horas de retiro fuera de 0-24."""
        with pytest.raises(ValidationError):
            Settings(PICKUP_CLOSE_HOUR=25)

    def test_log_level_uppercased(self):
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_pickup_location_lines(self):
        """Debe separar la dirección de retiro por '|' ignorando vacíos."""
        settings = Settings(PICKUP_LOCATION="RM Jobsites | 7204 E 53rd Pl||Commerce City, CO 80022")

        assert settings.pickup_location_lines == ["RM Jobsites", "7204 E 53rd Pl", "Commerce City, CO 80022"]

    def test_square_headers(self):
        """Debe enviar el token y la versión de la API de Square."""
        headers = Settings(SQUARE_ACCESS_TOKEN="EAAA-test", SQUARE_API_VERSION="2024-10-17").get_square_headers()

        assert headers["Authorization"] == "Bearer EAAA-test"
        assert headers["Square-Version"] == "2024-10-17"

    def test_reload_reads_environment(self, monkeypatch):
        """Debe releer variables de entorno al recargar."""
        monkeypatch.setenv("SUPPORT_EMAIL", "help@example.com")
        try:
            assert reload_settings().SUPPORT_EMAIL == "help@example.com"
        finally:
            monkeypatch.delenv("SUPPORT_EMAIL")
            reload_settings()
