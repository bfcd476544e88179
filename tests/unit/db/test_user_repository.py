"""Tests unitarios para UserRepository sobre SQLite (aiosqlite)."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from app.db.connection import ConnDB
from app.db.user_repository import UserRepository
from app.services.customers.profile_service import CustomerProfileService
from app.utils.error_handler import PersistenceException, ValidationException


@pytest_asyncio.fixture
async def repository(tmp_path):
    conn_db = ConnDB(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    await conn_db.initialize()
    yield UserRepository(conn_db)
    await conn_db.close()


class TestUserRepository:
    """Tests para lectura y actualización del perfil local."""

    @pytest.mark.asyncio
    async def test_create_and_load(self, repository):
        """Debe crear y recuperar un usuario por id."""
        user = await repository.create("buyer@example.com", given_name="Ana")

        loaded = await repository.get_by_id(user.id)

        assert loaded.email == "buyer@example.com"
        assert loaded.given_name == "Ana"
        assert loaded.square_customer_id is None

    @pytest.mark.asyncio
    async def test_update_skips_blank_values(self, repository):
        """No debe sobrescribir datos existentes con valores vacíos."""
        user = await repository.create("buyer@example.com", given_name="Ana", phone_number="555-0100")

        updated = await repository.update_profile(
            user.id, {"given_name": "Ana María", "phone_number": "  ", "family_name": None}
        )

        assert updated.given_name == "Ana María"
        assert updated.phone_number == "555-0100"
        assert updated.family_name is None

    @pytest.mark.asyncio
    async def test_unknown_fields_are_ignored(self, repository):
        """Debe ignorar campos que no son de perfil."""
        user = await repository.create("buyer@example.com")

        updated = await repository.update_profile(user.id, {"admin": True, "city": "Denver"})

        assert updated.admin is False
        assert updated.city == "Denver"

    @pytest.mark.asyncio
    async def test_customer_link_is_sticky(self, repository):
        """Debe vincular el cliente solo si el usuario no tiene uno."""
        user = await repository.create("buyer@example.com")

        first = await repository.update_profile(user.id, {}, square_customer_id="CUST_1")
        second = await repository.update_profile(user.id, {}, square_customer_id="CUST_2")

        assert first.square_customer_id == "CUST_1"
        assert second.square_customer_id == "CUST_1"
        assert (await repository.get_by_square_customer_id("CUST_1")).id == user.id
        assert await repository.get_by_square_customer_id("CUST_2") is None

    @pytest.mark.asyncio
    async def test_update_missing_user(self, repository):
        """Debe fallar con PersistenceException si el usuario no existe."""
        with pytest.raises(PersistenceException):
            await repository.update_profile(999, {"given_name": "Nadie"})

    @pytest.mark.asyncio
    async def test_duplicate_email_is_a_validation_error(self, repository):
        """Debe rechazar con 422 un email que ya usa otro usuario, sin modificar nada."""
        first = await repository.create("a@example.com", given_name="Ana")
        await repository.create("b@example.com")

        with pytest.raises(ValidationException) as exc_info:
            await repository.update_profile(first.id, {"email": "b@example.com", "given_name": "Anita"})

        assert exc_info.value.status_code == 422
        assert exc_info.value.public_body() == {"error": "Failed to update user", "field": "email"}
        unchanged = await repository.get_by_id(first.id)
        assert unchanged.email == "a@example.com"
        assert unchanged.given_name == "Ana"

    @pytest.mark.asyncio
    async def test_profile_update_with_taken_email(self, repository):
        """El servicio de perfil debe propagar el 422 sin tocar Square."""
        first = await repository.create("a@example.com", square_customer_id="CUST_1")
        await repository.create("b@example.com")
        gateway = AsyncMock()
        service = CustomerProfileService(gateway, repository)

        with pytest.raises(ValidationException):
            await service.update_profile(first, {"email": "b@example.com"}, {"email_address": "b@example.com"})

        gateway.update_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_address_to_square(self, repository):
        """Debe exponer la dirección local con nombres de Square y país US por defecto."""
        user = await repository.create("buyer@example.com", address_line_1="123 Main St", city="Denver", state="CO")

        assert user.address_to_square() == {
            "address_line_1": "123 Main St",
            "locality": "Denver",
            "administrative_district_level_1": "CO",
            "country": "US",
        }
