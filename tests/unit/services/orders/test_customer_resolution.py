"""Tests unitarios para CustomerResolver y ProfileSynchronizer."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.domain.models import CustomerInfo, OrderRequest
from app.services.orders.managers import ProfileSynchronizer
from app.services.orders.resolvers import CustomerResolver
from app.utils.error_handler import SquareAPIException, ValidationException


def shipment_request() -> OrderRequest:
    return OrderRequest.from_dict(
        {
            "line_items": [{"catalog_object_id": "VAR_1", "quantity": 1}],
            "payment_token": "tok",
            "customer_info": {"email": "buyer@example.com", "given_name": "Ana", "phone_number": " "},
            "fulfillment_type": "SHIPMENT",
            "shipping_address": {
                "address_line_1": "123 Main St",
                "locality": "Denver",
                "administrative_district_level_1": "CO",
                "postal_code": "80202",
            },
        }
    )


class TestCustomerResolver:
    """Tests para la búsqueda o creación del cliente remoto."""

    @pytest.mark.asyncio
    async def test_first_match_wins(self):
        """Debe usar la primera coincidencia exacta por email."""
        gateway = MagicMock()
        gateway.search_customers = AsyncMock(return_value=[{"id": "A"}, {"id": "B"}])
        gateway.create_customer = AsyncMock()

        customer = await CustomerResolver(gateway).resolve(CustomerInfo(email="buyer@example.com"))

        assert customer == {"id": "A"}
        gateway.search_customers.assert_awaited_once_with("buyer@example.com")
        gateway.create_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_email_twice_reuses_customer(self):
        """Resolver dos veces el mismo email nunca debe crear un segundo cliente."""
        gateway = MagicMock()
        gateway.search_customers = AsyncMock(return_value=[{"id": "A"}])
        gateway.create_customer = AsyncMock()
        resolver = CustomerResolver(gateway)

        first = await resolver.resolve(CustomerInfo(email="buyer@example.com"))
        second = await resolver.resolve(CustomerInfo(email="buyer@example.com", given_name="Ana"))

        assert first == second == {"id": "A"}
        assert gateway.search_customers.await_count == 2
        gateway.create_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_created_customer_is_found_next_time(self):
        """Tras crear el cliente, la siguiente resolución debe encontrarlo."""
        directory = []

        async def create_customer(email, **fields):
            customer = {"id": f"CUST_{len(directory) + 1}", "email_address": email}
            directory.append(customer)
            return customer

        gateway = MagicMock()
        gateway.search_customers = AsyncMock(
            side_effect=lambda email: [c for c in directory if c["email_address"] == email]
        )
        gateway.create_customer = AsyncMock(side_effect=create_customer)
        resolver = CustomerResolver(gateway)

        first = await resolver.resolve(CustomerInfo(email="buyer@example.com"))
        second = await resolver.resolve(CustomerInfo(email="buyer@example.com"))

        assert first == second == {"id": "CUST_1", "email_address": "buyer@example.com"}
        assert gateway.create_customer.await_count == 1
        gateway.create_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_creates_when_not_found(self):
        """Debe crear el cliente con los datos de contacto si no existe."""
        gateway = MagicMock()
        gateway.search_customers = AsyncMock(return_value=[])
        gateway.create_customer = AsyncMock(return_value={"id": "NEW"})
        info = CustomerInfo(email="buyer@example.com", given_name="Ana", family_name="Lopez", phone_number="555")

        customer = await CustomerResolver(gateway).resolve(info)

        assert customer == {"id": "NEW"}
        gateway.create_customer.assert_awaited_once_with(
            email="buyer@example.com", given_name="Ana", family_name="Lopez", phone_number="555"
        )

    @pytest.mark.asyncio
    async def test_email_required(self):
        """Debe rechazar la resolución sin email."""
        gateway = MagicMock(search_customers=AsyncMock())

        with pytest.raises(ValidationException):
            await CustomerResolver(gateway).resolve(CustomerInfo(email=None))

        gateway.search_customers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gateway_error_propagates(self):
        """Debe propagar los errores de Square."""
        gateway = MagicMock(search_customers=AsyncMock(side_effect=SquareAPIException("down")))

        with pytest.raises(SquareAPIException):
            await CustomerResolver(gateway).resolve(CustomerInfo(email="buyer@example.com"))


class TestProfileSynchronizer:
    """Tests para la sincronización del perfil local y la dirección remota."""

    def test_profile_fields_skip_blanks_and_map_address(self):
        """Debe incluir solo valores no vacíos y mapear la dirección a columnas locales."""
        fields = ProfileSynchronizer.profile_fields(shipment_request())

        assert fields == {
            "given_name": "Ana",
            "address_line_1": "123 Main St",
            "city": "Denver",
            "state": "CO",
            "postal_code": "80202",
        }

    @pytest.mark.asyncio
    async def test_sync_updates_user_and_pushes_address(self):
        """Debe persistir el perfil y enviar la dirección al cliente remoto."""
        updated_user = MagicMock(id=1, square_customer_id="CUST_1")
        repository = MagicMock(update_profile=AsyncMock(return_value=updated_user))
        gateway = MagicMock(update_customer=AsyncMock())
        user = MagicMock(id=1)

        result = await ProfileSynchronizer(repository, gateway).sync(user, "CUST_1", shipment_request())

        assert result is updated_user
        assert repository.update_profile.await_args.kwargs == {"square_customer_id": "CUST_1"}
        gateway.update_customer.assert_awaited_once_with(
            "CUST_1",
            {
                "address": {
                    "address_line_1": "123 Main St",
                    "locality": "Denver",
                    "administrative_district_level_1": "CO",
                    "postal_code": "80202",
                    "country": "US",
                }
            },
        )

    @pytest.mark.asyncio
    async def test_pickup_does_not_push_address(self):
        """No debe actualizar la dirección remota en pedidos de retiro."""
        request = shipment_request()
        request.fulfillment_type = "PICKUP"
        gateway = MagicMock(update_customer=AsyncMock())

        result = await ProfileSynchronizer(MagicMock(), gateway).sync(None, "CUST_1", request)

        assert result is None
        gateway.update_customer.assert_not_awaited()
