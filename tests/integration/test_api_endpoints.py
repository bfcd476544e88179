"""
Tests de integración de la API HTTP.

Se usa TestClient sin `with` para no ejecutar el lifespan; los servicios
se reemplazan con `app.dependency_overrides`.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from fastapi.testclient import TestClient

from app.api.v1.dependencies import (
    get_order_calculator,
    get_orchestrator,
    get_profile_service,
    get_square_client,
    get_user_repository,
)
from app.core.config import get_settings
from app.db.models import User
from app.main import app
from app.services.customers import CustomerProfileService
from app.services.orders import create_calculator, create_orchestrator
from app.services.orders.validators import FulfillmentValidator
from app.utils.error_handler import SquareAPIException, ValidationException

settings = get_settings()

CUSTOMER = {"id": "CUST_1", "email_address": "buyer@example.com"}
ORDER = {"id": "ORDER_1", "total_money": {"amount": 2706, "currency": "USD"}}
PAYMENT = {"id": "PAY_1", "status": "COMPLETED"}
CALCULATED = {
    "line_items": [
        {"catalog_object_id": "VAR_1", "quantity": "2", "name": "Hard Hat", "total_money": {"amount": 2500}},
    ],
    "total_tax_money": {"amount": 206},
    "total_service_charge_money": {"amount": 995},
    "total_money": {"amount": 3701},
}

ANA = User(id=1, email="buyer@example.com", admin=False, square_customer_id="CUST_1", given_name="Ana")
BETO = User(id=2, email="other@example.com", admin=False, square_customer_id="CUST_2")
ADMIN = User(id=3, email="admin@example.com", admin=True)
USERS = {user.id: user for user in (ANA, BETO, ADMIN)}


def auth_header(user_id: int) -> dict:
    token = jwt.encode({"user_id": user_id}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


def checkout_body(**overrides) -> dict:
    body = {
        "line_items": [{"catalog_object_id": "VAR_1", "quantity": 2}],
        "payment_token": "cnon:card-nonce-ok",
        "customer_info": {"email": "buyer@example.com", "given_name": "Ana", "family_name": "Lopez"},
        "fulfillment_type": "PICKUP",
        "pickup_details": {"date": "2025-01-14", "time": "10:00"},
    }
    body.update(overrides)
    return body


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.location_id = "LOC_1"
    gateway.search_customers = AsyncMock(return_value=[CUSTOMER])
    gateway.create_customer = AsyncMock()
    gateway.update_customer = AsyncMock(return_value=CUSTOMER)
    gateway.create_order = AsyncMock(return_value=ORDER)
    gateway.create_payment = AsyncMock(return_value=PAYMENT)
    gateway.calculate_order = AsyncMock(return_value=CALCULATED)
    gateway.search_catalog_items = AsyncMock(return_value=[])
    gateway.get_catalog_item = AsyncMock(return_value=None)
    gateway.list_categories = AsyncMock(return_value=[])
    gateway.get_category = AsyncMock(return_value=None)
    gateway.get_items_by_category = AsyncMock(return_value=[])
    return gateway


@pytest.fixture
def user_repository():
    repository = MagicMock()
    repository.get_by_id = AsyncMock(side_effect=lambda user_id: USERS.get(user_id))
    repository.get_by_square_customer_id = AsyncMock(
        side_effect=lambda customer_id: next(
            (user for user in USERS.values() if user.square_customer_id == customer_id), None
        )
    )
    repository.update_profile = AsyncMock()
    return repository


@pytest.fixture
def profile_service():
    service = MagicMock()
    service.get_profile = AsyncMock(side_effect=lambda user: {"id": user.square_customer_id, "local_user_id": user.id})
    service.update_profile = AsyncMock(return_value={"id": "CUST_1", "given_name": "Ana María"})
    service.list_orders = AsyncMock(return_value=[{"id": "ORDER_1"}])
    return service


@pytest.fixture
def notifier():
    return MagicMock(send_order_confirmation=AsyncMock(return_value=True))


@pytest.fixture
def client(gateway, user_repository, profile_service, notifier):
    # Lunes 13 de enero de 2025
    validator = FulfillmentValidator(
        timezone="America/Denver", open_hour=8, close_hour=17, today_provider=lambda: date(2025, 1, 13)
    )
    app.dependency_overrides[get_square_client] = lambda: gateway
    app.dependency_overrides[get_user_repository] = lambda: user_repository
    app.dependency_overrides[get_profile_service] = lambda: profile_service
    app.dependency_overrides[get_order_calculator] = lambda: create_calculator(gateway)
    app.dependency_overrides[get_orchestrator] = lambda: create_orchestrator(
        gateway=gateway, user_repository=user_repository, notifier=notifier, validator=validator
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRootEndpoints:
    """Tests para los endpoints base."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == settings.APP_NAME
        assert response.json()["endpoints"]["orders"] == "/api/orders"

    def test_ping(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json()["message"] == "pong"

    def test_square_config(self, client):
        """Debe exponer solo la configuración pública de Square."""
        response = client.get("/api/config/square")

        assert response.status_code == 200
        assert response.json() == {
            "application_id": settings.SQUARE_APPLICATION_ID,
            "location_id": settings.SQUARE_LOCATION_ID,
            "environment": settings.SQUARE_ENVIRONMENT,
        }


class TestCalculateEndpoint:
    """Tests para POST /api/orders/calculate."""

    def test_pickup_totals(self, client, gateway):
        """Debe devolver totales con envío 0 en retiros."""
        response = client.post(
            "/api/orders/calculate",
            json={"line_items": [{"catalog_object_id": "VAR_1", "quantity": 2}], "fulfillment_type": "PICKUP"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["subtotal"] == 2500
        assert body["shipping"] == 0
        assert body["total"] == 2706
        assert body["line_items"][0]["name"] == "Hard Hat"

    def test_missing_line_items(self, client, gateway):
        """Debe responder 422 sin llamar a Square."""
        response = client.post("/api/orders/calculate", json={"line_items": []})

        assert response.status_code == 422
        assert response.json()["error"] == "Line items are required"
        assert response.json()["field"] == "line_items"
        gateway.calculate_order.assert_not_awaited()


class TestCreateOrderEndpoint:
    """Tests para POST /api/orders."""

    def test_anonymous_checkout(self, client, notifier):
        """Debe crear el pedido sin token y responder 201."""
        response = client.post("/api/orders", json=checkout_body())

        assert response.status_code == 201
        assert response.json() == {"order": ORDER, "payment": PAYMENT, "customer": CUSTOMER}
        notifier.send_order_confirmation.assert_awaited_once()

    def test_authenticated_checkout_links_profile(self, client, user_repository):
        """Debe vincular el perfil del usuario autenticado al cliente resuelto."""
        response = client.post("/api/orders", json=checkout_body(), headers=auth_header(1))

        assert response.status_code == 201
        args = user_repository.update_profile.await_args
        assert args.args[0] == 1
        assert args.kwargs == {"square_customer_id": "CUST_1"}

    def test_invalid_token(self, client, gateway):
        """Debe responder 401 si el token es inválido."""
        response = client.post("/api/orders", json=checkout_body(), headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        gateway.create_order.assert_not_awaited()

    def test_weekend_pickup_rejected(self, client, gateway):
        """Debe rechazar retiros en fin de semana con el campo que falla."""
        response = client.post(
            "/api/orders", json=checkout_body(pickup_details={"date": "2025-01-18", "time": "10:00"})
        )

        assert response.status_code == 422
        assert response.json()["field"] == "pickup_details.date"
        gateway.search_customers.assert_not_awaited()

    def test_missing_payment_token(self, client):
        response = client.post("/api/orders", json=checkout_body(payment_token=None))

        assert response.status_code == 422
        assert response.json()["error"] == "Line items, payment token, and customer info are required"
        assert response.json()["field"] == "payment_token"

    def test_payment_declined(self, client, gateway, notifier):
        """Debe responder 422 'Payment failed' sin objeto de pago."""
        errors = [{"category": "PAYMENT_METHOD_ERROR", "code": "CARD_DECLINED", "detail": "Card declined"}]
        gateway.create_payment = AsyncMock(side_effect=SquareAPIException.from_errors(errors, api_response_code=400))

        response = client.post("/api/orders", json=checkout_body())

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Payment failed"
        assert body["details"] == errors
        assert "payment" not in body
        notifier.send_order_confirmation.assert_not_awaited()

    def test_provider_unavailable(self, client, gateway):
        """Debe responder 500 genérico ante errores de transporte."""
        gateway.create_order = AsyncMock(side_effect=SquareAPIException("timeout", is_transport_error=True))

        response = client.post("/api/orders", json=checkout_body())

        assert response.status_code == 500
        assert response.json()["error"] == "Payment provider unavailable"
        assert "timeout" not in response.text

    def test_malformed_body(self, client):
        """Debe responder 422 con el formato de error de la API."""
        response = client.post("/api/orders", content="not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert response.json()["error"].startswith("Invalid request")


    def test_notification_failure_keeps_created_order(self, client, notifier):
        """Un fallo del email no debe cambiar la respuesta 201."""
        notifier.send_order_confirmation = AsyncMock(side_effect=RuntimeError("SendGrid unreachable"))

        response = client.post("/api/orders", json=checkout_body())

        assert response.status_code == 201
        assert response.json() == {"order": ORDER, "payment": PAYMENT, "customer": CUSTOMER}
        notifier.send_order_confirmation.assert_awaited_once()


class TestCustomerEndpoints:
    """Tests para /api/customers."""

    def test_requires_token(self, client):
        response = client.get("/api/customers/me")

        assert response.status_code == 401

    def test_me(self, client, profile_service):
        """Debe devolver el perfil del usuario autenticado."""
        response = client.get("/api/customers/me", headers=auth_header(1))

        assert response.status_code == 200
        assert response.json() == {"id": "CUST_1", "local_user_id": 1}

    def test_other_user_forbidden(self, client, profile_service):
        """Debe responder 403 a un usuario que no es dueño ni admin."""
        response = client.get("/api/customers/CUST_1", headers=auth_header(2))

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"
        profile_service.get_profile.assert_not_awaited()

    def test_admin_can_read_any_customer(self, client):
        response = client.get("/api/customers/CUST_2", headers=auth_header(3))

        assert response.status_code == 200
        assert response.json()["local_user_id"] == 2

    def test_unknown_customer(self, client):
        response = client.get("/api/customers/CUST_404", headers=auth_header(3))

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_update(self, client, profile_service):
        """Debe pasar campos locales y remotos al servicio de perfil."""
        response = client.patch(
            "/api/customers/me",
            json={"given_name": "Ana María", "email": "new@example.com"},
            headers=auth_header(1),
        )

        assert response.status_code == 200
        user, local_fields, remote_attributes = profile_service.update_profile.await_args.args
        assert user is ANA
        assert local_fields == {"given_name": "Ana María", "email": "new@example.com"}
        assert remote_attributes == {"given_name": "Ana María", "email_address": "new@example.com"}

    def test_orders(self, client):
        response = client.get("/api/customers/CUST_1/orders", headers=auth_header(1))

        assert response.status_code == 200
        assert response.json() == {"orders": [{"id": "ORDER_1"}]}


    def test_update_with_taken_email(self, client, profile_service):
        """Debe responder 422 si el email ya pertenece a otro usuario."""
        profile_service.update_profile = AsyncMock(
            side_effect=ValidationException("Failed to update user", field="email")
        )

        response = client.patch("/api/customers/me", json={"email": "other@example.com"}, headers=auth_header(1))

        assert response.status_code == 422
        assert response.json()["error"] == "Failed to update user"
        assert response.json()["field"] == "email"


class TestCustomerCardEndpoints:
    """Tests para /api/customers/{id}/cards con el servicio de perfil real."""

    @pytest.fixture
    def cards_client(self, client, gateway, user_repository):
        gateway.list_customer_cards = AsyncMock(
            return_value={"cards": [{"id": "ccof:CARD_1", "customer_id": "CUST_1", "last_4": "1234"}], "cursor": None}
        )
        gateway.get_card = AsyncMock(return_value={"id": "ccof:CARD_1", "customer_id": "CUST_1"})
        gateway.disable_card = AsyncMock(return_value={"id": "ccof:CARD_1", "enabled": False})
        app.dependency_overrides[get_profile_service] = lambda: CustomerProfileService(gateway, user_repository)
        return client

    def test_list_cards(self, cards_client, gateway):
        response = cards_client.get("/api/customers/me/cards", headers=auth_header(1))

        assert response.status_code == 200
        assert response.json() == {"cards": [{"id": "ccof:CARD_1", "customer_id": "CUST_1", "last_4": "1234"}]}
        assert gateway.list_customer_cards.await_args.args == ("CUST_1",)

    def test_unlinked_user_has_no_cards(self, cards_client, gateway):
        """Debe devolver lista vacía sin consultar Square si no hay vínculo."""
        response = cards_client.get("/api/customers/me/cards", headers=auth_header(3))

        assert response.status_code == 200
        assert response.json() == {"cards": []}
        gateway.list_customer_cards.assert_not_awaited()

    def test_cards_of_other_user_forbidden(self, cards_client, gateway):
        response = cards_client.get("/api/customers/CUST_1/cards", headers=auth_header(2))

        assert response.status_code == 403
        gateway.list_customer_cards.assert_not_awaited()

    def test_delete_card(self, cards_client, gateway):
        """Debe deshabilitar la tarjeta propia."""
        response = cards_client.delete("/api/customers/me/cards/ccof:CARD_1", headers=auth_header(1))

        assert response.status_code == 200
        assert response.json() == {"message": "Card deleted successfully"}
        gateway.disable_card.assert_awaited_once_with("ccof:CARD_1")

    def test_delete_blank_card_id(self, cards_client, gateway):
        response = cards_client.delete("/api/customers/me/cards/%20", headers=auth_header(1))

        assert response.status_code == 422
        assert response.json()["error"] == "Card ID is required"
        gateway.disable_card.assert_not_awaited()

    def test_delete_without_square_customer(self, cards_client, gateway):
        response = cards_client.delete("/api/customers/me/cards/ccof:CARD_1", headers=auth_header(3))

        assert response.status_code == 404
        assert response.json()["error"] == "No Square customer found"
        gateway.disable_card.assert_not_awaited()

    def test_delete_card_of_another_customer(self, cards_client, gateway):
        """No debe deshabilitar tarjetas de otro cliente."""
        gateway.get_card = AsyncMock(return_value={"id": "ccof:CARD_9", "customer_id": "CUST_2"})

        response = cards_client.delete("/api/customers/me/cards/ccof:CARD_9", headers=auth_header(1))

        assert response.status_code == 404
        assert response.json()["error"] == "Card not found"
        gateway.disable_card.assert_not_awaited()

    def test_delete_unknown_card(self, cards_client, gateway):
        gateway.get_card = AsyncMock(
            side_effect=SquareAPIException.from_errors(
                [{"category": "INVALID_REQUEST_ERROR", "code": "NOT_FOUND"}], api_response_code=404
            )
        )

        response = cards_client.delete("/api/customers/me/cards/ccof:MISSING", headers=auth_header(1))

        assert response.status_code == 404
        assert response.json()["error"] == "Card not found"

    def test_disable_rejected(self, cards_client, gateway):
        """Debe responder 422 con los errores de Square si no se puede deshabilitar."""
        errors = [{"category": "INVALID_REQUEST_ERROR", "code": "INVALID_CARD", "detail": "Card already disabled"}]
        gateway.disable_card = AsyncMock(side_effect=SquareAPIException.from_errors(errors, api_response_code=400))

        response = cards_client.delete("/api/customers/me/cards/ccof:CARD_1", headers=auth_header(1))

        assert response.status_code == 422
        assert response.json()["error"] == "Failed to delete card"
        assert response.json()["details"] == errors


class TestCatalogEndpoints:
    """Tests para productos y categorías."""

    def test_list_products(self, client, gateway):
        """Debe pasar filtros y devolver productos formateados."""
        gateway.search_catalog_items = AsyncMock(
            return_value=[
                {
                    "id": "ITEM_1",
                    "image_urls": ["https://img/1.png"],
                    "item_data": {
                        "name": "Hard Hat",
                        "categories": [{"id": "CAT_1"}],
                        "variations": [{"id": "VAR_1", "item_variation_data": {"name": "Yellow"}}],
                    },
                }
            ]
        )

        response = client.get("/api/products", params={"query": "hat", "category_ids": "CAT_1, CAT_2", "limit": 5})

        assert response.status_code == 200
        product = response.json()["products"][0]
        assert product["name"] == "Hard Hat"
        assert product["category_ids"] == ["CAT_1"]
        assert product["variations"][0]["name"] == "Yellow"
        gateway.search_catalog_items.assert_awaited_once_with(query="hat", category_ids=["CAT_1", "CAT_2"], limit=5)

    def test_product_not_found(self, client):
        response = client.get("/api/products/MISSING")

        assert response.status_code == 404
        assert response.json()["error"] == "Product not found"

    def test_category_not_found(self, client):
        response = client.get("/api/categories/MISSING")

        assert response.status_code == 404
        assert response.json()["error"] == "Category not found"

    def test_provider_error_is_bad_request(self, client, gateway):
        """Debe responder 400 con el mensaje de Square."""
        error = SquareAPIException.from_errors(
            [{"category": "INVALID_REQUEST_ERROR", "detail": "Bad cursor"}], api_response_code=400
        )
        gateway.list_categories = AsyncMock(side_effect=error)

        response = client.get("/api/categories")

        assert response.status_code == 400
        assert response.json()["error"] == error.message
