"""Tests unitarios para el cliente REST de Square."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.db.square_clients import SquareClient
from app.db.square_clients.base_client import SquareClientConfig, parse_retry_after
from app.utils.error_handler import SquareAPIException
from app.utils.retry_handler import RetryHandler, RetryPolicy


def make_client(max_attempts: int = 3) -> SquareClient:
    config = SquareClientConfig(access_token="EAAA-test", environment="sandbox", location_id="LOC_1")
    retry_handler = RetryHandler(
        name="square_api_test",
        retry_policy=RetryPolicy(max_attempts=max_attempts, base_delay=0, jitter=False),
        on_timeout=lambda message: SquareAPIException(message=message, is_transport_error=True),
    )
    return SquareClient(config=config, retry_handler=retry_handler)


class FakeResponse:
    def __init__(self, status: int, data=None, reason: str = "Error", headers=None):
        self.status = status
        self.reason = reason
        self.headers = headers or {}
        self._data = data

    async def json(self, content_type=None):
        return self._data

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Sesión que devuelve respuestas en orden y guarda cada request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, json=None, params=None):
        self.calls.append({"method": method, "url": url, "json": json, "params": params})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


class TestIdempotentRetries:
    """Tests para reintentos con la misma clave de idempotencia."""

    @pytest.mark.asyncio
    async def test_payment_retry_reuses_idempotency_key(self):
        """Debe reenviar el mismo cuerpo, con la misma clave, en cada reintento."""
        client = make_client()
        client.session = FakeSession(
            FakeResponse(503, {"errors": [{"category": "API_ERROR", "detail": "unavailable"}]}),
            FakeResponse(200, {"payment": {"id": "PAY_1"}}),
        )

        payment = await client.create_payment("tok", {"amount": 100, "currency": "USD"}, order_id="ORDER_1")

        assert payment == {"id": "PAY_1"}
        first, second = client.session.calls
        assert first["json"] == second["json"]
        assert first["json"]["idempotency_key"]
        assert first["json"]["location_id"] == "LOC_1"

    @pytest.mark.asyncio
    async def test_separate_operations_get_new_keys(self):
        """Debe generar una clave nueva por operación lógica."""
        client = make_client()
        client.session = FakeSession(FakeResponse(200, {"order": {"id": "A"}}), FakeResponse(200, {"order": {"id": "B"}}))

        await client.create_order([{"catalog_object_id": "VAR_1", "quantity": "1"}])
        await client.create_order([{"catalog_object_id": "VAR_1", "quantity": "1"}])

        keys = [call["json"]["idempotency_key"] for call in client.session.calls]
        assert keys[0] != keys[1]

    @pytest.mark.asyncio
    async def test_card_declined_is_not_retried(self):
        """No debe reintentar errores de negocio."""
        client = make_client()
        errors = [{"category": "PAYMENT_METHOD_ERROR", "code": "CARD_DECLINED", "detail": "Card declined"}]
        client.session = FakeSession(FakeResponse(402, {"errors": errors}))

        with pytest.raises(SquareAPIException) as exc_info:
            await client.create_payment("tok", {"amount": 100, "currency": "USD"})

        assert len(client.session.calls) == 1
        assert exc_info.value.is_transport_error is False
        assert exc_info.value.errors == errors
        assert exc_info.value.message == "PAYMENT_METHOD_ERROR: Card declined"

    @pytest.mark.asyncio
    async def test_network_errors_become_transport_errors(self):
        """Debe convertir errores de red en errores de transporte tras agotar reintentos."""
        client = make_client(max_attempts=2)
        client.session = FakeSession(asyncio.TimeoutError(), asyncio.TimeoutError())

        with pytest.raises(SquareAPIException) as exc_info:
            await client.search_customers("buyer@example.com")

        assert exc_info.value.is_transport_error is True
        assert len(client.session.calls) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self):
        """Debe reintentar un 429 esperando lo indicado en Retry-After."""
        client = make_client()
        client.retry_handler.retry_policy.base_delay = 30
        errors = [{"category": "RATE_LIMIT_ERROR", "code": "RATE_LIMITED"}]
        client.session = FakeSession(
            FakeResponse(429, {"errors": errors}, headers={"Retry-After": "0"}),
            FakeResponse(200, {"customers": [{"id": "C"}]}),
        )

        with patch("app.utils.retry_handler.asyncio.sleep", new=AsyncMock()) as sleep:
            customers = await client.search_customers("buyer@example.com")

        assert customers == [{"id": "C"}]
        sleep.assert_awaited_once_with(0)

    def test_parse_retry_after(self):
        assert parse_retry_after("2") == 2.0
        assert parse_retry_after(None) is None
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None


class TestRequestBodies:
    """Tests para los cuerpos enviados a Square."""

    @pytest.mark.asyncio
    async def test_search_customers_by_exact_email(self):
        client = make_client()
        with patch.object(client, "_request", new=AsyncMock(return_value={"customers": [{"id": "C"}]})) as request:
            customers = await client.search_customers("buyer@example.com")

        assert customers == [{"id": "C"}]
        body = request.await_args.kwargs["json"]
        assert body["query"]["filter"]["email_address"] == {"exact": "buyer@example.com"}

    @pytest.mark.asyncio
    async def test_create_customer_omits_blank_fields(self):
        """Debe omitir campos opcionales vacíos."""
        client = make_client()
        with patch.object(client, "_request", new=AsyncMock(return_value={"customer": {"id": "C"}})) as request:
            await client.create_customer(email="buyer@example.com", given_name="Ana")

        body = request.await_args.kwargs["json"]
        assert body["email_address"] == "buyer@example.com"
        assert body["given_name"] == "Ana"
        assert "family_name" not in body
        assert "phone_number" not in body
        assert body["idempotency_key"]

    @pytest.mark.asyncio
    async def test_create_order_is_location_scoped(self):
        client = make_client()
        fulfillment = {"type": "PICKUP", "state": "PROPOSED", "pickup_details": {}}
        with patch.object(client, "_request", new=AsyncMock(return_value={"order": {"id": "O"}})) as request:
            await client.create_order([{"catalog_object_id": "V", "quantity": "1"}], "CUST_1", [fulfillment])

        order = request.await_args.kwargs["json"]["order"]
        assert order["location_id"] == "LOC_1"
        assert order["customer_id"] == "CUST_1"
        assert order["fulfillments"] == [fulfillment]

    @pytest.mark.asyncio
    async def test_customer_orders_filter(self):
        """Debe pedir pedidos abiertos y completados, más recientes primero."""
        client = make_client()
        with patch.object(client, "_request", new=AsyncMock(return_value={"orders": [{"id": "O"}]})) as request:
            orders = await client.get_customer_orders("CUST_1")

        assert orders == [{"id": "O"}]
        body = request.await_args.kwargs["json"]
        assert body["location_ids"] == ["LOC_1"]
        assert body["query"]["filter"]["state_filter"] == {"states": ["COMPLETED", "OPEN"]}
        assert body["query"]["sort"] == {"sort_field": "CREATED_AT", "sort_order": "DESC"}

    @pytest.mark.asyncio
    async def test_close_releases_session(self):
        client = make_client()
        session = MagicMock(close=AsyncMock())
        client.session = session

        await client.close()

        session.close.assert_awaited_once()
        assert client.session is None


class TestCatalogImages:
    """Tests para el enriquecimiento de imágenes del catálogo."""

    @pytest.mark.asyncio
    async def test_items_get_image_urls_from_one_batch(self):
        """Debe resolver las imágenes de items y variantes con un solo batch."""
        client = make_client()
        item = {
            "id": "ITEM_1",
            "item_data": {
                "name": "Hard Hat",
                "image_ids": ["IMG_1"],
                "variations": [{"id": "VAR_1", "item_variation_data": {"image_ids": ["IMG_2", "IMG_1"]}}],
            },
        }
        images = {
            "objects": [
                {"id": "IMG_1", "type": "IMAGE", "image_data": {"url": "https://img/1.png"}},
                {"id": "IMG_2", "type": "IMAGE", "image_data": {"url": "https://img/2.png"}},
            ]
        }
        request = AsyncMock(side_effect=[{"items": [item]}, images])

        with patch.object(client, "_request", new=request):
            items = await client.search_catalog_items(query="hat", category_ids=["CAT_1"])

        assert request.await_count == 2
        assert request.await_args_list[1].kwargs["json"]["object_ids"] == ["IMG_1", "IMG_2"]
        assert items[0]["image_urls"] == ["https://img/1.png"]
        assert items[0]["item_data"]["variations"][0]["image_urls"] == ["https://img/2.png", "https://img/1.png"]

    @pytest.mark.asyncio
    async def test_missing_catalog_object_returns_none(self):
        """Debe devolver None si Square responde 404."""
        client = make_client()
        not_found = SquareAPIException.from_errors(
            [{"category": "INVALID_REQUEST_ERROR", "code": "NOT_FOUND"}], api_response_code=404
        )

        with patch.object(client, "_request", new=AsyncMock(side_effect=not_found)):
            assert await client.get_catalog_item("MISSING") is None


class TestCardsOnFile:
    """Tests para tarjetas guardadas de clientes."""

    @pytest.mark.asyncio
    async def test_create_card_with_all_fields(self):
        """Debe enviar token, cliente, dirección y titular con clave de idempotencia."""
        client = make_client()
        client.session = FakeSession(FakeResponse(200, {"card": {"id": "ccof:CARD_1", "last_4": "1234"}}))
        billing_address = {"address_line_1": "123 Main St", "postal_code": "80202", "country": "US"}

        card = await client.create_card(
            "CUST_1", "cnon:token", billing_address=billing_address, cardholder_name="Ana Lopez"
        )

        assert card == {"id": "ccof:CARD_1", "last_4": "1234"}
        call = client.session.calls[0]
        assert call["method"] == "POST"
        assert call["url"].endswith("/v2/cards")
        assert call["json"]["idempotency_key"]
        assert call["json"]["source_id"] == "cnon:token"
        assert call["json"]["card"] == {
            "customer_id": "CUST_1",
            "billing_address": billing_address,
            "cardholder_name": "Ana Lopez",
        }

    @pytest.mark.asyncio
    async def test_create_card_minimal(self):
        """Debe omitir dirección y titular vacíos."""
        client = make_client()
        client.session = FakeSession(FakeResponse(200, {"card": {"id": "ccof:CARD_1"}}))

        await client.create_card("CUST_1", "cnon:token")

        assert client.session.calls[0]["json"]["card"] == {"customer_id": "CUST_1"}

    @pytest.mark.asyncio
    async def test_list_cards_defaults(self):
        """Debe listar solo tarjetas activas y devolver el cursor."""
        client = make_client()
        client.session = FakeSession(
            FakeResponse(200, {"cards": [{"id": "ccof:CARD_1"}, {"id": "ccof:CARD_2"}], "cursor": "NEXT"})
        )

        result = await client.list_customer_cards("CUST_1")

        assert [card["id"] for card in result["cards"]] == ["ccof:CARD_1", "ccof:CARD_2"]
        assert result["cursor"] == "NEXT"
        call = client.session.calls[0]
        assert call["method"] == "GET"
        assert call["params"] == {"customer_id": "CUST_1", "include_disabled": "false"}

    @pytest.mark.asyncio
    async def test_list_cards_with_cursor_and_disabled(self):
        client = make_client()
        client.session = FakeSession(FakeResponse(200, {}))

        result = await client.list_customer_cards("CUST_1", cursor="PAGE_2", include_disabled=True)

        assert result == {"cards": [], "cursor": None}
        assert client.session.calls[0]["params"] == {
            "customer_id": "CUST_1",
            "include_disabled": "true",
            "cursor": "PAGE_2",
        }

    @pytest.mark.asyncio
    async def test_disable_card(self):
        """Debe deshabilitar la tarjeta por id."""
        client = make_client()
        client.session = FakeSession(FakeResponse(200, {"card": {"id": "ccof:CARD_1", "enabled": False}}))

        card = await client.disable_card("ccof:CARD_1")

        assert card["enabled"] is False
        call = client.session.calls[0]
        assert call["method"] == "POST"
        assert call["url"].endswith("/v2/cards/ccof:CARD_1/disable")

    @pytest.mark.asyncio
    async def test_get_card_not_found(self):
        """Debe propagar el 404 de Square como error de la API."""
        client = make_client()
        client.session = FakeSession(
            FakeResponse(404, {"errors": [{"category": "INVALID_REQUEST_ERROR", "code": "NOT_FOUND", "detail": "Card not found"}]})
        )

        with pytest.raises(SquareAPIException) as exc_info:
            await client.get_card("ccof:MISSING")

        assert exc_info.value.api_response_code == 404
        assert len(client.session.calls) == 1
