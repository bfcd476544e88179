"""
Modelos Pydantic para los cuerpos de checkout y cálculo de pedidos.

Los campos son permisivos a propósito del formato: las reglas de negocio
(tipo de fulfillment, horario de pickup, dirección completa) las aplica
FulfillmentValidator para devolver mensajes específicos.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LineItemIn(BaseModel):
    """Línea solicitada; acepta `variation_id` como alias del id de catálogo."""

    model_config = ConfigDict(extra="ignore")

    catalog_object_id: Optional[str] = None
    variation_id: Optional[str] = None
    quantity: Any = None


class PickupDetailsIn(BaseModel):
    """Fecha `YYYY-MM-DD` y hora `HH:MM` de retiro."""

    date: Optional[str] = None
    time: Optional[str] = None
    note: Optional[str] = None


class AddressIn(BaseModel):
    """Dirección con nombres de campo de Square."""

    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    locality: Optional[str] = None
    administrative_district_level_1: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CustomerInfoIn(BaseModel):
    """Datos de contacto del comprador."""

    email: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    phone_number: Optional[str] = None


class CalculateOrderRequest(BaseModel):
    """Cuerpo de POST /api/orders/calculate."""

    line_items: Optional[List[LineItemIn]] = None
    fulfillment_type: Any = None

    def to_domain_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CreateOrderRequest(BaseModel):
    """Cuerpo de POST /api/orders."""

    line_items: Optional[List[LineItemIn]] = None
    payment_token: Optional[str] = None
    customer_info: Optional[CustomerInfoIn] = None
    fulfillment_type: Any = None
    pickup_details: Optional[PickupDetailsIn] = None
    shipping_address: Optional[AddressIn] = None

    def to_domain_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CalculatedLineItem(BaseModel):
    catalog_object_id: Optional[str] = None
    quantity: Optional[str] = None
    name: Optional[str] = None
    total_money: Optional[Dict[str, Any]] = None


class CalculateOrderResponse(BaseModel):
    """Totales en unidades menores (centavos)."""

    subtotal: int
    taxes: int
    shipping: int
    total: int
    line_items: List[CalculatedLineItem] = Field(default_factory=list)


class CreateOrderResponse(BaseModel):
    """Pedido, pago y cliente tal como los devuelve Square."""

    order: Dict[str, Any]
    payment: Dict[str, Any]
    customer: Dict[str, Any]
