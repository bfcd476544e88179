"""
Modelos Pydantic para productos y categorías del catálogo de Square.

Square anida los datos (`item_data`, `item_variation_data`, `category_data`);
estos modelos los aplanan al formato público de la API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class VariationOut(BaseModel):
    """Variante vendible de un producto."""

    id: Optional[str] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    price_money: Optional[Dict[str, Any]] = None
    pricing_type: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    ordinal: Optional[int] = None
    available_for_booking: Optional[bool] = None

    @classmethod
    def from_square(cls, variation: Dict[str, Any]) -> "VariationOut":
        data = variation.get("item_variation_data") or {}
        return cls(
            id=variation.get("id"),
            name=data.get("name"),
            sku=data.get("sku"),
            price_money=data.get("price_money"),
            pricing_type=data.get("pricing_type"),
            image_urls=variation.get("image_urls") or [],
            ordinal=data.get("ordinal"),
            available_for_booking=data.get("available_for_booking"),
        )


class ProductOut(BaseModel):
    """Producto del catálogo con sus variantes e imágenes."""

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    abbreviation: Optional[str] = None
    category_ids: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    variations: List[VariationOut] = Field(default_factory=list)
    product_type: Optional[str] = None
    available_online: Optional[bool] = None
    available_for_pickup: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_square(cls, item: Dict[str, Any]) -> "ProductOut":
        data = item.get("item_data") or {}
        category_ids = data.get("category_ids")
        if category_ids is None:
            # Square 2024+ usa `categories: [{id}]`
            category_ids = [category.get("id") for category in data.get("categories") or [] if category.get("id")]
        return cls(
            id=item.get("id"),
            name=data.get("name"),
            description=data.get("description"),
            abbreviation=data.get("abbreviation"),
            category_ids=category_ids,
            image_urls=item.get("image_urls") or [],
            variations=[VariationOut.from_square(variation) for variation in data.get("variations") or []],
            product_type=data.get("product_type"),
            available_online=data.get("available_online"),
            available_for_pickup=data.get("available_for_pickup"),
            created_at=item.get("created_at"),
            updated_at=item.get("updated_at"),
        )


class CategoryOut(BaseModel):
    """Categoría del catálogo."""

    id: Optional[str] = None
    name: Optional[str] = None
    ordinal: Optional[int] = None
    image_urls: List[str] = Field(default_factory=list)
    is_top_level: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_square(cls, category: Dict[str, Any]) -> "CategoryOut":
        data = category.get("category_data") or {}
        return cls(
            id=category.get("id"),
            name=data.get("name"),
            ordinal=data.get("ordinal"),
            image_urls=category.get("image_urls") or [],
            is_top_level=data.get("is_top_level"),
            created_at=category.get("created_at"),
            updated_at=category.get("updated_at"),
        )


class ProductListResponse(BaseModel):
    products: List[ProductOut]


class ProductResponse(BaseModel):
    product: ProductOut


class CategoryListResponse(BaseModel):
    categories: List[CategoryOut]


class CategoryResponse(BaseModel):
    category: CategoryOut


class SquareConfigResponse(BaseModel):
    """Configuración pública para el SDK web de pagos."""

    application_id: str
    location_id: str
    environment: str
