"""
Endpoints de catálogo: productos y categorías de Square.

Los errores de Square se devuelven como 400 con el mensaje del proveedor.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.v1.dependencies import get_square_client
from app.api.v1.schemas.catalog_schemas import (
    CategoryListResponse,
    CategoryOut,
    CategoryResponse,
    ProductListResponse,
    ProductOut,
    ProductResponse,
)
from app.db.square_clients import SquareClient
from app.utils.error_handler import SquareAPIException

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


def _catalog_error(e: SquareAPIException) -> HTTPException:
    logger.error(f"❌ Error de catálogo en Square: {e.message}")
    return HTTPException(status_code=400, detail=e.message)


def _split_ids(raw: Optional[str]) -> Optional[list]:
    if not raw:
        return None
    ids = [value.strip() for value in raw.split(",") if value.strip()]
    return ids or None


@router.get("/products", response_model=ProductListResponse, summary="Search products")
async def list_products(
    query: Optional[str] = Query(None, description="Texto a buscar"),
    category_ids: Optional[str] = Query(None, description="Ids de categoría separados por comas"),
    limit: int = Query(100, ge=1, le=1000, description="Máximo de productos"),
    square_client: SquareClient = Depends(get_square_client),
):
    """
    Busca productos por texto y/o categorías.

    Args:
        query: Filtro de texto libre
        category_ids: Lista separada por comas
        limit: Máximo de productos a devolver

    Returns:
        Productos con variantes e imágenes
    """
    try:
        items = await square_client.search_catalog_items(query=query, category_ids=_split_ids(category_ids), limit=limit)
    except SquareAPIException as e:
        raise _catalog_error(e) from e
    return {"products": [ProductOut.from_square(item) for item in items]}


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get product")
async def get_product(product_id: str, square_client: SquareClient = Depends(get_square_client)):
    """Un producto con sus imágenes; 404 si no existe."""
    try:
        item = await square_client.get_catalog_item(product_id)
    except SquareAPIException as e:
        raise _catalog_error(e) from e
    if not item:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"product": ProductOut.from_square(item)}


@router.get("/categories", response_model=CategoryListResponse, summary="List categories")
async def list_categories(square_client: SquareClient = Depends(get_square_client)):
    try:
        categories = await square_client.list_categories()
    except SquareAPIException as e:
        raise _catalog_error(e) from e
    return {"categories": [CategoryOut.from_square(category) for category in categories]}


@router.get("/categories/{category_id}", response_model=CategoryResponse, summary="Get category")
async def get_category(category_id: str, square_client: SquareClient = Depends(get_square_client)):
    """Una categoría; 404 si no existe."""
    try:
        category = await square_client.get_category(category_id)
    except SquareAPIException as e:
        raise _catalog_error(e) from e
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"category": CategoryOut.from_square(category)}


@router.get("/categories/{category_id}/products", response_model=ProductListResponse, summary="Products by category")
async def list_category_products(
    category_id: str,
    limit: int = Query(100, ge=1, le=1000),
    square_client: SquareClient = Depends(get_square_client),
):
    try:
        items = await square_client.get_items_by_category(category_id, limit=limit)
    except SquareAPIException as e:
        raise _catalog_error(e) from e
    return {"products": [ProductOut.from_square(item) for item in items]}
