"""
Square client for catalog operations.

Items and categories reference images by id only; every listing is enriched
with resolved `image_urls` through one batch lookup.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from app.utils.error_handler import SquareAPIException

from .base_client import BaseSquareClient

logger = logging.getLogger(__name__)


def extract_image_urls(related_objects: Iterable[Dict[str, Any]]) -> List[str]:
    """URLs of the IMAGE objects among related objects."""
    urls = []
    for obj in related_objects or []:
        url = (obj.get("image_data") or {}).get("url")
        if obj.get("type") == "IMAGE" and url:
            urls.append(url)
    return urls


def _item_image_ids(item: Dict[str, Any]) -> List[str]:
    item_data = item.get("item_data") or {}
    ids = list(item_data.get("image_ids") or [])
    for variation in item_data.get("variations") or []:
        ids.extend((variation.get("item_variation_data") or {}).get("image_ids") or [])
    return ids


class SquareCatalogClient(BaseSquareClient):
    """
    Specialized client for Square catalog browsing.
    """

    async def search_catalog_items(
        self, query: Optional[str] = None, category_ids: Optional[List[str]] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Search items by text and/or categories.

        Args:
            query: Free text filter
            category_ids: Restrict to these categories
            limit: Maximum number of items

        Returns:
            Items with `image_urls` on each item and variation
        """
        body: Dict[str, Any] = {"limit": limit}
        if query:
            body["text_filter"] = query
        if category_ids:
            body["category_ids"] = category_ids

        result = await self._call("POST", "/catalog/search-catalog-items", json=body, operation="search_catalog_items")
        return await self._enrich_items_with_images(result.get("items") or [])

    async def get_items_by_category(self, category_id: str, limit: int = 100) -> List[Dict[str, Any]]:
        """Items of a single category."""
        return await self.search_catalog_items(category_ids=[category_id], limit=limit)

    async def get_catalog_item(self, item_id: str, include_related: bool = True) -> Optional[Dict[str, Any]]:
        """
        Retrieve one catalog object.

        Returns:
            The object with `image_urls` from its related images, or None if it does not exist
        """
        result = await self._retrieve_object(item_id, include_related)
        if result is None:
            return None

        catalog_object = result.get("object")
        if catalog_object and include_related:
            image_urls = extract_image_urls(result.get("related_objects") or [])
            catalog_object["image_urls"] = image_urls
            for variation in (catalog_object.get("item_data") or {}).get("variations") or []:
                variation["image_urls"] = list(image_urls)
        return catalog_object

    async def list_categories(self) -> List[Dict[str, Any]]:
        """All categories, each with `image_urls`."""
        result = await self._call("GET", "/catalog/list", params={"types": "CATEGORY"}, operation="list_categories")
        return await self._enrich_categories_with_images(result.get("objects") or [])

    async def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        """One category with `image_urls`, or None if it does not exist."""
        result = await self._retrieve_object(category_id, include_related=True)
        if result is None:
            return None
        category = result.get("object")
        if category:
            category["image_urls"] = extract_image_urls(result.get("related_objects") or [])
        return category

    async def batch_retrieve_catalog_objects(
        self, object_ids: List[str], include_related: bool = False
    ) -> Dict[str, Any]:
        """Retrieve several catalog objects in one call."""
        body = {"object_ids": object_ids, "include_related_objects": include_related}
        return await self._call("POST", "/catalog/batch-retrieve", json=body, operation="batch_retrieve")

    async def _retrieve_object(self, object_id: str, include_related: bool) -> Optional[Dict[str, Any]]:
        params = {"include_related_objects": "true" if include_related else "false"}
        try:
            return await self._call("GET", f"/catalog/object/{object_id}", params=params, operation="get_object")
        except SquareAPIException as e:
            if e.api_response_code == 404:
                return None
            raise

    async def _image_url_map(self, image_ids: List[str]) -> Dict[str, str]:
        """Resolve image ids to URLs with a single batch call."""
        unique_ids = list(dict.fromkeys(image_id for image_id in image_ids if image_id))
        if not unique_ids:
            return {}

        result = await self.batch_retrieve_catalog_objects(unique_ids)
        url_map = {}
        for image in result.get("objects") or []:
            url = (image.get("image_data") or {}).get("url")
            if image.get("type") == "IMAGE" and url:
                url_map[image["id"]] = url
        return url_map

    async def _enrich_items_with_images(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not items:
            return items

        url_map = await self._image_url_map([image_id for item in items for image_id in _item_image_ids(item)])

        for item in items:
            item_data = item.get("item_data") or {}
            item["image_urls"] = [url_map[i] for i in item_data.get("image_ids") or [] if i in url_map]
            for variation in item_data.get("variations") or []:
                variation_ids = (variation.get("item_variation_data") or {}).get("image_ids") or []
                variation["image_urls"] = [url_map[i] for i in variation_ids if i in url_map]
        return items

    async def _enrich_categories_with_images(self, categories: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not categories:
            return categories

        url_map = await self._image_url_map(
            [image_id for category in categories for image_id in (category.get("category_data") or {}).get("image_ids") or []]
        )

        for category in categories:
            category_ids = (category.get("category_data") or {}).get("image_ids") or []
            category["image_urls"] = [url_map[i] for i in category_ids if i in url_map]
        return categories
