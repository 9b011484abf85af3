"""
Menu catalog management.

Anyone can read the menu; only admins add, remove or toggle items. Stock
toggles are last-write-wins since availability is advisory.
"""

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bakery_api.core.exceptions import ProductNotFound
from bakery_api.models import Product

logger = logging.getLogger(__name__)


class CatalogService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_items(self) -> list[Product]:
        result = await self.db.execute(select(Product).order_by(Product.category, Product.id))
        return list(result.scalars().all())

    async def add_item(self, data: dict) -> Product:
        product = Product(**data)
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        logger.info(f"Product #{product.id} added: {product.name}")
        return product

    async def add_items(self, items: Iterable[dict]) -> list[Product]:
        """Bulk insert in one transaction: either the whole menu lands or nothing does."""
        products = [Product(**data) for data in items]
        self.db.add_all(products)
        await self.db.commit()
        for product in products:
            await self.db.refresh(product)
        logger.info(f"Bulk added {len(products)} products")
        return products

    async def _get(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise ProductNotFound()
        return product

    async def remove_item(self, product_id: int) -> None:
        product = await self._get(product_id)
        await self.db.delete(product)
        await self.db.commit()
        logger.info(f"Product #{product_id} removed")

    async def toggle_availability(self, product_id: int) -> Product:
        product = await self._get(product_id)
        product.is_available = not product.is_available
        await self.db.commit()
        await self.db.refresh(product)
        state = "available" if product.is_available else "out of stock"
        logger.info(f"Product #{product_id} is now {state}")
        return product
