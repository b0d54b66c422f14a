"""
ProductRepository: catalog reads and atomic stock mutation.

Stock mutation is a single conditional UPDATE: the clamped arithmetic and
the stock status derivation are evaluated by the database, so concurrent
adjustments of the same SKU cannot lose updates.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy import case, desc, func, select, update

from app.db.models import Product
from app.db.repositories.base import BaseRepository, log_operation
from app.domain.value_objects import DEFAULT_LOW_STOCK_THRESHOLD, StockStatus, derive_stock_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLevel:
    """Stock state of a product after an adjustment."""

    product_id: int
    sku: str
    stock: int
    stock_status: str


class ProductRepository(BaseRepository):
    """Repository for POS products."""

    @log_operation()
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        async with self.get_session() as session:
            return await session.get(Product, product_id)

    @log_operation()
    async def get_by_sku(self, sku: str) -> Optional[Product]:
        async with self.get_session() as session:
            result = await session.execute(select(Product).where(Product.sku == sku))
            return result.scalar_one_or_none()

    @log_operation()
    async def list_active(self, limit: int = 100, skip: int = 0) -> List[Product]:
        """Active products, newest first."""
        async with self.get_session() as session:
            stmt = (
                select(Product)
                .where(Product.is_active.is_(True))
                .order_by(desc(Product.created_at), desc(Product.id))
                .offset(skip)
                .limit(limit)
            )
            return list((await session.execute(stmt)).scalars().all())

    @log_operation()
    async def create(self, **fields: Any) -> Product:
        """Insert a product; ``stock_status`` is derived from stock when not given."""
        initial = derive_stock_status(fields.get("stock") or 0, fields.get("min_stock"))
        fields.setdefault("stock_status", initial.value)
        async with self.get_session() as session:
            product = Product(**fields)
            session.add(product)
            await session.commit()
            await session.refresh(product)
            return product

    @log_operation()
    async def adjust_stock(self, sku: str, delta: int) -> Optional[StockLevel]:
        """
        Atomically apply ``delta`` to a product's stock, clamped at zero.

        Args:
            sku: Product SKU
            delta: Signed quantity (negative deducts, positive restocks)

        Returns:
            StockLevel after the update, or None when no product has the SKU
        """
        raw_stock = Product.stock + delta
        new_stock = case((raw_stock < 0, 0), else_=raw_stock)
        threshold = func.coalesce(Product.min_stock, DEFAULT_LOW_STOCK_THRESHOLD)
        new_status = case(
            (new_stock <= 0, StockStatus.OUT_OF_STOCK.value),
            (new_stock < threshold, StockStatus.LOW_STOCK.value),
            else_=StockStatus.IN_STOCK.value,
        )

        stmt = (
            update(Product)
            .where(Product.sku == sku)
            .values(stock=new_stock, stock_status=new_status)
            .returning(Product.id, Product.sku, Product.stock, Product.stock_status)
            .execution_options(synchronize_session=False)
        )

        async with self.get_session() as session:
            row = (await session.execute(stmt)).first()
            await session.commit()

        if row is None:
            return None
        return StockLevel(product_id=row[0], sku=row[1], stock=row[2], stock_status=row[3])
