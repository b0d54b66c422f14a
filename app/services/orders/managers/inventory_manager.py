"""InventoryAdjustor service - applies order line items to POS stock."""

import logging
from dataclasses import dataclass, field
from typing import Any

from app.db.repositories import ProductRepository, StockLevel

logger = logging.getLogger(__name__)

RESTOCK_STATUSES = {"cancelled", "refunded"}
NO_OP_STATUSES = {"completed"}


@dataclass
class InventoryAdjustmentReport:
    """What happened to each line item of an adjustment."""

    adjusted: list[StockLevel] = field(default_factory=list)
    skipped: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "adjusted": [
                {"sku": level.sku, "stock": level.stock, "stock_status": level.stock_status} for level in self.adjusted
            ],
            "skipped": self.skipped,
        }


def _line_quantity(item: dict[str, Any]) -> int:
    try:
        return int(item.get("quantity") or 0)
    except (TypeError, ValueError):
        return 0


class InventoryAdjustor:
    """Adjusts stock for order line items (SRP: inventory only)."""

    def __init__(self, product_repo: ProductRepository):
        """
        Initialize with repository dependency.

        Args:
            product_repo: Repository for product stock operations
        """
        self.product_repo = product_repo

    async def deduct(self, line_items: list[dict[str, Any]]) -> InventoryAdjustmentReport:
        """Deduct ordered quantities, clamping stock at zero."""
        return await self._apply(line_items, sign=-1)

    async def restock(self, line_items: list[dict[str, Any]]) -> InventoryAdjustmentReport:
        """Return ordered quantities to stock."""
        return await self._apply(line_items, sign=1)

    async def _apply(self, line_items: list[dict[str, Any]], sign: int) -> InventoryAdjustmentReport:
        """
        Apply each line item independently.

        A failing item is logged and skipped; it never aborts the rest.
        """
        report = InventoryAdjustmentReport()
        action = "restock" if sign > 0 else "deduct"

        for item in line_items or []:
            sku = str(item.get("sku") or "").strip()
            quantity = _line_quantity(item)

            if not sku:
                logger.debug(f"Skipping line item without SKU: {item.get('name')}")
                report.skipped.append({"sku": None, "reason": "missing_sku"})
                continue
            if quantity <= 0:
                report.skipped.append({"sku": sku, "reason": "invalid_quantity"})
                continue

            try:
                level = await self.product_repo.adjust_stock(sku, sign * quantity)
            except Exception as e:
                logger.error(f"Failed to {action} {quantity} of {sku}: {e}")
                report.skipped.append({"sku": sku, "reason": "error", "error": str(e)})
                continue

            if level is None:
                logger.warning(f"Product with SKU {sku} not found, cannot {action} stock")
                report.skipped.append({"sku": sku, "reason": "not_found"})
                continue

            logger.info(f"Stock {action} for {sku}: {sign * quantity:+d} -> {level.stock} ({level.stock_status})")
            report.adjusted.append(level)

        return report
