"""Manager services for business operations."""

from .inventory_manager import InventoryAdjustmentReport, InventoryAdjustor

__all__ = ["InventoryAdjustor", "InventoryAdjustmentReport"]
