"""
Stock status value object.

Stock status is a pure function of the stock quantity and the product's
low-stock threshold. It is recomputed after every stock mutation.
"""

from enum import Enum

DEFAULT_LOW_STOCK_THRESHOLD = 5


class StockStatus(str, Enum):
    """Availability label stored alongside a product's stock quantity."""

    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


def derive_stock_status(stock: int, threshold: int | None = None) -> StockStatus:
    """
    Derive the stock status for a quantity.

    Args:
        stock: Current stock quantity (never negative once persisted)
        threshold: Low-stock threshold; defaults to 5 when missing

    Returns:
        StockStatus: out-of-stock at 0, low-stock below threshold, else in-stock
    """
    if threshold is None:
        threshold = DEFAULT_LOW_STOCK_THRESHOLD

    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock < threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK

