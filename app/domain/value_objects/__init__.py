"""
Value objects for the domain layer.

Value objects are immutable objects that represent concepts
with no conceptual identity, only defined by their attributes.
"""

from .stock_status import DEFAULT_LOW_STOCK_THRESHOLD, StockStatus, derive_stock_status

__all__ = ["StockStatus", "derive_stock_status", "DEFAULT_LOW_STOCK_THRESHOLD"]
