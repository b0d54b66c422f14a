"""
Repositories for the local POS database.
"""

from app.db.repositories.customer_repository import CustomerRepository
from app.db.repositories.order_repository import OrderFilters, OrderRepository
from app.db.repositories.product_repository import ProductRepository, StockLevel

__all__ = [
    "CustomerRepository",
    "OrderFilters",
    "OrderRepository",
    "ProductRepository",
    "StockLevel",
]
