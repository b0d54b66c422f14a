"""Read-side queries over reconciled orders."""

import logging
import math
from typing import Any

from app.db.repositories import OrderFilters, OrderRepository
from app.utils.error_handler import NotFoundException

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class OrderQueryService:
    """Listing, statistics and lookup of WooCommerce order records."""

    def __init__(self, order_repo: OrderRepository):
        self.order_repo = order_repo

    async def list_orders(self, filters: OrderFilters, page: int = 1, limit: int = 20) -> dict[str, Any]:
        """
        Paginated listing, newest first.

        Args:
            filters: Status / processed / event type / free-text filters
            page: 1-based page number
            limit: Page size, capped at 100
        """
        page = max(1, page)
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        orders, total = await self.order_repo.list_orders(filters, offset=(page - 1) * limit, limit=limit)

        return {
            "orders": [order.to_dict() for order in orders],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }

    async def get_stats(self) -> dict[str, Any]:
        stats = await self.order_repo.get_stats(recent_limit=5)
        stats["recent"] = [
            {
                "id": order.id,
                "wc_order_id": order.wc_order_id,
                "order_number": order.order_number,
                "status": order.status,
                "total": order.total,
                "processed": order.processed,
                "created_at": order.created_at.isoformat() if order.created_at else None,
            }
            for order in stats["recent"]
        ]
        return stats

    async def get_order(self, record_id: int) -> dict[str, Any]:
        """
        Raises:
            NotFoundException: If no record has that id
        """
        order = await self.order_repo.get_by_id(record_id)
        if order is None:
            raise NotFoundException(message="Order not found", resource="woocommerce_order", resource_id=record_id)
        return order.to_dict()
