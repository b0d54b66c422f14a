"""
OrderRepository: persistence of reconciled WooCommerce orders.

The repository owns transactions; merge rules are supplied by the caller
as a callback applied inside the upsert transaction.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from app.db.models import WooCommerceOrder
from app.db.repositories.base import BaseRepository, log_operation

logger = logging.getLogger(__name__)

ApplyFunc = Callable[[WooCommerceOrder, bool], None]


@dataclass
class OrderFilters:
    """Filters for the order listing."""

    status: Optional[str] = None
    processed: Optional[bool] = None
    event_type: Optional[str] = None
    search: Optional[str] = None


class OrderRepository(BaseRepository):
    """Repository for WooCommerce order records."""

    @log_operation()
    async def get_by_wc_order_id(self, wc_order_id: int) -> Optional[WooCommerceOrder]:
        async with self.get_session() as session:
            result = await session.execute(select(WooCommerceOrder).where(WooCommerceOrder.wc_order_id == wc_order_id))
            return result.scalar_one_or_none()

    @log_operation()
    async def get_by_id(self, record_id: int) -> Optional[WooCommerceOrder]:
        async with self.get_session() as session:
            return await session.get(WooCommerceOrder, record_id)

    @log_operation()
    async def upsert(self, wc_order_id: int, apply: ApplyFunc) -> Tuple[WooCommerceOrder, bool]:
        """
        Create or update the record for an external order id.

        ``apply(record, created)`` mutates the record inside the transaction.
        If a concurrent delivery created the record first, the unique key
        violation is caught and ``apply`` is re-run against the stored record
        in merge mode.

        Returns:
            Tuple of the persisted record and whether it was created
        """
        async with self.get_session() as session:
            stmt = select(WooCommerceOrder).where(WooCommerceOrder.wc_order_id == wc_order_id)
            record = (await session.execute(stmt)).scalar_one_or_none()
            created = record is None

            if created:
                record = WooCommerceOrder(wc_order_id=wc_order_id, status_changes=[])
                session.add(record)

            apply(record, created)

            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                if not created:
                    raise
                logger.warning(f"Order {wc_order_id} was created concurrently, merging into stored record")
                record = (await session.execute(stmt)).scalar_one()
                apply(record, False)
                await session.commit()
                created = False

            await session.refresh(record)
            return record, created

    @log_operation()
    async def update_fields(self, record_id: int, **fields: Any) -> None:
        """Update columns of a record by primary key."""
        async with self.get_session() as session:
            await session.execute(
                update(WooCommerceOrder)
                .where(WooCommerceOrder.id == record_id)
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
            await session.commit()

    @log_operation()
    async def list_orders(self, filters: OrderFilters, offset: int, limit: int) -> Tuple[List[WooCommerceOrder], int]:
        """
        List records newest first.

        Returns:
            Tuple of the page of records and the total matching count
        """
        conditions = []
        if filters.status:
            conditions.append(WooCommerceOrder.status == filters.status)
        if filters.processed is not None:
            conditions.append(WooCommerceOrder.processed.is_(filters.processed))
        if filters.event_type:
            conditions.append(WooCommerceOrder.event_type == filters.event_type)
        if filters.search:
            pattern = f"%{filters.search.lower()}%"
            conditions.append(
                or_(
                    func.lower(WooCommerceOrder.order_number).like(pattern),
                    func.lower(WooCommerceOrder.billing_email).like(pattern),
                    func.lower(WooCommerceOrder.billing_first_name).like(pattern),
                    func.lower(WooCommerceOrder.billing_last_name).like(pattern),
                )
            )

        async with self.get_session() as session:
            count_stmt = select(func.count()).select_from(WooCommerceOrder).where(*conditions)
            total = (await session.execute(count_stmt)).scalar_one()

            stmt = (
                select(WooCommerceOrder)
                .where(*conditions)
                .order_by(desc(WooCommerceOrder.created_at), desc(WooCommerceOrder.id))
                .offset(offset)
                .limit(limit)
            )
            orders = list((await session.execute(stmt)).scalars().all())
            return orders, total

    @log_operation()
    async def get_stats(self, recent_limit: int = 5) -> Dict[str, Any]:
        """Aggregate counts by processing flag and by order status."""
        async with self.get_session() as session:
            total = (await session.execute(select(func.count()).select_from(WooCommerceOrder))).scalar_one()
            processed = (
                await session.execute(
                    select(func.count()).select_from(WooCommerceOrder).where(WooCommerceOrder.processed.is_(True))
                )
            ).scalar_one()

            by_status_rows = (
                await session.execute(
                    select(
                        WooCommerceOrder.status,
                        func.count(WooCommerceOrder.id),
                        func.coalesce(func.sum(WooCommerceOrder.total), 0.0),
                    )
                    .group_by(WooCommerceOrder.status)
                    .order_by(WooCommerceOrder.status)
                )
            ).all()

            recent = (
                (
                    await session.execute(
                        select(WooCommerceOrder)
                        .order_by(desc(WooCommerceOrder.created_at), desc(WooCommerceOrder.id))
                        .limit(recent_limit)
                    )
                )
                .scalars()
                .all()
            )

        return {
            "total": total,
            "processed": processed,
            "pending": total - processed,
            "by_status": [
                {"status": status, "count": count, "total_amount": float(amount or 0)}
                for status, count, amount in by_status_rows
            ],
            "recent": list(recent),
        }
