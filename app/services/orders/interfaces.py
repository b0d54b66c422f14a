"""
Interfaces/Protocols for order services (Dependency Inversion Principle).

These protocols define contracts that services must implement,
allowing for loose coupling and easy testing.
"""

from typing import Any, Protocol

from app.db.models import WooCommerceOrder
from app.domain.models import WebhookEvent
from app.services.orders.managers import InventoryAdjustmentReport
from app.services.orders.resolvers import CustomerResolution


class IOrderStore(Protocol):
    """Protocol for order reconciliation storage."""

    async def upsert(self, event: WebhookEvent) -> tuple[WooCommerceOrder, bool]:
        """Create or merge the record for an event."""
        ...

    async def mark_processing(self, record_id: int) -> None: ...

    async def mark_processed(self, record_id: int) -> None: ...

    async def mark_failed(self, record_id: int, error: str) -> None: ...

    async def set_inventory_reserved(self, record_id: int, reserved: bool) -> None: ...


class IInventoryAdjustor(Protocol):
    """Protocol for inventory adjustment services."""

    async def deduct(self, line_items: list[dict[str, Any]]) -> InventoryAdjustmentReport:
        """Deduct ordered quantities from stock."""
        ...

    async def restock(self, line_items: list[dict[str, Any]]) -> InventoryAdjustmentReport:
        """Return ordered quantities to stock."""
        ...


class ICustomerDeduplicator(Protocol):
    """Protocol for customer deduplication services."""

    async def ensure_customer(self, billing: dict[str, Any] | None, order_number: Any) -> CustomerResolution:
        """Create the billing customer if it does not exist."""
        ...
