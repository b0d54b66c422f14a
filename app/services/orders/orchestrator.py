"""
OrderEventOrchestrator - runs the side effects of an order delivery.

Flow per delivery:
1. Upsert the order record (never rolled back once persisted)
2. Mark the record as processing
3. Apply inventory / customer side effects for the event kind
4. Mark processed, or failed with the error recorded on the record
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from app.core.logging_config import LogContext
from app.db.models import WooCommerceOrder
from app.domain.models import EventKind, WebhookEvent
from app.services.orders.interfaces import ICustomerDeduplicator, IInventoryAdjustor, IOrderStore
from app.services.orders.managers.inventory_manager import NO_OP_STATUSES, RESTOCK_STATUSES
from app.utils.error_handler import ProcessingException, log_error

logger = logging.getLogger(__name__)


@dataclass
class ProcessingOutcome:
    """Result of processing one delivery."""

    record_id: int
    order_id: int
    order_number: Any
    created: bool
    success: bool
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class OrderEventOrchestrator:
    """
    Coordinates order persistence and side effects.

    Each collaborator is injected via constructor.
    """

    def __init__(
        self,
        store: IOrderStore,
        inventory: IInventoryAdjustor,
        customers: ICustomerDeduplicator,
    ):
        """
        Initialize orchestrator with service dependencies (DIP).

        Args:
            store: Order reconciliation store
            inventory: Inventory adjustor
            customers: Customer deduplicator
        """
        self.store = store
        self.inventory = inventory
        self.customers = customers

    async def process(self, event: WebhookEvent) -> ProcessingOutcome:
        """
        Persist a delivery and run its side effects.

        Persistence errors propagate; side-effect errors are recorded on the
        order and reported on the outcome.
        """
        record, created = await self.store.upsert(event)
        outcome = ProcessingOutcome(
            record_id=record.id,
            order_id=event.order_id,
            order_number=record.order_number,
            created=created,
            success=False,
        )

        with LogContext(order_id=event.order_id, webhook_event=event.event):
            try:
                await self.store.mark_processing(record.id)
                if event.kind == EventKind.ORDER_CREATED:
                    outcome.details = await self._handle_created(record)
                elif event.kind == EventKind.ORDER_STATUS_CHANGED:
                    outcome.details = await self._handle_status_changed(record, event)
                await self.store.mark_processed(record.id)
            except Exception as e:
                failure = ProcessingException(
                    message=f"{type(e).__name__}: {e}",
                    order_id=event.order_id,
                    stage=event.event,
                )
                log_error(failure, {"record_id": record.id})
                await self._record_failure(record.id, failure.message)
                outcome.error = failure.message
                return outcome

            outcome.success = True
            logger.info(f"✅ Order {event.order_id} processed ({event.event})")
            return outcome

    async def _record_failure(self, record_id: int, message: str) -> None:
        try:
            await self.store.mark_failed(record_id, message)
        except Exception as e:
            logger.error(f"Could not record processing failure on order record {record_id}: {e}")

    async def _handle_created(self, record: WooCommerceOrder) -> dict[str, Any]:
        details: dict[str, Any] = {}

        if record.inventory_reserved:
            logger.info(f"Stock already deducted for order {record.wc_order_id}, skipping inventory")
            details["inventory"] = "already_reserved"
        else:
            # Flag first: a failure after this point must not lead to a second deduction.
            await self.store.set_inventory_reserved(record.id, True)
            report = await self.inventory.deduct(record.line_items or [])
            details["inventory"] = report.to_dict()

        resolution = await self.customers.ensure_customer(record.billing, record.order_number)
        details["customer"] = {
            "email": resolution.email,
            "customer_id": resolution.customer_id,
            "created": resolution.created,
        }
        return details

    async def _handle_status_changed(self, record: WooCommerceOrder, event: WebhookEvent) -> dict[str, Any]:
        transition = event.transition
        target = (transition.new_status if transition and transition.new_status else record.status) or ""
        target = target.lower()

        if target in RESTOCK_STATUSES:
            if not record.inventory_reserved:
                logger.info(f"Order {record.wc_order_id} {target} but no stock was reserved, nothing to restock")
                return {"inventory": "not_reserved", "status": target}
            await self.store.set_inventory_reserved(record.id, False)
            report = await self.inventory.restock(record.line_items or [])
            return {"inventory": report.to_dict(), "status": target}

        if target in NO_OP_STATUSES:
            logger.info(f"Order {record.wc_order_id} completed, no inventory change")

        return {"inventory": "unchanged", "status": target}
