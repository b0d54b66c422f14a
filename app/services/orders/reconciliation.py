"""
OrderReconciliationStore - one record per WooCommerce order.

Deliveries are folded into the stored record with a field-merge rule: a field
present (non-null) in the new payload overwrites the stored value, a missing
field keeps it. Explicit status transitions are appended to
``status_changes``, which is never rewritten.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from app.db.models import ProcessingStatus, WooCommerceOrder
from app.db.repositories import OrderRepository
from app.domain.models import StatusTransition, WebhookEvent

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "order_number",
    "status",
    "currency",
    "date_created",
    "date_modified",
    "payment_method",
    "payment_method_title",
    "transaction_id",
    "customer_note",
)
MONEY_FIELDS = ("total", "subtotal", "total_tax", "total_shipping", "discount_total")
OBJECT_FIELDS = ("billing", "shipping")
LIST_FIELDS = ("line_items", "shipping_lines", "tax_lines", "fee_lines", "coupon_lines", "meta_data")


def _to_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract_order_fields(data: dict[str, Any]) -> dict[str, Any]:
    """
    Map a WooCommerce order payload to record columns.

    Only keys present with a non-null value are returned, so the result can
    be applied directly as a merge.
    """
    fields: dict[str, Any] = {}

    for name in TEXT_FIELDS:
        if data.get(name) is not None:
            fields[name] = str(data[name])

    for name in MONEY_FIELDS:
        if data.get(name) is not None:
            value = _to_float(data[name])
            if value is not None:
                fields[name] = value

    if data.get("customer_id") is not None:
        fields["customer_id"] = _to_int(data["customer_id"])

    for name in OBJECT_FIELDS:
        if isinstance(data.get(name), dict):
            fields[name] = dict(data[name])

    for name in LIST_FIELDS:
        if isinstance(data.get(name), list):
            fields[name] = list(data[name])

    return fields


def apply_delivery(record: WooCommerceOrder, event: WebhookEvent, created: bool, now: datetime) -> None:
    """
    Fold one delivery into a record.

    Args:
        record: New or stored record
        event: Parsed webhook event
        created: True when the record is being created by this delivery
        now: Timestamp for the delivery
    """
    fields = extract_order_fields(event.data)
    transition = event.transition

    if created:
        for name in LIST_FIELDS:
            setattr(record, name, [])
        for name in OBJECT_FIELDS:
            setattr(record, name, {})
        record.status_changes = []
        record.processing_status = ProcessingStatus.RECEIVED
        record.processed = False
        record.inventory_reserved = False

    for name, value in fields.items():
        setattr(record, name, value)

    if "status" not in fields and transition is not None and transition.new_status:
        record.status = transition.new_status

    if transition is not None:
        record.status_changes = [*(record.status_changes or []), _history_entry(transition, now)]

    billing = record.billing or {}
    record.billing_email = billing.get("email")
    record.billing_first_name = billing.get("first_name")
    record.billing_last_name = billing.get("last_name")

    record.event_type = event.event
    record.webhook_received_at = now


def _history_entry(transition: StatusTransition, now: datetime) -> dict[str, Any]:
    return {
        "old_status": transition.old_status,
        "new_status": transition.new_status,
        "changed_at": now.isoformat(),
    }


class OrderReconciliationStore:
    """Idempotent upsert and processing-state bookkeeping for order records."""

    def __init__(self, order_repo: OrderRepository):
        """
        Initialize with repository dependency.

        Args:
            order_repo: Repository for order records
        """
        self.order_repo = order_repo

    async def upsert(self, event: WebhookEvent) -> tuple[WooCommerceOrder, bool]:
        """
        Create or merge the record for the event's order id.

        Returns:
            Tuple of the persisted record and whether it was created
        """
        now = datetime.now(UTC)

        def apply(record: WooCommerceOrder, created: bool) -> None:
            apply_delivery(record, event, created, now)

        record, created = await self.order_repo.upsert(event.order_id, apply)
        logger.info(
            f"{'Created' if created else 'Updated'} record {record.id} for WooCommerce order "
            f"{event.order_id} (#{record.order_number}) from {event.event}"
        )
        return record, created

    async def mark_processing(self, record_id: int) -> None:
        await self.order_repo.update_fields(record_id, processing_status=ProcessingStatus.PROCESSING)

    async def mark_processed(self, record_id: int) -> None:
        await self.order_repo.update_fields(
            record_id,
            processing_status=ProcessingStatus.PROCESSED,
            processed=True,
            processed_at=datetime.now(UTC),
            processing_error=None,
        )

    async def mark_failed(self, record_id: int, error: str) -> None:
        await self.order_repo.update_fields(
            record_id,
            processing_status=ProcessingStatus.FAILED,
            processed=False,
            processing_error=error,
        )

    async def set_inventory_reserved(self, record_id: int, reserved: bool) -> None:
        await self.order_repo.update_fields(record_id, inventory_reserved=reserved)
