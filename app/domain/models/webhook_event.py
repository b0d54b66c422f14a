"""
Webhook event model.

Parses the envelope pushed by the WooCommerce plugin,
``{"event": ..., "timestamp": ..., "data": {...}}``, into a typed event.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.utils.error_handler import ValidationException


class EventKind(str, Enum):
    """Event kinds the dispatcher acts upon."""

    ORDER_CREATED = "order.created"
    ORDER_STATUS_CHANGED = "order.status_changed"


@dataclass(frozen=True)
class StatusTransition:
    """Explicit status transition carried by a payload."""

    old_status: str | None
    new_status: str | None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "StatusTransition | None":
        raw = data.get("status_change")
        if not isinstance(raw, dict):
            return None
        return cls(old_status=raw.get("old_status"), new_status=raw.get("new_status"))


@dataclass(frozen=True)
class WebhookEvent:
    """
    A structurally valid webhook delivery.

    Attributes:
        event: Raw event name
        data: Order payload
        order_id: External (WooCommerce) order id
        timestamp: Timestamp sent by the plugin, if any
    """

    event: str
    data: dict[str, Any]
    order_id: int
    timestamp: Any = None

    @property
    def kind(self) -> EventKind | None:
        """Recognized event kind, or None for forward-compatible unknown kinds."""
        try:
            return EventKind(self.event)
        except ValueError:
            return None

    @property
    def order_number(self) -> Any:
        return self.data.get("order_number")

    @property
    def transition(self) -> StatusTransition | None:
        return StatusTransition.from_payload(self.data)

    @classmethod
    def from_envelope(cls, body: Any) -> "WebhookEvent":
        """
        Validate and parse a webhook envelope.

        Args:
            body: Decoded JSON body

        Returns:
            WebhookEvent: Parsed event

        Raises:
            ValidationException: When the envelope is missing ``event`` or
                ``data``, or the order id is not numeric
        """
        if not isinstance(body, dict):
            raise ValidationException(
                message="Webhook body must be a JSON object",
                field="body",
                invalid_value=type(body).__name__,
                expected_format="object",
            )

        event = body.get("event")
        if not event or not isinstance(event, str):
            raise ValidationException(
                message="Missing event in webhook payload",
                field="event",
                invalid_value=event,
                expected_format="non-empty string",
            )

        data = body.get("data", body.get("payload"))
        if data is None:
            raise ValidationException(message="Missing data in webhook payload", field="data")
        if not isinstance(data, dict):
            raise ValidationException(
                message="Webhook data must be an object",
                field="data",
                invalid_value=type(data).__name__,
                expected_format="object",
            )

        order_id = _parse_order_id(data.get("id"))

        return cls(event=event, data=data, order_id=order_id, timestamp=body.get("timestamp"))


def _parse_order_id(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationException(
            message="Missing order id in webhook data",
            field="data.id",
            invalid_value=value,
            expected_format="integer",
        )
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise ValidationException(
            message="Order id must be numeric",
            field="data.id",
            invalid_value=value,
            expected_format="integer",
        ) from e
