"""Tests unitarios para el parseo del sobre de webhooks."""

import pytest

from app.domain.models import EventKind, WebhookEvent
from app.utils.error_handler import ValidationException


class TestFromEnvelope:
    """Tests para WebhookEvent.from_envelope."""

    def test_parses_order_created(self):
        """Debe extraer evento, id numérico y número de pedido."""
        event = WebhookEvent.from_envelope(
            {
                "event": "order.created",
                "timestamp": "2024-05-01T10:00:00Z",
                "data": {"id": 999, "order_number": "999", "status": "processing"},
            }
        )

        assert event.kind == EventKind.ORDER_CREATED
        assert event.order_id == 999
        assert event.order_number == "999"
        assert event.timestamp == "2024-05-01T10:00:00Z"
        assert event.transition is None

    def test_accepts_numeric_string_id(self):
        """Debe aceptar ids numéricos enviados como texto."""
        event = WebhookEvent.from_envelope({"event": "order.created", "data": {"id": "1234"}})
        assert event.order_id == 1234

    def test_accepts_payload_alias(self):
        """Debe aceptar 'payload' cuando falta 'data'."""
        event = WebhookEvent.from_envelope({"event": "order.created", "payload": {"id": 5}})
        assert event.order_id == 5

    def test_status_transition(self):
        """Debe exponer la transición explícita de estado."""
        event = WebhookEvent.from_envelope(
            {
                "event": "order.status_changed",
                "data": {"id": 999, "status_change": {"old_status": "processing", "new_status": "cancelled"}},
            }
        )

        assert event.kind == EventKind.ORDER_STATUS_CHANGED
        assert event.transition.old_status == "processing"
        assert event.transition.new_status == "cancelled"

    def test_unknown_event_has_no_kind(self):
        """Debe aceptar eventos desconocidos sin clasificarlos."""
        event = WebhookEvent.from_envelope({"event": "order.refunded.partial", "data": {"id": 1}})
        assert event.kind is None

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"data": {"id": 1}}, "event"),
            ({"event": "", "data": {"id": 1}}, "event"),
            ({"event": "order.created"}, "data"),
            ({"event": "order.created", "data": []}, "data"),
            ({"event": "order.created", "data": {}}, "data.id"),
            ({"event": "order.created", "data": {"id": "abc"}}, "data.id"),
            ({"event": "order.created", "data": {"id": True}}, "data.id"),
            (["order.created"], "body"),
        ],
    )
    def test_invalid_envelopes(self, body, field):
        """Debe rechazar sobres sin evento, sin datos o con id no numérico."""
        with pytest.raises(ValidationException) as exc_info:
            WebhookEvent.from_envelope(body)

        assert exc_info.value.field == field
        assert exc_info.value.status_code == 400
