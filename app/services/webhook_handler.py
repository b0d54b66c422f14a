"""
Manejador de webhooks de pedidos de WooCommerce.

Este módulo autentica, valida y despacha los eventos de pedidos que envía el
plugin de WordPress. Una vez que el sobre es válido, el webhook siempre se
reconoce; los fallos posteriores quedan registrados en el pedido.
"""

import asyncio
import hmac
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import Settings
from app.core.logging_config import log_webhook_received
from app.domain.models import EventKind, WebhookEvent
from app.services.orders.orchestrator import OrderEventOrchestrator
from app.utils.error_handler import AuthException, log_error

logger = logging.getLogger(__name__)


class WebhookProcessor:
    """
    Procesador principal de webhooks de pedidos.
    """

    def __init__(self, settings: Settings, orchestrator: OrderEventOrchestrator):
        """
        Inicializa el procesador de webhooks.

        Args:
            settings: Configuración (credencial y política fail-open)
            orchestrator: Orquestador de persistencia y efectos secundarios
        """
        self.settings = settings
        self.orchestrator = orchestrator
        self._lock = asyncio.Lock()

    def verify_api_key(self, provided: Optional[str]) -> None:
        """
        Verifica la credencial compartida del header X-API-Key.

        Sin WEBHOOK_API_KEY configurada, se permite el acceso con warning
        salvo que WEBHOOK_ALLOW_UNAUTHENTICATED sea False.

        Args:
            provided: Valor recibido en el header

        Raises:
            AuthException: Si falta la credencial o no coincide
        """
        expected = self.settings.WEBHOOK_API_KEY

        if not expected:
            if self.settings.WEBHOOK_ALLOW_UNAUTHENTICATED:
                logger.warning("WEBHOOK_API_KEY not configured - accepting unauthenticated webhook")
                return
            raise AuthException(message="Webhook authentication is not configured", inbound=True)

        if not provided:
            raise AuthException(message="Missing API key", inbound=True)

        # Comparación segura contra timing attacks
        if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            raise AuthException(message="Invalid API key", inbound=True)

    async def process_webhook(self, body: Any) -> Dict[str, Any]:
        """
        Procesa un webhook ya autenticado.

        Args:
            body: Cuerpo JSON decodificado

        Returns:
            Dict: Respuesta de reconocimiento

        Raises:
            ValidationException: Si el sobre no es estructuralmente válido
        """
        event = WebhookEvent.from_envelope(body)
        log_webhook_received(event.event, event.order_id, order_number=event.order_number)

        if event.kind is None:
            logger.info(f"Ignoring unsupported webhook event: {event.event}")
            return {
                "success": True,
                "message": f"Event {event.event} ignored",
                "event": event.event,
                "order_id": event.order_id,
                "order_number": event.order_number,
                "internal_record_id": None,
            }

        start_time = datetime.now(timezone.utc)

        # Un pedido a la vez, en orden de llegada
        async with self._lock:
            try:
                outcome = await self.orchestrator.process(event)
            except Exception as e:
                log_error(e, {"order_id": event.order_id, "webhook_event": event.event})
                return {
                    "success": False,
                    "message": "Webhook received but the order could not be stored",
                    "event": event.event,
                    "order_id": event.order_id,
                    "order_number": event.order_number,
                    "internal_record_id": None,
                    "error": str(e),
                }

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(f"Webhook {event.event} for order {event.order_id} handled in {duration:.2f}s")

        response = {
            "success": outcome.success,
            "message": _message_for(event.kind, outcome.success),
            "event": event.event,
            "order_id": event.order_id,
            "order_number": outcome.order_number,
            "internal_record_id": outcome.record_id,
        }
        if outcome.error:
            response["error"] = outcome.error
        return response


def _message_for(kind: EventKind, success: bool) -> str:
    if not success:
        return "Webhook received, processing failed"
    if kind == EventKind.ORDER_CREATED:
        return "Order created and processed"
    return "Order status change processed"
