"""
Dependencias compartidas de los endpoints v1.

Los servicios se construyen una sola vez en el lifespan y se guardan en
``app.state``; estas funciones los exponen a los endpoints vía ``Depends``.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from app.core.config import Settings, get_settings
from app.db.repositories import ProductRepository
from app.services.orders.queries import OrderQueryService
from app.services.webhook_handler import WebhookProcessor
from app.services.woocommerce.status_service import SyncStatusService
from app.services.woocommerce.sync_engine import WooCommerceSyncEngine
from app.services.woocommerce.task_runner import SyncTaskRunner

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Configuración con la que se creó la aplicación."""
    return getattr(request.app.state, "settings", None) or get_settings()


def _state_attr(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail=f"Service '{name}' not initialized")
    return service


def get_webhook_processor(request: Request) -> WebhookProcessor:
    return _state_attr(request, "webhook_processor")


def get_order_queries(request: Request) -> OrderQueryService:
    return _state_attr(request, "order_queries")


def get_sync_engine(request: Request) -> WooCommerceSyncEngine:
    return _state_attr(request, "sync_engine")


def get_status_service(request: Request) -> SyncStatusService:
    return _state_attr(request, "status_service")


def get_task_runner(request: Request) -> SyncTaskRunner:
    return _state_attr(request, "task_runner")


def get_product_repository(request: Request) -> ProductRepository:
    return _state_attr(request, "product_repository")


async def verify_admin_access(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """
    Verifica el acceso a los endpoints administrativos.

    Con ADMIN_API_TOKEN configurado se exige ``Authorization: Bearer <token>``.
    Sin token, los endpoints solo están disponibles en modo DEBUG.

    Raises:
        HTTPException: 401 si el token no coincide, 403 si no hay token y no es DEBUG
    """
    expected = settings.ADMIN_API_TOKEN

    if not expected:
        if not settings.DEBUG:
            raise HTTPException(status_code=403, detail="Admin endpoints only available in debug mode")
        return

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected admin request with invalid token")
        raise HTTPException(status_code=401, detail="Invalid admin token")
