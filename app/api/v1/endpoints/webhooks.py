"""
Endpoints para webhooks de pedidos de WooCommerce.

Este módulo recibe los eventos de pedidos que envía el plugin de WordPress y
expone consultas administrativas sobre los pedidos reconciliados.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.v1.deps import get_app_settings, get_order_queries, get_webhook_processor, verify_admin_access
from app.api.v1.schemas.webhook_schemas import (
    OrderDetailResponse,
    OrderListResponse,
    OrderStatsResponse,
    WebhookHealthResponse,
    WebhookResponse,
)
from app.core.config import Settings
from app.db.repositories import OrderFilters
from app.services.orders.queries import OrderQueryService
from app.services.webhook_handler import WebhookProcessor
from app.utils.error_handler import AuthException, ValidationException, create_error_response

logger = logging.getLogger(__name__)

# Crear router
router = APIRouter()


@router.post("/orders", response_model=WebhookResponse, status_code=status.HTTP_200_OK)
async def receive_order_webhook(
    request: Request,
    x_api_key: Optional[str] = Header(default=None),
    processor: WebhookProcessor = Depends(get_webhook_processor),
) -> JSONResponse:
    """
    Endpoint principal para recibir webhooks de pedidos de WooCommerce.

    Responde 401 si la credencial es inválida y 400 si el sobre está mal
    formado. Cualquier otro resultado se reconoce con 200 para que el plugin
    no reintente; los fallos de procesamiento viajan en el cuerpo.

    Args:
        request: Request HTTP con el webhook
        x_api_key: Credencial compartida del header X-API-Key
        processor: Procesador de webhooks

    Returns:
        JSONResponse: Reconocimiento del webhook
    """
    try:
        processor.verify_api_key(x_api_key)
    except AuthException as e:
        logger.warning(f"Webhook rejected: {e.message}")
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=create_error_response(e))

    raw_body = await request.body()
    try:
        body = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        error = ValidationException(message="Request body is not valid JSON", field="body")
        logger.warning("Webhook rejected: invalid JSON body")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=create_error_response(error))

    try:
        result = await processor.process_webhook(body)
    except ValidationException as e:
        logger.warning(f"Webhook rejected: {e.message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=create_error_response(e))

    return JSONResponse(status_code=status.HTTP_200_OK, content=result)


@router.get("/health", response_model=WebhookHealthResponse)
async def webhooks_health(settings: Settings = Depends(get_app_settings)) -> WebhookHealthResponse:
    """
    Health check del receptor de webhooks.
    """
    if settings.WEBHOOK_API_KEY:
        authentication = "api_key"
    elif settings.WEBHOOK_ALLOW_UNAUTHENTICATED:
        authentication = "disabled"
    else:
        authentication = "misconfigured"

    return WebhookHealthResponse(authentication=authentication, timestamp=datetime.now(UTC).isoformat())


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    processed: Optional[bool] = Query(default=None),
    event_type: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Número de pedido, email o nombre"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    queries: OrderQueryService = Depends(get_order_queries),
    _: None = Depends(verify_admin_access),
) -> OrderListResponse:
    """
    Lista los pedidos recibidos, más recientes primero.
    """
    filters = OrderFilters(status=status_filter, processed=processed, event_type=event_type, search=search)
    data = await queries.list_orders(filters, page=page, limit=limit)
    return OrderListResponse(**data)


@router.get("/orders/stats", response_model=OrderStatsResponse)
async def order_stats(
    queries: OrderQueryService = Depends(get_order_queries),
    _: None = Depends(verify_admin_access),
) -> OrderStatsResponse:
    """
    Estadísticas de pedidos: totales, pendientes, por estado y los 5 más recientes.
    """
    return OrderStatsResponse(**(await queries.get_stats()))


@router.get("/orders/{record_id}", response_model=OrderDetailResponse)
async def get_order(
    record_id: int,
    queries: OrderQueryService = Depends(get_order_queries),
    _: None = Depends(verify_admin_access),
) -> OrderDetailResponse:
    """
    Detalle de un pedido por id interno.

    Raises:
        NotFoundException: Si el pedido no existe (404 vía exception handler)
    """
    return OrderDetailResponse(order=await queries.get_order(record_id))
