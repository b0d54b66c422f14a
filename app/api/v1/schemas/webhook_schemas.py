"""
Modelos Pydantic para las respuestas del receptor de webhooks de pedidos.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class WebhookResponse(BaseModel):
    """Reconocimiento devuelto al plugin de WordPress."""

    success: bool
    message: str
    event: Optional[str] = None
    order_id: Optional[int] = None
    order_number: Optional[Any] = None
    internal_record_id: Optional[int] = None
    error: Optional[str] = None


class WebhookHealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "woocommerce-webhooks"
    authentication: str
    timestamp: str


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1, le=100)
    total: int
    pages: int


class OrderListResponse(BaseModel):
    """Listado paginado de pedidos reconciliados."""

    success: bool = True
    orders: List[Dict[str, Any]]
    pagination: Pagination


class StatusCount(BaseModel):
    status: Optional[str] = None
    count: int
    total_amount: float


class OrderStatsResponse(BaseModel):
    success: bool = True
    total: int
    processed: int
    pending: int
    by_status: List[StatusCount]
    recent: List[Dict[str, Any]]


class OrderDetailResponse(BaseModel):
    success: bool = True
    order: Dict[str, Any]
