"""
Modelos Pydantic para los endpoints de sincronización manual con WooCommerce.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class SyncStatusResponse(BaseModel):
    """Estado de configuración y conectividad con el plugin."""

    success: bool
    sync_enabled: bool
    configured: bool
    connected: bool
    status: Optional[Any] = None
    error: Optional[str] = None
    raw: Optional[Any] = None
    issues: List[str] = []


class SyncResultResponse(BaseModel):
    """Partición de productos sincronizados y fallidos."""

    success: bool
    result: Dict[str, Any]


class SyncTaskResponse(BaseModel):
    """Estado de una tarea de sincronización en background."""

    task_id: str
    name: str
    state: str
    submitted_at: Optional[str] = None
    finished_at: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class DeleteProductResponse(BaseModel):
    success: bool
    sku: Optional[str] = None
    message: str
    error_type: Optional[str] = None
    response: Optional[Any] = None
