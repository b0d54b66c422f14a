"""
Endpoints de sincronización manual del catálogo con WooCommerce.

Permiten consultar el estado de la integración, sincronizar un producto o
todo el catálogo activo (en línea o como tarea en background) y eliminar
productos del lado remoto.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.api.v1.deps import (
    get_product_repository,
    get_status_service,
    get_sync_engine,
    get_task_runner,
    verify_admin_access,
)
from app.api.v1.schemas.sync_schemas import (
    DeleteProductResponse,
    SyncResultResponse,
    SyncStatusResponse,
    SyncTaskResponse,
)
from app.db.repositories import ProductRepository
from app.domain.models import SyncResult, SyncStatus
from app.services.woocommerce.status_service import SyncStatusService
from app.services.woocommerce.sync_engine import WooCommerceSyncEngine
from app.services.woocommerce.task_runner import SyncTaskRunner
from app.utils.error_handler import NotFoundException, SyncDisabledException, ValidationException

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_admin_access)])


def _ensure_enabled(engine: WooCommerceSyncEngine) -> None:
    if not engine.config.is_active:
        raise SyncDisabledException()


def _result_response(result: SyncResult) -> SyncResultResponse:
    return SyncResultResponse(success=result.status != SyncStatus.FAILURE, result=result.to_dict())


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(service: SyncStatusService = Depends(get_status_service)) -> SyncStatusResponse:
    """
    Estado de configuración y conectividad con el plugin de WordPress.
    """
    connection = await service.check_status()
    return SyncStatusResponse(success=connection.connected, **connection.to_dict())


@router.post("/sync-product/{product_id}", response_model=SyncResultResponse)
async def sync_single_product(
    product_id: int,
    engine: WooCommerceSyncEngine = Depends(get_sync_engine),
    products: ProductRepository = Depends(get_product_repository),
) -> SyncResultResponse:
    """
    Sincroniza un producto por id.

    Raises:
        SyncDisabledException: Si la sincronización está deshabilitada (400)
        NotFoundException: Si el producto no existe (404)
    """
    _ensure_enabled(engine)

    product = await products.get_by_id(product_id)
    if product is None:
        raise NotFoundException(message="Product not found", resource="product", resource_id=product_id)

    result = await engine.sync_product(product)
    return _result_response(result)


@router.post("/sync-all", response_model=SyncResultResponse)
async def sync_all_products(
    limit: int = Query(default=100, ge=1, le=1000),
    skip: int = Query(default=0, ge=0),
    engine: WooCommerceSyncEngine = Depends(get_sync_engine),
    products: ProductRepository = Depends(get_product_repository),
) -> SyncResultResponse:
    """
    Sincroniza los productos activos, más recientes primero.

    Args:
        limit: Máximo de productos a sincronizar
        skip: Productos a saltar (paginación)
    """
    _ensure_enabled(engine)

    batch = await products.list_active(limit=limit, skip=skip)
    logger.info(f"Manual sync of {len(batch)} active products requested (limit={limit}, skip={skip})")

    result = await engine.sync_products(batch)
    return _result_response(result)


@router.post("/sync-all/async", response_model=SyncTaskResponse, status_code=status.HTTP_202_ACCEPTED)
async def sync_all_products_async(
    limit: int = Query(default=100, ge=1, le=1000),
    skip: int = Query(default=0, ge=0),
    engine: WooCommerceSyncEngine = Depends(get_sync_engine),
    products: ProductRepository = Depends(get_product_repository),
    runner: SyncTaskRunner = Depends(get_task_runner),
) -> JSONResponse:
    """
    Igual que ``/sync-all`` pero ejecutado como tarea en background.

    Returns:
        JSONResponse: 202 con el id de la tarea para consultar en ``/tasks/{task_id}``
    """
    _ensure_enabled(engine)

    async def _run() -> SyncResult:
        batch = await products.list_active(limit=limit, skip=skip)
        return await engine.sync_products(batch)

    handle = runner.submit(f"sync-all-{skip}-{limit}", _run())
    return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=handle.to_dict())


@router.get("/tasks/{task_id}", response_model=SyncTaskResponse)
async def get_sync_task(task_id: str, runner: SyncTaskRunner = Depends(get_task_runner)) -> SyncTaskResponse:
    """
    Estado de una tarea de sincronización.

    Raises:
        NotFoundException: Si la tarea no existe o ya salió del historial
    """
    handle = runner.get(task_id)
    if handle is None:
        raise NotFoundException(message="Sync task not found", resource="sync_task", resource_id=task_id)
    return SyncTaskResponse(**handle.to_dict())


@router.delete("/delete-product/{product_id}", response_model=DeleteProductResponse)
async def delete_remote_product(
    product_id: int,
    engine: WooCommerceSyncEngine = Depends(get_sync_engine),
    products: ProductRepository = Depends(get_product_repository),
) -> DeleteProductResponse:
    """
    Elimina un producto de WooCommerce por su SKU. El producto local no se toca.

    Raises:
        SyncDisabledException: Si la sincronización está deshabilitada (400)
        NotFoundException: Si el producto no existe (404)
        ValidationException: Si el producto no tiene SKU (400)
    """
    _ensure_enabled(engine)

    product = await products.get_by_id(product_id)
    if product is None:
        raise NotFoundException(message="Product not found", resource="product", resource_id=product_id)
    if not product.sku:
        raise ValidationException(message="Product has no SKU", field="sku")

    outcome = await engine.delete_product(product.sku)
    return DeleteProductResponse(**outcome.to_dict())
