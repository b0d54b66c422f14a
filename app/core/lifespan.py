"""
Gestión del ciclo de vida de la aplicación FastAPI.

Este módulo maneja los eventos de startup y shutdown de la aplicación:
inicialización de la base de datos, construcción de los servicios (guardados
en ``app.state``) y liberación ordenada de recursos.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import Settings, SyncConfig, get_settings
from app.db.connection import Database
from app.db.repositories import CustomerRepository, OrderRepository, ProductRepository
from app.db.woocommerce_client import WooCommerceSyncClient
from app.services.orders.managers import InventoryAdjustor
from app.services.orders.orchestrator import OrderEventOrchestrator
from app.services.orders.queries import OrderQueryService
from app.services.orders.reconciliation import OrderReconciliationStore
from app.services.orders.resolvers import CustomerDeduplicator
from app.services.webhook_handler import WebhookProcessor
from app.services.woocommerce.catalog_hooks import CatalogSyncHooks
from app.services.woocommerce.status_service import SyncStatusService
from app.services.woocommerce.sync_engine import WooCommerceSyncEngine
from app.services.woocommerce.task_runner import SyncTaskRunner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.
    Maneja eventos de startup y shutdown de manera ordenada.

    Args:
        app: Instancia de FastAPI
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    # === STARTUP ===
    logger.info(f"🚀 Iniciando {settings.APP_NAME} v{settings.APP_VERSION}...")

    try:
        # 1. Base de datos local
        await startup_initialize_database(app, settings)

        # 2. Cliente y servicios de sincronización
        await startup_initialize_sync(app, settings)

        # 3. Servicios de pedidos
        startup_initialize_order_services(app, settings)

        logger.info("🎉 Aplicación iniciada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await shutdown_release_resources(app)
        raise

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info(f"🛑 Cerrando {settings.APP_NAME}...")
    await shutdown_release_resources(app)
    logger.info("👋 Aplicación cerrada correctamente")


# === FUNCIONES DE STARTUP ===


async def startup_initialize_database(app: FastAPI, settings: Settings) -> None:
    """Inicializa la base de datos y los repositorios."""
    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    app.state.database = database
    await database.initialize(create_tables=settings.DATABASE_CREATE_TABLES)

    app.state.order_repository = OrderRepository(database)
    app.state.product_repository = ProductRepository(database)
    app.state.customer_repository = CustomerRepository(database)

    logger.info("✅ Base de datos inicializada")


async def startup_initialize_sync(app: FastAPI, settings: Settings) -> None:
    """
    Construye la configuración inmutable de sincronización y los servicios
    que la comparten por referencia.
    """
    sync_config = SyncConfig.from_settings(settings)
    app.state.sync_config = sync_config

    client = WooCommerceSyncClient(sync_config)
    await client.initialize()
    app.state.woocommerce_client = client

    engine = WooCommerceSyncEngine(sync_config, client)
    runner = SyncTaskRunner(history_limit=settings.SYNC_TASK_HISTORY_LIMIT)
    status_service = SyncStatusService(sync_config, client)

    app.state.sync_engine = engine
    app.state.task_runner = runner
    app.state.status_service = status_service
    app.state.catalog_hooks = CatalogSyncHooks(sync_config, engine, runner)

    issues = status_service.validate_config()
    if sync_config.enabled and issues:
        for issue in issues:
            logger.warning(f"⚠️ WooCommerce sync config: {issue}")
    elif not sync_config.enabled:
        logger.info("ℹ️ Sincronización con WooCommerce deshabilitada (SYNC_TO_WOOCOMMERCE=false)")
    else:
        logger.info(f"✅ Sincronización con WooCommerce configurada: {sync_config.api_base_url}")


def startup_initialize_order_services(app: FastAPI, settings: Settings) -> None:
    """Conecta el pipeline de webhooks de pedidos."""
    order_repo = app.state.order_repository

    orchestrator = OrderEventOrchestrator(
        store=OrderReconciliationStore(order_repo),
        inventory=InventoryAdjustor(app.state.product_repository),
        customers=CustomerDeduplicator(app.state.customer_repository),
    )
    app.state.webhook_processor = WebhookProcessor(settings, orchestrator)
    app.state.order_queries = OrderQueryService(order_repo)

    if not settings.WEBHOOK_API_KEY:
        logger.warning("⚠️ WEBHOOK_API_KEY no configurada: los webhooks no se autentican")

    logger.info("✅ Servicios de pedidos inicializados")


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_release_resources(app: FastAPI) -> None:
    """Detiene tareas en curso y cierra cliente HTTP y base de datos."""
    runner = getattr(app.state, "task_runner", None)
    if runner is not None:
        try:
            await runner.shutdown()
        except Exception as e:
            logger.error(f"Error deteniendo tareas de sincronización: {e}")

    client = getattr(app.state, "woocommerce_client", None)
    if client is not None:
        try:
            await client.close()
        except Exception as e:
            logger.error(f"Error cerrando cliente de WooCommerce: {e}")

    database = getattr(app.state, "database", None)
    if database is not None:
        try:
            await database.close()
        except Exception as e:
            logger.error(f"Error cerrando base de datos: {e}")
