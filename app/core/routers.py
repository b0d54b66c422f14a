"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo se encarga de registrar todos los routers de la API,
configurar endpoints base y organizar las rutas de manera estructurada.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Importar routers de la API
from app.api.v1.deps import get_app_settings
from app.api.v1.endpoints.webhooks import router as webhooks_router
from app.api.v1.endpoints.woocommerce_sync import router as woocommerce_router
from app.core.health import get_health_status
from app.version import version_info

logger = logging.getLogger(__name__)


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root(request: Request):
        """
        Endpoint raíz que proporciona información básica de la API.

        Returns:
            Dict con información de la API
        """
        settings = get_app_settings(request)
        return {
            "message": "POS-WooCommerce Bridge API",
            "description": "Puente entre el POS local y una tienda WooCommerce",
            "version": settings.APP_VERSION,
            "status": "running",
            "documentation": "/docs" if settings.ENABLE_DOCS else "disabled",
            "timestamp": datetime.now(UTC).isoformat(),
            "endpoints": {
                "health": "/health",
                "webhooks": "/api/v1/webhooks",
                "woocommerce": "/api/v1/woocommerce",
            },
        }

    @app.get("/ping", tags=["Root"], summary="Simple Ping")
    async def ping():
        """
        Endpoint simple para verificar que la API responde.
        """
        return {"message": "pong", "timestamp": datetime.now(UTC).isoformat()}

    @app.get("/version", tags=["Root"], summary="Version Info")
    async def version():
        """
        Versión de la aplicación y metadatos de build.
        """
        return version_info()


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints de health check.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check(request: Request, check_remote: bool = False):
        """
        Health check de la base de datos y la integración con WooCommerce.

        Args:
            check_remote: Si True consulta además el plugin remoto

        Returns:
            JSONResponse: 200 si la base de datos responde, 503 si no
        """
        settings = get_app_settings(request)
        state = request.app.state
        health_status = await get_health_status(
            getattr(state, "database", None),
            getattr(state, "status_service", None),
            check_remote=check_remote,
        )

        return JSONResponse(
            status_code=200 if health_status["overall"] else 503,
            content={
                "status": "healthy" if health_status["overall"] else "unhealthy",
                "version": settings.APP_VERSION,
                "environment": settings.ENVIRONMENT,
                "timestamp": health_status["timestamp"],
                "uptime": health_status["uptime"],
                "services": health_status["services"],
            },
        )

    @app.get("/health/liveness", tags=["Health"], summary="Liveness Check")
    async def liveness_check():
        """
        Verifica que la aplicación esté ejecutándose.
        """
        return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}


def configure_api_v1_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la API v1.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de API v1...")

    # Router de webhooks de pedidos
    app.include_router(
        webhooks_router,
        prefix="/api/v1/webhooks",
        tags=["Webhooks"],
        responses={
            400: {"description": "Malformed webhook envelope"},
            401: {"description": "Invalid API key"},
        },
    )
    logger.info("✅ Router de webhooks configurado")

    # Router de sincronización manual con WooCommerce
    app.include_router(
        woocommerce_router,
        prefix="/api/v1/woocommerce",
        tags=["WooCommerce Sync"],
        responses={
            400: {"description": "Sync disabled"},
            403: {"description": "Admin access required"},
            404: {"description": "Resource not found"},
        },
    )
    logger.info("✅ Router de sincronización WooCommerce configurado")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    # Endpoints base
    create_root_endpoints(app)
    create_health_endpoints(app)

    # Routers principales de API v1
    configure_api_v1_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")
