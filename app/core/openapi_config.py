"""
Configuración personalizada de OpenAPI/Swagger para la aplicación FastAPI.

Agrega tags, esquemas de seguridad y metadatos de la integración al esquema
generado automáticamente.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from app.core.config import Settings

logger = logging.getLogger(__name__)


def get_custom_openapi_schema(app: FastAPI, settings: Settings) -> Dict[str, Any]:
    """
    Genera esquema OpenAPI personalizado con información adicional.

    Args:
        app: Instancia de FastAPI
        settings: Configuración de la aplicación

    Returns:
        Dict: Esquema OpenAPI personalizado
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema["tags"] = get_custom_tags()

    # Conservar los schemas generados por FastAPI
    components = openapi_schema.setdefault("components", {})
    components["securitySchemes"] = get_security_schemes()

    openapi_schema["x-app-info"] = {
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "features": {
            "order_webhooks": True,
            "catalog_sync": settings.SYNC_TO_WOOCOMMERCE,
        },
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def get_custom_tags() -> list:
    """
    Define tags personalizados para organizar los endpoints.
    """
    return [
        {"name": "Root", "description": "Endpoints básicos de información y estado"},
        {"name": "Health", "description": "Salud de la base de datos y de la integración"},
        {
            "name": "Webhooks",
            "description": "Eventos de pedidos enviados por el plugin de WordPress y consultas administrativas",
        },
        {
            "name": "WooCommerce Sync",
            "description": "Sincronización manual del catálogo del POS hacia WooCommerce (admin)",
        },
    ]


def get_security_schemes() -> Dict[str, Any]:
    """
    Define esquemas de seguridad para la API.
    """
    return {
        "WebhookApiKey": {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
            "description": "Credencial compartida con el plugin de WordPress",
        },
        "AdminBearer": {
            "type": "http",
            "scheme": "bearer",
            "description": "ADMIN_API_TOKEN para endpoints administrativos",
        },
    }


def configure_openapi(app: FastAPI, settings: Settings) -> None:
    """
    Configura la documentación OpenAPI de la aplicación.

    Args:
        app: Instancia de FastAPI
        settings: Configuración de la aplicación
    """

    def custom_openapi():
        return get_custom_openapi_schema(app, settings)

    if settings.ENABLE_DOCS:
        app.openapi = custom_openapi
        logger.info("✅ Documentación OpenAPI configurada y habilitada")
    else:
        logger.info("🔒 Documentación OpenAPI deshabilitada")
