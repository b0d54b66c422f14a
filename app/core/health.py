"""
Sistema de health checks para monitoreo de servicios.

Este módulo verifica el estado de la base de datos local y, opcionalmente,
la conectividad con el plugin de WooCommerce.
"""

import asyncio
import logging
import time
from datetime import UTC, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from app.db.connection import Database
from app.services.woocommerce.status_service import SyncStatusService

logger = logging.getLogger(__name__)

# Variable global para tracking de uptime
_app_start_time = datetime.now(UTC)


async def run_health_check_with_timeout(
    service_name: str, check_func: Callable[[], Awaitable[bool]], timeout: float
) -> Dict[str, Any]:
    """
    Ejecuta una verificación de salud individual con timeout específico.

    Args:
        service_name: Nombre del servicio
        check_func: Función de verificación
        timeout: Timeout en segundos

    Returns:
        Dict: Resultado de la verificación
    """
    start_time = time.time()

    try:
        result = await asyncio.wait_for(check_func(), timeout=timeout)
        latency_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if result else "unhealthy",
            "latency_ms": round(latency_ms, 2),
        }

    except asyncio.TimeoutError:
        latency_ms = (time.time() - start_time) * 1000
        logger.warning(f"Health check timeout for {service_name} after {timeout}s")

        return {
            "status": "timeout",
            "error": f"Health check timeout after {timeout}s",
            "latency_ms": round(latency_ms, 2),
        }

    except Exception as e:
        latency_ms = (time.time() - start_time) * 1000
        logger.error(f"Health check failed for {service_name}: {e}")

        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": round(latency_ms, 2),
        }


async def check_woocommerce_health(status_service: SyncStatusService, check_remote: bool) -> Dict[str, Any]:
    """
    Estado de la integración con WooCommerce.

    La sincronización deshabilitada no se considera un fallo.

    Args:
        status_service: Servicio de estado de la sincronización
        check_remote: Si True consulta el endpoint remoto de estado
    """
    config = status_service.config
    if not config.enabled:
        return {"status": "disabled"}

    issues = status_service.validate_config()
    if not check_remote:
        return {"status": "configured" if not issues else "misconfigured", "issues": issues}

    connection = await status_service.check_status()
    result = {"status": "healthy" if connection.connected else "unhealthy", "issues": connection.issues}
    if connection.error:
        result["error"] = connection.error
    return result


async def get_health_status(
    database: Optional[Database],
    status_service: Optional[SyncStatusService] = None,
    check_remote: bool = False,
) -> Dict[str, Any]:
    """
    Obtiene el estado de salud de los servicios.

    Solo la base de datos es crítica para el estado global.

    Args:
        database: Base de datos local (None si no se inicializó)
        status_service: Servicio de estado de WooCommerce
        check_remote: Si True también consulta el plugin remoto

    Returns:
        Dict: Estado global, por servicio y uptime
    """
    services: Dict[str, Any] = {}

    if database is None:
        services["database"] = {"status": "unhealthy", "error": "Database not initialized"}
    else:
        services["database"] = await run_health_check_with_timeout("database", database.test_connection, timeout=5.0)

    if status_service is not None:
        try:
            services["woocommerce"] = await check_woocommerce_health(status_service, check_remote)
        except Exception as e:
            logger.error(f"WooCommerce health check failed: {e}")
            services["woocommerce"] = {"status": "unhealthy", "error": str(e)}

    return {
        "overall": services["database"]["status"] == "healthy",
        "services": services,
        "uptime": get_uptime_info(),
        "timestamp": datetime.now(UTC).isoformat(),
    }


def get_uptime_info() -> Dict[str, Any]:
    """
    Obtiene información de uptime de la aplicación.

    Returns:
        Dict: Información de uptime
    """
    current_time = datetime.now(UTC)
    uptime_delta = current_time - _app_start_time

    return {
        "start_time": _app_start_time.isoformat(),
        "uptime_seconds": int(uptime_delta.total_seconds()),
        "uptime_human": format_uptime(uptime_delta),
    }


def format_uptime(uptime_delta: timedelta) -> str:
    """
    Formatea el uptime en formato legible.
    """
    days = uptime_delta.days
    hours, remainder = divmod(uptime_delta.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")

    return " ".join(parts)
