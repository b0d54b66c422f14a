"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de la aplicación usando Pydantic Settings para validación automática.
La configuración de sincronización con WooCommerce se congela en un
``SyncConfig`` inmutable al arrancar y se pasa explícitamente a los servicios.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from app.version import VERSION

SYNC_API_NAMESPACE = "/wp-json/wc-pos-sync/v1"


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "POS-WooCommerce Bridge"
    APP_VERSION: str = VERSION
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # === CONFIGURACIÓN DE SEGURIDAD ===
    # Lista separada por comas
    ALLOWED_HOSTS: Optional[str] = None
    CORS_ORIGINS: Optional[str] = None
    ADMIN_API_TOKEN: Optional[str] = None

    # === CONFIGURACIÓN DE BASE DE DATOS ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./pos_bridge.db"
    DATABASE_ECHO: bool = False
    DATABASE_CREATE_TABLES: bool = True

    # === CONFIGURACIÓN DE WEBHOOKS ENTRANTES ===
    WEBHOOK_API_KEY: Optional[str] = None
    # Si no hay WEBHOOK_API_KEY: True acepta todo (con warning), False rechaza con 401
    WEBHOOK_ALLOW_UNAUTHENTICATED: bool = True

    # === CONFIGURACIÓN DE WOOCOMMERCE ===
    SYNC_TO_WOOCOMMERCE: bool = False
    WORDPRESS_URL: Optional[str] = None
    WORDPRESS_API_KEY: Optional[str] = None
    WOOCOMMERCE_SYNC_BATCH_SIZE: int = 20
    WOOCOMMERCE_SYNC_MAX_RETRIES: int = 3
    WOOCOMMERCE_SYNC_BASE_DELAY: float = 1.0
    WOOCOMMERCE_BATCH_TIMEOUT: float = 120.0
    WOOCOMMERCE_SINGLE_TIMEOUT: float = 60.0
    WOOCOMMERCE_STATUS_TIMEOUT: float = 10.0
    WOOCOMMERCE_DELETE_TIMEOUT: float = 30.0
    SYNC_TASK_HISTORY_LIMIT: int = 200

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = "logs/app.log"
    LOG_MAX_SIZE_MB: int = 10
    LOG_BACKUP_COUNT: int = 5
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # === CONFIGURACIÓN DE MONITOREO ===
    SLOW_REQUEST_THRESHOLD: float = 5.0

    # === CONFIGURACIÓN DE DOCUMENTACIÓN ===
    ENABLE_DOCS: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator(
        "WORDPRESS_URL", "WORDPRESS_API_KEY", "WEBHOOK_API_KEY", "ADMIN_API_TOKEN", "LOG_FILE_PATH", mode="before"
    )
    @classmethod
    def empty_string_as_none(cls, v):
        """Trata cadenas vacías como valor ausente."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("WORDPRESS_URL")
    @classmethod
    def normalize_wordpress_url(cls, v):
        """Quita espacios y barras finales de la URL del sitio."""
        if v is None:
            return v
        return v.strip().rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Verifica si está en entorno de desarrollo."""
        return self.ENVIRONMENT == "development"

    @property
    def allowed_hosts(self) -> List[str]:
        """Parsea ALLOWED_HOSTS como lista separada por comas."""
        return _split_csv(self.ALLOWED_HOSTS)

    @property
    def cors_origins(self) -> List[str]:
        """Parsea CORS_ORIGINS como lista separada por comas."""
        return _split_csv(self.CORS_ORIGINS)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class SyncConfig:
    """
    Configuración inmutable de la sincronización saliente.

    Se construye una sola vez al arrancar y se comparte por referencia con
    el motor de sincronización y el servicio de estado.
    """

    enabled: bool
    base_url: Optional[str]
    api_key: Optional[str]
    batch_size: int = 20
    max_retries: int = 3
    base_delay: float = 1.0
    batch_timeout: float = 120.0
    single_timeout: float = 60.0
    status_timeout: float = 10.0
    delete_timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncConfig":
        base_url = settings.WORDPRESS_URL.rstrip("/") if settings.WORDPRESS_URL else None
        return cls(
            enabled=settings.SYNC_TO_WOOCOMMERCE,
            base_url=base_url,
            api_key=settings.WORDPRESS_API_KEY,
            batch_size=settings.WOOCOMMERCE_SYNC_BATCH_SIZE,
            max_retries=settings.WOOCOMMERCE_SYNC_MAX_RETRIES,
            base_delay=settings.WOOCOMMERCE_SYNC_BASE_DELAY,
            batch_timeout=settings.WOOCOMMERCE_BATCH_TIMEOUT,
            single_timeout=settings.WOOCOMMERCE_SINGLE_TIMEOUT,
            status_timeout=settings.WOOCOMMERCE_STATUS_TIMEOUT,
            delete_timeout=settings.WOOCOMMERCE_DELETE_TIMEOUT,
        )

    @property
    def is_active(self) -> bool:
        """True si la sincronización está habilitada y tiene URL y credencial."""
        return bool(self.enabled and self.base_url and self.api_key)

    @property
    def api_base_url(self) -> str:
        """URL base de la API del plugin wc-pos-sync."""
        return f"{self.base_url}{SYNC_API_NAMESPACE}"

    def get_headers(self) -> dict:
        """
        Obtiene headers para requests al plugin.

        Returns:
            dict: Headers de autenticación
        """
        return {
            "X-API-Key": self.api_key or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()


def get_environment_info() -> dict:
    """
    Obtiene información del entorno actual.

    Returns:
        dict: Información del entorno
    """
    settings = get_settings()

    return {
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "is_production": settings.is_production,
        "log_level": settings.LOG_LEVEL,
        "features": {
            "woocommerce_sync": settings.SYNC_TO_WOOCOMMERCE,
            "webhook_auth": bool(settings.WEBHOOK_API_KEY),
            "docs": settings.ENABLE_DOCS,
        },
    }
