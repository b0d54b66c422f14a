"""Fixtures compartidos por los tests unitarios y de integración."""

import os

# Sin archivos de log ni .env durante los tests
os.environ["LOG_FILE_PATH"] = ""
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
import pytest_asyncio

from app.core.config import Settings, SyncConfig
from app.db.connection import Database
from app.db.repositories import CustomerRepository, OrderRepository, ProductRepository

WORDPRESS_URL = "https://shop.example.com"
WORDPRESS_API_KEY = "test-api-key-0123456789"


def make_settings(**overrides) -> Settings:
    """Settings aislados del entorno, con sobreescrituras puntuales."""
    values = {
        "ENVIRONMENT": "testing",
        "DEBUG": True,
        "LOG_LEVEL": "WARNING",
        "LOG_FILE_PATH": None,
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "WEBHOOK_API_KEY": None,
        "WEBHOOK_ALLOW_UNAUTHENTICATED": True,
        "ADMIN_API_TOKEN": None,
        "ALLOWED_HOSTS": None,
        "SYNC_TO_WOOCOMMERCE": False,
        "WORDPRESS_URL": None,
        "WORDPRESS_API_KEY": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_sync_config(**overrides) -> SyncConfig:
    """SyncConfig activa apuntando a una tienda ficticia."""
    values = {
        "enabled": True,
        "base_url": WORDPRESS_URL,
        "api_key": WORDPRESS_API_KEY,
        "batch_size": 20,
        "max_retries": 3,
        "base_delay": 1.0,
    }
    values.update(overrides)
    return SyncConfig(**values)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def sync_config_factory():
    return make_sync_config


@pytest.fixture
def sync_config() -> SyncConfig:
    return make_sync_config()


@pytest.fixture
def sleep_calls():
    """Función de espera que registra los delays sin dormir."""
    calls = []

    async def fake_sleep(delay: float) -> None:
        calls.append(delay)

    fake_sleep.calls = calls
    return fake_sleep


@pytest_asyncio.fixture
async def database(tmp_path):
    """Base de datos SQLite temporal con las tablas creadas."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'bridge.db'}")
    await db.initialize(create_tables=True)
    yield db
    await db.close()


@pytest.fixture
def order_repo(database) -> OrderRepository:
    return OrderRepository(database)


@pytest.fixture
def product_repo(database) -> ProductRepository:
    return ProductRepository(database)


@pytest.fixture
def customer_repo(database) -> CustomerRepository:
    return CustomerRepository(database)
