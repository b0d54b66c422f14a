"""
Tests de integración de la API HTTP.

La aplicación se crea con create_application() sobre una base SQLite
temporal; el cliente del plugin de WordPress se sustituye por mocks.
"""

import functools
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.main import create_application
from app.utils.error_handler import AuthException

pytestmark = pytest.mark.integration

WEBHOOK_KEY = "webhook-secret-key"
ADMIN_TOKEN = "admin-token-0123456789"

CREATED = {
    "event": "order.created",
    "data": {
        "id": 999,
        "order_number": "999",
        "status": "processing",
        "billing": {"email": "ana@example.com", "first_name": "Ana"},
        "line_items": [{"sku": "TEST-SKU-001", "quantity": 1}],
    },
}


@pytest.fixture
def app_factory(settings_factory, tmp_path):
    def factory(**overrides):
        overrides.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
        return create_application(settings_factory(**overrides))

    return factory


@pytest.fixture
def client(app_factory):
    with TestClient(app_factory(WEBHOOK_API_KEY=WEBHOOK_KEY, ADMIN_API_TOKEN=ADMIN_TOKEN)) as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def create_product(client: TestClient, **fields):
    """Crea un producto en la base de la app usando su propio event loop."""
    repo = client.app.state.product_repository
    return client.portal.call(functools.partial(repo.create, **fields))


def fake_plugin_client() -> MagicMock:
    plugin = MagicMock()
    plugin.sync_products = AsyncMock(return_value={"results": [{"success": True, "sku": "TEST-SKU-001"}]})
    plugin.sync_product = AsyncMock(return_value={"success": True, "sku": "TEST-SKU-001", "action": "updated"})
    plugin.delete_product = AsyncMock(return_value={"deleted": True})
    plugin.get_status = AsyncMock(return_value={"plugin": "wc-pos-sync", "version": "1.0.0"})
    return plugin


class TestRootEndpoints:
    """Tests para los endpoints base."""

    def test_ping(self, client):
        """Debe responder pong."""
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.json()["message"] == "pong"

    def test_health(self, client):
        """Debe reportar la base de datos sana y la sincronización deshabilitada."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["database"]["status"] == "healthy"
        assert body["services"]["woocommerce"]["status"] == "disabled"

    def test_request_id_header(self, client):
        """Debe devolver X-Request-ID en cada respuesta."""
        response = client.get("/ping")

        assert response.headers.get("X-Request-ID")


class TestOrderWebhook:
    """Tests para POST /api/v1/webhooks/orders."""

    def test_valid_webhook(self, client):
        """Debe aceptar un webhook válido y devolver el id interno."""
        create_product(client, name="Camiseta", sku="TEST-SKU-001", stock=10, min_stock=3)

        response = client.post("/api/v1/webhooks/orders", json=CREATED, headers={"X-API-Key": WEBHOOK_KEY})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["order_id"] == 999
        assert body["internal_record_id"] is not None

        product = client.portal.call(client.app.state.product_repository.get_by_sku, "TEST-SKU-001")
        assert product.stock == 9

    @pytest.mark.parametrize("headers", [{}, {"X-API-Key": "wrong"}])
    def test_invalid_api_key(self, client, headers):
        """Debe responder 401 con clave ausente o incorrecta."""
        response = client.post("/api/v1/webhooks/orders", json=CREATED, headers=headers)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_invalid_json(self, client):
        """Debe responder 400 si el cuerpo no es JSON."""
        response = client.post(
            "/api/v1/webhooks/orders",
            content=b"not json",
            headers={"X-API-Key": WEBHOOK_KEY, "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {"data": {"id": 1}},
            {"event": "order.created"},
            {"event": "order.created", "data": {"id": "abc"}},
        ],
    )
    def test_malformed_envelope(self, client, body):
        """Debe responder 400 si falta el evento, los datos o el id es inválido."""
        response = client.post("/api/v1/webhooks/orders", json=body, headers={"X-API-Key": WEBHOOK_KEY})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_unknown_event_acknowledged(self, client):
        """Debe responder 200 a eventos desconocidos."""
        response = client.post(
            "/api/v1/webhooks/orders",
            json={"event": "order.deleted", "data": {"id": 5}},
            headers={"X-API-Key": WEBHOOK_KEY},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Event order.deleted ignored"

    def test_fail_open_without_key(self, app_factory):
        """Debe aceptar webhooks sin clave configurada si se permite."""
        with TestClient(app_factory(WEBHOOK_API_KEY=None)) as client:
            response = client.post("/api/v1/webhooks/orders", json=CREATED)
            health = client.get("/api/v1/webhooks/health")

        assert response.status_code == 200
        assert health.json()["authentication"] == "disabled"

    def test_fail_closed_without_key(self, app_factory):
        """Debe rechazar webhooks sin clave configurada si no se permite."""
        with TestClient(app_factory(WEBHOOK_API_KEY=None, WEBHOOK_ALLOW_UNAUTHENTICATED=False)) as client:
            response = client.post("/api/v1/webhooks/orders", json=CREATED)

        assert response.status_code == 401


class TestOrderAdminEndpoints:
    """Tests para las consultas administrativas de pedidos."""

    def test_requires_bearer_token(self, client):
        """Debe responder 401 sin token o con token incorrecto."""
        assert client.get("/api/v1/webhooks/orders").status_code == 401
        assert client.get("/api/v1/webhooks/orders", headers={"Authorization": "Bearer nope"}).status_code == 401

    def test_forbidden_outside_debug_without_token(self, app_factory):
        """Debe responder 403 sin token configurado fuera de DEBUG."""
        with TestClient(app_factory(DEBUG=False, ADMIN_API_TOKEN=None)) as client:
            response = client.get("/api/v1/webhooks/orders")

        assert response.status_code == 403

    def test_open_in_debug_without_token(self, app_factory):
        """Debe permitir el acceso en DEBUG sin token configurado."""
        with TestClient(app_factory(DEBUG=True, ADMIN_API_TOKEN=None)) as client:
            response = client.get("/api/v1/webhooks/orders/stats")

        assert response.status_code == 200

    def test_list_stats_and_detail(self, client, admin_headers):
        """Debe listar, resumir y detallar los pedidos recibidos."""
        client.post("/api/v1/webhooks/orders", json=CREATED, headers={"X-API-Key": WEBHOOK_KEY})

        listing = client.get("/api/v1/webhooks/orders", params={"status": "processing"}, headers=admin_headers)
        assert listing.status_code == 200
        orders = listing.json()["orders"]
        assert [order["wc_order_id"] for order in orders] == [999]
        assert listing.json()["pagination"]["total"] == 1

        stats = client.get("/api/v1/webhooks/orders/stats", headers=admin_headers).json()
        assert stats["total"] == 1
        assert stats["processed"] == 1

        detail = client.get(f"/api/v1/webhooks/orders/{orders[0]['id']}", headers=admin_headers)
        assert detail.status_code == 200
        assert detail.json()["order"]["billing"]["email"] == "ana@example.com"

    def test_order_not_found(self, client, admin_headers):
        """Debe responder 404 para pedidos inexistentes."""
        response = client.get("/api/v1/webhooks/orders/4242", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_limit_validated(self, client, admin_headers):
        """Debe responder 422 con un tamaño de página fuera de rango."""
        response = client.get("/api/v1/webhooks/orders", params={"limit": 500}, headers=admin_headers)

        assert response.status_code == 422


class TestWooCommerceSyncEndpoints:
    """Tests para /api/v1/woocommerce."""

    def test_disabled_sync_returns_400(self, client, admin_headers):
        """Debe responder 400 si la sincronización está deshabilitada."""
        response = client.post("/api/v1/woocommerce/sync-all", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "SYNC_DISABLED"

    def test_status_when_disabled(self, client, admin_headers):
        """Debe informar los problemas de configuración."""
        response = client.get("/api/v1/woocommerce/status", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["connected"] is False
        assert "SYNC_TO_WOOCOMMERCE is not enabled" in body["issues"]

    def test_requires_admin(self, client):
        """Debe exigir el token de administración."""
        assert client.get("/api/v1/woocommerce/status").status_code == 401


@pytest.fixture
def plugin():
    return fake_plugin_client()


@pytest.fixture
def sync_client(app_factory, plugin):
    app = app_factory(
        ADMIN_API_TOKEN=ADMIN_TOKEN,
        SYNC_TO_WOOCOMMERCE=True,
        WORDPRESS_URL="https://shop.example.com/",
        WORDPRESS_API_KEY="wp-api-key-0123456789",
    )
    with TestClient(app) as client:
        client.app.state.sync_engine.client = plugin
        client.app.state.status_service.client = plugin
        yield client


class TestWooCommerceSyncEnabled:
    """Tests con la sincronización habilitada y el plugin simulado."""

    def test_status_connected(self, sync_client, admin_headers):
        """Debe reportar la conexión con el plugin."""
        body = sync_client.get("/api/v1/woocommerce/status", headers=admin_headers).json()

        assert body["success"] is True
        assert body["connected"] is True
        assert body["status"]["plugin"] == "wc-pos-sync"

    def test_sync_single_product(self, sync_client, plugin, admin_headers):
        """Debe sincronizar un producto existente."""
        product = create_product(sync_client, name="Camiseta", sku="TEST-SKU-001", stock=10)

        response = sync_client.post(f"/api/v1/woocommerce/sync-product/{product.id}", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["result"]["success_count"] == 1
        plugin.sync_product.assert_awaited_once()

    def test_sync_unknown_product(self, sync_client, admin_headers):
        """Debe responder 404 para productos inexistentes."""
        response = sync_client.post("/api/v1/woocommerce/sync-product/9999", headers=admin_headers)

        assert response.status_code == 404

    def test_sync_all(self, sync_client, admin_headers):
        """Debe sincronizar los productos activos."""
        create_product(sync_client, name="Camiseta", sku="TEST-SKU-001", stock=10)

        response = sync_client.post("/api/v1/woocommerce/sync-all", headers=admin_headers)

        body = response.json()
        assert body["result"]["total"] == 1
        assert body["result"]["status"] == "success"

    def test_sync_all_auth_failure(self, sync_client, plugin, admin_headers):
        """Debe devolver el resultado con fallos de auth en vez de un error HTTP."""
        create_product(sync_client, name="Camiseta", sku="TEST-SKU-001", stock=10)
        plugin.sync_products.side_effect = AuthException("Invalid API key", remote_status=401)

        response = sync_client.post("/api/v1/woocommerce/sync-all", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["result"]["failed"][0]["error_type"] == "auth"
        assert plugin.sync_products.await_count == 1

    def test_sync_all_async(self, sync_client, admin_headers):
        """Debe aceptar la tarea en background y exponer su estado."""
        response = sync_client.post("/api/v1/woocommerce/sync-all/async", headers=admin_headers)

        assert response.status_code == 202
        task_id = response.json()["task_id"]

        handle = sync_client.app.state.task_runner.get(task_id)
        sync_client.portal.call(handle.wait)

        task = sync_client.get(f"/api/v1/woocommerce/tasks/{task_id}", headers=admin_headers)
        assert task.status_code == 200
        assert task.json()["state"] == "succeeded"

    def test_unknown_task(self, sync_client, admin_headers):
        """Debe responder 404 para tareas desconocidas."""
        assert sync_client.get("/api/v1/woocommerce/tasks/nope", headers=admin_headers).status_code == 404

    def test_delete_product(self, sync_client, plugin, admin_headers):
        """Debe borrar el producto remoto y conservar el local."""
        product = create_product(sync_client, name="Camiseta", sku="TEST-SKU-001", stock=10)

        response = sync_client.delete(f"/api/v1/woocommerce/delete-product/{product.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        plugin.delete_product.assert_awaited_once_with("TEST-SKU-001")
        local = sync_client.portal.call(sync_client.app.state.product_repository.get_by_id, product.id)
        assert local is not None

    def test_delete_product_without_sku(self, sync_client, plugin, admin_headers):
        """Debe responder 400 si el producto no tiene SKU."""
        product = create_product(sync_client, name="Sin SKU")

        response = sync_client.delete(f"/api/v1/woocommerce/delete-product/{product.id}", headers=admin_headers)

        assert response.status_code == 400
        plugin.delete_product.assert_not_awaited()
