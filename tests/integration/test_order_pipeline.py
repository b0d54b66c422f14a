"""
Tests de integración del pipeline de webhooks de pedidos.

Usan una base de datos SQLite real: el procesador, el orquestador y los
repositorios se conectan igual que en el arranque de la aplicación.
"""

import asyncio

import pytest
import pytest_asyncio

from app.db.repositories import OrderFilters
from app.services.orders.managers import InventoryAdjustor
from app.services.orders.orchestrator import OrderEventOrchestrator
from app.services.orders.reconciliation import OrderReconciliationStore
from app.services.orders.resolvers import CustomerDeduplicator
from app.services.webhook_handler import WebhookProcessor

pytestmark = pytest.mark.integration

BILLING = {"first_name": "Ana", "last_name": "Mora", "email": "Ana.Mora@Example.com", "city": "San José"}


def created_event(order_id: int = 999, quantity: int = 1, sku: str = "TEST-SKU-001") -> dict:
    return {
        "event": "order.created",
        "timestamp": "2024-05-01T10:00:00Z",
        "data": {
            "id": order_id,
            "order_number": str(order_id),
            "status": "processing",
            "currency": "CRC",
            "total": "15000.00",
            "billing": BILLING,
            "line_items": [{"name": "Camiseta", "sku": sku, "quantity": quantity, "total": "15000.00"}],
        },
    }


def status_event(new_status: str, old_status: str = "processing", order_id: int = 999) -> dict:
    return {
        "event": "order.status_changed",
        "data": {
            "id": order_id,
            "status": new_status,
            "status_change": {"old_status": old_status, "new_status": new_status},
        },
    }


@pytest_asyncio.fixture
async def product(product_repo):
    return await product_repo.create(name="Camiseta", sku="TEST-SKU-001", stock=10, min_stock=3, selling_price=15000)


@pytest.fixture
def processor(settings_factory, order_repo, product_repo, customer_repo):
    orchestrator = OrderEventOrchestrator(
        store=OrderReconciliationStore(order_repo),
        inventory=InventoryAdjustor(product_repo),
        customers=CustomerDeduplicator(customer_repo),
    )
    return WebhookProcessor(settings_factory(), orchestrator)


class TestOrderLifecycle:
    """Tests del ciclo de vida completo de un pedido."""

    @pytest.mark.asyncio
    async def test_created_then_cancelled(self, processor, product, product_repo, order_repo, customer_repo):
        """Debe descontar al crear y reponer al cancelar, con historial de estados."""
        response = await processor.process_webhook(created_event())

        assert response["success"] is True
        stored = await product_repo.get_by_sku("TEST-SKU-001")
        assert stored.stock == 9
        assert stored.stock_status == "in-stock"

        order = await order_repo.get_by_wc_order_id(999)
        assert order.processed is True
        assert order.status_changes == []
        assert order.inventory_reserved is True
        assert order.billing_email == "Ana.Mora@Example.com"
        assert response["internal_record_id"] == order.id

        customer = await customer_repo.find_by_email("ana.mora@example.com")
        assert customer is not None
        assert customer.email == "ana.mora@example.com"
        assert customer.notes == "Synced from WooCommerce order #999"

        response = await processor.process_webhook(status_event("cancelled"))

        assert response["success"] is True
        assert response["internal_record_id"] == order.id
        stored = await product_repo.get_by_sku("TEST-SKU-001")
        assert stored.stock == 10

        order = await order_repo.get_by_wc_order_id(999)
        assert order.status == "cancelled"
        assert order.inventory_reserved is False
        assert len(order.status_changes) == 1
        assert order.status_changes[0]["old_status"] == "processing"
        assert order.status_changes[0]["new_status"] == "cancelled"
        # Los campos ausentes en la entrega de estado se conservan
        assert order.total == 15000.0
        assert order.line_items[0]["sku"] == "TEST-SKU-001"

    @pytest.mark.asyncio
    async def test_redelivery_is_idempotent(self, processor, product, product_repo, order_repo):
        """Debe mantener un solo registro y descontar stock una sola vez."""
        await processor.process_webhook(created_event())
        await processor.process_webhook(created_event())

        stored = await product_repo.get_by_sku("TEST-SKU-001")
        assert stored.stock == 9

        orders, total = await order_repo.list_orders(filters=OrderFilters(), offset=0, limit=10)
        assert total == 1

    @pytest.mark.asyncio
    async def test_stock_clamped_at_zero(self, processor, product, product_repo):
        """Debe dejar el stock en 0 si el pedido supera la existencia."""
        await processor.process_webhook(created_event(quantity=15))

        stored = await product_repo.get_by_sku("TEST-SKU-001")
        assert stored.stock == 0
        assert stored.stock_status == "out-of-stock"

    @pytest.mark.asyncio
    async def test_low_stock_threshold(self, processor, product, product_repo):
        """Debe marcar low-stock por debajo de min_stock."""
        await processor.process_webhook(created_event(quantity=8))

        stored = await product_repo.get_by_sku("TEST-SKU-001")
        assert stored.stock == 2
        assert stored.stock_status == "low-stock"

    @pytest.mark.asyncio
    async def test_unknown_sku_still_processed(self, processor, product, order_repo):
        """Debe procesar el pedido aunque un SKU no exista en el POS."""
        response = await processor.process_webhook(created_event(sku="NOT-IN-POS"))

        assert response["success"] is True
        order = await order_repo.get_by_wc_order_id(999)
        assert order.processed is True

    @pytest.mark.asyncio
    async def test_existing_customer_not_duplicated(self, processor, product, customer_repo):
        """Debe reutilizar el cliente existente en pedidos posteriores."""
        await processor.process_webhook(created_event(order_id=1))
        await processor.process_webhook(created_event(order_id=2))

        customer = await customer_repo.find_by_email("ana.mora@example.com")
        assert customer.notes == "Synced from WooCommerce order #1"

    @pytest.mark.asyncio
    async def test_concurrent_deliveries_deduct_each_once(self, processor, product, product_repo, order_repo):
        """Debe procesar entregas concurrentes de pedidos distintos sin perder descuentos."""
        await asyncio.gather(*(processor.process_webhook(created_event(order_id=n)) for n in range(1, 6)))

        stored = await product_repo.get_by_sku("TEST-SKU-001")
        assert stored.stock == 5
        _, total = await order_repo.list_orders(filters=OrderFilters(), offset=0, limit=10)
        assert total == 5

    @pytest.mark.asyncio
    async def test_status_change_before_created(self, processor, order_repo):
        """Debe crear el registro si el cambio de estado llega primero."""
        response = await processor.process_webhook(status_event("on-hold", old_status="pending", order_id=77))

        assert response["success"] is True
        order = await order_repo.get_by_wc_order_id(77)
        assert order.status == "on-hold"
        assert len(order.status_changes) == 1


class FlakyCustomers:
    """Deduplicador que falla en la primera llamada y luego delega."""

    def __init__(self, inner: CustomerDeduplicator):
        self.inner = inner
        self.calls = 0

    async def ensure_customer(self, billing, order_number):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("customer store unavailable")
        return await self.inner.ensure_customer(billing, order_number)


class TestFailedDeliveryRecovery:
    """Tests de recuperación tras una entrega fallida."""

    @pytest.mark.asyncio
    async def test_redelivery_after_failure_reaches_processed(
        self, settings_factory, product, order_repo, product_repo, customer_repo
    ):
        """Debe volver a procesar el mismo registro sin descontar stock dos veces."""
        customers = FlakyCustomers(CustomerDeduplicator(customer_repo))
        processor = WebhookProcessor(
            settings_factory(),
            OrderEventOrchestrator(
                store=OrderReconciliationStore(order_repo),
                inventory=InventoryAdjustor(product_repo),
                customers=customers,
            ),
        )

        first = await processor.process_webhook(created_event())

        assert first["success"] is False
        order = await order_repo.get_by_wc_order_id(999)
        assert order.processing_status == "failed"
        assert order.processed is False
        assert "customer store unavailable" in order.processing_error
        assert order.inventory_reserved is True
        assert (await product_repo.get_by_sku("TEST-SKU-001")).stock == 9

        second = await processor.process_webhook(created_event())

        assert second["success"] is True
        assert second["internal_record_id"] == first["internal_record_id"] == order.id
        order = await order_repo.get_by_wc_order_id(999)
        assert order.processing_status == "processed"
        assert order.processed is True
        assert order.processing_error is None
        assert (await product_repo.get_by_sku("TEST-SKU-001")).stock == 9
        assert await customer_repo.find_by_email("ana.mora@example.com") is not None
