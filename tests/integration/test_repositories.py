"""Tests de integración de los repositorios sobre SQLite."""

import pytest

from app.db.repositories import OrderFilters
from app.domain.models import CustomerDomain, WebhookEvent
from app.domain.value_objects import derive_stock_status
from app.services.orders.queries import OrderQueryService
from app.services.orders.reconciliation import OrderReconciliationStore
from app.utils.error_handler import NotFoundException

pytestmark = pytest.mark.integration


def _event(order_id: int, status: str = "processing", last_name: str = "Mora", event: str = "order.created"):
    return WebhookEvent.from_envelope(
        {
            "event": event,
            "data": {
                "id": order_id,
                "order_number": f"WC-{order_id}",
                "status": status,
                "total": "100.5",
                "billing": {"email": f"cliente{order_id}@example.com", "first_name": "Ana", "last_name": last_name},
            },
        }
    )


class TestProductRepository:
    """Tests para ProductRepository."""

    @pytest.mark.asyncio
    async def test_adjust_stock_returns_level(self, product_repo):
        """Debe devolver el nivel de stock tras el ajuste."""
        product = await product_repo.create(name="Taza", sku="MUG-1", stock=4, min_stock=5)

        level = await product_repo.adjust_stock("MUG-1", 3)

        assert level.product_id == product.id
        assert level.stock == 7
        assert level.stock_status == "in-stock"

    @pytest.mark.asyncio
    async def test_adjust_unknown_sku(self, product_repo):
        """Debe devolver None si el SKU no existe."""
        assert await product_repo.adjust_stock("NOPE", -1) is None

    @pytest.mark.asyncio
    async def test_default_threshold(self, product_repo):
        """Debe usar min_stock 5 por defecto."""
        await product_repo.create(name="Plato", sku="PLATE-1", stock=10)

        level = await product_repo.adjust_stock("PLATE-1", -6)

        assert level.stock_status == "low-stock"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stock, min_stock, delta",
        [
            (10, 3, -1),
            (10, 3, -8),
            (10, 3, -10),
            (2, 3, -5),
            (0, 3, 1),
            (0, 3, 3),
            (4, None, 0),
            (7, 7, -1),
        ],
    )
    async def test_adjust_stock_matches_domain_derivation(self, product_repo, stock, min_stock, delta):
        """Debe calcular en la base de datos el mismo stock y estado que derive_stock_status."""
        fields = {"name": "Vaso", "sku": "GLASS-1", "stock": stock}
        if min_stock is not None:
            fields["min_stock"] = min_stock
        await product_repo.create(**fields)

        level = await product_repo.adjust_stock("GLASS-1", delta)

        expected_stock = max(0, stock + delta)
        assert level.stock == expected_stock
        assert level.stock_status == derive_stock_status(expected_stock, min_stock).value

    @pytest.mark.asyncio
    async def test_create_derives_initial_status(self, product_repo):
        """Debe derivar el estado inicial a partir del stock."""
        empty = await product_repo.create(name="Sin stock", sku="EMPTY-1", stock=0)
        low = await product_repo.create(name="Poco stock", sku="LOW-1", stock=2, min_stock=3)

        assert empty.stock_status == "out-of-stock"
        assert low.stock_status == "low-stock"

    @pytest.mark.asyncio
    async def test_list_active(self, product_repo):
        """Debe listar solo productos activos."""
        await product_repo.create(name="Activo", sku="A-1")
        await product_repo.create(name="Inactivo", sku="I-1", is_active=False)

        products = await product_repo.list_active(limit=10)

        assert [product.sku for product in products] == ["A-1"]


class TestCustomerRepository:
    """Tests para CustomerRepository."""

    @pytest.mark.asyncio
    async def test_find_is_case_insensitive(self, customer_repo):
        """Debe encontrar el cliente sin importar mayúsculas."""
        await customer_repo.create(CustomerDomain(email="ana@example.com", name="Ana"))

        assert await customer_repo.find_by_email("ANA@Example.com ") is not None

    @pytest.mark.asyncio
    async def test_duplicate_email_returns_none(self, customer_repo):
        """Debe devolver None ante un email duplicado."""
        await customer_repo.create(CustomerDomain(email="ana@example.com"))

        assert await customer_repo.create(CustomerDomain(email="ana@example.com")) is None


class TestOrderQueries:
    """Tests para OrderRepository a través de OrderQueryService."""

    @pytest.mark.asyncio
    async def test_list_filters_and_pagination(self, order_repo):
        """Debe filtrar por estado, búsqueda y paginar."""
        store = OrderReconciliationStore(order_repo)
        rows = [(1, "processing", "Mora"), (2, "completed", "Rojas"), (3, "processing", "Vega")]
        for order_id, status, last_name in rows:
            await store.upsert(_event(order_id, status=status, last_name=last_name))
        queries = OrderQueryService(order_repo)

        by_status = await queries.list_orders(OrderFilters(status="processing"), page=1, limit=1)
        assert by_status["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}
        assert len(by_status["orders"]) == 1

        by_search = await queries.list_orders(OrderFilters(search="rojas"))
        assert [order["wc_order_id"] for order in by_search["orders"]] == [2]

        unprocessed = await queries.list_orders(OrderFilters(processed=False))
        assert unprocessed["pagination"]["total"] == 3

    @pytest.mark.asyncio
    async def test_stats(self, order_repo):
        """Debe contar pedidos por estado y procesamiento."""
        store = OrderReconciliationStore(order_repo)
        first, _ = await store.upsert(_event(1))
        await store.upsert(_event(2, status="completed"))
        await store.mark_processed(first.id)

        stats = await OrderQueryService(order_repo).get_stats()

        assert stats["total"] == 2
        assert stats["processed"] == 1
        assert stats["pending"] == 1
        assert {row["status"]: row["count"] for row in stats["by_status"]} == {"completed": 1, "processing": 1}
        assert len(stats["recent"]) == 2

    @pytest.mark.asyncio
    async def test_get_order_not_found(self, order_repo):
        """Debe lanzar NotFoundException para ids inexistentes."""
        with pytest.raises(NotFoundException):
            await OrderQueryService(order_repo).get_order(12345)

    @pytest.mark.asyncio
    async def test_mark_failed_records_error(self, order_repo):
        """Debe guardar el error de procesamiento en el pedido."""
        store = OrderReconciliationStore(order_repo)
        record, created = await store.upsert(_event(1))
        await store.mark_failed(record.id, "RuntimeError: boom")

        order = await OrderQueryService(order_repo).get_order(record.id)

        assert created is True
        assert order["processing_status"] == "failed"
        assert order["processing_error"] == "RuntimeError: boom"
        assert order["processed"] is False

    @pytest.mark.asyncio
    async def test_merge_keeps_missing_fields(self, order_repo):
        """Debe conservar los campos que una entrega posterior no trae."""
        store = OrderReconciliationStore(order_repo)
        record, _ = await store.upsert(_event(1))

        update = WebhookEvent.from_envelope({"event": "order.updated", "data": {"id": 1, "status": "on-hold"}})
        merged, created = await store.upsert(update)

        assert created is False
        assert merged.id == record.id
        assert merged.status == "on-hold"
        assert merged.total == 100.5
        assert merged.billing_email == "cliente1@example.com"
