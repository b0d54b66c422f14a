"""Tests unitarios para SyncResult y la clasificación de respuestas del plugin."""

from app.domain.models import (
    ItemResults,
    SyncErrorKind,
    SyncFailure,
    SyncResult,
    SyncStatus,
    SyncSuccess,
    Unstructured,
    parse_sync_response,
)


def _success(n: int) -> SyncSuccess:
    return SyncSuccess(product_id=str(n), sku=f"SKU-{n}")


def _failure(n: int) -> SyncFailure:
    return SyncFailure(product_id=str(n), sku=f"SKU-{n}", kind=SyncErrorKind.REMOTE_FAULT, message="boom")


class TestSyncResultStatus:
    """Tests para el estado agregado de SyncResult."""

    def test_all_succeeded(self):
        """Debe ser success si no hay fallos."""
        result = SyncResult(success=[_success(1), _success(2)], total=2)
        assert result.status == SyncStatus.SUCCESS

    def test_some_failed(self):
        """Debe ser partial_success con éxitos y fallos."""
        result = SyncResult(success=[_success(1)], failed=[_failure(2)], total=2)
        assert result.status == SyncStatus.PARTIAL_SUCCESS

    def test_all_failed(self):
        """Debe ser failure si fallaron todos."""
        result = SyncResult(failed=[_failure(1)], total=1)
        assert result.status == SyncStatus.FAILURE

    def test_empty_batch_is_success(self):
        """Debe ser success para un lote vacío."""
        assert SyncResult().status == SyncStatus.SUCCESS

    def test_merge_accumulates_partitions(self):
        """Debe acumular particiones y totales al combinar chunks."""
        result = SyncResult(success=[_success(1)], total=1)
        result.merge(SyncResult(failed=[_failure(2)], total=1))

        assert result.total == 2
        assert len(result.success) == 1
        assert len(result.failed) == 1

    def test_failure_serialization(self):
        """Debe serializar el tipo de error y el identificador en conflicto."""
        failure = SyncFailure(
            product_id="2",
            sku="SKU-2",
            kind=SyncErrorKind.CONFLICT,
            message="Duplicate identifier: SKU-2",
            identifier="SKU-2",
        )

        data = failure.to_dict()

        assert data["error_type"] == "conflict"
        assert data["identifier"] == "SKU-2"


class TestParseSyncResponse:
    """Tests para parse_sync_response."""

    def test_list_body(self):
        """Debe clasificar una lista como resultados por item."""
        response = parse_sync_response([{"success": True, "sku": "A", "product_id": 10, "action": "created"}])

        assert isinstance(response, ItemResults)
        item = response.items[0]
        assert item.success is True
        assert item.sku == "A"
        assert item.remote_id == 10
        assert item.action == "created"

    def test_results_key(self):
        """Debe aceptar un objeto con lista 'results'."""
        response = parse_sync_response({"results": [{"success": False, "sku": "B", "message": "bad"}]})

        assert isinstance(response, ItemResults)
        assert response.items[0].message == "bad"

    def test_nested_error_object(self):
        """Debe leer mensaje y código de un objeto 'error' anidado."""
        response = parse_sync_response(
            [{"success": False, "sku": "C", "error": {"code": "duplicate_sku", "message": "SKU C already exists"}}]
        )

        assert response.items[0].code == "duplicate_sku"
        assert response.items[0].message == "SKU C already exists"

    def test_other_bodies_are_unstructured(self):
        """Debe clasificar cualquier otro cuerpo como Unstructured."""
        assert isinstance(parse_sync_response({"success": True}), Unstructured)
        assert isinstance(parse_sync_response("OK"), Unstructured)
        assert isinstance(parse_sync_response(None), Unstructured)


class TestItemResultsMatch:
    """Tests para el emparejamiento de resultados por SKU o posición."""

    def test_match_by_sku_ignores_order(self):
        """Debe emparejar por SKU aunque el orden no coincida."""
        response = parse_sync_response([{"success": True, "sku": "B"}, {"success": False, "sku": "A"}])

        assert response.match("A", 0).success is False
        assert response.match("B", 1).success is True

    def test_match_by_position_without_sku(self):
        """Debe usar la posición cuando el item no nombra SKU."""
        response = parse_sync_response([{"success": True}, {"success": False}])

        assert response.match("X", 1).success is False

    def test_position_does_not_steal_other_sku(self):
        """No debe usar un item por posición si nombra otro SKU."""
        response = parse_sync_response([{"success": True, "sku": "OTHER"}])

        assert response.match("MINE", 0) is None
