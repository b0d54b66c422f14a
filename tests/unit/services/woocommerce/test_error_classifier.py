"""Tests unitarios para la clasificación de conflictos remotos."""

import pytest

from app.services.woocommerce.error_classifier import (
    PatternConflictClassifier,
    StructuredCodeClassifier,
    default_classifier,
)
from app.utils.error_handler import RemoteFaultException


class TestStructuredCodeClassifier:
    """Tests para errores estructurados de WordPress."""

    def test_conflict_code_with_sku(self):
        """Debe extraer el SKU de data cuando el código es de conflicto."""
        conflict = StructuredCodeClassifier().classify(
            {"code": "product_invalid_sku", "message": "Invalid or duplicated SKU.", "data": {"sku": "ABC-1"}},
            None,
        )

        assert conflict is not None
        assert conflict.identifier == "ABC-1"
        assert conflict.message == "Duplicate identifier: ABC-1"
        assert conflict.raw_message == "Invalid or duplicated SKU."

    def test_nested_error_object(self):
        """Debe leer el código dentro de un objeto 'error'."""
        conflict = StructuredCodeClassifier().classify(
            {"success": False, "error": {"code": "duplicate_sku", "data": {"sku": "X"}}}, None
        )

        assert conflict.identifier == "X"

    def test_other_codes_ignored(self):
        """Debe ignorar códigos que no son de conflicto."""
        assert StructuredCodeClassifier().classify({"code": "rest_forbidden"}, None) is None
        assert StructuredCodeClassifier().classify("plain text", "Duplicate SKU: X") is None


class TestPatternConflictClassifier:
    """Tests para la extracción por patrones de texto."""

    @pytest.mark.parametrize(
        "message,identifier",
        [
            ("Duplicate SKU: TEST-SKU-001", "TEST-SKU-001"),
            ("Invalid or duplicated SKU: ABC.2", "ABC.2"),
            ("SKU PROD-9 already exists", "PROD-9"),
            ("duplicate key value violates unique constraint 'SKU-7'", "SKU-7"),
        ],
    )
    def test_extracts_identifier(self, message, identifier):
        """Debe extraer el identificador en conflicto del mensaje."""
        conflict = PatternConflictClassifier().classify(None, message)

        assert conflict is not None
        assert conflict.identifier == identifier
        assert conflict.raw_message == message

    def test_unrelated_message(self):
        """No debe clasificar mensajes sin conflicto."""
        assert PatternConflictClassifier().classify(None, "Internal Server Error") is None
        assert PatternConflictClassifier().classify(None, None) is None


class TestDefaultClassifier:
    """Tests para la composición de clasificadores."""

    def test_structured_wins_over_pattern(self):
        """Debe preferir el identificador estructurado al del mensaje."""
        conflict = default_classifier().classify(
            {"code": "sku_exists", "data": {"sku": "FROM-DATA"}}, "Duplicate SKU: FROM-TEXT"
        )

        assert conflict.identifier == "FROM-DATA"

    def test_classify_fault(self):
        """Debe clasificar un RemoteFaultException por su mensaje."""
        fault = RemoteFaultException("Duplicate SKU: P-1", remote_status=400, raw_body={"message": "x"})

        conflict = default_classifier().classify_fault(fault)

        assert conflict.identifier == "P-1"

    def test_plain_fault_not_conflict(self):
        """Debe devolver None para fallos remotos genéricos."""
        fault = RemoteFaultException("HTTP 500", remote_status=500, raw_body=None)

        assert default_classifier().classify_fault(fault) is None
