"""
Classification of remote faults into conflicts.

The plugin reports a duplicate SKU either with a structured WordPress error
(``{"code": "...duplicate_sku...", "data": {"sku": ...}}``) or only through
a message such as ``Invalid or duplicated SKU: ABC-1``. Classifiers are
tried in order; the structured one wins when both could apply.
"""

import logging
import re
from typing import Any, Iterable, Optional, Protocol

from app.utils.error_handler import ConflictException, RemoteFaultException

logger = logging.getLogger(__name__)

CONFLICT_CODES = {
    "product_invalid_sku",
    "woocommerce_rest_product_not_created",
    "duplicate_sku",
    "sku_exists",
    "term_exists",
}

_CONFLICT_PATTERNS = [
    re.compile(r"duplicate[d]?\s+(?:entry\s+)?(?:sku|identifier)\W+(?P<id>[\w\-.]+)", re.IGNORECASE),
    re.compile(r"(?:invalid\s+or\s+)?duplicated\s+sku\W+(?P<id>[\w\-.]+)", re.IGNORECASE),
    re.compile(r"sku\s+['\"]?(?P<id>[\w\-.]+)['\"]?\s+(?:already\s+exists|is\s+already\s+in\s+use)", re.IGNORECASE),
    re.compile(r"(?:already\s+exists|duplicate key).*?['\"](?P<id>[\w\-.]+)['\"]", re.IGNORECASE),
]


class RemoteErrorClassifier(Protocol):
    """Turns a raw remote diagnostic into a ConflictException, or None."""

    def classify(self, body: Any, message: Optional[str]) -> Optional[ConflictException]: ...


class StructuredCodeClassifier:
    """Recognizes WordPress-style error objects carrying a conflict code."""

    def __init__(self, codes: Optional[Iterable[str]] = None):
        self.codes = set(codes) if codes is not None else set(CONFLICT_CODES)

    def classify(self, body: Any, message: Optional[str]) -> Optional[ConflictException]:
        if not isinstance(body, dict):
            return None

        error = body.get("error") if isinstance(body.get("error"), dict) else body
        code = error.get("code")
        if not code or str(code) not in self.codes:
            return None

        data = error.get("data") if isinstance(error.get("data"), dict) else {}
        identifier = data.get("sku") or data.get("unique_sku") or data.get("resource_id") or error.get("sku")
        raw_message = error.get("message") or message or str(code)

        return ConflictException(
            message=f"Duplicate identifier: {identifier}" if identifier else str(raw_message),
            identifier=str(identifier) if identifier is not None else None,
            raw_message=str(raw_message),
        )


class PatternConflictClassifier:
    """Extracts the conflicting identifier from free-text messages."""

    def __init__(self, patterns: Optional[list] = None):
        self.patterns = patterns or _CONFLICT_PATTERNS

    def classify(self, body: Any, message: Optional[str]) -> Optional[ConflictException]:
        if not message:
            return None

        for pattern in self.patterns:
            match = pattern.search(message)
            if match:
                identifier = match.group("id")
                return ConflictException(
                    message=f"Duplicate identifier: {identifier}",
                    identifier=identifier,
                    raw_message=message,
                )
        return None


class CompositeClassifier:
    """Runs classifiers in order and returns the first match."""

    def __init__(self, classifiers: Iterable[RemoteErrorClassifier]):
        self.classifiers = list(classifiers)

    def classify(self, body: Any, message: Optional[str]) -> Optional[ConflictException]:
        for classifier in self.classifiers:
            conflict = classifier.classify(body, message)
            if conflict is not None:
                return conflict
        return None

    def classify_fault(self, fault: RemoteFaultException) -> Optional[ConflictException]:
        """Classify a RemoteFaultException using its raw body and message."""
        conflict = self.classify(fault.raw_body, fault.message)
        if conflict is not None:
            logger.debug(f"Remote fault classified as conflict on {conflict.identifier}")
        return conflict


def default_classifier() -> CompositeClassifier:
    """Structured codes first, then message patterns."""
    return CompositeClassifier([StructuredCodeClassifier(), PatternConflictClassifier()])
