"""
Tagged shapes of a successful response from the sync plugin.

The plugin may answer a batch request with a list of per-item results
(``ItemResults``) or with any other body (``Unstructured``). Callers branch
on the type instead of probing the payload shape inline.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ItemResult:
    """Outcome the plugin reported for one item."""

    success: bool
    sku: str | None = None
    remote_id: Any = None
    action: str | None = None
    message: str | None = None
    code: str | None = None
    raw: Any = None


@dataclass(frozen=True)
class ItemResults:
    """Response that carries per-item outcomes."""

    items: list[ItemResult] = field(default_factory=list)

    def match(self, sku: str, position: int) -> ItemResult | None:
        """
        Find the outcome for a product.

        Items are matched by SKU first; when no item names the SKU the item at
        the same position is used, provided it does not name another SKU.
        """
        for item in self.items:
            if item.sku is not None and str(item.sku) == sku:
                return item
        if position < len(self.items) and self.items[position].sku is None:
            return self.items[position]
        return None


@dataclass(frozen=True)
class Unstructured:
    """Response without per-item outcomes."""

    body: Any = None


SyncResponse = ItemResults | Unstructured


def _item_from_raw(raw: Any) -> ItemResult:
    if not isinstance(raw, dict):
        return ItemResult(success=bool(raw), raw=raw)

    error = raw.get("error")
    message = raw.get("message")
    code = raw.get("code")
    if isinstance(error, dict):
        message = error.get("message", message)
        code = error.get("code", code)
    elif isinstance(error, str):
        message = error

    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
    sku = raw.get("sku", data.get("sku"))

    return ItemResult(
        success=bool(raw.get("success", False)),
        sku=str(sku) if sku is not None else None,
        remote_id=raw.get("product_id", raw.get("id")),
        action=raw.get("action"),
        message=message,
        code=code,
        raw=raw,
    )


def parse_sync_response(body: Any) -> SyncResponse:
    """
    Classify a response body into ItemResults or Unstructured.

    Args:
        body: Decoded JSON body (or raw text when it was not JSON)

    Returns:
        SyncResponse: ItemResults when the body is a list, or an object with a
            ``results`` list; Unstructured otherwise
    """
    if isinstance(body, list):
        return ItemResults(items=[_item_from_raw(item) for item in body])
    if isinstance(body, dict) and isinstance(body.get("results"), list):
        return ItemResults(items=[_item_from_raw(item) for item in body["results"]])
    return Unstructured(body=body)
