"""
Catalog transform: POS product -> plugin payload.

Pure mapping, no I/O. Accepts either a Product ORM row or a plain dict with
the same attribute names.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

SHORT_DESCRIPTION_LENGTH = 160


def _get(product: Any, name: str, default: Any = None) -> Any:
    if isinstance(product, dict):
        value = product.get(name, default)
    else:
        value = getattr(product, name, default)
    return default if value is None else value


def resolve_sku(product: Any, now: Optional[datetime] = None) -> str:
    """
    SKU sent to the remote side.

    Falls back to the internal id, then to a timestamp-based placeholder.
    """
    sku = _get(product, "sku")
    if sku:
        return str(sku)
    product_id = _get(product, "id")
    if product_id is not None:
        return str(product_id)
    now = now or datetime.now(timezone.utc)
    return f"POS-{int(now.timestamp() * 1000)}"


def transform_product(product: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the payload the wc-pos-sync plugin expects for one product.

    Args:
        product: Product row or dict
        now: Timestamp used for ``pos_last_synced`` (defaults to current UTC)

    Returns:
        Dict: Plugin payload
    """
    now = now or datetime.now(timezone.utc)
    name = _get(product, "name", "")
    stock = int(_get(product, "stock", 0))

    payload: Dict[str, Any] = {
        "sku": resolve_sku(product, now),
        "name": name,
        "price": _get(product, "selling_price", 0),
        "sale_price": _get(product, "discounted_price"),
        "description": _get(product, "description", ""),
        "short_description": name[:SHORT_DESCRIPTION_LENGTH],
        "stock_quantity": stock,
        "manage_stock": True,
        "stock_status": "instock" if stock > 0 else "outofstock",
    }

    weight = _get(product, "weight")
    if weight:
        payload["weight"] = weight

    # The plugin reads dimensions as top-level keys, each only when set.
    for dimension in ("length", "width", "height"):
        value = _get(product, dimension)
        if value:
            payload[dimension] = value

    category = _get(product, "category")
    if category:
        payload["categories"] = [category]

    image = _get(product, "image")
    if image:
        payload["images"] = [image]

    meta_data = [
        {"key": "pos_product_id", "value": str(_get(product, "id", ""))},
        {"key": "pos_last_synced", "value": now.isoformat()},
    ]

    tax_rate = _get(product, "tax_rate")
    if tax_rate:
        meta_data.append({"key": "pos_tax_rate", "value": _meta_text(tax_rate)})

    unit = _get(product, "unit")
    if unit:
        meta_data.append({"key": "pos_unit", "value": unit})

    variation_count = int(_get(product, "variation_count", 0))
    if _get(product, "has_variations", False) and variation_count > 0:
        meta_data.append({"key": "pos_has_variations", "value": "true"})
        meta_data.append({"key": "pos_variation_count", "value": str(variation_count)})

    payload["meta_data"] = meta_data
    return payload


def _meta_text(value: Any) -> str:
    """Meta values travel as strings; integral floats drop the trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
