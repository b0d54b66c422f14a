"""
Hooks the product CRUD layer calls to keep WooCommerce in step.

Saves are synced in the background and return an observable handle; deletes
are awaited so the caller can delete locally afterwards, and never raise.
"""

import logging
from typing import Any, Optional

from app.core.config import SyncConfig
from app.services.woocommerce.sync_engine import DeleteOutcome, WooCommerceSyncEngine
from app.services.woocommerce.task_runner import SyncTaskHandle, SyncTaskRunner

logger = logging.getLogger(__name__)


class CatalogSyncHooks:
    """Entry points for product create/update/delete."""

    def __init__(self, config: SyncConfig, engine: WooCommerceSyncEngine, runner: SyncTaskRunner):
        self.config = config
        self.engine = engine
        self.runner = runner

    def product_saved(self, product: Any) -> Optional[SyncTaskHandle]:
        """
        Schedule a sync of a created or updated product.

        Returns:
            Handle of the background task, or None when sync is disabled
        """
        if not self.config.is_active:
            return None

        product_id = product.get("id") if isinstance(product, dict) else getattr(product, "id", None)
        return self.runner.submit(f"product-{product_id}", self.engine.sync_product(product))

    async def product_deleted(self, product: Any) -> DeleteOutcome:
        """
        Delete a product remotely before it is removed locally.
        """
        sku = product.get("sku") if isinstance(product, dict) else getattr(product, "sku", None)
        outcome = await self.engine.delete_product(sku)
        if not outcome.success:
            logger.warning(f"Remote delete of {sku} did not succeed ({outcome.message}); continuing with local delete")
        return outcome
