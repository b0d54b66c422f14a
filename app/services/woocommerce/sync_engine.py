"""
Outbound Catalog Sync Engine: POS → WooCommerce.

Products are transformed, split into chunks of ``batch_size`` and pushed to
the wc-pos-sync plugin one chunk at a time. Every call goes through the retry
handler, which retries only transient failures (timeouts, network errors).
Every product of an invocation ends up in exactly one partition of the
returned SyncResult; this engine never raises for remote failures.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from app.core.config import SyncConfig
from app.core.logging_config import log_sync_operation
from app.db.woocommerce_client import WooCommerceSyncClient
from app.domain.models import (
    SyncErrorKind,
    SyncFailure,
    SyncResult,
    SyncSuccess,
    Unstructured,
    parse_sync_response,
)
from app.services.woocommerce.error_classifier import CompositeClassifier, default_classifier
from app.services.woocommerce.transform import transform_product
from app.utils.error_handler import (
    AppException,
    AuthException,
    RemoteFaultException,
    TransientException,
)
from app.utils.retry_handler import SleepFunc, create_woocommerce_retry_handler

logger = logging.getLogger(__name__)

DISABLED_MESSAGE = "WooCommerce sync is disabled or not configured"


@dataclass
class PreparedItem:
    """A product ready to be sent, with the identity used to report on it."""

    product_id: str
    sku: str
    payload: dict[str, Any]


@dataclass
class DeleteOutcome:
    """Result of a remote delete. Deletion never raises."""

    success: bool
    sku: str | None
    message: str
    error_type: str | None = None
    response: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "sku": self.sku,
            "message": self.message,
            "error_type": self.error_type,
            "response": self.response,
        }


class WooCommerceSyncEngine:
    """
    Pushes catalog updates to WooCommerce in resilient batches.
    """

    def __init__(
        self,
        config: SyncConfig,
        client: WooCommerceSyncClient,
        classifier: Optional[CompositeClassifier] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize the sync engine.

        Args:
            config: Immutable sync configuration
            client: Plugin HTTP client
            classifier: Remote error classifier (defaults to structured codes, then patterns)
            sleep: Backoff sleep function (defaults to asyncio.sleep)
        """
        self.config = config
        self.client = client
        self.classifier = classifier or default_classifier()
        self.retry_handler = create_woocommerce_retry_handler(
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            sleep=sleep,
        )

    # ------------------------- Public operations -------------------------

    async def sync_products(self, products: Iterable[Any]) -> SyncResult:
        """
        Sync a batch of products, chunked and strictly sequential.

        Args:
            products: Product rows or dicts

        Returns:
            SyncResult: Partition of every product into success/failed
        """
        products = list(products)
        result = SyncResult()

        if not products:
            return result

        if not self.config.is_active:
            logger.warning(f"Skipping sync of {len(products)} products: {DISABLED_MESSAGE}")
            return self._disabled_result(products)

        batch_size = max(1, self.config.batch_size)
        chunks = [products[i : i + batch_size] for i in range(0, len(products), batch_size)]
        start_time = datetime.now(UTC)

        logger.info(f"🔄 Syncing {len(products)} products to WooCommerce in {len(chunks)} chunk(s) of {batch_size}")

        for index, chunk in enumerate(chunks, start=1):
            chunk_result = await self._sync_chunk(
                chunk,
                send=self.client.sync_products,
                label=f"chunk {index}/{len(chunks)}",
            )
            result.merge(chunk_result)
            logger.info(
                f"Chunk {index}/{len(chunks)} done - "
                f"{len(chunk_result.success)} succeeded, {len(chunk_result.failed)} failed"
            )

        duration = (datetime.now(UTC) - start_time).total_seconds()
        log_sync_operation(
            "sync_batch",
            "woocommerce",
            total=result.total,
            succeeded=len(result.success),
            failed=len(result.failed),
            status=result.status.value,
            duration_seconds=round(duration, 2),
        )
        return result

    async def sync_product(self, product: Any) -> SyncResult:
        """
        Sync one product through the single-item endpoint.

        Returns:
            SyncResult with total == 1
        """
        if not self.config.is_active:
            return self._disabled_result([product])

        result = await self._sync_chunk(
            [product],
            send=lambda payloads: self.client.sync_product(payloads[0]),
            label="single",
        )
        log_sync_operation(
            "sync_single",
            "woocommerce",
            product_id=str(_attr(product, "id")),
            status=result.status.value,
        )
        return result

    async def delete_product(self, sku: Optional[str]) -> DeleteOutcome:
        """
        Delete a product remotely by SKU. Never raises.
        """
        if not self.config.is_active:
            return DeleteOutcome(success=False, sku=sku, message=DISABLED_MESSAGE, error_type="disabled")

        if not sku:
            logger.warning("Delete requested for a product without SKU, nothing to do")
            return DeleteOutcome(success=False, sku=sku, message="Product has no SKU", error_type="validation")

        try:
            response = await self.retry_handler.execute(self.client.delete_product, sku, context={"sku": sku})
        except AppException as e:
            kind = _kind_for(e)
            logger.error(f"Failed to delete product {sku} from WooCommerce: {e.message}")
            log_sync_operation("delete", "woocommerce", sku=sku, success=False, error_type=kind.value)
            return DeleteOutcome(success=False, sku=sku, message=e.message, error_type=kind.value)
        except Exception as e:
            logger.exception(f"Unexpected error deleting product {sku} from WooCommerce")
            return DeleteOutcome(success=False, sku=sku, message=str(e), error_type=SyncErrorKind.REMOTE_FAULT.value)

        log_sync_operation("delete", "woocommerce", sku=sku, success=True)
        return DeleteOutcome(success=True, sku=sku, message="Product deleted from WooCommerce", response=response)

    # ------------------------- Internals -------------------------

    def _disabled_result(self, products: Sequence[Any]) -> SyncResult:
        result = SyncResult(total=len(products))
        for product in products:
            result.failed.append(
                SyncFailure(
                    product_id=str(_attr(product, "id")),
                    sku=str(_attr(product, "sku") or ""),
                    kind=SyncErrorKind.DISABLED,
                    message=DISABLED_MESSAGE,
                )
            )
        return result

    def _prepare(self, chunk: Sequence[Any], result: SyncResult) -> list[PreparedItem]:
        now = datetime.now(UTC)
        prepared: list[PreparedItem] = []
        for product in chunk:
            product_id = str(_attr(product, "id"))
            try:
                payload = transform_product(product, now=now)
            except (TypeError, ValueError) as e:
                logger.error(f"Could not transform product {product_id}: {e}")
                result.failed.append(
                    SyncFailure(
                        product_id=product_id,
                        sku=str(_attr(product, "sku") or ""),
                        kind=SyncErrorKind.TRANSFORM,
                        message=f"Invalid product data: {e}",
                    )
                )
                continue
            prepared.append(PreparedItem(product_id=product_id, sku=payload["sku"], payload=payload))
        return prepared

    async def _sync_chunk(
        self,
        chunk: Sequence[Any],
        send: Callable[[list[dict[str, Any]]], Awaitable[Any]],
        label: str,
    ) -> SyncResult:
        result = SyncResult(total=len(chunk))
        items = self._prepare(chunk, result)
        if not items:
            return result

        payloads = [item.payload for item in items]

        try:
            body = await self.retry_handler.execute(send, payloads, context={"chunk": label, "items": len(items)})

        except AuthException as e:
            logger.error(f"Authentication rejected by WooCommerce for {label}: {e.message}")
            self._fail_all(result, items, SyncErrorKind.AUTH, e.message)

        except RemoteFaultException as e:
            conflict = self.classifier.classify_fault(e)
            if conflict is not None:
                logger.warning(f"Conflict syncing {label}: {conflict.raw_message}")
                self._fail_all(
                    result,
                    items,
                    SyncErrorKind.CONFLICT,
                    conflict.message,
                    identifier=conflict.identifier,
                    raw=e.raw_body,
                )
            else:
                logger.error(f"Remote fault syncing {label}: HTTP {e.remote_status} {e.message}")
                self._fail_all(result, items, SyncErrorKind.REMOTE_FAULT, e.message, raw=e.raw_body)

        except TransientException as e:
            attempts = self.retry_handler.retry_policy.max_attempts
            kind = SyncErrorKind.TIMEOUT if e.timed_out else SyncErrorKind.NETWORK
            message = f"{'Timeout' if e.timed_out else 'Network error'} after {attempts} attempts: {e.message}"
            logger.error(f"Giving up on {label}: {message}")
            self._fail_all(result, items, kind, message)

        except AppException as e:
            logger.error(f"Error syncing {label}: {e}")
            self._fail_all(result, items, SyncErrorKind.REMOTE_FAULT, e.message)

        except Exception as e:
            logger.exception(f"Unexpected error syncing {label}")
            self._fail_all(result, items, SyncErrorKind.REMOTE_FAULT, f"Unexpected error: {type(e).__name__}: {e}")

        else:
            self._record_response(result, items, body)

        return result

    def _record_response(self, result: SyncResult, items: list[PreparedItem], body: Any) -> None:
        response = parse_sync_response(body)

        if isinstance(response, Unstructured):
            for item in items:
                result.success.append(SyncSuccess(product_id=item.product_id, sku=item.sku))
            return

        for position, item in enumerate(items):
            outcome = response.match(item.sku, position)
            if outcome is None:
                logger.warning(f"No per-item result for SKU {item.sku}, recording as succeeded")
                result.success.append(SyncSuccess(product_id=item.product_id, sku=item.sku))
            elif outcome.success:
                result.success.append(
                    SyncSuccess(
                        product_id=item.product_id,
                        sku=item.sku,
                        remote_id=outcome.remote_id,
                        action=outcome.action,
                    )
                )
            else:
                result.failed.append(self._item_failure(item, outcome.message, outcome.raw))

    def _item_failure(self, item: PreparedItem, message: Optional[str], raw: Any) -> SyncFailure:
        conflict = self.classifier.classify(raw, message)
        if conflict is not None:
            return SyncFailure(
                product_id=item.product_id,
                sku=item.sku,
                kind=SyncErrorKind.CONFLICT,
                message=conflict.message,
                identifier=conflict.identifier or item.sku,
                raw=conflict.raw_message,
            )
        return SyncFailure(
            product_id=item.product_id,
            sku=item.sku,
            kind=SyncErrorKind.REJECTED,
            message=message or "Rejected by WooCommerce",
            raw=raw,
        )

    @staticmethod
    def _fail_all(
        result: SyncResult,
        items: list[PreparedItem],
        kind: SyncErrorKind,
        message: str,
        identifier: Optional[str] = None,
        raw: Any = None,
    ) -> None:
        for item in items:
            result.failed.append(
                SyncFailure(
                    product_id=item.product_id,
                    sku=item.sku,
                    kind=kind,
                    message=message,
                    identifier=identifier,
                    raw=raw,
                )
            )


def _attr(product: Any, name: str) -> Any:
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


def _kind_for(exception: AppException) -> SyncErrorKind:
    if isinstance(exception, AuthException):
        return SyncErrorKind.AUTH
    if isinstance(exception, TransientException):
        return SyncErrorKind.TIMEOUT if exception.timed_out else SyncErrorKind.NETWORK
    return SyncErrorKind.REMOTE_FAULT
