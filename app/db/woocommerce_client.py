"""
HTTP client for the wc-pos-sync WordPress plugin.

Each call is a single attempt. HTTP and transport failures are mapped to the
application's error taxonomy so the sync engine can decide what to retry:

- 401/403 -> AuthException (never retried)
- other non-2xx -> RemoteFaultException carrying the raw body
- timeout / network -> TransientException (retryable)
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import ClientTimeout

from app.core.config import SyncConfig
from app.core.logging_config import log_api_call
from app.utils.error_handler import AuthException, RemoteFaultException, TransientException

logger = logging.getLogger(__name__)


class WooCommerceSyncClient:
    """
    Client for the plugin's REST namespace ``/wp-json/wc-pos-sync/v1``.

    One aiohttp session is shared for the lifetime of the process; it is
    created by ``initialize()`` (or lazily on first use) and released by
    ``close()``.
    """

    def __init__(self, config: SyncConfig, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the client.

        Args:
            config: Immutable sync configuration
            session: Optional pre-built session (tests)
        """
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def initialize(self):
        """Create the HTTP session."""
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=20, limit_per_host=10)
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": "POS-WooCommerce-Bridge"},
            )
            self._owns_session = True
            logger.info(f"WooCommerce sync client initialized for {self.config.base_url}")

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session and self._owns_session:
            await self.session.close()
            logger.info("WooCommerce sync client closed")
        self.session = None

    # ------------------------- Plugin endpoints -------------------------

    async def sync_products(self, products: List[Dict[str, Any]]) -> Any:
        """POST a batch of transformed products."""
        return await self._request(
            "POST", "/sync-products", json_body=products, timeout=self.config.batch_timeout
        )

    async def sync_product(self, product: Dict[str, Any]) -> Any:
        """POST a single transformed product."""
        return await self._request("POST", "/sync-product", json_body=product, timeout=self.config.single_timeout)

    async def delete_product(self, sku: str) -> Any:
        """Ask the plugin to delete the product with the given SKU."""
        return await self._request(
            "POST", "/delete-product", json_body={"sku": sku}, timeout=self.config.delete_timeout
        )

    async def get_status(self) -> Any:
        """Query the plugin status endpoint."""
        return await self._request("GET", "/status", timeout=self.config.status_timeout)

    # ------------------------- Transport -------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        timeout: float = 60.0,
    ) -> Any:
        """
        Execute one HTTP request against the plugin.

        Returns:
            Decoded JSON body, or the raw text when the body is not JSON

        Raises:
            AuthException: On 401/403
            RemoteFaultException: On any other non-2xx status
            TransientException: On timeout or network failure
        """
        if self.session is None:
            await self.initialize()

        url = f"{self.config.api_base_url}{path}"
        start = time.time()

        try:
            async with self.session.request(
                method,
                url,
                json=json_body,
                headers=self.config.get_headers(),
                timeout=ClientTimeout(total=timeout),
            ) as response:
                body = _decode_body(await response.read())
                log_api_call(method, url, response.status, time.time() - start)

                if response.status in (401, 403):
                    raise AuthException(
                        message="Invalid API key. Check WORDPRESS_API_KEY matches the plugin configuration.",
                        remote_status=response.status,
                    )

                if response.status >= 400:
                    raise RemoteFaultException(
                        message=_extract_message(body) or f"HTTP {response.status}",
                        remote_status=response.status,
                        endpoint=path,
                        raw_body=body,
                    )

                return body

        except asyncio.TimeoutError as e:
            log_api_call(method, url, 0, time.time() - start, error="timeout")
            raise TransientException(
                message=f"Request to {path} timed out after {timeout:.0f}s",
                endpoint=path,
                timed_out=True,
            ) from e

        except aiohttp.ClientError as e:
            log_api_call(method, url, 0, time.time() - start, error=str(e))
            raise TransientException(message=f"Network error calling {path}: {e}", endpoint=path) from e


def _decode_body(raw: bytes) -> Any:
    """JSON when possible, otherwise the text with undecodable bytes replaced."""
    text = raw.decode("utf-8", errors="replace")
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _extract_message(body: Any) -> Optional[str]:
    """Pull a human readable message out of a WordPress REST error body."""
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, dict):
            message = message.get("message")
        return str(message) if message else None
    if isinstance(body, str):
        return body[:500]
    return None
