"""
Connectivity and configuration status for the WooCommerce integration.

Read-only: validating the configuration and probing the plugin never
mutate any state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from app.core.config import SyncConfig
from app.db.woocommerce_client import WooCommerceSyncClient
from app.utils.error_handler import AppException, RemoteFaultException

logger = logging.getLogger(__name__)

MIN_API_KEY_LENGTH = 16


@dataclass
class ConnectionStatus:
    """Outcome of a remote status check."""

    sync_enabled: bool
    configured: bool
    connected: bool
    status: Any = None
    error: Optional[str] = None
    raw: Any = None
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "sync_enabled": self.sync_enabled,
            "configured": self.configured,
            "connected": self.connected,
            "issues": self.issues,
        }
        if self.status is not None:
            data["status"] = self.status
        if self.error is not None:
            data["error"] = self.error
        if self.raw is not None:
            data["raw"] = self.raw
        return data


def validate_config(config: SyncConfig) -> List[str]:
    """
    List specific configuration problems.

    Args:
        config: Sync configuration

    Returns:
        List[str]: Issues found; empty when the configuration is valid
    """
    issues: List[str] = []

    if not config.enabled:
        issues.append("SYNC_TO_WOOCOMMERCE is not enabled")

    if not config.base_url:
        issues.append("WORDPRESS_URL is not set")
    else:
        if not config.base_url.startswith(("http://", "https://")):
            issues.append("WORDPRESS_URL must start with http:// or https://")
        if "/wp-json" in config.base_url:
            issues.append("WORDPRESS_URL must be the site root, without /wp-json")

    if not config.api_key:
        issues.append("WORDPRESS_API_KEY is not set")
    elif len(config.api_key) < MIN_API_KEY_LENGTH:
        issues.append(f"WORDPRESS_API_KEY is too short (minimum {MIN_API_KEY_LENGTH} characters)")

    if config.batch_size < 1:
        issues.append("WOOCOMMERCE_SYNC_BATCH_SIZE must be at least 1")
    if config.max_retries < 0:
        issues.append("WOOCOMMERCE_SYNC_MAX_RETRIES cannot be negative")

    return issues


class SyncStatusService:
    """
    Reports whether sync is enabled, configured and reachable.
    """

    def __init__(self, config: SyncConfig, client: WooCommerceSyncClient):
        self.config = config
        self.client = client

    def validate_config(self) -> List[str]:
        return validate_config(self.config)

    async def check_status(self) -> ConnectionStatus:
        """
        Query the plugin's status endpoint.

        The check runs whenever a URL and key are set, even with sync turned
        off, so a connection can be tested before enabling it.

        Returns:
            ConnectionStatus: connected with the plugin's status body, or
                not connected with an error message and the raw diagnostic
        """
        issues = self.validate_config()
        configured = bool(self.config.base_url and self.config.api_key)
        status = ConnectionStatus(
            sync_enabled=self.config.enabled,
            configured=configured,
            connected=False,
            issues=issues,
        )

        if not configured:
            status.error = "WordPress URL or API key not configured"
            return status

        try:
            status.status = await self.client.get_status()
            status.connected = True
            logger.info("WooCommerce plugin reachable")
        except RemoteFaultException as e:
            status.error = e.message
            status.raw = e.raw_body
            logger.warning(f"WooCommerce status check failed: HTTP {e.remote_status} {e.message}")
        except AppException as e:
            status.error = e.message
            logger.warning(f"WooCommerce status check failed: {e.message}")
        except Exception as e:
            status.error = f"Unexpected error: {type(e).__name__}: {e}"
            logger.exception("WooCommerce status check failed unexpectedly")

        return status
