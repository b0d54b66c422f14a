#!/usr/bin/env python3
"""
Verifica la configuración y la conectividad con el plugin de WooCommerce.

Uso:
    python -m app.cli.check_connection
    python -m app.cli.check_connection --json
"""

import argparse
import asyncio
import json
import sys

from app.core.config import SyncConfig, get_settings
from app.core.logging_config import setup_logging
from app.db.woocommerce_client import WooCommerceSyncClient
from app.services.woocommerce.status_service import ConnectionStatus, SyncStatusService


async def check_connection(config: SyncConfig) -> ConnectionStatus:
    """Ejecuta la validación de configuración y la consulta de estado."""
    client = WooCommerceSyncClient(config)
    await client.initialize()
    try:
        return await SyncStatusService(config, client).check_status()
    finally:
        await client.close()


def print_report(config: SyncConfig, status: ConnectionStatus) -> None:
    print("=" * 70)
    print("WOOCOMMERCE CONNECTION CHECK")
    print("=" * 70)
    print(f"Sync enabled: {status.sync_enabled}")
    print(f"Endpoint:     {config.api_base_url if config.base_url else '(not configured)'}")
    print(f"Configured:   {status.configured}")

    if status.issues:
        print("\nConfiguration issues:")
        for issue in status.issues:
            print(f"  - {issue}")
    else:
        print("\nConfiguration: OK")

    if status.connected:
        print("\n✅ Plugin reachable")
        print(json.dumps(status.status, indent=2, default=str))
    else:
        print(f"\n❌ Not connected: {status.error}")
    print("=" * 70)


def main() -> int:
    parser = argparse.ArgumentParser(description="Check the WooCommerce sync configuration and connectivity")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings)
    config = SyncConfig.from_settings(settings)

    status = asyncio.run(check_connection(config))

    if args.json:
        print(json.dumps(status.to_dict(), indent=2, default=str))
    else:
        print_report(config, status)

    return 0 if status.connected else 1


if __name__ == "__main__":
    sys.exit(main())
