"""
Version information for the POS-WooCommerce bridge.

Single source of truth: pyproject.toml
Runtime access via importlib.metadata with fallback.
"""

from __future__ import annotations

import os
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import Any

DISTRIBUTION_NAME = "pos-woocommerce-bridge"

# Fallback version if package metadata unavailable (dev mode)
_FALLBACK_VERSION = "0.1.0"


def get_version() -> str:
    """Get the package version from metadata or fallback."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return _FALLBACK_VERSION


VERSION = get_version()


def version_info() -> dict[str, Any]:
    """
    Get version information for the /version endpoint.

    Returns:
        dict with version, python_version and build metadata
    """
    commit = os.environ.get("GIT_COMMIT")
    return {
        "version": VERSION,
        "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "git_commit": commit[:8] if commit else None,
        "git_branch": os.environ.get("GIT_BRANCH"),
        "build_date": os.environ.get("BUILD_DATE"),
    }
