"""
Outbound sync result model.

A SyncResult partitions every product of a sync invocation into exactly one
of two lists: succeeded or failed. ``len(success) + len(failed) == total``
holds for every result produced by the sync engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SyncErrorKind(str, Enum):
    """Classification attached to a failed item."""

    AUTH = "auth"
    CONFLICT = "conflict"
    REMOTE_FAULT = "remote_fault"
    TIMEOUT = "timeout"
    NETWORK = "network"
    DISABLED = "disabled"
    REJECTED = "rejected"
    TRANSFORM = "transform"


class SyncStatus(str, Enum):
    """Overall outcome of a sync invocation."""

    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"


@dataclass
class SyncSuccess:
    """A product the remote side accepted."""

    product_id: str
    sku: str
    remote_id: Any = None
    action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "remote_id": self.remote_id,
            "action": self.action,
        }


@dataclass
class SyncFailure:
    """
    A product that could not be synced.

    Attributes:
        product_id: Internal product id
        sku: SKU sent to the remote side
        kind: Error classification
        message: Human readable diagnostic
        identifier: Conflicting identifier, for conflict failures
        raw: Raw diagnostic returned by the remote side, when any
    """

    product_id: str
    sku: str
    kind: SyncErrorKind
    message: str
    identifier: str | None = None
    raw: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "product_id": self.product_id,
            "sku": self.sku,
            "error_type": self.kind.value,
            "error": self.message,
        }
        if self.identifier is not None:
            data["identifier"] = self.identifier
        if self.raw is not None:
            data["raw"] = self.raw
        return data


@dataclass
class SyncResult:
    """Aggregated outcome of one sync invocation."""

    success: list[SyncSuccess] = field(default_factory=list)
    failed: list[SyncFailure] = field(default_factory=list)
    total: int = 0

    @property
    def status(self) -> SyncStatus:
        if self.total > 0 and len(self.failed) == self.total:
            return SyncStatus.FAILURE
        if self.failed:
            return SyncStatus.PARTIAL_SUCCESS
        return SyncStatus.SUCCESS

    @property
    def is_complete(self) -> bool:
        """True if every product landed in exactly one partition."""
        return len(self.success) + len(self.failed) == self.total

    def merge(self, other: "SyncResult") -> None:
        """Fold a chunk result into this aggregate."""
        self.success.extend(other.success)
        self.failed.extend(other.failed)
        self.total += other.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "total": self.total,
            "success_count": len(self.success),
            "failed_count": len(self.failed),
            "success": [item.to_dict() for item in self.success],
            "failed": [item.to_dict() for item in self.failed],
        }
