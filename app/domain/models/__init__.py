"""
Domain models for business entities.

These models represent core business concepts and contain
business logic and invariants.
"""

from .customer import CustomerDomain, normalize_email
from .sync_response import ItemResult, ItemResults, SyncResponse, Unstructured, parse_sync_response
from .sync_result import SyncErrorKind, SyncFailure, SyncResult, SyncStatus, SyncSuccess
from .webhook_event import EventKind, StatusTransition, WebhookEvent

__all__ = [
    "CustomerDomain",
    "normalize_email",
    "EventKind",
    "StatusTransition",
    "WebhookEvent",
    "SyncErrorKind",
    "SyncFailure",
    "SyncResult",
    "SyncStatus",
    "SyncSuccess",
    "ItemResult",
    "ItemResults",
    "SyncResponse",
    "Unstructured",
    "parse_sync_response",
]
