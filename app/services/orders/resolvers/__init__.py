"""Resolver services for order-related entities."""

from .customer_resolver import CustomerDeduplicator, CustomerResolution

__all__ = ["CustomerDeduplicator", "CustomerResolution"]
