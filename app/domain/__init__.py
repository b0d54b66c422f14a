"""
Domain layer for the POS-WooCommerce bridge.

This layer contains business entities, value objects, and domain logic
that are independent of persistence and transport.
"""
