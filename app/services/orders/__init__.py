"""
Order services package for WooCommerce order webhooks.

This package contains the services that persist incoming orders and apply
their inventory and customer side effects.
"""
