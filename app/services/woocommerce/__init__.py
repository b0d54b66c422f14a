"""
Outbound WooCommerce synchronization.

- transform: POS product -> plugin payload
- error_classifier: remote fault -> conflict classification
- sync_engine: chunked, retried batch sync
- status_service: configuration validation and connectivity check
- task_runner / catalog_hooks: background sync triggered by catalog changes
"""
