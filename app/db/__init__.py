"""
Módulo de acceso a datos del puente POS-WooCommerce.

- Database: gestión exclusiva de conexiones a la base de datos local
- repositories: operaciones de persistencia por entidad
- WooCommerceSyncClient: cliente HTTP del plugin wc-pos-sync
"""
