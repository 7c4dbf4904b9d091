"""SQLite storage implementations."""

from buffet.infrastructure.storage.sqlite.audit_log_store import SQLiteAuditLogStore
from buffet.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_snapshot,
    get_transaction,
)
from buffet.infrastructure.storage.sqlite.drink_store import SQLiteDrinkStore
from buffet.infrastructure.storage.sqlite.inventory_count_store import (
    SQLiteInventoryCountStore,
)
from buffet.infrastructure.storage.sqlite.material_store import SQLiteMaterialStore
from buffet.infrastructure.storage.sqlite.purchase_order_store import (
    SQLitePurchaseOrderStore,
)
from buffet.infrastructure.storage.sqlite.transaction import (
    SQLiteTransactionCoordinator,
    SQLiteUnitOfWork,
)

# Singleton instances
_material_store: SQLiteMaterialStore | None = None
_audit_log_store: SQLiteAuditLogStore | None = None
_purchase_order_store: SQLitePurchaseOrderStore | None = None
_inventory_count_store: SQLiteInventoryCountStore | None = None
_drink_store: SQLiteDrinkStore | None = None
_transaction_coordinator: SQLiteTransactionCoordinator | None = None


async def get_material_store() -> SQLiteMaterialStore:
    """Get singleton material store instance."""
    global _material_store
    if _material_store is None:
        _material_store = SQLiteMaterialStore()
    return _material_store


async def get_audit_log_store() -> SQLiteAuditLogStore:
    """Get singleton audit log store instance."""
    global _audit_log_store
    if _audit_log_store is None:
        _audit_log_store = SQLiteAuditLogStore()
    return _audit_log_store


async def get_purchase_order_store() -> SQLitePurchaseOrderStore:
    """Get singleton purchase order store instance."""
    global _purchase_order_store
    if _purchase_order_store is None:
        _purchase_order_store = SQLitePurchaseOrderStore()
    return _purchase_order_store


async def get_inventory_count_store() -> SQLiteInventoryCountStore:
    """Get singleton inventory count store instance."""
    global _inventory_count_store
    if _inventory_count_store is None:
        _inventory_count_store = SQLiteInventoryCountStore()
    return _inventory_count_store


async def get_drink_store() -> SQLiteDrinkStore:
    """Get singleton drink store instance."""
    global _drink_store
    if _drink_store is None:
        _drink_store = SQLiteDrinkStore()
    return _drink_store


async def get_transaction_coordinator() -> SQLiteTransactionCoordinator:
    """Get singleton transaction coordinator bound to the global pool."""
    global _transaction_coordinator
    if _transaction_coordinator is None:
        _transaction_coordinator = SQLiteTransactionCoordinator(pool=await get_pool())
    return _transaction_coordinator


def reset_stores() -> None:
    """Drop singleton instances (for testing)."""
    global _material_store, _audit_log_store, _purchase_order_store
    global _inventory_count_store, _drink_store, _transaction_coordinator
    _material_store = None
    _audit_log_store = None
    _purchase_order_store = None
    _inventory_count_store = None
    _drink_store = None
    _transaction_coordinator = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_snapshot",
    "get_transaction",
    # Store classes
    "SQLiteMaterialStore",
    "SQLiteAuditLogStore",
    "SQLitePurchaseOrderStore",
    "SQLiteInventoryCountStore",
    "SQLiteDrinkStore",
    # Transactions
    "SQLiteUnitOfWork",
    "SQLiteTransactionCoordinator",
    # Factory functions
    "get_material_store",
    "get_audit_log_store",
    "get_purchase_order_store",
    "get_inventory_count_store",
    "get_drink_store",
    "get_transaction_coordinator",
    "reset_stores",
]
