"""Core interfaces (ports) for dependency injection."""

from buffet.core.interfaces.audit_log_store import IAuditLogStore
from buffet.core.interfaces.drink_store import IDrinkStore
from buffet.core.interfaces.inventory_count_store import IInventoryCountStore
from buffet.core.interfaces.material_store import IMaterialStore
from buffet.core.interfaces.purchase_order_store import IPurchaseOrderStore
from buffet.core.interfaces.transaction import ITransactionCoordinator, IUnitOfWork

__all__ = [
    # Storage interfaces
    "IMaterialStore",
    "IAuditLogStore",
    "IPurchaseOrderStore",
    "IInventoryCountStore",
    "IDrinkStore",
    # Transactions
    "IUnitOfWork",
    "ITransactionCoordinator",
]
