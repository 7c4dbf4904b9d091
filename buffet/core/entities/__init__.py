"""Core domain entities."""

from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.entities.drink import Drink, DrinkRecipeItem
from buffet.core.entities.inventory_count import InventoryCount, InventoryCountItem
from buffet.core.entities.material import STOCK_EPSILON, Material, MaterialUnit
from buffet.core.entities.purchase_order import (
    PurchaseCategoryRef,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)

__all__ = [
    # Materials
    "STOCK_EPSILON",
    "Material",
    "MaterialUnit",
    # Audit log
    "AuditLogEntry",
    "AuditLogType",
    # Purchasing
    "PurchaseCategoryRef",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    # Inventory counts
    "InventoryCount",
    "InventoryCountItem",
    # Drinks
    "Drink",
    "DrinkRecipeItem",
]
