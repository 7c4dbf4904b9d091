"""
Factories for the configured core services.

Use cases resolve the lifecycle and the count engine through here so that
settings are read once per process.
"""

from buffet.config import get_settings
from buffet.core.services import InventoryCountEngine, PurchaseOrderLifecycle

# Singleton service instances
_purchase_order_lifecycle: PurchaseOrderLifecycle | None = None
_inventory_count_engine: InventoryCountEngine | None = None


def get_purchase_order_lifecycle() -> PurchaseOrderLifecycle:
    """
    Get or create the PurchaseOrderLifecycle.

    Audit and unit-conversion behaviour come from the inventory settings.
    """
    global _purchase_order_lifecycle

    if _purchase_order_lifecycle is None:
        inventory = get_settings().inventory
        _purchase_order_lifecycle = PurchaseOrderLifecycle(
            audit_receipts=inventory.audit_purchase_receipts,
            strict_units=inventory.strict_unit_conversion,
        )
    return _purchase_order_lifecycle


def get_inventory_count_engine() -> InventoryCountEngine:
    """Get or create the InventoryCountEngine for the business timezone."""
    global _inventory_count_engine

    if _inventory_count_engine is None:
        _inventory_count_engine = InventoryCountEngine(tz=get_settings().inventory.tzinfo)
    return _inventory_count_engine


def reset_services() -> None:
    """Reset all service singletons (for testing)."""
    global _purchase_order_lifecycle, _inventory_count_engine
    _purchase_order_lifecycle = None
    _inventory_count_engine = None
