"""Pure domain services."""

from buffet.core.services.inventory_count_engine import (
    InventoryCountEngine,
    end_of_day,
    rewind_stock,
    start_of_day,
)
from buffet.core.services.purchase_order_lifecycle import (
    ALLOWED_TRANSITIONS,
    PurchaseOrderLifecycle,
    StockEffect,
    is_transition_allowed,
    stock_effect,
)
from buffet.core.services.recipe_consumption import (
    aggregate_consumption,
    recipe_material_ids,
)
from buffet.core.services.unit_conversion import (
    CONVERSION_FACTORS,
    convert,
    to_canonical_quantity,
)
from buffet.core.services.wastage_report import WastageReportRow, summarize_wastage

__all__ = [
    # Unit conversion
    "CONVERSION_FACTORS",
    "convert",
    "to_canonical_quantity",
    # Purchase orders
    "ALLOWED_TRANSITIONS",
    "PurchaseOrderLifecycle",
    "StockEffect",
    "is_transition_allowed",
    "stock_effect",
    # Inventory counts
    "InventoryCountEngine",
    "end_of_day",
    "rewind_stock",
    "start_of_day",
    # Drink orders
    "aggregate_consumption",
    "recipe_material_ids",
    # Reports
    "WastageReportRow",
    "summarize_wastage",
]
