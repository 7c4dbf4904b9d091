"""Application use cases."""

from buffet.application.use_cases.adjust_stock_for_sale import (
    AdjustStockForSaleUseCase,
    SaleConsumptionResult,
)
from buffet.application.use_cases.commit_inventory_report import (
    CommitInventoryReportUseCase,
)
from buffet.application.use_cases.compute_inventory_report import (
    ComputeInventoryReportUseCase,
)
from buffet.application.use_cases.create_drink import CreateDrinkUseCase
from buffet.application.use_cases.create_material import CreateMaterialUseCase
from buffet.application.use_cases.create_purchase_order import CreatePurchaseOrderUseCase
from buffet.application.use_cases.drink_orders import (
    CancelDrinkOrderUseCase,
    DrinkOrderResult,
    FulfillDrinkOrderUseCase,
)
from buffet.application.use_cases.generate_wastage_report import (
    GenerateWastageReportUseCase,
)
from buffet.application.use_cases.list_inventory_counts import ListInventoryCountsUseCase
from buffet.application.use_cases.query_audit_log import QueryAuditLogUseCase
from buffet.application.use_cases.transition_purchase_order import (
    TransitionPurchaseOrderUseCase,
    TransitionResult,
)
from buffet.application.use_cases.update_material import UpdateMaterialDetailsUseCase

__all__ = [
    "CreateMaterialUseCase",
    "UpdateMaterialDetailsUseCase",
    "AdjustStockForSaleUseCase",
    "SaleConsumptionResult",
    "CreatePurchaseOrderUseCase",
    "TransitionPurchaseOrderUseCase",
    "TransitionResult",
    "ComputeInventoryReportUseCase",
    "CommitInventoryReportUseCase",
    "ListInventoryCountsUseCase",
    "QueryAuditLogUseCase",
    "CreateDrinkUseCase",
    "FulfillDrinkOrderUseCase",
    "CancelDrinkOrderUseCase",
    "DrinkOrderResult",
    "GenerateWastageReportUseCase",
]
