"""Data transfer objects."""

from buffet.application.dto.requests import (
    AuditLogQueryRequest,
    CommitInventoryReportRequest,
    ComputeInventoryReportRequest,
    CreateDrinkRequest,
    CreateMaterialRequest,
    CreatePurchaseOrderRequest,
    DrinkOrderLine,
    DrinkOrderRequest,
    DrinkRecipeItemRequest,
    ListInventoryCountsRequest,
    PurchaseOrderItemRequest,
    SaleConsumptionRequest,
    TransitionPurchaseOrderRequest,
    UpdateMaterialRequest,
    WastageReportRequest,
    build_request,
)

__all__ = [
    "build_request",
    "AuditLogQueryRequest",
    "CommitInventoryReportRequest",
    "ComputeInventoryReportRequest",
    "CreateDrinkRequest",
    "CreateMaterialRequest",
    "CreatePurchaseOrderRequest",
    "DrinkOrderLine",
    "DrinkOrderRequest",
    "DrinkRecipeItemRequest",
    "ListInventoryCountsRequest",
    "PurchaseOrderItemRequest",
    "SaleConsumptionRequest",
    "TransitionPurchaseOrderRequest",
    "UpdateMaterialRequest",
    "WastageReportRequest",
]
