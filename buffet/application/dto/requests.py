"""Request DTOs for inventory operations.

Pydantic v2 models validating caller input before any storage access.
These are the ONLY contracts between callers and use cases.
"""

from datetime import date, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from buffet.core.entities.inventory_count import InventoryCount
from buffet.core.entities.material import MaterialUnit
from buffet.core.entities.purchase_order import PurchaseOrderStatus
from buffet.core.exceptions import ValidationError

RequestT = TypeVar("RequestT", bound=BaseModel)


def build_request(model: type[RequestT], **data: Any) -> RequestT:
    """
    Instantiate a request model, raising the domain ValidationError.

    Only the first pydantic error is reported; its location becomes the
    field name.
    """
    try:
        return model(**data)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or model.__name__
        raise ValidationError(field, error["msg"], error.get("input")) from e


class _NonBlankIds(BaseModel):
    """Strips identifier-like strings and rejects blanks."""

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


# Materials


class CreateMaterialRequest(_NonBlankIds):
    """Request to add a material to the catalogue."""

    name: str = Field(..., min_length=1, max_length=200)
    unit: MaterialUnit
    stock: float = Field(default=0.0, ge=0, description="Initial stock in the material's unit")
    low_stock_threshold: float = Field(default=0.0, ge=0)


class UpdateMaterialRequest(_NonBlankIds):
    """Request to edit the non-stock fields of a material."""

    material_id: str = Field(..., min_length=1)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    unit: MaterialUnit | None = None
    low_stock_threshold: float | None = Field(default=None, ge=0)


class SaleConsumptionRequest(_NonBlankIds):
    """Stock consumed by a sale."""

    material_id: str = Field(..., min_length=1)
    quantity_consumed: float = Field(..., gt=0)
    related_order_id: str = Field(..., min_length=1)


# Purchasing


class PurchaseOrderItemRequest(_NonBlankIds):
    """A purchase order line as entered."""

    material_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: MaterialUnit
    price: float = Field(..., gt=0, description="Price per unit in the line's unit")
    note: str = ""


class CreatePurchaseOrderRequest(_NonBlankIds):
    """Request to create a Pending purchase order."""

    items: list[PurchaseOrderItemRequest] = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    category_name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    receipt_image_url: str | None = None


class TransitionPurchaseOrderRequest(_NonBlankIds):
    """Request to move a purchase order to another status."""

    order_id: str = Field(..., min_length=1)
    new_status: PurchaseOrderStatus


# Inventory counts


class ComputeInventoryReportRequest(BaseModel):
    """Physical counts for a past or current date; ``None`` means not counted."""

    count_date: date
    counts: dict[str, float | None]

    @field_validator("counts")
    @classmethod
    def counts_non_negative(cls, v: dict[str, float | None]) -> dict[str, float | None]:
        for material_id, counted in v.items():
            if not material_id.strip():
                raise ValueError("material id must not be empty")
            if counted is not None and counted < 0:
                raise ValueError(f"counted stock for {material_id} must not be negative")
        return v


class CommitInventoryReportRequest(BaseModel):
    """A computed draft to persist."""

    draft: InventoryCount

    @field_validator("draft")
    @classmethod
    def must_be_unsaved_draft(cls, v: InventoryCount) -> InventoryCount:
        if v.id is not None:
            raise ValueError("inventory count has already been saved")
        if not v.items:
            raise ValueError("at least one material must be counted")
        if any(item.counted_stock < 0 for item in v.items):
            raise ValueError("counted stock must not be negative")
        return v


class ListInventoryCountsRequest(BaseModel):
    """Date filter for saved counts."""

    start_date: date | None = None
    end_date: date | None = None
    limit: int = Field(default=100, ge=1, le=1000)

    @model_validator(mode="after")
    def check_range(self) -> "ListInventoryCountsRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


# Audit log


class AuditLogQueryRequest(BaseModel):
    """Audit log filter; both bounds of ``date_range`` are inclusive."""

    material_id: str | None = None
    date_range: tuple[datetime, datetime] | None = None

    @field_validator("date_range")
    @classmethod
    def check_range(
        cls, v: tuple[datetime, datetime] | None
    ) -> tuple[datetime, datetime] | None:
        if v is not None and v[0] > v[1]:
            raise ValueError("range start must not be after range end")
        return v


# Drinks


class DrinkRecipeItemRequest(_NonBlankIds):
    material_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: MaterialUnit


class CreateDrinkRequest(_NonBlankIds):
    """Request to add a drink with its recipe."""

    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(default=0.0, ge=0)
    recipe: list[DrinkRecipeItemRequest] = Field(default_factory=list)


class DrinkOrderLine(_NonBlankIds):
    drink_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class DrinkOrderRequest(_NonBlankIds):
    """Drinks of one order whose recipes are consumed or returned."""

    order_id: str = Field(..., min_length=1)
    items: list[DrinkOrderLine] = Field(..., min_length=1)


# Reports


class WastageReportRequest(BaseModel):
    """Period of a wastage report; a single day when ``end_date`` is omitted."""

    start_date: date
    end_date: date | None = None

    @model_validator(mode="after")
    def check_range(self) -> "WastageReportRequest":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def last_day(self) -> date:
        return self.end_date or self.start_date
