"""Purchase order domain entities."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from buffet.core.entities.material import MaterialUnit


class PurchaseOrderStatus(str, Enum):
    """Lifecycle states of a purchase order."""

    PENDING = "Pending"
    APPROVED = "Approved"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PurchaseOrderItem(BaseModel):
    """A single purchased line, priced per unit in its own unit."""

    material_id: str
    quantity: float = Field(..., gt=0)
    unit: MaterialUnit
    price: float = Field(..., ge=0)
    note: str = ""

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class PurchaseCategoryRef(BaseModel):
    """Snapshot of the purchase category the order was filed under."""

    id: str
    name: str


class PurchaseOrder(BaseModel):
    """A purchase order and its receipt state."""

    id: str | None = None
    items: list[PurchaseOrderItem] = Field(..., min_length=1)
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    category: PurchaseCategoryRef
    location: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    received_at: datetime | None = None
    receipt_image_url: str | None = None
    version: int = 0

    @property
    def total(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def material_ids(self) -> list[str]:
        """Distinct referenced material ids in item order."""
        return list(dict.fromkeys(item.material_id for item in self.items))
