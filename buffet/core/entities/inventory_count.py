"""Inventory count domain entities."""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from buffet.core.entities.material import STOCK_EPSILON, MaterialUnit


class InventoryCountItem(BaseModel):
    """Physical count of one material against its reconstructed stock."""

    material_id: str
    material_name: str
    unit: MaterialUnit
    system_stock: float
    counted_stock: float
    wastage: float = 0.0  # positive = loss, negative = surplus

    @model_validator(mode="after")
    def compute_wastage(self) -> "InventoryCountItem":
        """Wastage is always derived from the two stock figures."""
        difference = self.system_stock - self.counted_stock
        # Rewound stock carries float noise; a matching count has no wastage
        self.wastage = 0.0 if abs(difference) <= STOCK_EPSILON else difference
        return self

    @property
    def adjustment(self) -> float:
        """Stock delta needed to bring the ledger in line with the count."""
        return -self.wastage


class InventoryCount(BaseModel):
    """
    A physical inventory count as of the end of ``count_date``.

    Drafts have no ``id`` and no ``created_at``; both are assigned when the
    count is committed.
    """

    id: str | None = None
    count_date: date
    as_of: datetime
    items: list[InventoryCountItem] = Field(default_factory=list)
    created_at: datetime | None = None

    @property
    def total_wastage(self) -> float:
        return sum(item.wastage for item in self.items)

    @property
    def items_with_adjustment(self) -> list[InventoryCountItem]:
        return [item for item in self.items if abs(item.adjustment) > STOCK_EPSILON]
