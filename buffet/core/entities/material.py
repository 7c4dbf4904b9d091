"""
Material domain entity.

A raw inventory good tracked by stock quantity in its canonical unit.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Float noise tolerated when comparing stock quantities
STOCK_EPSILON = 1e-9


class MaterialUnit(str, Enum):
    """Closed set of units a material or purchase line may use."""

    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"
    PIECE = "piece"


class Material(BaseModel):
    """
    A material in the catalogue.

    ``stock`` is only ever changed by audited stock operations running
    inside a unit of work; ``version`` guards those writes.
    """

    id: str | None = None
    name: str
    stock: float = 0.0
    unit: MaterialUnit
    low_stock_threshold: float = Field(default=0.0, ge=0)
    version: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @property
    def is_low_stock(self) -> bool:
        return self.stock < self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock == 0
