"""Drink and recipe entities."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from buffet.core.entities.material import MaterialUnit


class DrinkRecipeItem(BaseModel):
    """Quantity of a material consumed to make one drink."""

    material_id: str
    quantity: float = Field(..., gt=0)
    unit: MaterialUnit


class Drink(BaseModel):
    """A drink on the menu."""

    id: str | None = None
    name: str
    price: float = Field(default=0.0, ge=0)
    recipe: list[DrinkRecipeItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
