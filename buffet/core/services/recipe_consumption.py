"""Material consumption of drink orders."""

from collections.abc import Iterable, Mapping

from buffet.core.entities.drink import Drink
from buffet.core.entities.material import Material
from buffet.core.exceptions import MaterialNotFoundError
from buffet.core.services.unit_conversion import to_canonical_quantity


def recipe_material_ids(drinks: Iterable[Drink]) -> list[str]:
    """Distinct material ids used by ``drinks``, in first-seen order."""
    seen: dict[str, None] = {}
    for drink in drinks:
        for line in drink.recipe:
            seen.setdefault(line.material_id, None)
    return list(seen)


def aggregate_consumption(
    ordered: Iterable[tuple[Drink, int]],
    materials: Mapping[str, Material],
    *,
    strict: bool = False,
) -> dict[str, float]:
    """
    Total quantity of each material consumed by an order.

    Args:
        ordered: (drink, number of drinks) pairs
        materials: Materials referenced by the recipes, keyed by id
        strict: Reject recipe units that cannot be converted

    Returns:
        Consumed quantity per material id in the material's canonical unit
    """
    totals: dict[str, float] = {}
    for drink, count in ordered:
        for line in drink.recipe:
            material = materials.get(line.material_id)
            if material is None:
                raise MaterialNotFoundError(line.material_id)
            quantity = to_canonical_quantity(
                line.quantity * count, line.unit, material.unit, strict=strict
            )
            totals[line.material_id] = totals.get(line.material_id, 0.0) + quantity
    return totals
