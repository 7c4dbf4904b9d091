"""
Unit conversion between purchase/recipe units and canonical material units.

Only the weight and volume pairs below are convertible. Any other pair falls
back to a factor of 1 unless strict mode is requested.
"""

from buffet.core.entities.material import MaterialUnit
from buffet.core.exceptions import ValidationError

CONVERSION_FACTORS: dict[tuple[MaterialUnit, MaterialUnit], float] = {
    (MaterialUnit.G, MaterialUnit.KG): 0.001,
    (MaterialUnit.KG, MaterialUnit.G): 1000.0,
    (MaterialUnit.ML, MaterialUnit.L): 0.001,
    (MaterialUnit.L, MaterialUnit.ML): 1000.0,
}


def _as_unit(value: MaterialUnit | str, field: str) -> MaterialUnit:
    try:
        return MaterialUnit(value)
    except ValueError as e:
        raise ValidationError(field, f"Unknown unit '{value}'", value) from e


def convert(
    from_unit: MaterialUnit | str,
    to_unit: MaterialUnit | str,
    *,
    strict: bool = False,
) -> float:
    """
    Return the multiplier turning a quantity in ``from_unit`` into ``to_unit``.

    Args:
        from_unit: Unit the quantity is expressed in
        to_unit: Canonical unit of the material
        strict: Raise ValidationError for pairs without a known factor

    Returns:
        Conversion factor (1.0 for identical or unsupported pairs)
    """
    source = _as_unit(from_unit, "from_unit")
    target = _as_unit(to_unit, "to_unit")
    if source == target:
        return 1.0

    factor = CONVERSION_FACTORS.get((source, target))
    if factor is None:
        if strict:
            raise ValidationError(
                "unit",
                f"No conversion from {source.value} to {target.value}",
                source.value,
            )
        return 1.0
    return factor


def to_canonical_quantity(
    quantity: float,
    item_unit: MaterialUnit | str,
    material_unit: MaterialUnit | str,
    *,
    strict: bool = False,
) -> float:
    """Express ``quantity`` in the material's canonical unit."""
    return quantity * convert(item_unit, material_unit, strict=strict)
