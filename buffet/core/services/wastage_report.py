"""Purchased versus sold summary per material."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.entities.material import Material

UNKNOWN_MATERIAL = "Unknown"


@dataclass
class WastageReportRow:
    """Wastage of one material over a period."""

    material_id: str
    material_name: str
    unit: str
    purchased: float
    sold: float
    waste: float
    waste_percentage: float


def summarize_wastage(
    entries: Iterable[AuditLogEntry],
    materials: Mapping[str, Material],
) -> list[WastageReportRow]:
    """
    Build wastage rows from the audit entries of a period.

    Adjustments are ignored; sale entries are netted, so a cancelled order
    cancels its own consumption. Rows are sorted by waste percentage, highest
    first; a material with no purchases has a percentage of 0.
    """
    purchased: dict[str, float] = {}
    sold: dict[str, float] = {}

    for entry in entries:
        if entry.type == AuditLogType.PURCHASE:
            purchased[entry.material_id] = purchased.get(entry.material_id, 0.0) + entry.change
        elif entry.type == AuditLogType.SALE:
            # Consumption is negative, cancelled orders return stock as positive sales
            sold[entry.material_id] = sold.get(entry.material_id, 0.0) - entry.change

    rows = []
    for material_id in dict.fromkeys([*purchased, *sold]):
        bought = purchased.get(material_id, 0.0)
        used = sold.get(material_id, 0.0)
        waste = bought - used
        material = materials.get(material_id)

        rows.append(
            WastageReportRow(
                material_id=material_id,
                material_name=material.name if material else UNKNOWN_MATERIAL,
                unit=material.unit.value if material else "",
                purchased=bought,
                sold=used,
                waste=waste,
                waste_percentage=(waste / bought * 100) if bought > 0 else 0.0,
            )
        )

    rows.sort(key=lambda row: row.waste_percentage, reverse=True)
    return rows
