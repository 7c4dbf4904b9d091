"""
Historical stock reconstruction and inventory count adjustments.

The stock of a material at the end of a past day is its current stock with
every later audit delta subtracted again ("rewound").
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, time, tzinfo

from buffet.config import get_logger
from buffet.core.entities.audit_log import AuditLogEntry, AuditLogType
from buffet.core.entities.inventory_count import InventoryCount, InventoryCountItem
from buffet.core.interfaces.transaction import IUnitOfWork

logger = get_logger(__name__)


def start_of_day(day: date, tz: tzinfo = UTC) -> datetime:
    """First instant of ``day`` in ``tz``, as UTC."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def end_of_day(day: date, tz: tzinfo = UTC) -> datetime:
    """Last representable instant of ``day`` in ``tz``, as UTC."""
    return datetime.combine(day, time.max, tzinfo=tz).astimezone(UTC)


def rewind_stock(current_stock: float, entries_after: Iterable[AuditLogEntry]) -> float:
    """Undo every change in ``entries_after`` starting from ``current_stock``."""
    stock = current_stock
    for entry in entries_after:
        stock -= entry.change
    return stock


class InventoryCountEngine:
    """Builds count reports and stages their adjustments."""

    def __init__(self, tz: tzinfo = UTC):
        self._tz = tz

    def as_of(self, count_date: date) -> datetime:
        """Cutoff instant a count for ``count_date`` represents."""
        return end_of_day(count_date, self._tz)

    async def compute_report(
        self,
        uow: IUnitOfWork,
        count_date: date,
        counts: Mapping[str, float | None],
    ) -> InventoryCount:
        """
        Reconstruct system stock for every counted material.

        Materials mapped to ``None`` have no physical count and are skipped.
        Nothing is written.
        """
        cutoff = self.as_of(count_date)
        items: list[InventoryCountItem] = []

        for material_id, counted in counts.items():
            if counted is None:
                continue

            material = await uow.get_material(material_id)
            later_entries = await uow.get_audit_entries_after(material_id, cutoff)
            system_stock = rewind_stock(material.stock, later_entries)

            items.append(
                InventoryCountItem(
                    material_id=material_id,
                    material_name=material.name,
                    unit=material.unit,
                    system_stock=system_stock,
                    counted_stock=counted,
                )
            )

        logger.info(
            "inventory_report_computed",
            count_date=count_date.isoformat(),
            items=len(items),
        )
        return InventoryCount(count_date=count_date, as_of=cutoff, items=items)

    async def commit_report(
        self,
        uow: IUnitOfWork,
        draft: InventoryCount,
        count_id: str,
        now: datetime,
    ) -> InventoryCount:
        """
        Stage stock adjustments and the count record.

        Each non-zero difference is added to the material's current stock and
        logged as an adjustment dated at the count's cutoff, so that later
        reports rewind it correctly. The draft's system stock figures are
        saved unchanged.
        """
        cutoff = self.as_of(draft.count_date)
        adjustments = draft.items_with_adjustment

        # Read every material before staging anything
        await uow.get_materials(item.material_id for item in adjustments)

        for item in adjustments:
            uow.adjust_stock(item.material_id, item.adjustment)
            uow.append_audit_entry(
                item.material_id,
                item.adjustment,
                AuditLogType.ADJUSTMENT,
                count_id,
                created_at=cutoff,
            )

        saved = draft.model_copy(
            update={"id": count_id, "as_of": cutoff, "created_at": now}
        )
        uow.save_inventory_count(saved)

        logger.info(
            "inventory_count_staged",
            count_id=count_id,
            adjustments=len(adjustments),
        )
        return saved
