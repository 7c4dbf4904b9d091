"""Generate Wastage Report Use Case."""

from datetime import tzinfo

from buffet.application.dto.requests import WastageReportRequest
from buffet.config import get_logger, get_settings
from buffet.core.entities.material import Material
from buffet.core.interfaces.audit_log_store import IAuditLogStore
from buffet.core.interfaces.material_store import IMaterialStore
from buffet.core.services.inventory_count_engine import end_of_day, start_of_day
from buffet.core.services.wastage_report import WastageReportRow, summarize_wastage

logger = get_logger(__name__)


class GenerateWastageReportUseCase:
    """Purchased versus sold per material over whole business days."""

    def __init__(
        self,
        audit_log_store: IAuditLogStore | None = None,
        material_store: IMaterialStore | None = None,
        tz: tzinfo | None = None,
    ):
        self._audit_log_store = audit_log_store
        self._material_store = material_store
        self._tz = tz

    async def _get_audit_log_store(self) -> IAuditLogStore:
        if self._audit_log_store is None:
            from buffet.infrastructure.storage.sqlite import get_audit_log_store

            self._audit_log_store = await get_audit_log_store()
        return self._audit_log_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from buffet.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def execute(self, request: WastageReportRequest) -> list[WastageReportRow]:
        tz = self._tz or get_settings().inventory.tzinfo
        start = start_of_day(request.start_date, tz)
        end = end_of_day(request.last_day, tz)

        audit_store = await self._get_audit_log_store()
        entries = await audit_store.query_range(None, start, end)

        mat_store = await self._get_material_store()
        materials: dict[str, Material] = {}
        for material_id in dict.fromkeys(entry.material_id for entry in entries):
            material = await mat_store.get_material(material_id)
            if material is not None:
                materials[material_id] = material

        rows = summarize_wastage(entries, materials)
        logger.info(
            "wastage_report_generated",
            start=request.start_date.isoformat(),
            end=request.last_day.isoformat(),
            rows=len(rows),
        )
        return rows
