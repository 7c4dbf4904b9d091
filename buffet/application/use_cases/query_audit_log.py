"""Query Audit Log Use Case."""

from buffet.application.dto.requests import AuditLogQueryRequest
from buffet.core.entities.audit_log import AuditLogEntry
from buffet.core.interfaces.audit_log_store import IAuditLogStore


class QueryAuditLogUseCase:
    """Read ledger entries, optionally for one material and a time range."""

    def __init__(self, audit_log_store: IAuditLogStore | None = None):
        self._audit_log_store = audit_log_store

    async def _get_audit_log_store(self) -> IAuditLogStore:
        if self._audit_log_store is None:
            from buffet.infrastructure.storage.sqlite import get_audit_log_store

            self._audit_log_store = await get_audit_log_store()
        return self._audit_log_store

    async def execute(self, request: AuditLogQueryRequest) -> list[AuditLogEntry]:
        store = await self._get_audit_log_store()
        if request.date_range is None:
            return await store.list_entries(request.material_id)

        start, end = request.date_range
        return await store.query_range(request.material_id, start, end)
